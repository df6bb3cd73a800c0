"""File import: read bytes, route through the archive extractor, parse.

``import_file`` / ``import_bytes`` handle one file and raise on failure.
``import_files`` handles a batch: it never raises for a single bad file, it
logs it and records a :class:`SkippedFile` instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from curve_viewer.config import ViewerConfig
from curve_viewer.errors import CurveViewerError, UnsupportedFileError
from curve_viewer.ingest.archive import extract_from_archive
from curve_viewer.ingest.discovery import DEFAULT_EXTENSIONS, check_supported, is_zpg_file
from curve_viewer.ingest.xml_parser import IdGenerator, parse_document
from curve_viewer.models.files import ImportedFile
from curve_viewer.progress import CancelToken, ProgressCallback, is_cancelled

logger = logging.getLogger(__name__)

BatchCallback = Callable[[List[ImportedFile]], None]


@dataclass(frozen=True)
class SkippedFile:
    path: str
    reason: str


@dataclass(frozen=True)
class ImportReport:
    """Outcome of a batch import.

    ``submitted`` counts every path handed in, including those never reached
    because of cancellation.
    """
    files: Tuple[ImportedFile, ...]
    skipped: Tuple[SkippedFile, ...]
    submitted: int
    cancelled: bool = False

    @property
    def n_imported(self) -> int:
        return len(self.files)

    def summary(self) -> str:
        s = f"Imported {self.n_imported} of {self.submitted} files"
        if self.skipped:
            s += f" ({len(self.skipped)} skipped)"
        if self.cancelled:
            s += " [cancelled]"
        return s


# ----------------------------------------------------------------------
# Single file
# ----------------------------------------------------------------------

def decode_document_bytes(data: bytes, filename: str) -> str:
    """Return the XML text of a file's bytes (``.zpg`` is inflated first)."""
    if is_zpg_file(filename):
        return extract_from_archive(data)
    return data.decode("utf-8-sig", errors="replace")


def import_bytes(data: bytes, filename: str, ids: Optional[IdGenerator] = None) -> ImportedFile:
    """Parse in-memory file content.  ``filename`` decides ``.xml`` vs ``.zpg``."""
    check_supported(filename)
    return parse_document(decode_document_bytes(data, filename), Path(filename).name, ids=ids)


def import_file(
    path,
    ids: Optional[IdGenerator] = None,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> ImportedFile:
    """
    Read and parse one ``.xml`` / ``.zpg`` file.

    Raises
    ------
    UnsupportedFileError, FileNotFoundError, DocumentParseError, ArchiveError
    """
    p = check_supported(path, extensions)
    if not p.is_file():
        raise FileNotFoundError(f"File not found: '{p}'")
    data = p.read_bytes()
    return parse_document(decode_document_bytes(data, p.name), p.name, ids=ids)


def try_import(
    path,
    ids: Optional[IdGenerator] = None,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> Tuple[Optional[ImportedFile], Optional[SkippedFile]]:
    """``import_file`` that turns per-file failures into a SkippedFile."""
    try:
        return import_file(path, ids=ids, extensions=extensions), None
    except UnsupportedFileError as e:
        logger.info("Skipping %s: %s", path, e)
        return None, SkippedFile(str(path), str(e))
    except (CurveViewerError, OSError) as e:
        logger.warning("Failed to import %s: %s", path, e)
        return None, SkippedFile(str(path), f"{type(e).__name__}: {e}")


# ----------------------------------------------------------------------
# Batch
# ----------------------------------------------------------------------

def iter_batches(items: Sequence, size: int) -> Iterable[Sequence]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


def import_files(
    paths: Sequence,
    config: Optional[ViewerConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
    on_batch: Optional[BatchCallback] = None,
    cancel: Optional[CancelToken] = None,
    ids: Optional[IdGenerator] = None,
) -> ImportReport:
    """
    Sequentially import files in sub-batches of ``config.batch_size``.

    After each sub-batch ``on_batch`` receives the files parsed in it (only
    when non-empty) and ``on_progress(done, total, last_filename)`` fires.
    Cancellation is checked before each sub-batch; files already imported are
    returned.
    """
    config = config or ViewerConfig()
    ids = ids or IdGenerator()
    paths = list(paths)
    total = len(paths)

    files: List[ImportedFile] = []
    skipped: List[SkippedFile] = []
    cancelled = False
    done = 0

    for batch in iter_batches(paths, config.batch_size):
        if is_cancelled(cancel):
            cancelled = True
            logger.info("Import cancelled after %d of %d files", done, total)
            break
        parsed: List[ImportedFile] = []
        for p in batch:
            f, skip = try_import(p, ids=ids, extensions=config.extensions)
            if f is not None:
                parsed.append(f)
            if skip is not None:
                skipped.append(skip)
        files.extend(parsed)
        if parsed and on_batch is not None:
            on_batch(parsed)
        done += len(batch)
        if on_progress is not None:
            on_progress(done, total, Path(batch[-1]).name)

    report = ImportReport(tuple(files), tuple(skipped), total, cancelled)
    logger.info(report.summary())
    return report
