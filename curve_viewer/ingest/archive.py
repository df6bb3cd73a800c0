"""``.zpg`` container extraction.

A ``.zpg`` file is a zip archive holding the XML curve document.  The whole
archive is inflated in memory; files are a few MB at most.
"""

from __future__ import annotations

import io
import logging
import zipfile
import zlib

from curve_viewer.errors import ArchiveDecompressionError, NoXmlEntryError

logger = logging.getLogger(__name__)


def _decode(raw: bytes) -> str:
    # utf-8-sig drops a leading BOM if present
    return raw.decode("utf-8-sig", errors="replace")


def find_xml_entry(zf: zipfile.ZipFile) -> str:
    """Name of the first entry (archive order) ending with ``.xml``, any case."""
    for info in zf.infolist():
        if info.is_dir():
            continue
        if info.filename.lower().endswith(".xml"):
            return info.filename
    raise NoXmlEntryError("No XML file found in ZPG archive")


def extract_from_archive(data: bytes) -> str:
    """
    Return the UTF-8 text of the first ``*.xml`` entry of a zip container.

    Raises
    ------
    ArchiveDecompressionError
        If ``data`` is not a zip archive or the entry cannot be inflated.
    NoXmlEntryError
        If the archive contains no ``*.xml`` entry.
    """
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as e:
        raise ArchiveDecompressionError(f"Not a readable zip archive: {e}") from e

    with zf:
        name = find_xml_entry(zf)
        try:
            raw = zf.read(name)
        except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError, OSError, EOFError) as e:
            raise ArchiveDecompressionError(f"Cannot inflate entry '{name}': {e}") from e

    logger.debug("Extracted %s (%d bytes) from archive", name, len(raw))
    return _decode(raw)
