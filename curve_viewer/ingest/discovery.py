from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Sequence

from curve_viewer.errors import UnsupportedFileError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".xml", ".zpg")


def is_temp_file(path) -> bool:
    """Office/editor lock and temp files (``~$name.xml``, ``~name.xml``)."""
    return Path(path).name.startswith("~")


def is_xml_file(path) -> bool:
    return Path(path).suffix.lower() == ".xml"


def is_zpg_file(path) -> bool:
    return Path(path).suffix.lower() == ".zpg"


def is_supported_file(path, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> bool:
    p = Path(path)
    return p.suffix.lower() in extensions and not is_temp_file(p)


def check_supported(path, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> Path:
    """Return ``path`` as a Path or raise UnsupportedFileError."""
    p = Path(path)
    if is_temp_file(p):
        raise UnsupportedFileError(f"Temporary file skipped: '{p.name}'")
    if p.suffix.lower() not in extensions:
        raise UnsupportedFileError(
            f"Unsupported file type '{p.suffix}' for '{p.name}' (expected one of {', '.join(extensions)})"
        )
    return p


def scan_directory(root, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> List[Path]:
    """
    Recursively list curve files under ``root``.

    Extensions match case-insensitively; temp files are skipped.  The result is
    sorted for a stable import order.
    """
    r = Path(root).expanduser()
    if not r.is_dir():
        raise FileNotFoundError(f"Directory not found: '{root}'")
    found = sorted(p for p in r.rglob("*") if p.is_file() and is_supported_file(p, extensions))
    logger.info("Found %d curve files under %s", len(found), r)
    return found


def expand_paths(paths: Iterable, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> List[Path]:
    """
    Expand a mixed list of files and directories into curve file paths.

    Directories are scanned recursively; explicit files are kept only when
    supported.  Duplicates are dropped, first occurrence wins.
    """
    out: List[Path] = []
    seen = set()
    for raw in paths:
        p = Path(raw).expanduser()
        if p.is_dir():
            candidates = scan_directory(p, extensions)
        elif p.is_file():
            if not is_supported_file(p, extensions):
                logger.info("Skipping unsupported file %s", p)
                continue
            candidates = [p]
        else:
            raise FileNotFoundError(f"Path not found: '{raw}'")
        for c in candidates:
            key = c.resolve()
            if key in seen:
                continue
            seen.add(key)
            out.append(c)
    return out
