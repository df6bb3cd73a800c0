"""Ingestion layer: curve files on disk -> ImportedFile objects.

Contract
- Single-file functions (``import_file``, ``parse_document``,
  ``extract_from_archive``) raise on failure.
- Batch functions (``import_files``, ``parse_files_parallel``) never raise for
  one bad file: it is logged and listed in ``ImportReport.skipped``.
- Point strings are decoded best-effort (truncated, never padded).
"""

from .archive import extract_from_archive
from .discovery import expand_paths, is_temp_file, is_xml_file, is_zpg_file, scan_directory
from .importer import ImportReport, SkippedFile, import_bytes, import_file, import_files
from .points import decode_points
from .pool import ParseBatch, ParsePool, ParseRequest, parse_files_parallel
from .xml_parser import IdGenerator, map_value_status, parse_document

__all__ = [
    "extract_from_archive",
    "expand_paths",
    "is_temp_file",
    "is_xml_file",
    "is_zpg_file",
    "scan_directory",
    "ImportReport",
    "SkippedFile",
    "import_bytes",
    "import_file",
    "import_files",
    "decode_points",
    "ParseBatch",
    "ParsePool",
    "ParseRequest",
    "parse_files_parallel",
    "IdGenerator",
    "map_value_status",
    "parse_document",
]
