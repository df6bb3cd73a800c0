"""Exception hierarchy for curve file ingestion.

Single-file entry points raise these; batch entry points catch them per file
and turn them into skip entries.
"""

from __future__ import annotations


class CurveViewerError(Exception):
    """Base class for all package errors."""


class DocumentParseError(CurveViewerError, ValueError):
    """The XML text is not well-formed and cannot be turned into a document."""


class ArchiveError(CurveViewerError):
    """Base class for ``.zpg`` container problems."""


class ArchiveDecompressionError(ArchiveError):
    """The container is not a readable zip archive or an entry cannot be inflated."""


class NoXmlEntryError(ArchiveError):
    """The container is a valid archive but holds no ``*.xml`` entry."""


class UnsupportedFileError(CurveViewerError):
    """The path is neither ``.xml`` nor ``.zpg``, or it is an editor temp/lock file."""
