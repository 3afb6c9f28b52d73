"""Error taxonomy shared by every xck component."""

from __future__ import annotations


class Xml2CsvError(Exception):
    """Base class for all errors raised by xck."""


class ConfigurationError(Xml2CsvError):
    """The mapping configuration is invalid and no document can be processed."""


class ExtractionError(Xml2CsvError):
    """Evaluating the mappings against one document failed.

    Only the current document is affected, the caller decides whether the
    rest of the batch continues.
    """

    def __init__(self, message: str, document: str | None = None) -> None:
        self.document = document
        if document:
            message = f"{document}: {message}"
        super().__init__(message)


class OutputError(Xml2CsvError):
    """An output file could not be created or written."""


class InternalInvariantError(Xml2CsvError):
    """An internal invariant was violated; indicates a defect, never bad input."""
