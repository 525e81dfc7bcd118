"""
Exceptions raised while importing source spreadsheets.

UnsupportedFormatError and ReadFailureError are fatal for the whole upload
batch. MalformedSheetError only skips the offending sheet.
"""


class MetricsImportError(Exception):
    """Base class for import failures; remembers the file that caused it."""

    def __init__(self, message: str, filename: str | None = None) -> None:
        super().__init__(message)
        self.filename = filename


class UnsupportedFormatError(MetricsImportError):
    """File extension is not one of .xlsx, .xls, .csv."""


class ReadFailureError(MetricsImportError):
    """File exists with a supported extension but could not be decoded."""


class MalformedSheetError(MetricsImportError):
    """Sheet has no usable header row."""

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        sheet_name: str | None = None,
    ) -> None:
        super().__init__(message, filename)
        self.sheet_name = sheet_name
