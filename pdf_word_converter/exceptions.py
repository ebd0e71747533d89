"""Exception types shared by the conversion server and the client."""

from typing import Optional


class ConverterError(Exception):
    """Base class for all pdf_word_converter errors."""


class UploadValidationError(ConverterError):
    """An upload batch was rejected before any file reached conversion."""

    NO_FILES = "No files uploaded"
    TOO_LARGE = "File too large. Maximum size is {max_mb}MB."
    NOT_PDF = "Only PDF files are allowed!"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConversionFailedError(ConverterError):
    """Converting a single file failed."""


class FileNotFoundInStorageError(ConverterError):
    """A converted file is unknown or has already been swept."""

    def __init__(self, name: str):
        super().__init__(f"File not found: {name}")
        self.name = name


class ConverterAPIError(ConverterError):
    """The conversion API could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
