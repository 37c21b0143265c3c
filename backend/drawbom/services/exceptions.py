"""Errors raised by the decoder adapters. The extraction core itself never raises these."""


class DrawingDecodeError(RuntimeError):
    """A PDF or CAD file could not be read into text."""

    def __init__(self, message: str, filename: str = ""):
        super().__init__(message)
        self.filename = filename


class UnsupportedDrawingError(DrawingDecodeError):
    """File extension is not one of the supported drawing formats."""
