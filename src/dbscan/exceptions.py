"""
Scan-specific exception classes.
"""


class ScanError(Exception):
    """Base class for all scan module errors.
    """


class DestinationNotWritable(ScanError):
    """Destination is missing, not a reference, or not assignable at some level.
    """


class ConversionFailed(ScanError):
    """Raw value could not be coerced into the field's static type.
    """


class UnsupportedConversion(ScanError):
    """No conversion rule exists from the raw value to the field's kind.
    """


class TextDecodeFailed(ScanError):
    """Raw value expected to be text could not be decoded.
    """


class EmptyResult(ScanError):
    """Single-record destination requested but the cursor produced no rows.
    """


class CursorError(ScanError):
    """Cursor returned no result set or a row of the wrong width.
    """


ConversionError = (
    ConversionFailed,
    UnsupportedConversion,
    TextDecodeFailed,
    )
