"""Interchange exceptions."""


class InterchangeError(Exception):
    """Base exception for import/export problems."""
    pass


class ImportFormatError(InterchangeError):
    """
    The import file as a whole cannot be used.

    Raised for malformed JSON, JSON that is not a list of valid
    transactions, and unsupported file types. Nothing is imported.
    """
    pass
