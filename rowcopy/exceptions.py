"""Exceptions raised while copying table rows."""
from typing import Any, Dict, Optional


class RowCopyError(Exception):
    """Base class for all rowcopy errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the error to a dictionary.

        Returns:
            Dictionary with error name, message and optional details
        """
        result = {
            'error': self.__class__.__name__,
            'message': self.message,
        }
        if self.details:
            result['details'] = self.details
        return result


class ConfigurationError(RowCopyError):
    """Invalid job parameters, configuration file or translation mapping."""


class DataIntegrityError(RowCopyError):
    """A row's value count does not match the active column count."""


class DatabaseExecutionError(RowCopyError):
    """A statement failed against the database."""
