"""
Custom exception classes for the API schema editor.

Validation failures of a submitted form are returned as error reports, not
raised. The exceptions below cover malformed wire input, malformed stored
documents, edits to locked fields, re-entrant submission and persistence
failures.
"""

import logging
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class SchemaFormError(Exception):
    """
    Base exception for schema editor errors.

    Attributes:
        message: Error message
        context: Additional context information
        recovery_suggestions: List of suggested recovery actions
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 recovery_suggestions: Optional[List[str]] = None):
        self.message = message
        self.context = context or {}
        self.recovery_suggestions = recovery_suggestions or []
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def get_full_details(self) -> Dict[str, Any]:
        """Get complete error details including context and suggestions."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': self.context,
            'recovery_suggestions': self.recovery_suggestions
        }


class FormPathError(SchemaFormError):
    """
    Raised when a flat form path is malformed or conflicts with another path.
    """

    def __init__(self, path: str, issue: str, message: Optional[str] = None):
        self.path = path
        self.issue = issue

        if message is None:
            message = f"Invalid form path '{path}': {issue}"

        context = {
            'path': path,
            'issue': issue
        }

        recovery_suggestions = [
            "Use dot-separated segments such as 'bodyJson.children[0].name'",
            "Do not submit a value and nested fields under the same path"
        ]

        super().__init__(message, context, recovery_suggestions)


class FieldLockedError(SchemaFormError):
    """Raised when an edit targets a field the editor keeps fixed."""

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(
            f"Field '{field_name}' cannot be edited: {reason}",
            {'field': field_name, 'reason': reason}
        )


class SubmissionInProgressError(SchemaFormError):
    """Raised when a submission starts while another one is outstanding."""

    def __init__(self, api_id: str):
        self.api_id = api_id
        super().__init__(
            f"A submission for API '{api_id}' is already in progress",
            {'api_id': api_id},
            ["Wait for the current save to finish before saving again"]
        )


class PersistenceError(SchemaFormError):
    """
    Raised when the API store cannot read or write a document.

    Wraps the underlying OS or serialization error.
    """

    def __init__(self, api_id: str, operation: str, original_error: Exception,
                 message: Optional[str] = None):
        self.api_id = api_id
        self.operation = operation
        self.original_error = original_error

        if message is None:
            message = f"Failed to {operation} API '{api_id}': {str(original_error)}"

        context = {
            'api_id': api_id,
            'operation': operation,
            'original_error_type': type(original_error).__name__,
            'original_error_message': str(original_error)
        }

        recovery_suggestions = [
            "Check that the storage directory exists and is writable",
            "Verify the stored document is valid JSON",
            "Your edits are kept in the form; try saving again"
        ]

        super().__init__(message, context, recovery_suggestions)


class DocumentFormatError(SchemaFormError):
    """Raised when a stored API document cannot be loaded into the editor."""

    def __init__(self, document: str, original_error: Exception):
        self.document = document
        self.original_error = original_error
        super().__init__(
            f"API document '{document}' is malformed: {str(original_error)}",
            {
                'document': document,
                'original_error_type': type(original_error).__name__,
                'original_error_message': str(original_error)
            },
            [
                "Check that every schema node has a known type",
                "Check that every parameter row has a name"
            ]
        )


def log_error_with_context(error: SchemaFormError, operation: str) -> None:
    """
    Log a schema editor error with its full context.

    Args:
        error: The error to log
        operation: Description of the operation that failed
    """
    details = error.get_full_details()
    logger.error(f"{operation} failed: {details['error_type']}: {details['message']}")
    if details['context']:
        logger.debug(f"Error context: {details['context']}")
