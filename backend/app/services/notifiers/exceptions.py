"""Notification dispatch exceptions."""


class NotifierError(Exception):
    """Base exception for notification dispatch."""


class NotifierConfigurationError(NotifierError):
    """Raised when a dispatcher needed by a form is not configured."""
