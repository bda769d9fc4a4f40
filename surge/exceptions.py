"""
Defines custom exceptions for the application to allow for more specific error handling.

Everything raised on purpose derives from `SurgeError`. The command interpreter
is the single place that turns these into messages for the user; nothing in
this hierarchy is meant to end the interactive session.
"""


class SurgeError(Exception):
    """Base exception for all application-specific errors."""


class UserInputError(SurgeError):
    """Raised for a command the session cannot act on. State is left unchanged."""


class InvalidSelectionError(UserInputError):
    """Raised when a result index is not a number or is out of range."""


class NoSelectionError(UserInputError):
    """Raised when an operation needs a current selection and there is none."""


class EmptyResultSetError(UserInputError):
    """Raised when browsing is attempted with no results loaded."""


class MissingArgumentError(UserInputError):
    """Raised when a command is given without its required argument."""


class UnknownCommandError(UserInputError):
    """Raised for a command word the interpreter does not recognize."""


class CollaboratorError(SurgeError):
    """Base class for failures of the backend, downloader, player or renderer."""


class BackendError(CollaboratorError):
    """Raised when the search/metadata API cannot be reached or rejects a request."""


class DownloadError(CollaboratorError):
    """Raised when an audio stream could not be fetched to local storage."""


class PlaybackError(CollaboratorError):
    """Raised when the audio player cannot open or play a file."""


class RenderError(CollaboratorError):
    """Raised when a downloaded thumbnail cannot be decoded."""


class ConfigurationError(SurgeError):
    """Raised for issues related to configuration loading or validation."""
