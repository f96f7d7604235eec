class StudyHelperError(Exception):
    """Base class for errors raised by the study session controllers."""


class NotFoundError(StudyHelperError, LookupError):
    """A referenced subject or question does not exist."""


class InvalidStateError(StudyHelperError):
    """The operation needs state that is not there (no current question, no selection...).

    Raising it never mutates anything, so callers can treat it as a no-op.
    """
