"""Domain errors raised by the publish pipeline."""

from typing import List


class PagewrightError(Exception):
    """Base class for every error raised by this package."""

    code = "PAGEWRIGHT_ERROR"


class PreflightViolation(PagewrightError):
    """Publish blocked by one or more cross-page invariant violations.

    ``details`` always holds the complete, ordered list of human-readable
    violations so a caller can show every problem at once.
    """

    code = "PUBLISH_PREFLIGHT_FAILED"

    def __init__(self, details: List[str]):
        super().__init__("Publish preflight validation failed")
        self.details = list(details)


class ReferenceNotFound(PagewrightError):
    """A project, page or publish record could not be found in scope."""

    code = "NOT_FOUND"

    def __init__(self, kind: str, ref: str):
        super().__init__(f"{kind} '{ref}' not found")
        self.kind = kind
        self.ref = ref


class PublishFailure(PagewrightError):
    """A publish attempt failed after its record was created."""

    code = "PUBLISH_FAILED"

    def __init__(self, publish_id: str, message: str):
        super().__init__(message)
        self.publish_id = publish_id


class InvalidTransition(PagewrightError):
    """Attempt to move a publish record out of a terminal state."""

    code = "INVALID_TRANSITION"
