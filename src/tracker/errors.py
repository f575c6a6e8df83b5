from __future__ import annotations

from typing import List, Optional, Union


class TrackerError(RuntimeError):
    """Base error for the tracker client."""


class ResponseValidationError(TrackerError):
    """Response did not have the expected shape or reported a service error."""

    def __init__(
        self,
        message: str,
        *,
        errors: Optional[List[str]] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.errors: List[str] = list(errors or [])
        self.status_code = status_code


class RecordParseError(TrackerError):
    """A typed leaf value could not be coerced (e.g. non-numeric integer)."""


class MalformedXmlError(RecordParseError):
    """Payload is not well-formed XML."""


class RecordSerializeError(TrackerError, ValueError):
    """A record cannot be written as XML (bad field name or illegal character)."""


class InvalidStateError(TrackerError, ValueError):
    """Requested lifecycle state is not one of the known story states."""


class StoryNotFoundError(TrackerError, LookupError):
    """Referenced story does not exist."""

    def __init__(self, story_id: Union[int, str, None]) -> None:
        super().__init__(f"No story with id: {story_id}")
        self.story_id = story_id


class TrackerTransportError(TrackerError):
    """Network or TLS failure talking to the service."""


__all__ = [
    "TrackerError",
    "ResponseValidationError",
    "RecordParseError",
    "MalformedXmlError",
    "RecordSerializeError",
    "InvalidStateError",
    "StoryNotFoundError",
    "TrackerTransportError",
]
