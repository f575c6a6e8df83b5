"""
Client for the project tracker's REST/XML API.

Modules:
- client: TrackerClient with story, comment and project operations
- xml_records: XML element <-> record mapping and serialization
- validation: response shape and service-error detection
- lifecycle: story states and the state change guard
"""

from .client import TrackerClient
from .errors import (
    InvalidStateError,
    MalformedXmlError,
    RecordParseError,
    RecordSerializeError,
    ResponseValidationError,
    StoryNotFoundError,
    TrackerError,
    TrackerTransportError,
)
from .lifecycle import VALID_STATES, StoryState
from .models import Note, Project

__all__ = [
    "TrackerClient",
    "TrackerError",
    "ResponseValidationError",
    "RecordParseError",
    "RecordSerializeError",
    "MalformedXmlError",
    "InvalidStateError",
    "StoryNotFoundError",
    "TrackerTransportError",
    "StoryState",
    "VALID_STATES",
    "Note",
    "Project",
]
