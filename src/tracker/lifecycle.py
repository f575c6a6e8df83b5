from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple, Union

from .errors import InvalidStateError, StoryNotFoundError
from .xml_records import Record


class StoryState(str, Enum):
    """Story lifecycle states, in their conventional progression."""

    UNSCHEDULED = "unscheduled"
    UNSTARTED = "unstarted"
    STARTED = "started"
    FINISHED = "finished"
    DELIVERED = "delivered"
    ACCEPTED = "accepted"


VALID_STATES: Tuple[str, ...] = tuple(s.value for s in StoryState)


def ensure_valid_state(state: Union[str, StoryState]) -> StoryState:
    """Return the matching StoryState or raise InvalidStateError."""
    value = state.value if isinstance(state, StoryState) else state
    try:
        return StoryState(value)
    except ValueError:
        raise InvalidStateError(
            f"Invalid state: {state}. Valid states are: {', '.join(VALID_STATES)}"
        ) from None


def apply_state_change(
    story: Optional[Record],
    new_state: Union[str, StoryState],
    *,
    story_id: Union[int, str, None] = None,
) -> Record:
    """
    Set `current_state` on a fetched story and return it for persisting.

    Any valid state is accepted from any current state; only membership in
    the known set is checked.
    """
    if story is None:
        raise StoryNotFoundError(story_id)
    state = ensure_valid_state(new_state)
    story["current_state"] = state.value
    return story


__all__ = ["StoryState", "VALID_STATES", "apply_state_change", "ensure_valid_state"]
