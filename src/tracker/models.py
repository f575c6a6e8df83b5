from __future__ import annotations

from pydantic import BaseModel, Field


class Project(BaseModel):
    """
    Project descriptor as returned by `GET /projects/{id}`.

    Only the settings callers usually need are kept; other fields in the
    payload are ignored.
    """

    name: str
    iteration_length: int = Field(..., description="Iteration length in weeks")
    week_start_day: str
    point_scale: str = Field(..., description="Comma-separated estimate values, e.g. '0,1,2,3'")


class Note(BaseModel):
    """
    A comment attached to a story.

    `noted_at` is the note's `<noted_at>` element, the comment date
    (exposed as `date` by older clients of this API).
    """

    id: int
    text: str
    author: str
    noted_at: str = Field(
        ..., description="Comment date from <noted_at>, as sent by the service"
    )


__all__ = ["Note", "Project"]
