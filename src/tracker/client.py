from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union
from xml.etree import ElementTree as ET

import httpx
from pydantic import ValidationError

from .config import TrackerSettings, load_settings
from .errors import ResponseValidationError, StoryNotFoundError, TrackerTransportError
from .lifecycle import StoryState, apply_state_change, ensure_valid_state
from .log import TOKEN_HEADER, configure_logging, redact_headers
from .models import Note, Project
from .validation import validate_response
from .xml_records import Record, element_to_record, find_children, record_to_xml


DEFAULT_HOST = "www.pivotaltracker.com"
API_PATH = "/services/v3/projects"
XML_CONTENT_TYPE = "application/xml"

logger = logging.getLogger(__name__)

StoryId = Union[int, str]


def default_base_url(use_ssl: bool = True) -> str:
    protocol, port = ("https", 443) if use_ssl else ("http", 80)
    return f"{protocol}://{DEFAULT_HOST}:{port}{API_PATH}"


def build_filter(filters: Mapping[str, Any]) -> str:
    """Join `key:"value"` search terms with spaces; terms are not validated."""
    return " ".join(f'{key}:"{value}"' for key, value in filters.items())


class TrackerClient:
    """
    Client for the project tracker's v3 REST/XML API, scoped to one project.

    Notes
    - Every call performs exactly one blocking request. Responses are checked
      with `validate_response` before any field is read.
    - No retries and no caching: listing calls return fresh lists.
    - Non-2xx responses are not raised on directly; the service sends XML
      error payloads which surface as ResponseValidationError. A 404 on a
      story resource raises StoryNotFoundError.
    - Not safe for concurrent use from several threads without external
      locking (the underlying httpx.Client is shared).
    """

    def __init__(
        self,
        project_id: Union[int, str],
        token: str,
        *,
        use_ssl: bool = True,
        base_url: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if not token:
            raise ValueError("token is required")
        if project_id in (None, ""):
            raise ValueError("project_id is required")
        self._project_id = str(project_id)
        self._token = token
        self._base_url = (base_url or default_base_url(use_ssl)).rstrip("/")
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self._timeout)

    @classmethod
    def from_settings(
        cls, settings: TrackerSettings, *, client: Optional[httpx.Client] = None
    ) -> "TrackerClient":
        return cls(
            settings.project_id,
            settings.token,
            use_ssl=settings.use_ssl,
            base_url=settings.base_url,
            timeout=settings.timeout,
            client=client,
        )

    @classmethod
    def from_env(
        cls, *, client: Optional[httpx.Client] = None, configure_logs: bool = False
    ) -> "TrackerClient":
        """Build a client from TRACKER_* environment variables."""
        settings = load_settings()
        if configure_logs:
            configure_logging(settings.log_level)
        return cls.from_settings(settings, client=client)

    @property
    def project_id(self) -> str:
        return self._project_id

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "TrackerClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --------------- Public API ---------------
    def project(self) -> Project:
        """Fetch the project descriptor (name, iteration length, week start, point scale)."""
        node = self._request("GET", "", "project")
        record = element_to_record(node)
        try:
            return Project.model_validate(record)
        except ValidationError as ve:
            raise ResponseValidationError(f"Failed to parse project payload: {ve}") from ve

    def stories(self) -> List[Record]:
        """Return every story in the project."""
        return self._list_stories(params=None)

    def find(self, filters: Mapping[str, Any]) -> List[Record]:
        """
        Return stories matching `filters`, e.g. {"label": "ui", "state": "started"}.

        Terms are sent as the service's `filter` query parameter. An empty
        mapping behaves like `stories()`.
        """
        params = {"filter": build_filter(filters)} if filters else None
        return self._list_stories(params=params)

    def find_story(self, story_id: StoryId) -> Record:
        node = self._request("GET", f"/stories/{story_id}", "story", story_id=story_id)
        return element_to_record(node)

    def create_story(self, story: Mapping[str, Any]) -> Record:
        """Create a story from a record of fields; returns the stored story."""
        body = record_to_xml(story, "story")
        node = self._request("POST", "/stories", "story", body=body)
        return element_to_record(node)

    def update_story(self, story: Mapping[str, Any]) -> Record:
        """Send every field of `story` (which must carry its `id`) back to the service."""
        story_id = story.get("id")
        if story_id in (None, ""):
            raise ValueError("story must include an 'id' to be updated")
        body = record_to_xml(story, "story")
        node = self._request("PUT", f"/stories/{story_id}", "story", body=body, story_id=story_id)
        return element_to_record(node)

    def delete_story(self, story_id: StoryId) -> StoryId:
        self._request("DELETE", f"/stories/{story_id}", "story", story_id=story_id)
        return story_id

    def add_comment(self, story_id: StoryId, text: str) -> Note:
        body = record_to_xml({"text": text}, "note")
        node = self._request(
            "POST", f"/stories/{story_id}/notes", "note", body=body, story_id=story_id
        )
        record = element_to_record(node)
        try:
            return Note.model_validate(record)
        except ValidationError as ve:
            raise ResponseValidationError(f"Failed to parse note payload: {ve}") from ve

    def update_state(self, story_id: StoryId, new_state: Union[str, StoryState]) -> Record:
        """
        Move a story to `new_state` and return the updated story.

        The state is checked before any request is made; then the story is
        fetched, changed and written back.
        """
        state = ensure_valid_state(new_state)
        story = self.find_story(story_id)
        apply_state_change(story, state, story_id=story_id)
        return self.update_story(story)

    # --------------- Internal ---------------
    def _list_stories(self, params: Optional[Dict[str, str]]) -> List[Record]:
        node = self._request("GET", "/stories", "stories", params=params)
        return [element_to_record(s) for s in find_children(node, "story")]

    def _request(
        self,
        method: str,
        path: str,
        expected_root: str,
        *,
        body: Optional[str] = None,
        params: Optional[Dict[str, str]] = None,
        story_id: Optional[StoryId] = None,
    ) -> ET.Element:
        url = f"{self._base_url}/{self._project_id}{path}"
        headers = {TOKEN_HEADER: self._token}
        if body is not None:
            headers["Content-Type"] = XML_CONTENT_TYPE
        logger.debug("%s %s params=%s headers=%s", method, url, params, redact_headers(headers))

        try:
            resp = self._client.request(
                method,
                url,
                headers=headers,
                params=params,
                content=body.encode("utf-8") if body is not None else None,
            )
        except httpx.TransportError as exc:  # includes timeouts
            raise TrackerTransportError(f"{method} {url} failed: {exc}") from exc

        logger.debug("%s %s -> HTTP %s", method, url, resp.status_code)
        if resp.status_code == 404 and story_id is not None:
            raise StoryNotFoundError(story_id)
        return validate_response(resp.content, expected_root, status_code=resp.status_code)


__all__ = ["TrackerClient", "build_filter", "default_base_url"]
