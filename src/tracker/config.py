from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field


ENV_API_TOKEN = "TRACKER_API_TOKEN"
ENV_PROJECT_ID = "TRACKER_PROJECT_ID"
ENV_USE_SSL = "TRACKER_USE_SSL"  # optional; defaults to true
ENV_BASE_URL = "TRACKER_BASE_URL"  # optional override of the projects endpoint
ENV_TIMEOUT = "TRACKER_TIMEOUT"  # optional; seconds
ENV_LOG_LEVEL = "TRACKER_LOG_LEVEL"  # optional; defaults to WARNING

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class TrackerSettings(BaseModel):
    """Connection settings for TrackerClient, usually read from the environment."""

    token: str
    project_id: str
    use_ssl: bool = True
    base_url: Optional[str] = None
    timeout: float = Field(default=15.0, gt=0)
    log_level: str = "WARNING"


def _getenv(environ: Mapping[str, str], name: str, default: Optional[str] = None) -> Optional[str]:
    v = environ.get(name)
    return v if v not in (None, "") else default


def _require(v: Optional[str], what: str) -> str:
    if not v:
        raise RuntimeError(f"Missing required configuration: {what}")
    return v


def _parse_bool(raw: str, what: str) -> bool:
    s = raw.strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValueError(f"{what} must be a boolean flag, got {raw!r}")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> TrackerSettings:
    """
    Build TrackerSettings from environment variables.

    Required: TRACKER_API_TOKEN, TRACKER_PROJECT_ID.
    Optional: TRACKER_USE_SSL, TRACKER_BASE_URL, TRACKER_TIMEOUT, TRACKER_LOG_LEVEL.
    """
    env = os.environ if environ is None else environ
    token = _require(_getenv(env, ENV_API_TOKEN), ENV_API_TOKEN)
    project_id = _require(_getenv(env, ENV_PROJECT_ID), ENV_PROJECT_ID)

    use_ssl = _parse_bool(_getenv(env, ENV_USE_SSL, "true") or "true", ENV_USE_SSL)

    raw_timeout = _getenv(env, ENV_TIMEOUT)
    try:
        timeout = float(raw_timeout) if raw_timeout is not None else 15.0
    except ValueError:
        raise ValueError(f"{ENV_TIMEOUT} must be a number of seconds, got {raw_timeout!r}") from None
    if timeout <= 0:
        raise ValueError(f"{ENV_TIMEOUT} must be > 0")

    return TrackerSettings(
        token=token,
        project_id=project_id,
        use_ssl=use_ssl,
        base_url=_getenv(env, ENV_BASE_URL),
        timeout=timeout,
        log_level=(_getenv(env, ENV_LOG_LEVEL, "WARNING") or "WARNING").upper(),
    )


__all__ = ["TrackerSettings", "load_settings"]
