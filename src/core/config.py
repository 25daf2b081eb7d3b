"""Relay configuration.

Why pydantic-settings:
- The GitHub Actions runner exposes action inputs as `INPUT_<NAME>` env
  vars, so an `INPUT_` prefix reads them without any glue code.
- The CLI builds the same object from its options, so there is a single
  contract for the pipeline and the adapters.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigurationError

DEFAULT_API_URL = "https://api.github.com"

# Detection of the dispatched run is not configurable.
RUN_DETECTION_TIMEOUT_SECONDS = 60.0
RUN_DETECTION_INTERVAL_SECONDS = 2.0

# Progress dots are printed at most this often while waiting.
PROGRESS_DOT_INTERVAL_SECONDS = 15.0

_REQUIRED_FIELDS = ("repo_owner", "repo_name", "workflow_file_name", "github_token")


class RelaySettings(BaseSettings):
    """Inputs of a relay invocation."""

    model_config = SettingsConfigDict(
        env_prefix="INPUT_",
        extra="ignore",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        populate_by_name=True,
    )

    repo_name: str | None = Field(
        default=None,
        description="Name of the repository holding the workflow.",
    )
    repo_owner: str | None = Field(
        default=None,
        description="Owner (user or organization) of the repository.",
    )
    workflow_file_name: str | None = Field(
        default=None,
        description="File name of the workflow, matched against the end of its path.",
    )
    github_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("INPUT_GITHUB_TOKEN", "GITHUB_TOKEN", "github_token"),
        description="Token with actions read/write access on the remote repository.",
    )
    git_ref: str = Field(
        default="master",
        min_length=1,
        description="Branch or tag the workflow is dispatched on.",
    )
    check_interval: float = Field(
        default=5.0,
        gt=0,
        description="Seconds between status polls while waiting for completion.",
    )
    wait_timeout: float = Field(
        default=600.0,
        gt=0,
        description="Seconds to wait for the run to complete.",
    )
    client_payload: str = Field(
        default="{}",
        description="JSON object passed as the workflow_dispatch inputs.",
    )
    api_url: str = Field(
        default=DEFAULT_API_URL,
        min_length=8,
        validation_alias=AliasChoices("INPUT_API_URL", "GITHUB_API_URL", "api_url"),
        description="Base URL of the GitHub REST API (GHES installs differ).",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout per request (seconds).",
    )
    user_agent: str = Field(
        default="workflow-relay/0.1",
        min_length=1,
        description="User-Agent sent to the GitHub API.",
    )

    def require_inputs(self) -> None:
        """Raise `ConfigurationError` when a required input is missing."""

        missing = [name for name in _REQUIRED_FIELDS if not getattr(self, name)]
        if missing:
            raise ConfigurationError(f"Input required and not supplied: {', '.join(missing)}")

    def dispatch_inputs(self) -> dict[str, Any]:
        """Decode `client_payload` into the dispatch `inputs` object."""

        try:
            payload = json.loads(self.client_payload)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"client_payload is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise ConfigurationError("client_payload must be a JSON object")
        return payload
