"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- API payloads carry dozens of fields; the models keep the few the relay
  needs and ignore the rest.
- Validation happens once at the adapter boundary, so the pipeline works
  with typed values only.

Note:
- These models describe *what* the data is, not *how* it is fetched.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Workflow(BaseModel):
    """A workflow definition of the remote repository."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., description="Numeric workflow id.")
    name: str = Field(default="", description="Display name of the workflow.")
    path: str = Field(
        ...,
        min_length=1,
        description="Path of the definition file (e.g. '.github/workflows/ci.yml').",
    )
    state: str | None = Field(
        default=None,
        description="'active', 'disabled_manually', ...",
    )
    html_url: str | None = Field(default=None)


class WorkflowRun(BaseModel):
    """A single execution of a workflow."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., description="Numeric run id.")
    status: str | None = Field(
        default=None,
        description="'queued', 'in_progress', 'completed', ...",
    )
    conclusion: str | None = Field(
        default=None,
        description="'success', 'failure', 'cancelled', ... (set once completed).",
    )
    html_url: str | None = Field(default=None, description="Run page with real time logs.")
    run_number: int | None = Field(default=None)
    run_attempt: int = Field(default=1, ge=1)
    created_at: datetime | None = Field(default=None)

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def succeeded(self) -> bool:
        return self.conclusion == "success"


class LogArchiveEntry(BaseModel):
    """An entry of the downloaded logs zip."""

    path: str
    is_file: bool = True


class RelayResult(BaseModel):
    """Output of a completed relay."""

    workflow: Workflow
    run: WorkflowRun
    log_file: str = Field(..., description="Archive path of the relayed log file.")
    lines_relayed: int = Field(default=0, ge=0)
    lines_filtered: int = Field(default=0, ge=0)

    @property
    def succeeded(self) -> bool:
        return self.run.succeeded
