"""Repository abstraction for workflow run history."""

from __future__ import annotations

from typing import Any, Protocol

from .models import RunRecord


class RunRepository(Protocol):
    """Protocol for run history persistence backends."""

    async def create_run(
        self, run_id: str, workflow_id: str, workflow_name: str = ""
    ) -> None:
        """Persist the start of a run."""

    async def mark_step_started(self, run_id: str, step_id: str, tool_id: str) -> None:
        """Record start of a step."""

    async def mark_step_completed(
        self,
        run_id: str,
        step_id: str,
        status: str,
        output: Any = None,
        error: str | None = None,
    ) -> None:
        """Record completion (or failure) of a step."""

    async def mark_run_completed(self, run_id: str, status: str = "completed") -> None:
        """Record the terminal status of a run."""

    async def get_run(self, run_id: str) -> RunRecord | None:
        """Retrieve a run by id."""

    async def list_runs(self, workflow_id: str | None = None) -> list[RunRecord]:
        """Return persisted runs, optionally filtered by workflow."""
