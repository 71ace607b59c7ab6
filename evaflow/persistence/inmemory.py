"""In-memory implementation of the run repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from .models import RunRecord, StepRecord
from .repository import RunRepository


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryRunRepository(RunRepository):
    """Store run history in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._runs: Dict[str, RunRecord] = {}
        self._step_id = 0

    # ------------------------------------------------------------------
    async def create_run(
        self, run_id: str, workflow_id: str, workflow_name: str = ""
    ) -> None:
        self._runs[run_id] = RunRecord(
            run_id=run_id,
            workflow_id=workflow_id,
            workflow_name=workflow_name,
            status="active",
            started_at=_now(),
        )

    async def mark_step_started(self, run_id: str, step_id: str, tool_id: str) -> None:
        run = self._runs.get(run_id)
        if not run:
            return
        # ignore duplicate starts within the same run
        for step in run.steps:
            if step.step_id == step_id:
                return
        self._step_id += 1
        run.steps.append(
            StepRecord(
                id=self._step_id,
                run_id=run_id,
                step_id=step_id,
                tool_id=tool_id,
                started_at=_now(),
                status="running",
            )
        )

    async def mark_step_completed(
        self,
        run_id: str,
        step_id: str,
        status: str,
        output: Any = None,
        error: str | None = None,
    ) -> None:
        run = self._runs.get(run_id)
        if not run:
            return
        for step in run.steps:
            if step.step_id == step_id and step.completed_at is None:
                step.completed_at = _now()
                step.status = status
                step.output = output
                step.error = error
                break

    async def mark_run_completed(self, run_id: str, status: str = "completed") -> None:
        run = self._runs.get(run_id)
        if run:
            run.status = status
            run.completed_at = _now()

    async def get_run(self, run_id: str) -> RunRecord | None:
        return self._runs.get(run_id)

    async def list_runs(self, workflow_id: str | None = None) -> list[RunRecord]:
        return [
            run
            for run in self._runs.values()
            if workflow_id is None or run.workflow_id == workflow_id
        ]
