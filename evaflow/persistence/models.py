"""Data models for persisted run history."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field


class StepRecord(BaseModel):
    """Record of an individual step execution."""

    id: Optional[int] = None
    run_id: str
    step_id: str
    tool_id: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    status: Optional[str] = None
    output: Optional[Any] = None
    error: Optional[str] = None


class RunRecord(BaseModel):
    """One execution attempt of a workflow."""

    run_id: str
    workflow_id: str
    workflow_name: str = ""
    status: str = "active"
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    steps: list[StepRecord] = Field(default_factory=list)


FINISHED_STATUSES = ("completed", "failed")


def success_rate(runs: Iterable[RunRecord]) -> float:
    """Percentage of finished runs that completed; 0 when none finished."""
    finished = [r for r in runs if r.status in FINISHED_STATUSES]
    if not finished:
        return 0.0
    successful = sum(1 for r in finished if r.status == "completed")
    return successful / len(finished) * 100
