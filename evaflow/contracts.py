"""Core workflow contracts for the evaflow executor."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

StepStatus = Literal["pending", "running", "completed", "failed", "skipped"]
WorkflowStatus = Literal["draft", "active", "paused", "completed", "failed"]
WorkflowCategory = Literal[
    "loan_processing",
    "risk_assessment",
    "portfolio_management",
    "compliance_check",
    "customer_onboarding",
    "decision_pipeline",
    "monitoring_suite",
]
FinancialRole = Literal[
    "broker",
    "underwriter",
    "portfolio_manager",
    "servicer",
    "risk_analyst",
    "compliance_officer",
    "decision_maker",
    "universal",
]
Priority = Literal["low", "medium", "high", "critical"]
EventKind = Literal[
    "workflow_started",
    "step_started",
    "step_completed",
    "step_failed",
    "workflow_completed",
    "workflow_failed",
    "workflow_paused",
    "workflow_reset",
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowStep(BaseModel):
    """One unit of work bound to a single tool invocation."""

    id: str
    tool_id: str
    name: str = ""
    dependencies: List[str] = Field(default_factory=list)
    status: StepStatus = "pending"
    inputs: Dict[str, Any] = Field(default_factory=dict)
    outputs: Optional[Any] = None
    error_message: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    # Descriptive only; the executor neither times out nor retries.
    timeout: Optional[float] = None
    retry_count: int = 0

    @model_validator(mode="after")
    def _default_name(self) -> "WorkflowStep":
        if not self.name:
            self.name = self.id
        return self

    def is_ready(self, completed: set[str]) -> bool:
        """Return ``True`` when pending and every dependency has completed."""
        return self.status == "pending" and all(
            dep in completed for dep in self.dependencies
        )

    def clear(self) -> None:
        """Return the step to ``pending`` and drop execution results."""
        self.status = "pending"
        self.outputs = None
        self.error_message = None
        self.start_time = None
        self.end_time = None

    @property
    def duration(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()


class Workflow(BaseModel):
    """A named set of steps executed in dependency order."""

    id: str
    name: str
    description: str = ""
    category: WorkflowCategory = "decision_pipeline"
    role: FinancialRole = "universal"
    priority: Priority = "medium"
    status: WorkflowStatus = "draft"
    steps: List[WorkflowStep] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    estimated_duration: Optional[float] = None
    actual_duration: Optional[float] = None

    def get_step(self, step_id: str) -> Optional[WorkflowStep]:
        return next((s for s in self.steps if s.id == step_id), None)

    def pending_steps(self) -> List[WorkflowStep]:
        return [s for s in self.steps if s.status == "pending"]

    def completed_outputs(self) -> Dict[str, Any]:
        """Outputs of every completed step keyed by step id."""
        return {s.id: s.outputs for s in self.steps if s.status == "completed"}


class WorkflowEvent(BaseModel):
    """State transition reported to executor listeners."""

    kind: EventKind
    run_id: str
    workflow_id: str
    status: str
    step_id: Optional[str] = None
    outputs: Optional[Any] = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)
