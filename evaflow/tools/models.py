"""Pydantic models describing tools and their executions."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..contracts import FinancialRole, Priority

ToolCategory = Literal[
    "analysis",
    "risk_management",
    "decision_making",
    "monitoring",
    "calculation",
    "documentation",
    "prediction",
    "automation",
    "verification",
]
ToolStatus = Literal["active", "inactive", "maintenance"]


class ToolDescriptor(BaseModel):
    """Metadata describing a tool capability."""

    id: str
    name: str
    description: Optional[str] = None
    category: ToolCategory
    role: FinancialRole = "universal"
    status: ToolStatus = "active"
    permissions: List[str] = Field(default_factory=list)
    priority: Priority = "medium"
    endpoint: Optional[str] = None

    @field_validator("id")
    @classmethod
    def _ensure_id(cls, v: str) -> str:
        if not v:
            raise ValueError("tool id must be a non-empty string")
        return v


class ToolExecutionLog(BaseModel):
    """Audit record of one tool invocation."""

    id: str
    tool_id: str
    inputs: dict[str, Any] = Field(default_factory=dict)
    outputs: Optional[Any] = None
    status: Literal["success", "error"] = "success"
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[float] = None
    error_message: Optional[str] = None
