"""Exception types raised by evaflow."""

from __future__ import annotations

from typing import List, Optional

from .constants import BLOCKED_WORKFLOW_MESSAGE


class EvaflowError(Exception):
    """Base class for all evaflow errors."""


class WorkflowError(EvaflowError):
    """Raised for workflow level failures."""


class WorkflowBlockedError(WorkflowError):
    """No step can be scheduled although some are still pending."""

    def __init__(self, pending_steps: Optional[List[str]] = None) -> None:
        super().__init__(BLOCKED_WORKFLOW_MESSAGE)
        self.pending_steps = pending_steps or []


class WorkflowStateError(WorkflowError):
    """Operation not allowed in the workflow's current status."""


class WorkflowPausedError(WorkflowError):
    """Execution stopped between waves because the workflow was paused."""


class WorkflowNotFoundError(WorkflowError):
    """Unknown workflow or template id."""


class WorkflowValidationError(WorkflowError):
    """Static validation found problems in a workflow definition."""

    def __init__(self, workflow_id: str, issues: list) -> None:
        details = "; ".join(str(issue) for issue in issues)
        super().__init__(f"Workflow {workflow_id} is invalid: {details}")
        self.workflow_id = workflow_id
        self.issues = issues


class ToolError(EvaflowError):
    """Raised when a tool cannot be executed."""


class ToolNotFoundError(ToolError):
    def __init__(self, tool_id: str) -> None:
        super().__init__(f"Tool {tool_id} not found")
        self.tool_id = tool_id


class ToolUnavailableError(ToolError):
    def __init__(self, tool_id: str, status: str) -> None:
        super().__init__(f"Tool {tool_id} is {status}")
        self.tool_id = tool_id
        self.status = status


class ToolPermissionError(ToolError):
    def __init__(self, tool_id: str) -> None:
        super().__init__(f"Insufficient permissions for tool {tool_id}")
        self.tool_id = tool_id
