"""evaflow: dependency-ordered tool workflow execution."""

from .catalog import WorkflowCatalog
from .contracts import Workflow, WorkflowEvent, WorkflowStep
from .errors import (
    EvaflowError,
    ToolError,
    ToolNotFoundError,
    ToolPermissionError,
    ToolUnavailableError,
    WorkflowBlockedError,
    WorkflowError,
    WorkflowNotFoundError,
    WorkflowPausedError,
    WorkflowStateError,
    WorkflowValidationError,
)
from .execute import WorkflowExecutor
from .orchestrator import WorkflowOrchestrator
from .persistence import get_repository
from .tools import SimulatedToolBackend, ToolDescriptor, ToolRegistry
from .validation import ensure_valid, validate_workflow

__version__ = "0.1.0"
__all__ = [
    "EvaflowError",
    "SimulatedToolBackend",
    "ToolDescriptor",
    "ToolError",
    "ToolNotFoundError",
    "ToolPermissionError",
    "ToolRegistry",
    "ToolUnavailableError",
    "Workflow",
    "WorkflowBlockedError",
    "WorkflowCatalog",
    "WorkflowError",
    "WorkflowEvent",
    "WorkflowExecutor",
    "WorkflowNotFoundError",
    "WorkflowOrchestrator",
    "WorkflowPausedError",
    "WorkflowStateError",
    "WorkflowStep",
    "WorkflowValidationError",
    "ensure_valid",
    "get_repository",
    "validate_workflow",
]
