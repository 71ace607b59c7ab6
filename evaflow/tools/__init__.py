from .models import ToolCategory, ToolDescriptor, ToolExecutionLog, ToolStatus
from .permissions import ROLE_PERMISSIONS, permissions_for
from .registry import ToolRegistry, load_tools
from .simulated import SimulatedToolBackend, ToolBackend

__all__ = [
    "ROLE_PERMISSIONS",
    "SimulatedToolBackend",
    "ToolBackend",
    "ToolCategory",
    "ToolDescriptor",
    "ToolExecutionLog",
    "ToolRegistry",
    "ToolStatus",
    "load_tools",
    "permissions_for",
]
