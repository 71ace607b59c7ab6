"""Tool registry resolving tool ids to executable capabilities."""

from __future__ import annotations

import logging
import time
import uuid
from collections import Counter, deque
from datetime import datetime, timezone
from importlib import resources
from pathlib import Path
from typing import Any, Deque, Dict, Iterable, List, Optional, get_args

import yaml

from ..constants import DEFAULT_TOOL_HISTORY_LIMIT
from ..errors import ToolNotFoundError, ToolPermissionError, ToolUnavailableError
from .models import ToolDescriptor, ToolExecutionLog, ToolStatus
from .permissions import permissions_for
from .simulated import ToolBackend

logger = logging.getLogger(__name__)


def load_tools(path: Optional[str | Path] = None) -> List[ToolDescriptor]:
    """Load tool descriptors from YAML.

    Without ``path`` the catalog bundled with the package is used.
    """
    if path is None:
        text = (
            resources.files("evaflow.tools")
            .joinpath("default_tools.yaml")
            .read_text(encoding="utf-8")
        )
    else:
        text = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    return [ToolDescriptor(**item) for item in data.get("tools", [])]


class ToolRegistry:
    """Keeps the available tools and executes them through a backend.

    An instance is itself a valid ``tool_execute`` callable for
    :class:`evaflow.execute.WorkflowExecutor`.
    """

    def __init__(
        self,
        backend: ToolBackend,
        tools: Optional[Iterable[ToolDescriptor]] = None,
        role: str = "universal",
        history_limit: int = DEFAULT_TOOL_HISTORY_LIMIT,
    ) -> None:
        self._backend = backend
        self._tools: Dict[str, ToolDescriptor] = {}
        self._history: Deque[ToolExecutionLog] = deque(maxlen=history_limit)
        self.role = role
        self.permissions: List[str] = permissions_for(role)
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: ToolDescriptor) -> None:
        """Add ``tool``, replacing any tool with the same id."""
        self._tools[tool.id] = tool

    def get(self, tool_id: str) -> Optional[ToolDescriptor]:
        return self._tools.get(tool_id)

    def list_tools(
        self, category: Optional[str] = None, role: Optional[str] = None
    ) -> List[ToolDescriptor]:
        return [
            t
            for t in self._tools.values()
            if (category is None or t.category == category)
            and (role is None or t.role == role)
        ]

    def set_role(self, role: str) -> None:
        self.role = role
        self.permissions = permissions_for(role)
        logger.info(f"Tool registry role set to {role}")

    def set_status(self, tool_id: str, status: str) -> None:
        tool = self._tools.get(tool_id)
        if tool is None:
            raise ToolNotFoundError(tool_id)
        if status not in get_args(ToolStatus):
            raise ValueError(f"Unknown tool status {status!r}")
        tool.status = status

    def can_use(self, tool: ToolDescriptor) -> bool:
        if self.role == "universal":
            return True
        return any(p in self.permissions for p in tool.permissions)

    async def execute(self, tool_id: str, inputs: Dict[str, Any]) -> Any:
        """Resolve ``tool_id`` and run it, logging the attempt."""
        tool = self._tools.get(tool_id)
        if tool is None:
            raise ToolNotFoundError(tool_id)
        if tool.status != "active":
            raise ToolUnavailableError(tool_id, tool.status)
        if not self.can_use(tool):
            raise ToolPermissionError(tool_id)

        entry = ToolExecutionLog(
            id=f"exec_{uuid.uuid4().hex[:12]}",
            tool_id=tool_id,
            inputs=dict(inputs),
            start_time=datetime.now(timezone.utc),
        )
        started = time.monotonic()
        try:
            result = await self._backend.run(tool, inputs)
        except Exception as e:
            entry.status = "error"
            entry.error_message = str(e) or type(e).__name__
            raise
        else:
            entry.outputs = result
            return result
        finally:
            entry.end_time = datetime.now(timezone.utc)
            entry.duration = time.monotonic() - started
            self._history.appendleft(entry)
            logger.debug(f"Tool {tool_id} finished with status {entry.status}")

    async def __call__(self, tool_id: str, inputs: Dict[str, Any]) -> Any:
        return await self.execute(tool_id, inputs)

    @property
    def history(self) -> List[ToolExecutionLog]:
        """Most recent executions first."""
        return list(self._history)

    def usage_stats(self) -> Dict[str, int]:
        return dict(Counter(entry.tool_id for entry in self._history))
