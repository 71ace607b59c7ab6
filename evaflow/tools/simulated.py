"""Simulated tool backend producing mock results."""

from __future__ import annotations

import asyncio
import random
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from .models import ToolDescriptor


class ToolBackend(Protocol):
    """Anything able to run a resolved tool."""

    async def run(self, tool: ToolDescriptor, inputs: Dict[str, Any]) -> Any:
        """Execute ``tool`` with ``inputs`` and return its result."""


class SimulatedToolBackend:
    """Stand-in for real tool endpoints.

    Sleeps for a random delay in ``[min_delay, max_delay]`` seconds and then
    returns a payload shaped after the tool's category.
    """

    def __init__(
        self, min_delay: float = 0.5, max_delay: float = 2.5, seed: Optional[int] = None
    ) -> None:
        if min_delay < 0 or max_delay < min_delay:
            raise ValueError("delays must satisfy 0 <= min_delay <= max_delay")
        self.min_delay = min_delay
        self.max_delay = max_delay
        self._random = random.Random(seed)

    async def run(self, tool: ToolDescriptor, inputs: Dict[str, Any]) -> Dict[str, Any]:
        delay = self._random.uniform(self.min_delay, self.max_delay)
        await asyncio.sleep(delay)

        rnd = self._random
        result: Dict[str, Any] = {
            "tool_id": tool.id,
            "status": "success",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "processing_time": delay,
        }

        if tool.category == "analysis":
            result["analysis"] = {
                "score": rnd.random() * 100,
                "confidence": rnd.random(),
                "recommendations": [
                    "Recommendation 1 based on analysis",
                    "Recommendation 2 for optimization",
                ],
                "risk_factors": ["Factor A", "Factor B"],
                "metadata": inputs,
            }
        elif tool.category == "risk_management":
            result["risk_assessment"] = {
                "risk_score": rnd.random() * 10,
                "risk_level": rnd.choice(["Low", "Medium", "High"]),
                "mitigation_strategies": ["Strategy 1", "Strategy 2"],
                "alert_triggered": rnd.random() > 0.7,
            }
        elif tool.category == "decision_making":
            result["decision"] = {
                "recommendation": rnd.choice(["Approve", "Deny", "Review"]),
                "confidence": rnd.random(),
                "reasoning": "AI-driven decision based on multiple factors",
                "alternatives": ["Alternative 1", "Alternative 2"],
            }
        elif tool.category == "automation":
            result["automation"] = {
                "tasks_completed": rnd.randint(1, 10),
                "time_saved": rnd.random() * 3600,
                "next_actions": ["Action 1", "Action 2"],
            }
        else:
            result["data"] = {
                "value": rnd.random() * 1000,
                "message": f"Mock result from {tool.name}",
                "metadata": inputs,
            }
        return result
