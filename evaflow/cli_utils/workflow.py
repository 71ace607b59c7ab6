"""Helpers wiring configuration into catalogs, registries and output."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml

from evaflow.catalog import WorkflowCatalog
from evaflow.config import EvaflowConfig
from evaflow.contracts import Workflow, WorkflowEvent, WorkflowStep
from evaflow.tools import SimulatedToolBackend, ToolRegistry, load_tools
from evaflow.validation import ValidationIssue, validate_workflow


def _build_catalog(config: EvaflowConfig) -> WorkflowCatalog:
    if config.catalog_path:
        return WorkflowCatalog.from_yaml(config.catalog_path)
    return WorkflowCatalog.default()


def _build_registry(config: EvaflowConfig, role: Optional[str] = None) -> ToolRegistry:
    backend = SimulatedToolBackend(
        min_delay=config.tools.min_delay, max_delay=config.tools.max_delay
    )
    return ToolRegistry(
        backend,
        tools=load_tools(config.tools_path),
        role=role or config.role,
        history_limit=config.tools.history_limit,
    )


def _validate_catalog_file(path: Path) -> dict[str, list[ValidationIssue]]:
    """Validate every workflow in a catalog file without rejecting on the first."""
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return {
        item["id"]: validate_workflow(Workflow(**item))
        for item in data.get("workflows", [])
    }


def _format_step(step: WorkflowStep) -> str:
    line = f"- {step.id} [{step.tool_id}] {step.name}: {step.status}"
    if step.dependencies:
        line += f" (depends on: {', '.join(step.dependencies)})"
    if step.error_message:
        line += f" ({step.error_message})"
    return line


def _format_event(event: WorkflowEvent) -> str:
    if event.step_id:
        text = f"[{event.workflow_id}] {event.step_id}: {event.status}"
    else:
        text = f"[{event.workflow_id}] workflow {event.status}"
    if event.error:
        text += f" - {event.error}"
    return text
