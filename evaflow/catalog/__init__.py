"""Workflow templates used to seed new workflow instances."""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml

from ..contracts import Workflow, utcnow
from ..errors import WorkflowNotFoundError
from ..validation import ensure_valid

logger = logging.getLogger(__name__)


class WorkflowCatalog:
    """Read-only collection of workflow templates.

    Templates are validated when added; :meth:`instantiate` hands out
    independent copies so executing one never touches the template.
    """

    def __init__(self, templates: Optional[Iterable[Workflow]] = None) -> None:
        self._templates: Dict[str, Workflow] = {}
        for template in templates or []:
            self.add(template)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "WorkflowCatalog":
        return cls._from_text(Path(path).read_text(encoding="utf-8"))

    @classmethod
    def default(cls) -> "WorkflowCatalog":
        """Catalog bundled with the package."""
        text = (
            resources.files("evaflow.catalog")
            .joinpath("templates.yaml")
            .read_text(encoding="utf-8")
        )
        return cls._from_text(text)

    @classmethod
    def _from_text(cls, text: str) -> "WorkflowCatalog":
        data = yaml.safe_load(text) or {}
        return cls(Workflow(**item) for item in data.get("workflows", []))

    def add(self, template: Workflow) -> None:
        ensure_valid(template)
        self._templates[template.id] = template
        logger.debug(f"Registered workflow template {template.id}")

    def ids(self) -> List[str]:
        return list(self._templates)

    def get(self, template_id: str) -> Workflow:
        template = self._templates.get(template_id)
        if template is None:
            raise WorkflowNotFoundError(f"Workflow template {template_id} not found")
        return template

    def instantiate(self, template_id: str) -> Workflow:
        """Fresh ``draft`` workflow built from the named template."""
        workflow = self.get(template_id).model_copy(deep=True)
        workflow.status = "draft"
        workflow.created_at = utcnow()
        for step in workflow.steps:
            step.clear()
        return workflow

    def tool_ids(self) -> List[str]:
        """Every tool id referenced by any template."""
        seen: Dict[str, None] = {}
        for template in self._templates.values():
            for step in template.steps:
                seen.setdefault(step.tool_id, None)
        return list(seen)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)
