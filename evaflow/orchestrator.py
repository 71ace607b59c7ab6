"""Workflow orchestrator managing catalog-seeded workflow instances."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from .catalog import WorkflowCatalog
from .constants import RESETTABLE_STATUSES, STARTABLE_STATUSES
from .contracts import Workflow
from .errors import WorkflowNotFoundError, WorkflowStateError
from .execute import WorkflowExecutor

logger = logging.getLogger(__name__)

CompletionCallback = Callable[
    [Workflow, Dict[str, Any]], Union[Awaitable[None], None]
]


class WorkflowOrchestrator:
    """Service holding one workflow per catalog template.

    At most one workflow is active at a time. Results of the last successful
    run of each workflow are kept in ``results``.
    """

    def __init__(
        self,
        executor: WorkflowExecutor,
        catalog: WorkflowCatalog,
        on_complete: Optional[CompletionCallback] = None,
    ) -> None:
        self._executor = executor
        self._catalog = catalog
        self._on_complete = on_complete
        self.workflows: Dict[str, Workflow] = {
            template_id: catalog.instantiate(template_id)
            for template_id in catalog.ids()
        }
        self.results: Dict[str, Dict[str, Any]] = {}
        self.active_workflow: Optional[str] = None

    def get_workflow(self, workflow_id: str) -> Workflow:
        workflow = self.workflows.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found")
        return workflow

    def list_workflows(self) -> List[Workflow]:
        return list(self.workflows.values())

    def active_count(self) -> int:
        return sum(1 for w in self.workflows.values() if w.status == "active")

    async def start(self, workflow_id: str) -> Dict[str, Any]:
        """Execute ``workflow_id`` and return its step outputs.

        Failures are propagated after the workflow has been marked ``failed``
        by the executor.
        """
        workflow = self.get_workflow(workflow_id)
        if self.active_workflow is not None:
            raise WorkflowStateError(
                f"Workflow {self.active_workflow} is already running"
            )
        if workflow.status not in STARTABLE_STATUSES:
            raise WorkflowStateError(
                f"Cannot start workflow {workflow_id} in status {workflow.status}"
            )

        self.active_workflow = workflow_id
        try:
            results = await self._executor.execute(workflow)
        finally:
            if self.active_workflow == workflow_id:
                self.active_workflow = None

        self.results[workflow_id] = results
        if self._on_complete is not None:
            outcome = self._on_complete(workflow, results)
            if inspect.isawaitable(outcome):
                await outcome
        return results

    async def pause(self, workflow_id: str) -> None:
        """Request a pause; the slot is freed once the running wave settles."""
        await self._executor.pause(self.get_workflow(workflow_id))

    async def reset(self, workflow_id: str) -> None:
        workflow = self.get_workflow(workflow_id)
        if workflow.status not in RESETTABLE_STATUSES:
            raise WorkflowStateError(
                f"Cannot reset workflow {workflow_id} in status {workflow.status}"
            )
        await self._executor.reset(workflow)
        self.results.pop(workflow_id, None)
