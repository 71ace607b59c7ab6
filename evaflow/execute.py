"""Dependency-ordered workflow execution."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from .contracts import EventKind, Workflow, WorkflowEvent, WorkflowStep, utcnow
from .errors import WorkflowBlockedError, WorkflowPausedError, WorkflowStateError
from .persistence import RunRepository

logger = logging.getLogger(__name__)

ToolExecute = Callable[[str, Dict[str, Any]], Awaitable[Any]]
Listener = Callable[[WorkflowEvent], Union[Awaitable[None], None]]


class WorkflowExecutor:
    """Runs workflow steps in waves of concurrently ready steps.

    The executor mutates the workflow it is handed in place. Tool calls go
    through the injected ``tool_execute`` coroutine; transitions are reported
    to ``listeners`` and, when configured, recorded in ``repository``.
    """

    def __init__(
        self,
        tool_execute: ToolExecute,
        repository: RunRepository | None = None,
        listeners: Optional[Iterable[Listener]] = None,
    ) -> None:
        self._tool_execute = tool_execute
        self._repository = repository
        self._listeners: List[Listener] = list(listeners or [])
        self._in_flight: set[str] = set()

    def subscribe(self, listener: Listener) -> None:
        """Register a callback that receives every ``WorkflowEvent``."""
        self._listeners.append(listener)

    def is_running(self, workflow: Workflow) -> bool:
        return workflow.id in self._in_flight

    async def execute(self, workflow: Workflow) -> Dict[str, Any]:
        """Drive ``workflow`` to completion and return outputs by step id.

        Raises:
            WorkflowStateError: If the workflow is already active.
            WorkflowBlockedError: If pending steps can never become ready.
            WorkflowPausedError: If the workflow was paused between waves.
            Exception: Whatever the tool call of a failing step raised.
        """
        if workflow.status == "active" or workflow.id in self._in_flight:
            raise WorkflowStateError(f"Workflow {workflow.id} is already running")

        # Steps interrupted by an earlier failure are retried; completed
        # steps keep their outputs and satisfy dependencies immediately.
        for step in workflow.steps:
            if step.status in ("failed", "running"):
                step.clear()
        results: Dict[str, Any] = workflow.completed_outputs()
        completed_steps = set(results)

        run_id = str(uuid.uuid4())
        self._in_flight.add(workflow.id)
        workflow.status = "active"
        workflow.actual_duration = None
        started = time.monotonic()
        logger.info(f"Workflow {workflow.id} started (run_id={run_id})")
        if self._repository is not None:
            await self._repository.create_run(run_id, workflow.id, workflow.name)
        await self._emit("workflow_started", run_id, workflow)

        try:
            while True:
                if workflow.status == "paused" and workflow.pending_steps():
                    raise WorkflowPausedError(f"Workflow {workflow.id} is paused")

                ready = [s for s in workflow.steps if s.is_ready(completed_steps)]
                if not ready:
                    pending = [s.id for s in workflow.pending_steps()]
                    if pending:
                        raise WorkflowBlockedError(pending)
                    break

                logger.debug(
                    f"Workflow {workflow.id} dispatching wave: {[s.id for s in ready]}"
                )
                await self._run_wave(run_id, workflow, ready, results, completed_steps)
        except WorkflowPausedError:
            logger.info(f"Workflow {workflow.id} paused (run_id={run_id})")
            await self._finish_run(run_id, workflow, "workflow_paused", "paused")
            raise
        except Exception as e:
            workflow.status = "failed"
            logger.error(f"Workflow {workflow.id} failed (run_id={run_id}): {e}")
            await self._finish_run(
                run_id, workflow, "workflow_failed", "failed", error=str(e)
            )
            raise
        finally:
            self._in_flight.discard(workflow.id)

        workflow.status = "completed"
        workflow.actual_duration = time.monotonic() - started
        logger.info(
            f"Workflow {workflow.id} completed in {workflow.actual_duration:.2f}s "
            f"(run_id={run_id})"
        )
        await self._finish_run(run_id, workflow, "workflow_completed", "completed")
        return dict(results)

    async def _run_wave(
        self,
        run_id: str,
        workflow: Workflow,
        ready: List[WorkflowStep],
        results: Dict[str, Any],
        completed_steps: set[str],
    ) -> None:
        """Run ``ready`` concurrently and re-raise the first step failure.

        Siblings of a failed step are not cancelled, but the wave only returns
        once every one of them has settled, so no step writes into the
        workflow after ``execute`` has given it back.
        """
        tasks = [
            asyncio.create_task(
                self._run_step(run_id, workflow, step, results, completed_steps)
            )
            for step in ready
        ]
        try:
            await asyncio.gather(*tasks)
        except Exception:
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _run_step(
        self,
        run_id: str,
        workflow: Workflow,
        step: WorkflowStep,
        results: Dict[str, Any],
        completed_steps: set[str],
    ) -> None:
        step.status = "running"
        step.start_time = utcnow()
        if self._repository is not None:
            await self._repository.mark_step_started(run_id, step.id, step.tool_id)
        await self._emit("step_started", run_id, workflow, step)

        inputs = {
            **step.inputs,
            **{dep_id: results.get(dep_id) for dep_id in step.dependencies},
        }

        try:
            output = await self._tool_execute(step.tool_id, inputs)
        except Exception as e:
            step.error_message = str(e) or type(e).__name__
            step.end_time = utcnow()
            step.status = "failed"
            logger.error(
                f"Step {step.id} ({step.tool_id}) of workflow {workflow.id} failed: "
                f"{step.error_message}"
            )
            if self._repository is not None:
                await self._repository.mark_step_completed(
                    run_id, step.id, status="failed", error=step.error_message
                )
            await self._emit(
                "step_failed", run_id, workflow, step, error=step.error_message
            )
            raise

        results[step.id] = output
        step.outputs = output
        step.end_time = utcnow()
        step.status = "completed"
        completed_steps.add(step.id)
        logger.info(f"Step {step.id} ({step.tool_id}) of workflow {workflow.id} completed")
        if self._repository is not None:
            await self._repository.mark_step_completed(
                run_id, step.id, status="completed", output=output
            )
        await self._emit("step_completed", run_id, workflow, step, outputs=output)

    async def pause(self, workflow: Workflow) -> None:
        """Stop scheduling new waves; in-flight tool calls are left to finish."""
        if workflow.status != "active":
            raise WorkflowStateError(
                f"Cannot pause workflow {workflow.id} in status {workflow.status}"
            )
        workflow.status = "paused"
        logger.info(f"Workflow {workflow.id} pause requested")

    async def reset(self, workflow: Workflow) -> None:
        """Return every step to ``pending`` so the workflow can run again."""
        if workflow.status == "active" or workflow.id in self._in_flight:
            raise WorkflowStateError(f"Cannot reset running workflow {workflow.id}")
        for step in workflow.steps:
            step.clear()
        workflow.status = "draft"
        workflow.actual_duration = None
        logger.info(f"Workflow {workflow.id} reset")
        await self._emit("workflow_reset", "", workflow)

    async def _finish_run(
        self,
        run_id: str,
        workflow: Workflow,
        kind: EventKind,
        status: str,
        error: Optional[str] = None,
    ) -> None:
        if self._repository is not None:
            await self._repository.mark_run_completed(run_id, status=status)
        await self._emit(kind, run_id, workflow, error=error)

    async def _emit(
        self,
        kind: EventKind,
        run_id: str,
        workflow: Workflow,
        step: Optional[WorkflowStep] = None,
        outputs: Any = None,
        error: Optional[str] = None,
    ) -> None:
        if not self._listeners:
            return
        event = WorkflowEvent(
            kind=kind,
            run_id=run_id,
            workflow_id=workflow.id,
            step_id=step.id if step else None,
            status=step.status if step else workflow.status,
            outputs=outputs,
            error=error,
        )
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"Listener failed on {kind} for {workflow.id}: {e}")
