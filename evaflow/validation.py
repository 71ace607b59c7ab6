"""Static checks for workflow dependency graphs."""

from __future__ import annotations

from collections import Counter, deque
from typing import Dict, List, Literal

from pydantic import BaseModel

from .contracts import Workflow
from .errors import WorkflowValidationError

IssueKind = Literal["duplicate_step", "unknown_dependency", "self_dependency", "cycle"]


class ValidationIssue(BaseModel):
    """A single problem found in a workflow definition."""

    kind: IssueKind
    step_id: str
    detail: str

    def __str__(self) -> str:
        return f"{self.kind} at {self.step_id}: {self.detail}"


def validate_workflow(workflow: Workflow) -> List[ValidationIssue]:
    """Return every structural problem in ``workflow``.

    Cycles are found with Kahn's algorithm over the steps whose
    dependencies are known; the steps left unsorted are the ones on, or
    downstream of, a cycle.
    """
    issues: List[ValidationIssue] = []
    counts = Counter(step.id for step in workflow.steps)
    for step_id, count in counts.items():
        if count > 1:
            issues.append(
                ValidationIssue(
                    kind="duplicate_step",
                    step_id=step_id,
                    detail=f"defined {count} times",
                )
            )

    known = set(counts)
    indegree: Dict[str, int] = {step_id: 0 for step_id in known}
    dependents: Dict[str, List[str]] = {step_id: [] for step_id in known}
    for step in workflow.steps:
        for dep in step.dependencies:
            if dep == step.id:
                issues.append(
                    ValidationIssue(
                        kind="self_dependency",
                        step_id=step.id,
                        detail="step depends on itself",
                    )
                )
            elif dep not in known:
                issues.append(
                    ValidationIssue(
                        kind="unknown_dependency",
                        step_id=step.id,
                        detail=f"depends on missing step {dep}",
                    )
                )
            else:
                indegree[step.id] += 1
                dependents[dep].append(step.id)

    queue = deque(step_id for step_id, degree in indegree.items() if degree == 0)
    while queue:
        current = queue.popleft()
        for child in dependents[current]:
            indegree[child] -= 1
            if indegree[child] == 0:
                queue.append(child)

    for step_id in counts:
        if indegree[step_id] > 0:
            issues.append(
                ValidationIssue(
                    kind="cycle",
                    step_id=step_id,
                    detail="step is part of, or waits on, a dependency cycle",
                )
            )
    return issues


def ensure_valid(workflow: Workflow) -> None:
    """Raise ``WorkflowValidationError`` if ``workflow`` has any issue."""
    issues = validate_workflow(workflow)
    if issues:
        raise WorkflowValidationError(workflow.id, issues)
