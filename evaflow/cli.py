"""Command line interface for running evaflow workflows."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer

from evaflow import WorkflowExecutor, get_repository
from evaflow.cli_utils.workflow import (
    _build_catalog,
    _build_registry,
    _format_event,
    _format_step,
    _validate_catalog_file,
)
from evaflow.config import load_config
from evaflow.errors import WorkflowNotFoundError
from evaflow.persistence import success_rate

app = typer.Typer(help="CLI for evaflow workflows")

# Command groups
workflow_app = typer.Typer(help="Commands for workflow templates")
tool_app = typer.Typer(help="Commands for the tool catalog")
run_app = typer.Typer(help="Commands for recorded runs")

app.add_typer(workflow_app, name="workflow")
app.add_typer(tool_app, name="tool")
app.add_typer(run_app, name="run")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v")) -> None:
    """evaflow CLI entry point."""
    config = load_config()
    level = logging.DEBUG if verbose else config.log_level.upper()
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


@workflow_app.command("list")
def workflow_list() -> None:
    """List workflow templates available in the catalog."""
    catalog = _build_catalog(load_config())
    if not len(catalog):
        typer.echo("No workflows found")
        return
    for template_id in catalog.ids():
        wf = catalog.get(template_id)
        typer.echo(f"{wf.id}\t{wf.name}\t{len(wf.steps)} steps\t{wf.priority}")


@workflow_app.command("show")
def workflow_show(workflow_id: str) -> None:
    """
    Show a workflow template and its dependency structure.

    Example:
        evaflow workflow show complete_loan_process
        # Output: Workflow complete_loan_process: Complete Loan Processing Pipeline
        #         - step_1 [loan_origination] Initial Application Processing: pending
        #         - step_2 [document_verification] Document Authentication: pending (depends on: step_1)
    """
    catalog = _build_catalog(load_config())
    try:
        wf = catalog.get(workflow_id)
    except WorkflowNotFoundError:
        typer.echo("Workflow not found")
        raise typer.Exit(code=1)
    typer.echo(f"Workflow {wf.id}: {wf.name}")
    if wf.description:
        typer.echo(wf.description)
    typer.echo(f"Category: {wf.category}  Role: {wf.role}  Priority: {wf.priority}")
    for step in wf.steps:
        typer.echo(_format_step(step))


@workflow_app.command("validate")
def workflow_validate(path: Path) -> None:
    """Check every workflow in a catalog file for unknown dependencies and cycles."""
    if not path.exists():
        typer.secho("Specified path does not exist", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    results = _validate_catalog_file(path)
    if not results:
        typer.echo("No workflows found")
        return

    failed = False
    for workflow_id, issues in results.items():
        if not issues:
            typer.echo(f"{workflow_id}: ok")
            continue
        failed = True
        typer.secho(f"{workflow_id}: {len(issues)} issue(s)", fg=typer.colors.RED)
        for issue in issues:
            typer.echo(f"  - {issue}")
    if failed:
        raise typer.Exit(code=1)


@workflow_app.command("run")
def workflow_run(
    workflow_id: str,
    role: Optional[str] = typer.Option(None, help="Financial role used for tool permissions"),
    show_outputs: bool = typer.Option(False, "--outputs", help="Print step outputs as JSON"),
) -> None:
    """
    Execute a workflow template against the simulated tool backend.

    Steps without pending dependencies run concurrently; progress is printed
    as steps change status. The run is recorded in the configured repository.

    Example:
        evaflow workflow run risk_assessment_suite
        evaflow workflow run complete_loan_process --role underwriter --outputs
    """
    config = load_config()
    catalog = _build_catalog(config)
    try:
        workflow = catalog.instantiate(workflow_id)
    except WorkflowNotFoundError:
        typer.echo("Workflow not found")
        raise typer.Exit(code=1)

    registry = _build_registry(config, role=role)
    executor = WorkflowExecutor(
        registry,
        repository=get_repository(),
        listeners=[lambda event: typer.echo(_format_event(event))],
    )

    try:
        results = asyncio.run(executor.execute(workflow))
    except Exception as exc:
        typer.secho(f"Workflow {workflow_id} failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.echo(
        f"Workflow {workflow_id} completed in {workflow.actual_duration:.2f}s"
    )
    if show_outputs:
        typer.echo(json.dumps(results, indent=2, default=str))


@tool_app.command("list")
def tool_list(
    category: Optional[str] = None,
    role: Optional[str] = None,
) -> None:
    """List tools in the catalog, optionally filtered by category or role."""
    registry = _build_registry(load_config())
    tools = registry.list_tools(category=category, role=role)
    if not tools:
        typer.echo("No tools found")
        return
    for tool in tools:
        typer.echo(f"{tool.id}\t{tool.category}\t{tool.role}\t{tool.status}")


@run_app.command("list")
def run_list(workflow: Optional[str] = None) -> None:
    """List recorded runs with their status."""
    repo = get_repository()
    runs = asyncio.run(repo.list_runs(workflow))
    if not runs:
        typer.echo("No runs found")
        return
    for run in runs:
        typer.echo(f"{run.run_id}\t{run.workflow_id}\t{run.status}")


@run_app.command("show")
def run_show(run_id: str) -> None:
    """Show step history for a recorded run."""
    repo = get_repository()
    run = asyncio.run(repo.get_run(run_id))
    if run is None:
        typer.echo("Run not found")
        raise typer.Exit(code=1)
    typer.echo(f"Run {run.run_id} ({run.workflow_id}): {run.status}")
    for step in run.steps:
        typer.echo(
            f"- {step.step_id} [{step.tool_id}]: {step.status}"
            + (
                f" ({step.started_at} -> {step.completed_at})"
                if step.started_at or step.completed_at
                else ""
            )
            + (f" error: {step.error}" if step.error else "")
        )


@app.command("stats")
def stats(workflow: Optional[str] = None) -> None:
    """Print the success rate of recorded runs."""
    repo = get_repository()
    runs = asyncio.run(repo.list_runs(workflow))
    typer.echo(f"Runs: {len(runs)}")
    typer.echo(f"Success rate: {success_rate(runs):.1f}%")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
