"""Workflow execution tests."""

import asyncio

import pytest

from evaflow import (
    Workflow,
    WorkflowBlockedError,
    WorkflowExecutor,
    WorkflowPausedError,
    WorkflowStateError,
    WorkflowStep,
)
from evaflow.persistence import InMemoryRunRepository


def diamond_workflow() -> Workflow:
    return Workflow(
        id="wf",
        name="Diamond",
        steps=[
            WorkflowStep(id="A", tool_id="tool_a"),
            WorkflowStep(id="B", tool_id="tool_b"),
            WorkflowStep(
                id="C", tool_id="tool_c", dependencies=["A", "B"], inputs={"k": "v"}
            ),
        ],
    )


class StubTools:
    """Deterministic tool stub recording every call."""

    def __init__(self, responses, failures=None):
        self.responses = responses
        self.failures = failures or {}
        self.calls = []

    async def __call__(self, tool_id, inputs):
        self.calls.append((tool_id, inputs))
        await asyncio.sleep(0)
        if tool_id in self.failures:
            raise self.failures[tool_id]
        return self.responses[tool_id]


DIAMOND_RESPONSES = {"tool_a": {"x": 1}, "tool_b": {"y": 2}, "tool_c": {"sum": 3}}


@pytest.mark.asyncio
async def test_end_to_end_success():
    """Independent steps feed their outputs into the joining step."""
    wf = diamond_workflow()
    tools = StubTools(DIAMOND_RESPONSES)

    results = await WorkflowExecutor(tools).execute(wf)

    assert results == {"A": {"x": 1}, "B": {"y": 2}, "C": {"sum": 3}}
    assert wf.status == "completed"
    assert wf.actual_duration is not None
    c_inputs = dict(tools.calls)["tool_c"]
    assert c_inputs == {"k": "v", "A": {"x": 1}, "B": {"y": 2}}
    for step in wf.steps:
        assert step.status == "completed"
        assert step.start_time is not None and step.end_time is not None


@pytest.mark.asyncio
async def test_end_to_end_failure():
    wf = diamond_workflow()
    boom = RuntimeError("boom")
    tools = StubTools(DIAMOND_RESPONSES, failures={"tool_b": boom})

    with pytest.raises(RuntimeError) as exc_info:
        await WorkflowExecutor(tools).execute(wf)

    assert exc_info.value is boom
    assert wf.status == "failed"
    assert wf.get_step("A").status == "completed"
    assert wf.get_step("B").status == "failed"
    assert wf.get_step("B").error_message == "boom"
    assert wf.get_step("C").status == "pending"
    assert wf.get_step("C").outputs is None
    assert "tool_c" not in [tool_id for tool_id, _ in tools.calls]


@pytest.mark.asyncio
async def test_step_never_starts_before_dependencies_complete():
    wf = Workflow(
        id="chain",
        name="Chain",
        steps=[
            WorkflowStep(id="s1", tool_id="t"),
            WorkflowStep(id="s2", tool_id="t", dependencies=["s1"]),
            WorkflowStep(id="s3", tool_id="t", dependencies=["s1"]),
            WorkflowStep(id="s4", tool_id="t", dependencies=["s2", "s3"]),
        ],
    )
    violations = []

    async def tool(tool_id, inputs):
        running = [s for s in wf.steps if s.status == "running"]
        for step in running:
            for dep in step.dependencies:
                if wf.get_step(dep).status != "completed":
                    violations.append((step.id, dep))
        await asyncio.sleep(0)
        return {"ok": True}

    events = []
    executor = WorkflowExecutor(tool, listeners=[events.append])
    await executor.execute(wf)

    assert violations == []
    order = [(e.kind, e.step_id) for e in events if e.step_id]
    for step in wf.steps:
        started_at = order.index(("step_started", step.id))
        for dep in step.dependencies:
            assert order.index(("step_completed", dep)) < started_at


@pytest.mark.asyncio
async def test_ready_steps_run_concurrently():
    """A slow step must not delay the start of an unrelated fast step."""
    wf = Workflow(
        id="wave",
        name="Wave",
        steps=[
            WorkflowStep(id="slow", tool_id="slow"),
            WorkflowStep(id="fast", tool_id="fast"),
        ],
    )
    fast_started = asyncio.Event()

    async def tool(tool_id, inputs):
        if tool_id == "slow":
            await asyncio.wait_for(fast_started.wait(), timeout=1)
            return {"slow": True}
        fast_started.set()
        return {"fast": True}

    results = await WorkflowExecutor(tool).execute(wf)
    assert results == {"slow": {"slow": True}, "fast": {"fast": True}}


@pytest.mark.asyncio
async def test_missing_dependency_blocks_workflow():
    wf = Workflow(
        id="dangling",
        name="Dangling",
        steps=[
            WorkflowStep(id="A", tool_id="t"),
            WorkflowStep(id="B", tool_id="t", dependencies=["ghost"]),
        ],
    )
    tools = StubTools({"t": {"ok": 1}})

    with pytest.raises(WorkflowBlockedError) as exc_info:
        await WorkflowExecutor(tools).execute(wf)

    assert str(exc_info.value) == "Workflow execution blocked - check dependencies"
    assert exc_info.value.pending_steps == ["B"]
    assert wf.status == "failed"
    assert wf.get_step("A").status == "completed"
    assert wf.get_step("B").status == "pending"


@pytest.mark.asyncio
async def test_cycle_blocks_without_running_anything():
    wf = Workflow(
        id="cycle",
        name="Cycle",
        steps=[
            WorkflowStep(id="A", tool_id="t", dependencies=["B"]),
            WorkflowStep(id="B", tool_id="t", dependencies=["A"]),
        ],
    )
    tools = StubTools({"t": {}})

    with pytest.raises(WorkflowBlockedError):
        await WorkflowExecutor(tools).execute(wf)
    assert tools.calls == []


@pytest.mark.asyncio
async def test_reset_restores_pending_state_and_allows_rerun():
    wf = diamond_workflow()
    tools = StubTools(DIAMOND_RESPONSES, failures={"tool_b": RuntimeError("boom")})
    executor = WorkflowExecutor(tools)

    with pytest.raises(RuntimeError):
        await executor.execute(wf)

    await executor.reset(wf)
    assert wf.status == "draft"
    for step in wf.steps:
        assert step.status == "pending"
        assert step.outputs is None
        assert step.error_message is None
        assert step.start_time is None and step.end_time is None

    tools.failures = {}
    results = await executor.execute(wf)
    assert results == {"A": {"x": 1}, "B": {"y": 2}, "C": {"sum": 3}}

    await executor.reset(wf)
    second = await executor.execute(wf)
    assert second == results


@pytest.mark.asyncio
async def test_failed_workflow_resumes_from_completed_steps():
    wf = diamond_workflow()
    tools = StubTools(DIAMOND_RESPONSES, failures={"tool_b": RuntimeError("boom")})
    executor = WorkflowExecutor(tools)

    with pytest.raises(RuntimeError):
        await executor.execute(wf)

    tools.failures = {}
    tools.calls.clear()
    results = await executor.execute(wf)

    assert results["A"] == {"x": 1}
    assert [tool_id for tool_id, _ in tools.calls] == ["tool_b", "tool_c"]
    assert wf.get_step("B").error_message is None


@pytest.mark.asyncio
async def test_pause_stops_before_next_wave_and_resume_continues():
    wf = Workflow(
        id="pausable",
        name="Pausable",
        steps=[
            WorkflowStep(id="A", tool_id="a"),
            WorkflowStep(id="B", tool_id="b", dependencies=["A"]),
        ],
    )
    calls = []
    executor = None

    async def tool(tool_id, inputs):
        calls.append(tool_id)
        if tool_id == "a" and wf.status == "active" and len(calls) == 1:
            await executor.pause(wf)
        return {tool_id: True}

    executor = WorkflowExecutor(tool)
    with pytest.raises(WorkflowPausedError):
        await executor.execute(wf)

    assert wf.status == "paused"
    assert wf.get_step("A").status == "completed"
    assert wf.get_step("B").status == "pending"

    results = await executor.execute(wf)
    assert wf.status == "completed"
    assert calls == ["a", "b"]
    assert results == {"A": {"a": True}, "B": {"b": True}}


@pytest.mark.asyncio
async def test_pause_requires_active_workflow():
    wf = diamond_workflow()
    with pytest.raises(WorkflowStateError):
        await WorkflowExecutor(StubTools({})).pause(wf)


@pytest.mark.asyncio
async def test_double_execute_is_rejected():
    wf = diamond_workflow()
    started = asyncio.Event()
    release = asyncio.Event()

    async def tool(tool_id, inputs):
        started.set()
        await release.wait()
        return {}

    executor = WorkflowExecutor(tool)
    task = asyncio.create_task(executor.execute(wf))
    await started.wait()

    with pytest.raises(WorkflowStateError):
        await executor.execute(wf)
    with pytest.raises(WorkflowStateError):
        await executor.reset(wf)

    release.set()
    await task
    assert wf.status == "completed"


@pytest.mark.asyncio
async def test_error_message_falls_back_to_exception_name():
    wf = Workflow(id="wf", name="wf", steps=[WorkflowStep(id="A", tool_id="t")])

    async def tool(tool_id, inputs):
        raise ValueError()

    with pytest.raises(ValueError):
        await WorkflowExecutor(tool).execute(wf)
    assert wf.get_step("A").error_message == "ValueError"


@pytest.mark.asyncio
async def test_listener_errors_do_not_break_execution():
    wf = diamond_workflow()
    seen = []

    def broken(event):
        raise RuntimeError("listener down")

    async def recorder(event):
        seen.append(event.kind)

    executor = WorkflowExecutor(StubTools(DIAMOND_RESPONSES), listeners=[broken])
    executor.subscribe(recorder)
    await executor.execute(wf)

    assert seen[0] == "workflow_started"
    assert seen[-1] == "workflow_completed"
    assert seen.count("step_completed") == 3


@pytest.mark.asyncio
async def test_executor_records_runs_in_repository():
    repo = InMemoryRunRepository()
    wf = diamond_workflow()
    executor = WorkflowExecutor(
        StubTools(DIAMOND_RESPONSES, failures={"tool_b": RuntimeError("boom")}),
        repository=repo,
    )

    with pytest.raises(RuntimeError):
        await executor.execute(wf)

    runs = await repo.list_runs("wf")
    assert len(runs) == 1
    run = runs[0]
    assert run.status == "failed"
    steps = {s.step_id: s for s in run.steps}
    assert steps["A"].status == "completed"
    assert steps["A"].output == {"x": 1}
    assert steps["B"].status == "failed"
    assert steps["B"].error == "boom"
    assert "C" not in steps


def slow_sibling_tools():
    """Tool stub where ``tool_a`` blocks until released and ``tool_b`` fails once."""
    a_started = asyncio.Event()
    release = asyncio.Event()
    calls = []
    failures = {"tool_b": RuntimeError("boom")}

    async def tool(tool_id, inputs):
        calls.append(tool_id)
        if tool_id == "tool_a":
            a_started.set()
            await release.wait()
            return {"late": True}
        if tool_id in failures:
            raise failures.pop(tool_id)
        return {tool_id: True}

    return tool, a_started, release, calls


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_failed_wave_waits_for_siblings_before_reset():
    wf = diamond_workflow()
    tool, a_started, release, _ = slow_sibling_tools()
    executor = WorkflowExecutor(tool)

    task = asyncio.create_task(executor.execute(wf))
    await a_started.wait()
    await settle()

    assert wf.get_step("B").status == "failed"
    assert not task.done()
    assert executor.is_running(wf)
    with pytest.raises(WorkflowStateError):
        await executor.reset(wf)

    release.set()
    with pytest.raises(RuntimeError, match="boom"):
        await task
    assert wf.status == "failed"
    assert wf.get_step("A").outputs == {"late": True}

    await executor.reset(wf)
    assert [(s.id, s.status, s.outputs) for s in wf.steps] == [
        ("A", "pending", None),
        ("B", "pending", None),
        ("C", "pending", None),
    ]


@pytest.mark.asyncio
async def test_failed_wave_step_is_not_dispatched_twice():
    wf = diamond_workflow()
    tool, a_started, release, calls = slow_sibling_tools()
    executor = WorkflowExecutor(tool)

    task = asyncio.create_task(executor.execute(wf))
    await a_started.wait()
    await settle()

    with pytest.raises(WorkflowStateError):
        await executor.execute(wf)

    release.set()
    with pytest.raises(RuntimeError):
        await task

    results = await executor.execute(wf)
    assert calls.count("tool_a") == 1
    assert calls == ["tool_a", "tool_b", "tool_b", "tool_c"]
    assert results == {"A": {"late": True}, "B": {"tool_b": True}, "C": {"tool_c": True}}


@pytest.mark.asyncio
async def test_pause_during_last_wave_completes_workflow():
    wf = Workflow(id="wf", name="wf", steps=[WorkflowStep(id="A", tool_id="t")])
    executor = None

    async def tool(tool_id, inputs):
        await executor.pause(wf)
        return {"done": True}

    executor = WorkflowExecutor(tool)
    results = await executor.execute(wf)

    assert results == {"A": {"done": True}}
    assert wf.status == "completed"
