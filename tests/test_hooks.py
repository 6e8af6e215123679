import pytest

from hooks import HookError, HookRegistry, StepContext
from interpreter import Program


def test_handles_remove_only_their_registration() -> None:
    registry = HookRegistry()
    calls = []

    def listener(*args) -> None:
        calls.append(args)

    first = registry.on_event("blocked", listener)
    second = registry.on_event("blocked", listener)

    assert registry.remove(first) is True
    assert registry.remove(first) is False

    registry.emit("blocked", "x")
    assert calls == [("x",)]
    assert registry.remove(second) is True
    assert not registry.has_listeners()


def test_priority_orders_handlers() -> None:
    registry = HookRegistry()
    order = []
    registry.on_event("program_start", lambda p: order.append("low"), priority=-1)
    registry.on_event("program_start", lambda p: order.append("high"), priority=5)
    registry.on_event("program_start", lambda p: order.append("mid"))

    registry.emit("program_start", None)

    assert order == ["high", "mid", "low"]


def test_unknown_event_is_rejected() -> None:
    with pytest.raises(ValueError):
        HookRegistry().on_event("before_everything", lambda: None)


def test_every_n_steps() -> None:
    registry = HookRegistry()
    hits = []
    handle = registry.every_n_steps(3, lambda program, ctx: hits.append(ctx.step_index))

    program = Program("123456789;", hooks=registry)
    program.run()

    assert hits == [0, 3, 6, 9]
    assert registry.remove(handle) is True
    with pytest.raises(ValueError):
        registry.every_n_steps(0, lambda program, ctx: None)


def test_step_rule_failure_is_wrapped() -> None:
    registry = HookRegistry()

    def broken(program, ctx: StepContext) -> None:
        raise KeyError(ctx.step_index)

    registry.every_n_steps(1, broken)

    with pytest.raises(HookError) as info:
        registry.after_step(None, StepContext(0, "1", None, "progressed"))
    assert isinstance(info.value.cause, KeyError)


def test_program_lifecycle_events() -> None:
    registry = HookRegistry()
    events = []
    registry.on_event("program_start", lambda program: events.append("start"))
    registry.on_event("blocked", lambda program, error: events.append("blocked"))
    registry.on_event("on_error", lambda program, error: events.append(error.kind.value))
    registry.on_event("program_end", lambda program, result: events.append(result.status.value))

    program = Program("i+", hooks=registry)
    program.advance()
    program.give_input("a")
    program.run()

    assert events == ["start", "blocked", "stack_underflow", "failed"]
