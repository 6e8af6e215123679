import pytest

from interpreter import TYPE_FLT, TYPE_INT, Stack, StackUnderflowError, Value


def test_snapshot_is_bottom_to_top() -> None:
    stack = Stack([1, 2])
    stack.push(3)

    assert stack.snapshot() == (1, 2, 3)
    assert stack.pop() == Value(TYPE_INT, 3)
    assert stack.snapshot() == (1, 2)


def test_snapshot_does_not_mutate() -> None:
    stack = Stack([4])
    first = stack.snapshot()
    stack.push(5)

    assert first == (4,)


@pytest.mark.parametrize(
    "operation, depth",
    [
        (Stack.pop, 0),
        (Stack.peek, 0),
        (Stack.duplicate, 0),
        (Stack.swap_top2, 1),
        (Stack.swap_top3, 2),
        (Stack.shift_left, 0),
        (Stack.shift_right, 0),
    ],
)
def test_operations_underflow_when_too_shallow(operation, depth: int) -> None:
    stack = Stack(range(depth))

    with pytest.raises(StackUnderflowError):
        operation(stack)


def test_peek_reads_below_top() -> None:
    stack = Stack([7, 8, 9])

    assert stack.peek().value == 9
    assert stack.peek(2).value == 7
    with pytest.raises(StackUnderflowError):
        stack.peek(3)


def test_duplicate_and_swaps() -> None:
    stack = Stack([1, 2, 3])

    stack.swap_top3()
    assert stack.snapshot() == (3, 1, 2)
    stack.swap_top2()
    assert stack.snapshot() == (3, 2, 1)
    stack.duplicate()
    assert stack.snapshot() == (3, 2, 1, 1)


def test_shifts_rotate_whole_stack() -> None:
    stack = Stack([1, 2, 3])

    stack.shift_right()
    assert stack.snapshot() == (3, 1, 2)
    stack.shift_left()
    stack.shift_left()
    assert stack.snapshot() == (2, 3, 1)
    stack.reverse()
    assert stack.snapshot() == (1, 3, 2)


def test_pop_many_checks_depth_before_popping() -> None:
    stack = Stack([1])

    with pytest.raises(StackUnderflowError):
        stack.pop_many(2)
    assert stack.snapshot() == (1,)
    assert [v.value for v in Stack([1, 2, 3]).pop_many(2)] == [2, 3]


def test_register_holds_one_value() -> None:
    stack = Stack([5, 6])

    stack.toggle_register()
    assert stack.snapshot() == (5,)
    assert stack.register == Value(TYPE_INT, 6)
    stack.toggle_register()
    assert stack.snapshot() == (5, 6)
    assert stack.register is None


def test_register_underflows_on_empty_stack() -> None:
    with pytest.raises(StackUnderflowError):
        Stack().toggle_register()


def test_values_are_tagged() -> None:
    assert Value.of(True) == Value(TYPE_INT, 1)
    assert Value.of(2.5) == Value(TYPE_FLT, 2.5)
    assert Value(TYPE_FLT, 4.0).render() == "4"
    assert Value(TYPE_FLT, 0.25).render() == "0.25"
    with pytest.raises(TypeError):
        Value.of("1")
