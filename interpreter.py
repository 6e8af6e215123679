from __future__ import annotations
import json
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Tuple, Union

import numpy as np

from codebox import FishError, Grid
from hooks import HookRegistry, StepContext


TYPE_INT = "INT"
TYPE_FLT = "FLT"

Number = Union[int, float]

# Largest code point accepted by chr().
MAX_CODE_POINT = 0x10FFFF


@dataclass(frozen=True)
class Value:
    type: str
    value: Any

    @classmethod
    def of(cls, number: Any) -> "Value":
        if isinstance(number, Value):
            return number
        if isinstance(number, (int, np.integer)):
            return cls(TYPE_INT, int(number))
        if isinstance(number, (float, np.floating)):
            return cls(TYPE_FLT, float(number))
        raise TypeError(f"Stack values must be numbers, got {type(number).__name__}")

    def is_zero(self) -> bool:
        return self.value == 0

    def render(self) -> str:
        if self.type == TYPE_INT:
            try:
                return str(self.value)
            except ValueError as exc:
                raise InvalidValueError(f"Integer too large to print: {exc}") from exc
        x = float(self.value)
        if x.is_integer():
            return str(int(x))
        return repr(x)


class ErrorKind(Enum):
    STACK_UNDERFLOW = "stack_underflow"
    DIVISION_BY_ZERO = "division_by_zero"
    INVALID_INSTRUCTION = "invalid_instruction"
    INVALID_VALUE = "invalid_value"
    INPUT_EXHAUSTED = "input_exhausted"


class FishRuntimeError(FishError):
    """Raised for faults that terminate a program."""

    kind = ErrorKind.INVALID_VALUE

    def __init__(
        self,
        message: str,
        *,
        instruction: Optional[str] = None,
        position: Optional["PointerState"] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.instruction = instruction
        self.position = position
        self.step_index: Optional[int] = None


class StackUnderflowError(FishRuntimeError):
    kind = ErrorKind.STACK_UNDERFLOW


class DivisionByZeroError(FishRuntimeError):
    kind = ErrorKind.DIVISION_BY_ZERO


class InvalidInstructionError(FishRuntimeError):
    kind = ErrorKind.INVALID_INSTRUCTION


class InvalidValueError(FishRuntimeError):
    kind = ErrorKind.INVALID_VALUE


class InputExhaustedError(FishError):
    """The input instruction found no pending character; retry after input arrives."""

    kind = ErrorKind.INPUT_EXHAUSTED


class InvalidInputError(FishError):
    """Rejected argument to give_input."""


class NoOutputAvailable(FishError):
    """Nothing was written since the last read."""


# ---- Values ----


def _numeric(result: Number, x: Value, y: Value) -> Value:
    if x.type == TYPE_FLT or y.type == TYPE_FLT:
        return Value(TYPE_FLT, float(result))
    return Value(TYPE_INT, result)


def _add(x: Value, y: Value) -> Value:
    return _numeric(x.value + y.value, x, y)


def _sub(x: Value, y: Value) -> Value:
    return _numeric(x.value - y.value, x, y)


def _mul(x: Value, y: Value) -> Value:
    return _numeric(x.value * y.value, x, y)


def _div(x: Value, y: Value) -> Value:
    if y.is_zero():
        raise DivisionByZeroError("Division by zero")
    if x.type == TYPE_INT and y.type == TYPE_INT and x.value % y.value == 0:
        return Value(TYPE_INT, x.value // y.value)
    return Value(TYPE_FLT, x.value / y.value)


def _mod(x: Value, y: Value) -> Value:
    if y.is_zero():
        raise DivisionByZeroError("Modulo by zero")
    return _numeric(x.value % y.value, x, y)


def _expect_int(value: Value, instruction: str) -> int:
    if value.type == TYPE_INT:
        return int(value.value)
    if float(value.value).is_integer():
        return int(value.value)
    raise InvalidValueError(f"'{instruction}' expects an integer, got {value.render()}")


# ---- Pointer ----


class Direction(Enum):
    RIGHT = (1, 0)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    UP = (0, -1)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    @property
    def horizontal(self) -> bool:
        return self.value[1] == 0


_REVERSED = {
    Direction.RIGHT: Direction.LEFT,
    Direction.LEFT: Direction.RIGHT,
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
}

MIRRORS: Dict[str, Dict[Direction, Direction]] = {
    "/": {
        Direction.RIGHT: Direction.UP,
        Direction.UP: Direction.RIGHT,
        Direction.LEFT: Direction.DOWN,
        Direction.DOWN: Direction.LEFT,
    },
    "\\": {
        Direction.RIGHT: Direction.DOWN,
        Direction.DOWN: Direction.RIGHT,
        Direction.LEFT: Direction.UP,
        Direction.UP: Direction.LEFT,
    },
    "|": {
        Direction.RIGHT: Direction.LEFT,
        Direction.LEFT: Direction.RIGHT,
        Direction.UP: Direction.UP,
        Direction.DOWN: Direction.DOWN,
    },
    "_": {
        Direction.RIGHT: Direction.RIGHT,
        Direction.LEFT: Direction.LEFT,
        Direction.UP: Direction.DOWN,
        Direction.DOWN: Direction.UP,
    },
    "#": dict(_REVERSED),
}

ARROWS: Dict[str, Direction] = {
    ">": Direction.RIGHT,
    "<": Direction.LEFT,
    "^": Direction.UP,
    "v": Direction.DOWN,
}


@dataclass(frozen=True)
class PointerState:
    x: int
    y: int
    direction: Direction


@dataclass
class InstructionPointer:
    x: int = 0
    y: int = 0
    direction: Direction = Direction.RIGHT

    def move(self, width: int, height: int) -> None:
        self.x = (self.x + self.direction.dx) % width
        self.y = (self.y + self.direction.dy) % height

    def set_direction(self, direction: Direction) -> None:
        self.direction = direction

    def jump(self, x: int, y: int, width: int, height: int) -> None:
        self.x = x % width
        self.y = y % height

    def snapshot(self) -> PointerState:
        return PointerState(self.x, self.y, self.direction)


# ---- Stack ----


class Stack:
    def __init__(self, values: Iterable[Any] = ()) -> None:
        self._items: List[Value] = [Value.of(v) for v in values]
        # Holds at most one value; see toggle_register.
        self.register: Optional[Value] = None

    def __len__(self) -> int:
        return len(self._items)

    def require(self, count: int, operation: str = "pop") -> None:
        if len(self._items) < count:
            raise StackUnderflowError(
                f"{operation} needs {count} value(s) but the stack holds {len(self._items)}"
            )

    def push(self, value: Any) -> None:
        self._items.append(Value.of(value))

    def extend(self, values: Iterable[Value]) -> None:
        self._items.extend(Value.of(v) for v in values)

    def pop(self) -> Value:
        self.require(1, "pop")
        return self._items.pop()

    def pop_many(self, count: int, operation: str = "pop") -> List[Value]:
        """Pop ``count`` values at once, returned bottom-to-top."""
        self.require(count, operation)
        if count == 0:
            return []
        taken = self._items[-count:]
        del self._items[-count:]
        return taken

    def peek(self, n: int = 0) -> Value:
        self.require(n + 1, "peek")
        return self._items[-1 - n]

    def duplicate(self) -> None:
        self.require(1, "duplicate")
        self._items.append(self._items[-1])

    def swap_top2(self) -> None:
        self.require(2, "swap")
        items = self._items
        items[-1], items[-2] = items[-2], items[-1]

    def swap_top3(self) -> None:
        # [.., a, b, c] -> [.., c, a, b]
        self.require(3, "swap3")
        items = self._items
        items[-3], items[-2], items[-1] = items[-1], items[-3], items[-2]

    def shift_right(self) -> None:
        self.require(1, "shift")
        self._items.insert(0, self._items.pop())

    def shift_left(self) -> None:
        self.require(1, "shift")
        self._items.append(self._items.pop(0))

    def reverse(self) -> None:
        self._items.reverse()

    def toggle_register(self) -> None:
        if self.register is None:
            self.register = self.pop()
        else:
            self._items.append(self.register)
            self.register = None

    def values(self) -> Tuple[Value, ...]:
        return tuple(self._items)

    def snapshot(self) -> Tuple[Number, ...]:
        return tuple(v.value for v in self._items)

    def __repr__(self) -> str:
        return f"Stack({list(self.snapshot())!r})"


# ---- IO ----


class IOChannel:
    def __init__(self) -> None:
        self._input: Deque[str] = deque()
        self._output: List[str] = []
        self.input_closed = False

    @property
    def pending_input(self) -> Tuple[str, ...]:
        return tuple(self._input)

    def give_input(self, c: Any) -> None:
        if not isinstance(c, str) or len(c) != 1:
            raise InvalidInputError(f"Input must be exactly one character, got {c!r}")
        if self.input_closed:
            raise InvalidInputError("Input has been closed")
        self._input.append(c)

    def give_input_text(self, text: Any) -> None:
        if not isinstance(text, str):
            raise InvalidInputError(f"Input must be a string, got {type(text).__name__}")
        if self.input_closed:
            raise InvalidInputError("Input has been closed")
        self._input.extend(text)

    def close_input(self) -> None:
        self.input_closed = True

    def read_input(self) -> str:
        """Dequeue one character; ``""`` once input is closed and drained."""
        if self._input:
            return self._input.popleft()
        if self.input_closed:
            return ""
        raise InputExhaustedError("No input available")

    def write(self, text: str) -> None:
        self._output.append(text)

    def read_output(self) -> str:
        if not self._output:
            raise NoOutputAvailable("No output since the last read")
        text = "".join(self._output)
        self._output.clear()
        return text


# ---- Dispatch ----


class Outcome(Enum):
    MOVE = "move"
    SKIP = "skip"
    JUMPED = "jumped"
    HALT = "halt"


class MachineState:
    def __init__(self, grid: Grid, initial_stack: Iterable[Any], rng: np.random.Generator) -> None:
        self.grid = grid
        self.pointer = InstructionPointer()
        self.stacks: List[Stack] = [Stack(initial_stack)]
        self.io = IOChannel()
        # Quote character that opened string mode, or None.
        self.string_mode: Optional[str] = None
        self.rng = rng

    @property
    def stack(self) -> Stack:
        return self.stacks[-1]

    def split_stack(self, count: int) -> None:
        moved = self.stack.pop_many(count, "[")
        self.stacks.append(Stack(moved))

    def merge_stack(self) -> None:
        top = self.stacks.pop()
        if not self.stacks:
            self.stacks.append(Stack())
            return
        self.stacks[-1].extend(top.values())


Handler = Callable[[MachineState], Outcome]


class InstructionExecutor:
    def __init__(self) -> None:
        self.table: Dict[str, Handler] = {}
        for ch in "0123456789abcdef":
            self._register(ch, self._literal(int(ch, 16)))
        self._register_arithmetic("+", _add)
        self._register_arithmetic("-", _sub)
        self._register_arithmetic("*", _mul)
        self._register_arithmetic(",", _div)
        self._register_arithmetic("%", _mod)
        self._register_comparison("=", lambda a, b: a == b)
        self._register_comparison(")", lambda a, b: a > b)
        self._register_comparison("(", lambda a, b: a < b)
        for ch, direction in ARROWS.items():
            self._register(ch, self._arrow(direction))
        for ch, table in MIRRORS.items():
            self._register(ch, self._mirror(table))
        self._register("x", self._random_direction)
        self._register("!", lambda state: Outcome.SKIP)
        self._register("?", self._conditional_skip)
        self._register(".", self._jump)
        self._register(":", self._stack_op(Stack.duplicate))
        self._register("~", self._remove_top)
        self._register("$", self._stack_op(Stack.swap_top2))
        self._register("@", self._stack_op(Stack.swap_top3))
        self._register("}", self._stack_op(Stack.shift_right))
        self._register("{", self._stack_op(Stack.shift_left))
        self._register("r", self._stack_op(Stack.reverse))
        self._register("l", self._length)
        self._register("[", self._split_stack)
        self._register("]", self._merge_stack)
        self._register("&", self._stack_op(Stack.toggle_register))
        self._register('"', self._string_mode('"'))
        self._register("'", self._string_mode("'"))
        self._register("n", self._output_number)
        self._register("o", self._output_char)
        self._register("i", self._input_char)
        self._register("g", self._get_cell)
        self._register(";", lambda state: Outcome.HALT)
        self._register(" ", lambda state: Outcome.MOVE)

    def _register(self, ch: str, handler: Handler) -> None:
        if ch in self.table:
            raise ValueError(f"Instruction '{ch}' is already defined")
        self.table[ch] = handler

    def _register_arithmetic(self, ch: str, func: Callable[[Value, Value], Value]) -> None:
        def impl(state: MachineState) -> Outcome:
            x, y = state.stack.pop_many(2, ch)
            try:
                result = func(x, y)
            except (FishRuntimeError, OverflowError):
                state.stack.extend((x, y))
                raise
            state.stack.push(result)
            return Outcome.MOVE

        self._register(ch, impl)

    def _register_comparison(self, ch: str, func: Callable[[Number, Number], bool]) -> None:
        def impl(state: MachineState) -> Outcome:
            x, y = state.stack.pop_many(2, ch)
            state.stack.push(Value(TYPE_INT, 1 if func(x.value, y.value) else 0))
            return Outcome.MOVE

        self._register(ch, impl)

    def execute(self, ch: str, state: MachineState) -> Outcome:
        if state.string_mode is not None:
            if ch == state.string_mode:
                state.string_mode = None
            else:
                state.stack.push(Value(TYPE_INT, ord(ch)))
            return Outcome.MOVE
        handler = self.table.get(ch)
        if handler is None:
            if ch.isspace():
                return Outcome.MOVE
            raise InvalidInstructionError(f"Unknown instruction {ch!r}")
        return handler(state)

    # ---- handlers ----

    @staticmethod
    def _literal(number: int) -> Handler:
        value = Value(TYPE_INT, number)

        def impl(state: MachineState) -> Outcome:
            state.stack.push(value)
            return Outcome.MOVE

        return impl

    @staticmethod
    def _arrow(direction: Direction) -> Handler:
        def impl(state: MachineState) -> Outcome:
            state.pointer.set_direction(direction)
            return Outcome.MOVE

        return impl

    @staticmethod
    def _mirror(table: Dict[Direction, Direction]) -> Handler:
        def impl(state: MachineState) -> Outcome:
            state.pointer.set_direction(table[state.pointer.direction])
            return Outcome.MOVE

        return impl

    @staticmethod
    def _stack_op(method: Callable[[Stack], None]) -> Handler:
        def impl(state: MachineState) -> Outcome:
            method(state.stack)
            return Outcome.MOVE

        return impl

    @staticmethod
    def _string_mode(quote: str) -> Handler:
        def impl(state: MachineState) -> Outcome:
            state.string_mode = quote
            return Outcome.MOVE

        return impl

    def _random_direction(self, state: MachineState) -> Outcome:
        directions = list(Direction)
        state.pointer.set_direction(directions[int(state.rng.integers(len(directions)))])
        return Outcome.MOVE

    def _conditional_skip(self, state: MachineState) -> Outcome:
        return Outcome.SKIP if state.stack.pop().is_zero() else Outcome.MOVE

    def _jump(self, state: MachineState) -> Outcome:
        x, y = state.stack.pop_many(2, ".")
        grid = state.grid
        state.pointer.jump(_expect_int(x, "."), _expect_int(y, "."), grid.width, grid.height)
        return Outcome.JUMPED

    def _remove_top(self, state: MachineState) -> Outcome:
        state.stack.pop()
        return Outcome.MOVE

    def _length(self, state: MachineState) -> Outcome:
        state.stack.push(Value(TYPE_INT, len(state.stack)))
        return Outcome.MOVE

    def _split_stack(self, state: MachineState) -> Outcome:
        count = _expect_int(state.stack.peek(), "[")
        if count < 0:
            raise InvalidValueError(f"'[' expects a non-negative count, got {count}")
        state.stack.require(count + 1, "[")
        state.stack.pop()
        state.split_stack(count)
        return Outcome.MOVE

    def _merge_stack(self, state: MachineState) -> Outcome:
        state.merge_stack()
        return Outcome.MOVE

    def _output_number(self, state: MachineState) -> Outcome:
        text = state.stack.peek().render()
        state.stack.pop()
        state.io.write(text)
        return Outcome.MOVE

    def _output_char(self, state: MachineState) -> Outcome:
        code = _expect_int(state.stack.peek(), "o")
        if not 0 <= code <= MAX_CODE_POINT:
            raise InvalidValueError(f"'o' cannot output code point {code}")
        state.stack.pop()
        state.io.write(chr(code))
        return Outcome.MOVE

    def _input_char(self, state: MachineState) -> Outcome:
        # read_input raises before anything is pushed.
        text = state.io.read_input()
        state.stack.push(Value(TYPE_INT, ord(text) if text else -1))
        return Outcome.MOVE

    def _get_cell(self, state: MachineState) -> Outcome:
        x, y = state.stack.pop_many(2, "g")
        code = state.grid.code_at(_expect_int(x, "g"), _expect_int(y, "g"))
        state.stack.push(Value(TYPE_INT, code))
        return Outcome.MOVE


# ---- Results & logging ----


class StepStatus(Enum):
    PROGRESSED = "progressed"
    BLOCKED = "blocked"
    HALTED = "halted"
    FAILED = "failed"


class Termination(Enum):
    HALTED = "halted"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    status: StepStatus
    error: Optional[FishError] = None
    instruction: Optional[str] = None
    position: Optional[PointerState] = None

    @property
    def progressed(self) -> bool:
        return self.status is StepStatus.PROGRESSED

    @property
    def blocked(self) -> bool:
        return self.status is StepStatus.BLOCKED

    @property
    def terminal(self) -> bool:
        return self.status in (StepStatus.HALTED, StepStatus.FAILED)

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        if self.error is None:
            return None
        return getattr(self.error, "kind", None)


@dataclass
class StateEntry:
    step_index: int
    state_id: str
    position: PointerState
    instruction: str
    status: StepStatus
    string_mode: bool
    stack_snapshot: Optional[Tuple[Number, ...]]

    def format(self) -> str:
        pos = self.position
        line = (
            f"{self.state_id} ({pos.x}, {pos.y}) {pos.direction.name:<5} "
            f"{self.instruction!r} {self.status.value}"
        )
        if self.string_mode:
            line += " [string]"
        if self.stack_snapshot is not None:
            line += f" stack={list(self.stack_snapshot)}"
        return line


class StateLogger:
    def __init__(self, verbose: bool, history: Optional[int] = 256) -> None:
        if history is not None and history < 1:
            raise ValueError("history must be >= 1")
        self.verbose = verbose
        self.entries: Deque[StateEntry] = deque(maxlen=history)
        self.next_state_index = 0
        self.last_state_id = "seed"

    def record(
        self,
        *,
        position: PointerState,
        instruction: str,
        status: StepStatus,
        string_mode: bool,
        stack_snapshot: Optional[Tuple[Number, ...]] = None,
    ) -> StateEntry:
        step_index = self.next_state_index
        state_id = f"s_{step_index:06d}"
        entry = StateEntry(
            step_index=step_index,
            state_id=state_id,
            position=position,
            instruction=instruction,
            status=status,
            string_mode=string_mode,
            stack_snapshot=stack_snapshot if self.verbose else None,
        )
        self.entries.append(entry)
        self.last_state_id = state_id
        self.next_state_index += 1
        return entry

    def last_entry(self) -> Optional[StateEntry]:
        return self.entries[-1] if self.entries else None


# ---- Program ----


class Program:
    def __init__(
        self,
        source: str,
        initial_stack: Optional[Iterable[Any]] = None,
        *,
        seed: Optional[int] = None,
        verbose: bool = False,
        history: Optional[int] = 256,
        hooks: Optional[HookRegistry] = None,
    ) -> None:
        self.source = source
        self.grid = Grid(source)
        self.state = MachineState(
            self.grid, () if initial_stack is None else initial_stack, np.random.default_rng(seed)
        )
        self.executor = InstructionExecutor()
        self.logger = StateLogger(verbose=verbose, history=history)
        self.hooks = hooks or HookRegistry()
        self.verbose = verbose
        self._started = False
        self._termination: Optional[Termination] = None
        self._error: Optional[FishRuntimeError] = None
        self._final: Optional[StepResult] = None

    # ---- observers ----

    @property
    def instruction_pointer(self) -> PointerState:
        return self.state.pointer.snapshot()

    @property
    def input_buffer(self) -> Tuple[str, ...]:
        return self.state.io.pending_input

    @property
    def stack(self) -> Tuple[Number, ...]:
        return self.state.stack.snapshot()

    @property
    def stack_count(self) -> int:
        return len(self.state.stacks)

    @property
    def string_mode(self) -> bool:
        return self.state.string_mode is not None

    @property
    def has_terminated(self) -> bool:
        return self._termination is not None

    @property
    def termination(self) -> Optional[Termination]:
        return self._termination

    @property
    def error(self) -> Optional[FishRuntimeError]:
        return self._error

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self._error.kind if self._error is not None else None

    @property
    def steps(self) -> int:
        return self.logger.next_state_index

    # ---- io ----

    def give_input(self, c: str) -> None:
        self.state.io.give_input(c)

    def give_input_text(self, text: str) -> None:
        self.state.io.give_input_text(text)

    def close_input(self) -> None:
        self.state.io.close_input()

    def read_output(self) -> str:
        return self.state.io.read_output()

    # ---- execution ----

    def advance(self) -> StepResult:
        if self._final is not None:
            return self._final
        if not self._started:
            self._started = True
            self.hooks.emit("program_start", self)

        state = self.state
        grid = self.grid
        pointer = state.pointer
        position = pointer.snapshot()
        instruction = grid.char_at(pointer.x, pointer.y)
        in_string = state.string_mode is not None

        try:
            outcome = self.executor.execute(instruction, state)
        except InputExhaustedError as exc:
            result = StepResult(StepStatus.BLOCKED, exc, instruction, position)
            self._log_step(result, in_string)
            self.hooks.emit("blocked", self, exc)
            return result
        except FishRuntimeError as exc:
            return self._fail(exc, instruction, position, in_string)
        except OverflowError as exc:
            wrapped = InvalidValueError(f"Arithmetic overflow: {exc}")
            wrapped.__cause__ = exc
            return self._fail(wrapped, instruction, position, in_string)

        if outcome is Outcome.HALT:
            self._termination = Termination.HALTED
            result = StepResult(StepStatus.HALTED, None, instruction, position)
            self._final = result
            self._log_step(result, in_string)
            self.hooks.emit("program_end", self, result)
            return result

        if outcome is Outcome.SKIP:
            pointer.move(grid.width, grid.height)
        if outcome is not Outcome.JUMPED:
            pointer.move(grid.width, grid.height)
        result = StepResult(StepStatus.PROGRESSED, None, instruction, position)
        self._log_step(result, in_string)
        return result

    def run(self, max_steps: Optional[int] = None) -> StepResult:
        """Advance until the program terminates, blocks on input or ``max_steps`` is used up."""
        result = self._final or StepResult(StepStatus.PROGRESSED)
        count = 0
        while max_steps is None or count < max_steps:
            result = self.advance()
            count += 1
            if result.terminal or result.blocked:
                break
        return result

    def _fail(
        self,
        error: FishRuntimeError,
        instruction: str,
        position: PointerState,
        in_string: bool,
    ) -> StepResult:
        if error.instruction is None:
            error.instruction = instruction
        if error.position is None:
            error.position = position
        error.step_index = self.logger.next_state_index
        self._termination = Termination.FAILED
        self._error = error
        result = StepResult(StepStatus.FAILED, error, instruction, position)
        self._final = result
        self._log_step(result, in_string)
        self.hooks.emit("on_error", self, error)
        self.hooks.emit("program_end", self, result)
        return result

    def _log_step(self, result: StepResult, in_string: bool) -> None:
        position = result.position
        assert position is not None and result.instruction is not None
        entry = self.logger.record(
            position=position,
            instruction=result.instruction,
            status=result.status,
            string_mode=in_string,
            stack_snapshot=self.state.stack.snapshot() if self.verbose else None,
        )
        if self.hooks.has_listeners():
            self.hooks.after_step(
                self,
                StepContext(
                    step_index=entry.step_index,
                    instruction=result.instruction,
                    position=position,
                    status=result.status.value,
                ),
            )


# ---- Tracebacks ----


class TracebackFormatter:
    def __init__(self, program: Program, recent: int = 5) -> None:
        self.program = program
        self.recent = recent

    def recent_entries(self) -> List[StateEntry]:
        entries = list(self.program.logger.entries)
        return entries[-self.recent :] if self.recent > 0 else []

    def format_text(self, error: FishRuntimeError) -> str:
        lines = ["Traceback (most recent step last):"]
        for entry in self.recent_entries():
            lines.append(f"  {entry.format()}")
        position = error.position
        if position is not None:
            row = self.program.grid.row(position.y)
            lines.append(f"  Row {position.y}: {row}")
            lines.append("  " + " " * (len(f"Row {position.y}: ") + position.x) + "^")
        lines.append(f"{error.__class__.__name__}: {error.message} (kind: {error.kind.value})")
        return "\n".join(lines)

    def to_json(self, error: FishRuntimeError) -> str:
        steps: List[Dict[str, Any]] = []
        for entry in self.recent_entries():
            record: Dict[str, Any] = {
                "step_index": entry.step_index,
                "state_id": entry.state_id,
                "x": entry.position.x,
                "y": entry.position.y,
                "direction": entry.position.direction.name,
                "instruction": entry.instruction,
                "status": entry.status.value,
            }
            if entry.stack_snapshot is not None:
                record["stack"] = list(entry.stack_snapshot)
            steps.append(record)
        data: Dict[str, Any] = {
            "error": {
                "type": error.__class__.__name__,
                "kind": error.kind.value,
                "message": error.message,
                "instruction": error.instruction,
                "failing_step_index": error.step_index,
            },
            "steps": steps,
        }
        if error.position is not None:
            data["error"]["position"] = {
                "x": error.position.x,
                "y": error.position.y,
                "direction": error.position.direction.name,
            }
        return json.dumps(data, indent=2)
