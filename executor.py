"""Paced execution of a fish program with advance listeners."""

from __future__ import annotations

import asyncio
import itertools
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from hooks import HookRegistry
from interpreter import NoOutputAvailable, Number, PointerState, Program, StepResult, StepStatus


# Advances per batch when running at full speed before yielding.
FULL_SPEED_ADVANCES = 10000

# Pause between polls while the executor is paused.
PAUSE_POLL_INTERVAL = 0.05


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class ListenerHandle:
    id: int


class Executor:
    def __init__(
        self,
        source: str,
        initial_stack: Optional[Iterable[Any]] = None,
        *,
        interval: float = 0.1,
        batch_size: int = FULL_SPEED_ADVANCES,
        seed: Optional[int] = None,
        verbose: bool = False,
        input_provider: Optional[Callable[[], str]] = None,
        output_sink: Optional[Callable[[str], None]] = None,
        hooks: Optional[HookRegistry] = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._program = Program(source, initial_stack, seed=seed, verbose=verbose, hooks=hooks)
        self._output_parts: list[str] = []
        self._is_paused = False
        self._has_started = False
        self._interval = 0.0
        self.interval = interval
        self.batch_size = batch_size
        self.input_provider = input_provider
        self.output_sink = output_sink
        self._listeners: Dict[ListenerHandle, Callable[["Executor"], None]] = {}
        self._listener_ids = itertools.count(1)
        self._last_result = StepResult(StepStatus.PROGRESSED)

    # ---- listeners ----

    def on_advance(self, func: Callable[["Executor"], None]) -> ListenerHandle:
        handle = ListenerHandle(next(self._listener_ids))
        self._listeners[handle] = func
        return handle

    def off_advance(self, handle: ListenerHandle) -> bool:
        return self._listeners.pop(handle, None) is not None

    def _notify(self) -> None:
        for func in list(self._listeners.values()):
            func(self)

    # ---- observers ----

    @property
    def program(self) -> Program:
        return self._program

    @property
    def output(self) -> str:
        return "".join(self._output_parts)

    @property
    def instruction_pointer(self) -> PointerState:
        return self._program.instruction_pointer

    @property
    def input_buffer(self) -> Tuple[str, ...]:
        return self._program.input_buffer

    @property
    def stack_snapshot(self) -> Tuple[Number, ...]:
        return self._program.stack

    @property
    def has_started(self) -> bool:
        return self._has_started

    @property
    def has_terminated(self) -> bool:
        return self._program.has_terminated

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def last_result(self) -> StepResult:
        return self._last_result

    @property
    def interval(self) -> float:
        return self._interval

    @interval.setter
    def interval(self, seconds: float) -> None:
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
            raise TypeError(f"interval must be a number, got {type(seconds).__name__}")
        self._interval = max(float(seconds), 0.0)

    def give_input(self, c: str) -> None:
        self._program.give_input(c)

    def pause(self) -> None:
        self._is_paused = True

    def resume(self) -> None:
        self._is_paused = False

    # ---- stepping ----

    def run_batch(self) -> StepResult:
        """Run one scheduling unit and notify listeners.

        At a non-zero interval a batch is a single advance; at full speed it is
        up to ``batch_size`` advances, cut short by termination or blocked input.
        """
        self._has_started = True
        limit = 1 if self._interval > 0 else self.batch_size
        result = self._last_result
        for _ in range(limit):
            result = self._advance()
            if result.terminal:
                break
            if result.blocked:
                self._request_input()
                break
        self._last_result = result
        self._notify()
        return result

    def _advance(self) -> StepResult:
        result = self._program.advance()
        try:
            text = self._program.read_output()
        except NoOutputAvailable:
            return result
        self._output_parts.append(text)
        if self.output_sink is not None:
            self.output_sink(text)
        return result

    def _request_input(self) -> None:
        if self.input_provider is None:
            return
        text = self.input_provider()
        if text:
            self._program.give_input_text(text)
        else:
            self._program.close_input()

    async def run(self, token: Optional[CancellationToken] = None) -> StepResult:
        self._has_started = True
        while not self.has_terminated:
            if token is not None and token.cancelled:
                break
            if self._is_paused:
                await asyncio.sleep(max(self._interval, PAUSE_POLL_INTERVAL))
                continue
            result = self.run_batch()
            if result.blocked and self.input_provider is None:
                # Let other tasks queue input before retrying.
                await asyncio.sleep(max(self._interval, PAUSE_POLL_INTERVAL))
            else:
                await asyncio.sleep(self._interval)
        return self._last_result
