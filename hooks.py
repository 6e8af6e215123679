from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from codebox import FishError


EVENTS = frozenset({"program_start", "after_step", "blocked", "on_error", "program_end"})


class HookError(FishError):
    """Raised when an observer registered on a program fails."""

    def __init__(self, event: str, cause: BaseException) -> None:
        super().__init__(f"Hook '{event}' failed: {cause}")
        self.event = event
        self.cause = cause


@dataclass(frozen=True)
class HookHandle:
    id: int
    event: str


@dataclass(frozen=True)
class StepContext:
    step_index: int
    instruction: str
    position: Any  # PointerState
    status: str
    extra: Optional[Dict[str, Any]] = None


_handle_ids = itertools.count(1)


@dataclass
class HookRegistry:
    # event -> list[(priority, handle, handler)]
    _events: Dict[str, List[Tuple[int, HookHandle, Callable[..., None]]]] = field(default_factory=dict)
    # list[(every_n, handle, handler)]
    _step_rules: List[Tuple[int, HookHandle, Callable[[Any, StepContext], None]]] = field(default_factory=list)

    def on_event(self, event: str, handler: Callable[..., None], *, priority: int = 0) -> HookHandle:
        if event not in EVENTS:
            raise ValueError(f"Unknown event '{event}'")
        handle = HookHandle(next(_handle_ids), event)
        self._events.setdefault(event, []).append((priority, handle, handler))
        # Stable sort keeps registration order among equal priorities.
        self._events[event].sort(key=lambda t: t[0], reverse=True)
        return handle

    def every_n_steps(self, every_n: int, handler: Callable[[Any, StepContext], None]) -> HookHandle:
        if every_n <= 0:
            raise ValueError("every_n must be >= 1")
        handle = HookHandle(next(_handle_ids), "every_n_steps")
        self._step_rules.append((every_n, handle, handler))
        return handle

    def remove(self, handle: HookHandle) -> bool:
        if handle.event == "every_n_steps":
            before = len(self._step_rules)
            self._step_rules = [rule for rule in self._step_rules if rule[1] != handle]
            return len(self._step_rules) != before
        entries = self._events.get(handle.event, [])
        kept = [entry for entry in entries if entry[1] != handle]
        self._events[handle.event] = kept
        return len(kept) != len(entries)

    def has_listeners(self) -> bool:
        return bool(self._step_rules) or any(self._events.values())

    def emit(self, event: str, *args: Any, **kwargs: Any) -> None:
        for _priority, _handle, handler in list(self._events.get(event, [])):
            try:
                handler(*args, **kwargs)
            except HookError:
                raise
            except Exception as exc:
                raise HookError(event, exc) from exc

    def after_step(self, program: Any, ctx: StepContext) -> None:
        self.emit("after_step", program, ctx)
        for every_n, _handle, handler in list(self._step_rules):
            if ctx.step_index % every_n == 0:
                try:
                    handler(program, ctx)
                except Exception as exc:
                    raise HookError("every_n_steps", exc) from exc
