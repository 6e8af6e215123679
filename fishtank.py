"""fishtank command-line entry point."""

from __future__ import annotations
import argparse
import asyncio
import sys
from typing import Any, List, Optional, Union

from executor import Executor
from hooks import HookRegistry, StepContext
from interpreter import Program, TracebackFormatter


def _number(text: str) -> Union[int, float]:
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}")


def _stdin_provider() -> str:
    return sys.stdin.readline()


def _stdout_sink(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def _trace_step(program: Program, ctx: StepContext) -> None:
    entry = program.logger.last_entry()
    if entry is not None:
        print(entry.format(), file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="><> (fish) interpreter")
    parser.add_argument("program", help="Source file path, or literal code with -c")
    parser.add_argument("-c", "--code", dest="code_mode", action="store_true", help="Treat program argument as literal code")
    stack = parser.add_mutually_exclusive_group()
    stack.add_argument("-s", "--string", help="Push the characters of STRING as the initial stack")
    stack.add_argument("-v", "--value", nargs="+", type=_number, default=None, help="Push numbers as the initial stack")
    parser.add_argument("-i", "--input", dest="input_text", default=None, help="Input text; stdin is read otherwise")
    parser.add_argument("-t", "--tick", type=float, default=0.0, help="Seconds between steps (0 runs at full speed)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the random direction instruction")
    parser.add_argument("--trace", action="store_true", help="Print every step to stderr")
    parser.add_argument("--traceback-json", action="store_true", help="Also emit JSON traceback")
    return parser


def run_cli(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.code_mode:
        source_text = args.program
    else:
        try:
            with open(args.program, "r", encoding="utf-8") as handle:
                source_text = handle.read()
        except OSError as exc:
            print(f"Failed to read {args.program}: {exc}", file=sys.stderr)
            return 1

    initial_stack: List[Any] = []
    if args.string is not None:
        initial_stack = [ord(ch) for ch in args.string]
    elif args.value is not None:
        initial_stack = list(args.value)

    hooks = HookRegistry()
    if args.trace:
        hooks.on_event("after_step", _trace_step)

    executor = Executor(
        source_text,
        initial_stack,
        interval=args.tick,
        seed=args.seed,
        verbose=args.trace,
        input_provider=None if args.input_text is not None else _stdin_provider,
        output_sink=_stdout_sink,
        hooks=hooks,
    )
    if args.input_text is not None:
        executor.program.give_input_text(args.input_text)
        executor.program.close_input()

    try:
        asyncio.run(executor.run())
    except KeyboardInterrupt:
        return 130

    error = executor.program.error
    if error is not None:
        if executor.output and not executor.output.endswith("\n"):
            print(file=sys.stderr)
        formatter = TracebackFormatter(executor.program)
        print(formatter.format_text(error), file=sys.stderr)
        if args.traceback_json:
            print(formatter.to_json(error), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(run_cli())
