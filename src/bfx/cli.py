from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .api import build_file, new_session
from .debugger import DebugMode, Observation, Session, SessionOptions
from .engine import Failed, Halted, PausedAtBreakpoint, Running, buffer_input
from .errors import BFXBuildError
from .render import render_observation, render_status

log = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    root = logging.getLogger("bfx")
    if not root.handlers:
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))


def _print_observation(obs: Observation) -> None:
    print("\n" + render_observation(obs), file=sys.stderr)


def _wait_for_enter(prompt: str) -> bool:
    sys.stderr.write(prompt)
    sys.stderr.flush()
    try:
        answer = input()
    except EOFError:
        return True
    return answer.strip().lower() not in ("q", "quit")


def _acknowledge(obs: Observation) -> bool:
    return _wait_for_enter("[step] Enter to continue, q to stop: ")


def _drive(session: Session, max_steps: Optional[int]) -> int:
    while True:
        status = session.resume(max_steps=max_steps)
        if isinstance(status, Halted):
            return 0
        if isinstance(status, Failed):
            print(f"\nRuntime error: {status.error}", file=sys.stderr)
            return 1
        if isinstance(status, Running):
            print(f"\nStopped after {max_steps} steps", file=sys.stderr)
            return 3
        if isinstance(status, PausedAtBreakpoint):
            obs = session.observe()
            if obs is not None:
                _print_observation(obs)
            if not _wait_for_enter(f"[{render_status(status)}] Enter to resume, q to stop: "):
                return 0
            continue
        # PausedForStep: the operator declined to continue
        return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="bfx",
        description="Brainfuck interpreter with macros, breakpoints and step debugging.",
    )
    parser.add_argument("file", help="source file to run")
    parser.add_argument("--input", default=None, help="program input (default: read stdin)")
    parser.add_argument("--breakpoints", dest="breakpoints", action="store_true", default=True,
                        help="pause at '#' breakpoint markers (default)")
    parser.add_argument("--no-breakpoints", dest="breakpoints", action="store_false",
                        help="ignore '#' breakpoint markers")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--verbose", action="store_true", help="dump the tape after every instruction")
    mode.add_argument("--step", action="store_true", help="dump the tape and wait for Enter after every instruction")
    parser.add_argument("--window", type=int, default=8, help="cells shown on each side of the pointer")
    parser.add_argument("--max-steps", type=int, default=None, help="stop after this many instructions")
    parser.add_argument("--expand", action="store_true", help="print the macro-expanded program and exit")
    parser.add_argument("--log-level", default="warning", help="logging level (debug, info, warning)")
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    try:
        program = build_file(args.file)
    except FileNotFoundError:
        print(f"Couldn't find file: {args.file}", file=sys.stderr)
        return 1
    except BFXBuildError as e:
        print(str(e), file=sys.stderr)
        return 2

    if args.expand:
        sys.stdout.write(program.to_source() + "\n")
        return 0

    debug_mode = DebugMode.NONE
    if args.verbose:
        debug_mode = DebugMode.VERBOSE
    elif args.step:
        debug_mode = DebugMode.STEP
    options = SessionOptions(
        breakpoints_enabled=args.breakpoints,
        debug_mode=debug_mode,
        window=max(0, args.window),
    )

    input_source = None
    if args.input is not None:
        input_source = buffer_input(args.input)

    session = new_session(
        program,
        options,
        input=input_source,
        observer=_print_observation,
        acknowledge=_acknowledge,
    )
    log.info("running %s (%d instructions)", args.file, len(program))
    return _drive(session, args.max_steps)


if __name__ == "__main__":
    raise SystemExit(main())
