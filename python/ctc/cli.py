"""ctc CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from ctsim.errors import CTError
from ctsim.simulation import Simulation
from ctsim.source import read_json_lines

from .context import SessionContext
from .history import open_history
from .repl import DebuggerREPL
from .session import EXIT_FAILED, EXIT_FATAL, EXIT_OK, DebugSession

LOG = logging.getLogger("ctc.cli")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ctc", description="CT simulation debugger")
    parser.add_argument(
        "model",
        nargs=argparse.REMAINDER,
        help="Model module to attach at start-up, followed by its arguments (e.g. ctsim.models.calc --delay 1)",
    )
    parser.add_argument("--json", action="store_true", help="Emit responses and notifications as JSON")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("CT_LOG", "WARNING"),
        help="Logging level (default $CT_LOG or WARNING)",
    )
    parser.add_argument(
        "-c",
        "--command",
        help="Execute a single command non-interactively (quote the command string)",
    )
    parser.add_argument("--script", type=Path, help="Execute commands from a file, one per line")
    parser.add_argument(
        "--history",
        type=Path,
        default=Path.home() / ".ct_history",
        help="Path to command history file",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    ctx = SessionContext(json_output=args.json, history_path=str(args.history))
    try:
        return asyncio.run(_amain(args, ctx))
    except KeyboardInterrupt:
        print()
        return EXIT_OK
    except CTError as exc:
        print(f"ctc: {exc}", file=sys.stderr)
        return EXIT_FAILED
    except Exception as exc:
        LOG.exception("unexpected failure")
        print(f"unexpected internal error: {exc}", file=sys.stderr)
        return EXIT_FATAL


async def _amain(args: argparse.Namespace, ctx: SessionContext) -> int:
    sim = Simulation()
    if not sys.stdin.isatty():
        # A model run without an input file reads instructions from stdin.
        sim.set_default_input(read_json_lines(sys.stdin))
    session = DebugSession(sim, ctx)
    if args.model:
        rc = await _attach(session, args.model[0], args.model[1:])
        if rc != EXIT_OK:
            return rc
    if args.command:
        return await _run_single_command(session, args.command)
    if args.script:
        return await _run_script(session, str(args.script))
    repl = DebuggerREPL(session, history=open_history(ctx.history_path))
    return await repl.run()


async def _attach(session: DebugSession, model: str, model_args: List[str]) -> int:
    responses = await session.sim.channel.submit({"scmd": "attach", "args": [model, *model_args]})
    return EXIT_FAILED if responses[-1].err is not None else EXIT_OK


async def _run_single_command(session: DebugSession, command_line: str) -> int:
    return await session.execute(command_line)


async def _run_script(session: DebugSession, path: str) -> int:
    try:
        lines = Path(path).expanduser().read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        LOG.debug("unable to read script %s: %s", path, exc)
        print(f"unable to read script {path}: {exc}", file=sys.stderr)
        return EXIT_FAILED
    status = EXIT_OK
    for line in lines:
        rc = await session.execute(line)
        if rc == EXIT_FATAL:
            return rc
        if rc != EXIT_OK:
            status = rc
        if session.quitting:
            break
    return status


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
