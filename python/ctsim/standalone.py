"""Standalone mode: run a model module straight from the command line.

A model module ends with::

    if __name__ == "__main__":
        sys.exit(run_standalone(create))

and is then usable both by ``attach`` and as a plain program that reads its
instructions, writes every model output to stdout and every error to stderr,
and exits when the input is consumed.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Callable, List, Optional, Sequence, TextIO

from .errors import CTError
from .events import CTL_ERROR, MODEL_DATA, MODEL_ERROR, SUSPEND, SuspendReason
from .simulation import Simulation
from .source import read_json_lines

logger = logging.getLogger(__name__)

ModelFactory = Callable[..., Any]


def format_output(payload: Any) -> str:
    if isinstance(payload, (dict, list)):
        return json.dumps(payload)
    return str(payload)


def run_standalone(
    create: ModelFactory,
    argv: Optional[Sequence[str]] = None,
    *,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """Run the model built by *create* to completion; returns an exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    return asyncio.run(
        _run(create, args, stdin or sys.stdin, stdout or sys.stdout, stderr or sys.stderr)
    )


async def _run(create: ModelFactory, argv: List[str], stdin: TextIO, stdout: TextIO, stderr: TextIO) -> int:
    sim = Simulation()
    try:
        model = create(simulation=sim, args=argv)
    except CTError as exc:
        stderr.write(f"{exc}\n")
        return 2
    sim.attach_standalone(model)
    sim.set_default_input(read_json_lines(stdin))

    finished = asyncio.Event()
    failures: List[BaseException] = []
    status = {"ctl": False}

    def on_data(event) -> None:
        stdout.write(format_output(event.payload) + "\n")
        stdout.flush()

    def on_error(event) -> None:
        failures.append(event.err)
        stderr.write(f"{event.err}\n")

    def on_suspend(event) -> None:
        if event.reason == SuspendReason.TERMINATE.value:
            finished.set()

    def on_ctl_error(event) -> None:
        status["ctl"] = True
        stderr.write(f"unexpected internal error: {event.err}\n")
        finished.set()

    sim.events.on(MODEL_DATA, on_data)
    sim.events.on(MODEL_ERROR, on_error)
    sim.events.on(SUSPEND, on_suspend)
    sim.events.on(CTL_ERROR, on_ctl_error)

    # Whatever the model did not consume as its own options is the run input.
    run_args = list(getattr(model, "args", []) or [])
    responses = await sim.channel.submit({"scmd": "run", "args": run_args or None})
    last = responses[-1]
    if last.err is not None:
        stderr.write(f"{last.err}\n")
        return 1
    await finished.wait()
    logger.debug("standalone run finished with %d model error(s)", len(failures))
    if status["ctl"]:
        return 2
    return 1 if failures else 0


__all__ = ["format_output", "run_standalone"]
