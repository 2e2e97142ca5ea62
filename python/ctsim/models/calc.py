"""Accumulator calculator model.

Useful only for exercising the rest of the harness: it models a
four-function calculator with a single accumulator.  Instructions look like
``{"op": "add" | "sub" | "mul" | "div" | "set", "value": <number>}`` and
every instruction produces a :class:`CalcStep`.

Run it directly with ``python -m ctsim.models.calc [--delay SECONDS] [infile]``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..errors import ModelError
from ..model import ExecCallback, ExecResult, Ictx, InitCallback, InitResult, Model, schedule
from ..scmds.base import noargs_validator
from ..source import read_json_stream
from ..standalone import run_standalone

OPS = ("add", "sub", "mul", "div", "set")


@dataclass
class CalcStep:
    pre: Any
    pc: int
    insn: Dict[str, Any]
    post: Any
    nextpc: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return json.dumps(self.to_dict())


def _build_parser(prog: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, add_help=False)
    parser.add_argument("--delay", type=float, default=0.0, help="seconds each instruction takes")
    return parser


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def apply(op: str, accum: Any, value: Any) -> Any:
    if op == "add":
        return accum + value
    if op == "sub":
        return accum - value
    if op == "mul":
        return accum * value
    if op == "div":
        if value == 0:
            raise ZeroDivisionError("division by zero")
        if isinstance(accum, int) and isinstance(value, int) and accum % value == 0:
            return accum // value
        return accum / value
    if op == "set":
        return value
    raise ModelError(f"invalid opcode {op}")


class Calc(Model):
    name = "Calc"

    def __init__(self, simulation=None, args: Optional[Sequence[str]] = None) -> None:
        try:
            options, rest = _build_parser(self.name).parse_known_args(list(args or []))
        except SystemExit as exc:
            raise ModelError(f"invalid {self.name} options: {' '.join(args or [])}") from exc
        super().__init__(simulation, rest)
        self.delay = max(options.delay, 0.0)
        self.accum: Any = 0
        self.pc = 0

    def init(self, args: Optional[List[str]], cb: InitCallback) -> None:
        if args is None:
            schedule(cb, InitResult(input=None))
            return
        if len(args) > 1:
            schedule(cb, InitResult(err=ModelError(f"Usage: {self.name} [infile]")))
            return
        self.accum = 0
        self.pc = 0
        if not args:
            schedule(cb, InitResult(input=None))
            return
        try:
            source = read_json_stream(args[0])
        except Exception as exc:
            schedule(cb, InitResult(err=exc))
            return
        schedule(cb, InitResult(input=source))

    def exec(self, ictx: Ictx, cb: ExecCallback) -> None:
        insn = ictx.insn
        if not isinstance(insn, dict) or not isinstance(insn.get("op"), str) or not _is_number(insn.get("value")):
            schedule(cb, ExecResult(err=ModelError(f"invalid action encountered: {json.dumps(insn, default=str)}")))
            return
        pre = self.accum
        try:
            post = apply(insn["op"], pre, insn["value"])
        except ModelError as exc:
            schedule(cb, ExecResult(err=exc))
            return
        except ZeroDivisionError as exc:
            schedule(cb, ExecResult(err=ModelError(f"cannot execute {json.dumps(insn)}", cause=exc)))
            return
        self.accum = post
        step = CalcStep(pre=pre, pc=self.pc, insn=insn, post=post, nextpc=self.pc + 1)
        self.pc += 1
        result = ExecResult(data=step, done=True)
        if self.delay:
            asyncio.get_running_loop().call_later(self.delay, cb, result)
        else:
            schedule(cb, result)


def _show_accum(sim, req) -> None:
    model = sim.model
    if not isinstance(model, Calc):
        req.fail_soon("no calculator model is attached")
        return
    req.done(f"accumulator = {model.accum}", data=[{"accum": model.accum, "pc": model.pc}])


def create(simulation=None, args: Optional[Sequence[str]] = None) -> Calc:
    if simulation is not None and "accum" not in simulation.registry:
        simulation.register_scmd(
            "accum", _show_accum, synopsis="show the calculator accumulator", validator=noargs_validator
        )
    return Calc(simulation, args)


if __name__ == "__main__":
    sys.exit(run_standalone(create))
