"""Tests for the ctc session glue."""

from __future__ import annotations

import asyncio
import io

from ctc.context import SessionContext
from ctc.session import EXIT_FAILED, EXIT_FATAL, EXIT_OK, DebugSession
from ctsim.errors import ControlChannelError
from ctsim.simulation import Simulation

from sim_stubs import GateModel, settle


def _ctx():
    return SessionContext(ctl_out=io.StringIO(), ctl_err=io.StringIO(), sim_out=io.StringIO(), sim_err=io.StringIO())


def test_interrupt_injects_stop_and_waits_for_suspend():
    async def scenario():
        model = GateModel(range(3))
        sim = Simulation(model=model)
        ctx = _ctx()
        session = DebugSession(sim, ctx)
        task = asyncio.ensure_future(session.execute("::run"))
        await settle(lambda: model.waiting)
        assert not task.done()
        session.interrupt()
        await settle(lambda: sim.stop_requested)
        model.release()
        rc = await task
        return rc, ctx, sim

    rc, ctx, sim = asyncio.run(scenario())
    assert rc == EXIT_OK
    assert ctx.ctl_err.getvalue().splitlines() == ["stopped at 1"]
    assert sim.addr() == 1


def test_comments_and_blank_lines_are_ignored():
    async def scenario():
        session = DebugSession(Simulation(), _ctx())
        return await session.execute("   "), await session.execute("# ::run")

    assert asyncio.run(scenario()) == (EXIT_OK, EXIT_OK)


def test_quit_sets_flag():
    async def scenario():
        session = DebugSession(Simulation(), _ctx())
        rc = await session.execute("::quit")
        return rc, session.quitting

    assert asyncio.run(scenario()) == (EXIT_OK, True)


def test_failed_command_and_dead_channel_exit_codes():
    async def scenario():
        sim = Simulation()
        ctx = _ctx()
        session = DebugSession(sim, ctx)
        failed = await session.execute("::cont")
        sim._ctl_error(ControlChannelError("garbage on the wire"))
        fatal = await session.execute("::status")
        return failed, fatal, ctx

    failed, fatal, ctx = asyncio.run(scenario())
    assert failed == EXIT_FAILED
    assert fatal == EXIT_FATAL
    assert ctx.ctl_err.getvalue().startswith("unexpected internal error:")
