"""Front-end settings shared by the session, REPL and output helpers."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Optional, TextIO


@dataclass
class SessionContext:
    """Where control and simulation output go, and in what form.

    Control output (responses) and simulation output (model data) are kept
    apart so either can be redirected; suspend and fatal notices go to the
    control error stream.
    """

    json_output: bool = False
    ctl_out: TextIO = field(default_factory=lambda: sys.stdout)
    ctl_err: TextIO = field(default_factory=lambda: sys.stderr)
    sim_out: TextIO = field(default_factory=lambda: sys.stdout)
    sim_err: TextIO = field(default_factory=lambda: sys.stderr)
    history_path: Optional[str] = None
