"""
ctc - command-line front end for the CT simulation harness.

Use ``ctc [model]`` or ``python -m ctc`` to start an mdb-style session.
"""

from __future__ import annotations

from .cli import main

__all__ = ["main"]
__version__ = "0.1.0"
