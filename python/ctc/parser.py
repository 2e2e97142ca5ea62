"""mdb-style command line grammar.

Accepted forms::

    [<addr>]::<scmd> [args...]
    <addr>/<fmt> [args...]
    <addr>=<fmt> [args...]
    :<c> [args...]
    $<c> [args...]

Arguments are separated by blanks.  The single quote is the only quoting
character and there is no way to escape it.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

_SCMD_RE = re.compile(r"^([^: ]*)::(\S+)\s*(.*)$")
_FORMAT_RE = re.compile(r"^([0-9a-zA-Z_]+)([/=])([a-zA-Z])\s*(.*)$")
_SHORT_RE = re.compile(r"^([:$][a-zA-Z])\s*(.*)$")


class ParseError(ValueError):
    pass


def parse_args(text: str) -> List[str]:
    """Split *text* into arguments, honouring single quotes."""
    if "'" not in text:
        return text.split()
    args: List[str] = []
    start = 0
    qstart = -1
    in_quote = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_quote:
            if ch == "'":
                in_quote = False
                qstart = -1
        elif ch == "'":
            in_quote = True
            qstart = i
        elif ch in " \t":
            if i > start:
                args.append(text[start:i].replace("'", ""))
            while i + 1 < len(text) and text[i + 1] in " \t":
                i += 1
            start = i + 1
        i += 1
    if in_quote:
        raise ParseError(f"parse error: unterminated ' at {qstart}")
    if start < len(text):
        args.append(text[start:].replace("'", ""))
    return args


def _args_or_none(text: str, what: str) -> Optional[List[str]]:
    text = text.strip()
    if not text:
        return None
    try:
        return parse_args(text) or None
    except ParseError as exc:
        raise ParseError(f"failed to parse {what} arguments: {exc}") from exc


def parse_line(line: str) -> Dict[str, Any]:
    """Turn one command line into a command record."""
    line = line.strip()
    match = _SCMD_RE.match(line)
    if match:
        return {
            "scmd": match.group(2),
            "addr": match.group(1) or None,
            "args": _args_or_none(match.group(3), "scmd"),
        }
    match = _FORMAT_RE.match(line)
    if match:
        return {
            "scmd": match.group(2) + match.group(3),
            "addr": match.group(1),
            "args": _args_or_none(match.group(4), "format"),
        }
    match = _SHORT_RE.match(line)
    if match:
        return {
            "scmd": match.group(1),
            "addr": None,
            "args": _args_or_none(match.group(2), "short scmd"),
        }
    raise ParseError("failed to parse command line")


__all__ = ["ParseError", "parse_args", "parse_line"]
