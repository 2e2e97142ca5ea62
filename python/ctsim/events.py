"""Simulation notifications and the event bus that fans them out."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

RESUME = "resume"
SUSPEND = "suspend"
INSN_DONE = "insn-done"
INSN_ERROR = "insn-error"
INSN_TRAP = "insn-trap"
MODEL_DATA = "model-data"
MODEL_ERROR = "model-error"
CTL_RESPONSE = "ctl-response"
CTL_ERROR = "ctl-error"

EVENT_KINDS = (
    RESUME,
    SUSPEND,
    INSN_DONE,
    INSN_ERROR,
    INSN_TRAP,
    MODEL_DATA,
    MODEL_ERROR,
    CTL_RESPONSE,
    CTL_ERROR,
)


class SuspendReason(str, Enum):
    BREAKPOINT = "breakpoint"
    MODEL_TRAP = "model-trap"
    CTL = "ctl"
    TERMINATE = "terminate"


EventHandler = Callable[["BaseEvent"], None]


@dataclass
class BaseEvent:
    seq: int
    ts: float
    type: str


@dataclass
class ResumeEvent(BaseEvent):
    addr: Optional[int] = None


@dataclass
class SuspendEvent(BaseEvent):
    reason: Optional[str] = None
    addr: Optional[int] = None


@dataclass
class InsnDoneEvent(BaseEvent):
    ictx: Any = None
    data: Any = None


@dataclass
class InsnErrorEvent(BaseEvent):
    err: Optional[BaseException] = None
    ictx: Any = None


@dataclass
class InsnTrapEvent(BaseEvent):
    ictx: Any = None


@dataclass
class ModelDataEvent(BaseEvent):
    payload: Any = None
    ictx: Any = None


@dataclass
class ModelErrorEvent(BaseEvent):
    err: Optional[BaseException] = None


@dataclass
class CtlResponseEvent(BaseEvent):
    response: Any = None


@dataclass
class CtlErrorEvent(BaseEvent):
    err: Optional[BaseException] = None


_EVENT_TYPES: Dict[str, type] = {
    RESUME: ResumeEvent,
    SUSPEND: SuspendEvent,
    INSN_DONE: InsnDoneEvent,
    INSN_ERROR: InsnErrorEvent,
    INSN_TRAP: InsnTrapEvent,
    MODEL_DATA: ModelDataEvent,
    MODEL_ERROR: ModelErrorEvent,
    CTL_RESPONSE: CtlResponseEvent,
    CTL_ERROR: CtlErrorEvent,
}


@dataclass
class EventSubscription:
    categories: Optional[List[str]] = None
    handler: EventHandler = lambda event: None

    def wants(self, kind: str) -> bool:
        return not self.categories or kind in self.categories


class EventBus:
    """Fan-out notifications to subscribers, synchronously and in order.

    Every subscription counts towards the kinds it names (an unfiltered
    subscription counts towards all of them).  Producers check
    :meth:`active` before building a payload so that output nobody listens
    to is dropped at the source instead of buffered.
    """

    def __init__(self) -> None:
        self._subs: Dict[int, EventSubscription] = {}
        self._counts: Dict[str, int] = {kind: 0 for kind in EVENT_KINDS}
        self._next_token = 1
        self._next_seq = 1

    def subscribe(self, sub: EventSubscription) -> int:
        token = self._next_token
        self._next_token += 1
        self._subs[token] = sub
        for kind in sub.categories or EVENT_KINDS:
            self._counts[kind] = self._counts.get(kind, 0) + 1
        return token

    def on(self, kind: str, handler: EventHandler) -> int:
        return self.subscribe(EventSubscription(categories=[kind], handler=handler))

    def unsubscribe(self, token: int) -> None:
        sub = self._subs.pop(token, None)
        if sub is None:
            return
        for kind in sub.categories or EVENT_KINDS:
            self._counts[kind] -= 1

    def active(self, kind: str) -> bool:
        return self._counts.get(kind, 0) > 0

    def subscriber_count(self, kind: str) -> int:
        return self._counts.get(kind, 0)

    def publish(self, kind: str, **fields: Any) -> Optional[BaseEvent]:
        if not self.active(kind):
            return None
        event_cls = _EVENT_TYPES.get(kind, BaseEvent)
        event = event_cls(seq=self._next_seq, ts=time.time(), type=kind, **fields)
        self._next_seq += 1
        for token, sub in list(self._subs.items()):
            if token not in self._subs or not sub.wants(kind):
                continue
            try:
                sub.handler(event)
            except Exception:
                logger.exception("%s handler failed", kind)
        return event


__all__ = [
    "EVENT_KINDS",
    "SuspendReason",
    "RESUME",
    "SUSPEND",
    "INSN_DONE",
    "INSN_ERROR",
    "INSN_TRAP",
    "MODEL_DATA",
    "MODEL_ERROR",
    "CTL_RESPONSE",
    "CTL_ERROR",
    "BaseEvent",
    "ResumeEvent",
    "SuspendEvent",
    "InsnDoneEvent",
    "InsnErrorEvent",
    "InsnTrapEvent",
    "ModelDataEvent",
    "ModelErrorEvent",
    "CtlResponseEvent",
    "CtlErrorEvent",
    "EventSubscription",
    "EventBus",
]
