"""Lock lifecycle states."""

from __future__ import annotations

from enum import Enum


class LockState(str, Enum):
    """
    States of a single lock instance.

    State transitions:
        UNACQUIRED -> ACQUIRING -> HELD | FAILED
        HELD -> RELEASING -> RELEASED
        HELD -> EXPIRED  (ownership loss seen by refresh or release)

    RELEASED, FAILED and EXPIRED instances may acquire again.
    """

    UNACQUIRED = "unacquired"
    ACQUIRING = "acquiring"
    HELD = "held"
    RELEASING = "releasing"
    RELEASED = "released"
    FAILED = "failed"
    EXPIRED = "expired"
