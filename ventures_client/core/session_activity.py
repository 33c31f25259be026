"""Session Activity Rules: when to refresh proactively and when to end an idle session.

Invariants:
    - Idle means no recorded activity for longer than idle_timeout
    - A refresh happens only when visible, not idle, and activity was seen since the last refresh
    - Activity marks are throttled: at most one per throttle window
    - An idle session is never revived by new activity (idle check runs first)

Design Decisions:
    - Mutable ActivityState + pure decision functions: the keeper task owns the
      clock and IO, these rules are tested with plain floats
"""

from dataclasses import dataclass
from enum import Enum


class KeeperDecision(str, Enum):
    REFRESH = "refresh"
    LOGOUT_IDLE = "logout_idle"
    SKIP_HIDDEN = "skip_hidden"
    SKIP_NO_ACTIVITY = "skip_no_activity"
    SKIP_RECENT = "skip_recent"


@dataclass
class ActivityState:
    """Timestamps (seconds, monotonic) tracked by the session keeper."""
    last_activity: float
    last_refresh: float
    visible: bool = True
    throttle_until: float = 0.0

    @classmethod
    def started_at(cls, now: float, visible: bool = True) -> "ActivityState":
        return cls(last_activity=now, last_refresh=now, visible=visible)


def is_idle(state: ActivityState, now: float, idle_timeout: float) -> bool:
    return now - state.last_activity > idle_timeout


def record_activity(
    state: ActivityState, now: float, idle_timeout: float, throttle: float,
) -> KeeperDecision | None:
    """Mark user activity. Returns LOGOUT_IDLE if the session had already gone idle."""
    if is_idle(state, now, idle_timeout):
        return KeeperDecision.LOGOUT_IDLE
    if now < state.throttle_until:
        return None
    state.last_activity = now
    state.throttle_until = now + throttle
    return None


def decide_refresh(
    state: ActivityState, now: float, idle_timeout: float,
) -> KeeperDecision:
    """Decision for a scheduled refresh tick."""
    if not state.visible:
        return KeeperDecision.SKIP_HIDDEN
    if state.last_activity <= state.last_refresh:
        return KeeperDecision.SKIP_NO_ACTIVITY
    if is_idle(state, now, idle_timeout):
        return KeeperDecision.LOGOUT_IDLE
    return KeeperDecision.REFRESH


def decide_on_visible(
    state: ActivityState, now: float, idle_timeout: float, refresh_interval: float,
) -> KeeperDecision:
    """Decision when the session becomes visible again.

    Returning counts as activity; a refresh is due if the interval elapsed while hidden.
    """
    was_hidden = not state.visible
    state.visible = True
    if not was_hidden:
        return KeeperDecision.SKIP_RECENT
    if is_idle(state, now, idle_timeout):
        return KeeperDecision.LOGOUT_IDLE
    state.last_activity = now
    if now - state.last_refresh >= refresh_interval:
        return KeeperDecision.REFRESH
    return KeeperDecision.SKIP_RECENT
