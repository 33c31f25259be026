"""Session Keeper: proactive token refresh for active sessions and logout on idle.

Invariants:
    - Refresh ticks fire every refresh_interval; each refreshes only when
      decide_refresh() says so (visible, activity since last refresh, not idle)
    - Idle ticks fire every idle_check_interval and end the session after idle_timeout
    - A refresh failure or idle timeout clears the session and invokes
      on_session_lost exactly once, with the reason
    - After the session is lost both loops exit; stop() is idempotent

Design Decisions:
    - Two asyncio tasks instead of timers; the clock is injectable so tests
      drive refresh_tick() and idle_tick() directly without sleeping
    - on_session_lost may be a plain function or a coroutine function
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Callable

from ventures_client.core.errors import VenturesClientError
from ventures_client.core.session_activity import (
    ActivityState,
    KeeperDecision,
    decide_on_visible,
    decide_refresh,
    is_idle,
    record_activity,
)
from ventures_client.infrastructure.api_client import ApiClient

logger = logging.getLogger(__name__)

REASON_IDLE = "idle"
REASON_REFRESH_FAILED = "refresh_failed"


class SessionKeeper:
    def __init__(
        self,
        api: ApiClient,
        on_session_lost: Callable[[str], Any] | None = None,
        refresh_interval: float = 240,
        idle_timeout: float = 900,
        idle_check_interval: float = 60,
        activity_throttle: float = 1,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.on_session_lost = on_session_lost
        self.refresh_interval = refresh_interval
        self.idle_timeout = idle_timeout
        self.idle_check_interval = idle_check_interval
        self.activity_throttle = activity_throttle
        self._clock = clock
        self.state = ActivityState.started_at(clock())
        self.lost_reason: str | None = None
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def start(self) -> None:
        if self.running:
            return
        self.state = ActivityState.started_at(self._clock(), visible=self.state.visible)
        self.lost_reason = None
        self._tasks = [
            asyncio.create_task(self._loop(self.refresh_interval, self.refresh_tick)),
            asyncio.create_task(self._loop(self.idle_check_interval, self.idle_tick)),
        ]
        logger.debug("Session keeper started")

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        current = asyncio.current_task()
        for task in tasks:
            if task is not current:
                task.cancel()
        for task in tasks:
            if task is current:
                continue
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _loop(self, interval: float, tick: Callable[[], Any]) -> None:
        while self.lost_reason is None:
            await asyncio.sleep(interval)
            await tick()

    # ─── Signals from the embedding application ──────────────────

    async def record_activity(self) -> None:
        decision = record_activity(
            self.state, self._clock(), self.idle_timeout, self.activity_throttle,
        )
        if decision is KeeperDecision.LOGOUT_IDLE:
            await self._lose(REASON_IDLE)

    async def set_visible(self, visible: bool) -> KeeperDecision | None:
        if not visible:
            self.state.visible = False
            return None
        decision = decide_on_visible(
            self.state, self._clock(), self.idle_timeout, self.refresh_interval,
        )
        if decision is KeeperDecision.LOGOUT_IDLE:
            await self._lose(REASON_IDLE)
        elif decision is KeeperDecision.REFRESH:
            await self._refresh()
        return decision

    # ─── Ticks ───────────────────────────────────────────────────

    async def refresh_tick(self) -> KeeperDecision:
        decision = decide_refresh(self.state, self._clock(), self.idle_timeout)
        if decision is KeeperDecision.REFRESH:
            await self._refresh()
        elif decision is KeeperDecision.LOGOUT_IDLE:
            await self._lose(REASON_IDLE)
        return decision

    async def idle_tick(self) -> bool:
        if is_idle(self.state, self._clock(), self.idle_timeout):
            await self._lose(REASON_IDLE)
            return True
        return False

    async def _refresh(self) -> None:
        try:
            await self.api.refresh_access_token()
        except VenturesClientError as e:
            logger.warning(
                f"Proactive refresh failed: {e.message}", extra={"error_code": e.code},
            )
            await self._lose(REASON_REFRESH_FAILED)
            return
        self.state.last_refresh = self._clock()

    async def _lose(self, reason: str) -> None:
        if self.lost_reason is not None:
            return
        self.lost_reason = reason
        logger.info(f"Session lost: {reason}")
        await self.api.tokens.clear_tokens()
        if self.on_session_lost is not None:
            result = self.on_session_lost(reason)
            if inspect.isawaitable(result):
                await result
        await self.stop()
