"""Connectivity monitor.

Classifies the network as online / poor / offline without ever blocking the
search path. The passive host signal (online/offline events) gives an instant
best guess; a short timed probe refines it.

Probe latency < 500ms → online. Slower but within the timeout → poor.
Timeout → poor. Any other probe error → offline.

The monitor is the only writer of its state; everyone else reads
``monitor.state`` or subscribes to transitions.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Protocol

import httpx

from packmatch.core.config import Settings, get_settings
from packmatch.core.logging import get_logger, log_with_context
from packmatch.core.schemas_search import ConnectivityState

logger = get_logger(__name__)

Listener = Callable[[ConnectivityState], None]


class Probe(Protocol):
    """Timed reachability check. Returns latency in seconds, raises on failure."""

    async def __call__(self, timeout_s: float) -> float: ...


class HttpxProbe:
    """HEAD request against a small, cache-busted resource."""

    def __init__(self, url: str):
        self.url = url

    async def __call__(self, timeout_s: float) -> float:
        started = time.perf_counter()
        async with httpx.AsyncClient(timeout=timeout_s, follow_redirects=True) as client:
            # Any HTTP response proves reachability; status is irrelevant
            await client.head(self.url, headers={"Cache-Control": "no-cache"})
        return time.perf_counter() - started


def classify_latency(latency_ms: float, online_ms: int = 500) -> ConnectivityState:
    if latency_ms < online_ms:
        return ConnectivityState.ONLINE
    return ConnectivityState.POOR


async def check_connectivity(
    probe: Probe,
    passive_online: bool = True,
    timeout_ms: int = 1000,
    online_ms: int = 500,
) -> ConnectivityState:
    """
    Refine the passive signal with one timed probe.

    Args:
        probe: Reachability check
        passive_online: Host's online flag; False short-circuits to offline
        timeout_ms: Probe deadline
        online_ms: Latency threshold for online

    Returns:
        Refined state. Never raises for probe failures.
    """
    if not passive_online:
        return ConnectivityState.OFFLINE

    timeout_s = timeout_ms / 1000
    try:
        latency_s = await asyncio.wait_for(probe(timeout_s), timeout=timeout_s)
    except (TimeoutError, httpx.TimeoutException):
        logger.debug(f"Connectivity probe timed out after {timeout_ms}ms")
        return ConnectivityState.POOR
    except (httpx.HTTPError, OSError) as e:
        logger.debug(f"Connectivity probe failed: {e}")
        return ConnectivityState.OFFLINE
    except Exception as e:
        logger.debug(f"Connectivity probe error: {type(e).__name__}: {e}")
        return ConnectivityState.OFFLINE

    latency_ms = latency_s * 1000
    if latency_ms >= timeout_ms:
        return ConnectivityState.POOR
    return classify_latency(latency_ms, online_ms)


def check_connectivity_non_blocking(
    probe: Probe,
    passive_online: bool = True,
    timeout_ms: int = 1000,
    online_ms: int = 500,
) -> tuple[ConnectivityState, asyncio.Task]:
    """
    Immediate best guess plus a task resolving to the refined state.

    Must be called from a running event loop. Callers render with the
    immediate state and never await the task on the critical path.
    """
    immediate = ConnectivityState.ONLINE if passive_online else ConnectivityState.OFFLINE
    refined = asyncio.create_task(
        check_connectivity(probe, passive_online, timeout_ms=timeout_ms, online_ms=online_ms)
    )
    return immediate, refined


class ConnectivityMonitor:
    """Owns the process's ConnectivityState and notifies subscribers on change."""

    def __init__(
        self,
        probe: Probe | None = None,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
        passive_online: bool = True,
    ):
        self._settings = settings or get_settings()
        self._probe = probe or HttpxProbe(self._settings.CONNECTIVITY_PROBE_URL)
        self._clock = clock
        self._passive_online = passive_online
        self._state = ConnectivityState.ONLINE if passive_online else ConnectivityState.OFFLINE
        self._listeners: list[Listener] = []
        self._in_flight: asyncio.Task | None = None
        self._poll_task: asyncio.Task | None = None
        self._last_check: float | None = None
        self._disposed = False

    @property
    def state(self) -> ConnectivityState:
        """Current best-known state. Never blocks."""
        return self._state

    @property
    def is_monitoring(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def check(self, force: bool = False) -> ConnectivityState:
        """
        Probe and update state.

        Concurrent callers share one in-flight probe. Unless ``force`` is set,
        a check within the minimum interval of the previous one returns the
        current state without probing.
        """
        if self._disposed:
            return self._state

        if self._in_flight is not None and not self._in_flight.done():
            return await asyncio.shield(self._in_flight)

        now = self._clock()
        min_interval_s = self._settings.CONNECTIVITY_MIN_CHECK_INTERVAL_MS / 1000
        if not force and self._last_check is not None and now - self._last_check < min_interval_s:
            return self._state

        self._last_check = now
        self._in_flight = asyncio.create_task(self._run_check())
        return await asyncio.shield(self._in_flight)

    async def _run_check(self) -> ConnectivityState:
        state = await check_connectivity(
            self._probe,
            self._passive_online,
            timeout_ms=self._settings.CONNECTIVITY_TIMEOUT_MS,
            online_ms=self._settings.CONNECTIVITY_ONLINE_LATENCY_MS,
        )
        if not self._passive_online:
            # Host went offline while the probe was running
            return self._state
        self._set_state(state)
        return state

    def set_passive_online(self, online: bool) -> asyncio.Task | None:
        """
        Feed a host online/offline event.

        Going offline applies immediately. Coming online schedules a forced
        probe when an event loop is running, otherwise trusts the signal.
        """
        self._passive_online = online

        if not online:
            self._set_state(ConnectivityState.OFFLINE)
            return None

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._set_state(ConnectivityState.ONLINE)
            return None
        return asyncio.create_task(self.check(force=True))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register for state transitions. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start_monitoring(self, interval_s: float | None = None) -> None:
        """Poll in the background until stopped. No-op if already polling."""
        if self._disposed or self.is_monitoring:
            return
        interval = interval_s if interval_s is not None else self._settings.CONNECTIVITY_POLL_INTERVAL_S
        self._poll_task = asyncio.create_task(self._poll(interval))
        logger.info(f"Connectivity monitoring started (every {interval}s)")

    async def _poll(self, interval_s: float) -> None:
        while True:
            await self.check()
            await asyncio.sleep(interval_s)

    def stop_monitoring(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
            logger.info("Connectivity monitoring stopped")

    def dispose(self) -> None:
        """Cancel timers and probes and drop every listener."""
        self.stop_monitoring()
        if self._in_flight is not None and not self._in_flight.done():
            self._in_flight.cancel()
        self._in_flight = None
        self._listeners.clear()
        self._disposed = True

    def _set_state(self, state: ConnectivityState) -> None:
        if state == self._state:
            return

        previous, self._state = self._state, state
        log_with_context(
            logger,
            logging.INFO,
            "Connectivity changed",
            previous=previous.value,
            current=state.value,
        )

        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Connectivity listener raised")
