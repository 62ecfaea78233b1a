"""
Poll scheduler: one recurring fetch per monitored match.

Each monitored match gets a single asyncio task that fetches the event,
normalizes it and pushes a `match_update` to every subscribed session.
Starting an already-monitored match reuses its task, so a match can never
have two pollers running at once.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import MatchDetail
from .normalizer import normalize_event
from .provider import MatchDataProvider
from .registry import SubscriptionRegistry

logger = logging.getLogger("live_match.scheduler")

DEFAULT_POLL_INTERVAL_SECONDS = 5.0


@dataclass
class MatchMonitor:
    """Polling state for one match."""
    match_id: str
    task: Optional[asyncio.Task] = None
    previous: Optional[MatchDetail] = None
    consecutive_failures: int = 0
    ticks: int = 0

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()


class PollScheduler:
    """
    Owns the poll tasks for all monitored matches.

    Usage:
        scheduler = PollScheduler(provider, registry, interval_seconds=5.0)
        scheduler.start("123")   # must be called from the running loop
        scheduler.stop("123")
        await scheduler.stop_all()
    """

    def __init__(
        self,
        provider: MatchDataProvider,
        registry: SubscriptionRegistry,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        failure_alert_threshold: int = 3,
    ):
        """
        Args:
            provider: Source of match detail
            registry: Where to find the sessions to deliver updates to
            interval_seconds: Delay between ticks (first tick after one interval)
            failure_alert_threshold: Consecutive failed ticks before subscribers
                get an error message; 0 disables the alert
        """
        self._provider = provider
        self._registry = registry
        self._interval = interval_seconds
        self._alert_threshold = failure_alert_threshold
        self._monitors: Dict[str, MatchMonitor] = {}

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def start(self, match_id: str) -> MatchMonitor:
        """Start polling a match, or return its monitor if already running."""
        monitor = self._monitors.get(match_id)
        if monitor is not None and monitor.running:
            logger.debug(f"[{match_id}] Already monitored, reusing poller")
            return monitor

        monitor = MatchMonitor(match_id=match_id)
        monitor.task = asyncio.create_task(self._run(monitor), name=f"poll-{match_id}")
        self._monitors[match_id] = monitor
        logger.info(f"Started monitoring match {match_id}")
        return monitor

    def stop(self, match_id: str) -> bool:
        """
        Stop polling a match. Stopping an unmonitored match is a no-op.

        Returns:
            True if a poller was cancelled
        """
        monitor = self._monitors.pop(match_id, None)
        if monitor is None:
            return False

        if monitor.task is not None:
            monitor.task.cancel()
        logger.info(f"Stopped monitoring match {match_id}")
        return True

    async def stop_all(self) -> int:
        """Cancel every poller and wait for them to finish."""
        monitors = list(self._monitors.values())
        self._monitors.clear()

        tasks = [m.task for m in monitors if m.task is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if monitors:
            logger.info(f"Stopped {len(monitors)} match monitor(s)")
        return len(monitors)

    def is_monitoring(self, match_id: str) -> bool:
        return match_id in self._monitors

    def monitored_ids(self) -> List[str]:
        return list(self._monitors.keys())

    def __len__(self) -> int:
        return len(self._monitors)

    async def _run(self, monitor: MatchMonitor) -> None:
        """Tick forever until cancelled."""
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.tick(monitor)
            except Exception as e:
                # A broken tick must not end the poller; next tick retries
                logger.error(f"[{monitor.match_id}] Poll tick failed: {e}", exc_info=True)

    async def tick(self, monitor: MatchMonitor) -> Optional[MatchDetail]:
        """
        Run one poll cycle for a match.

        Returns:
            The snapshot that was pushed, or None if this cycle had no data
        """
        match_id = monitor.match_id
        monitor.ticks += 1

        event = await self._provider.get_event(match_id)
        detail = normalize_event(event)
        if detail is None:
            await self._record_failure(monitor)
            return None

        if monitor.consecutive_failures:
            logger.info(f"[{match_id}] Upstream recovered after {monitor.consecutive_failures} failed poll(s)")
            monitor.consecutive_failures = 0

        if monitor.previous is not None and detail.points_differ(monitor.previous):
            logger.info(f"[{match_id}] Point change detected: {detail.points.to_dict()}")

        delivered = await self._deliver(match_id, {"type": "match_update", "data": detail.to_dict()})
        logger.debug(f"[{match_id}] Update sent to {delivered} session(s)")

        monitor.previous = detail
        return detail

    async def _record_failure(self, monitor: MatchMonitor) -> None:
        monitor.consecutive_failures += 1
        match_id = monitor.match_id
        logger.debug(f"[{match_id}] No data this cycle ({monitor.consecutive_failures} in a row)")

        if self._alert_threshold and monitor.consecutive_failures == self._alert_threshold:
            logger.warning(f"[{match_id}] {monitor.consecutive_failures} consecutive poll failures, notifying subscribers")
            await self._deliver(match_id, {
                "type": "error",
                "message": f"Live updates unavailable for match {match_id}",
            })

    async def _deliver(self, match_id: str, message: dict) -> int:
        """Send a message to every session subscribed to the match."""
        delivered = 0
        for session in self._registry.subscribers(match_id):
            try:
                await session.send_message(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"[{match_id}] Failed to send to session {session.session_id}: {e}")
        return delivered
