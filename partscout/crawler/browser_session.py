"""
Shared browser session supervisor.

One automated browser is shared by every fetch in the process. It is launched
lazily on first use, kept alive while callers keep acquiring it, and torn down
after a period of inactivity. Listeners on the lifecycle bus are told when the
inactivity teardown happens.

State machine:
    ABSENT --acquire--> LAUNCHING --ok--> READY
    LAUNCHING --error--> ABSENT
    READY --idle deadline / close()--> CLOSING --> ABSENT
    READY --disconnected--> ABSENT (no notification)

All transitions happen under a single asyncio.Lock. The launch itself runs
under the lock, so concurrent acquire() calls during LAUNCHING wait for it and
receive the same handle.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from playwright.async_api import Browser, Playwright

    from partscout.utils.config import BrowserConfig
    from partscout.utils.events import LifecycleEventBus

from partscout.utils.events import SessionEvent, get_lifecycle_events
from partscout.utils.logging import get_logger

logger = get_logger(__name__)

INACTIVITY_REASON = "inactivity"


class SessionState(str, Enum):
    """Browser session lifecycle states."""

    ABSENT = "absent"
    LAUNCHING = "launching"
    READY = "ready"
    CLOSING = "closing"


class BrowserLauncher(Protocol):
    """Creates and destroys browser handles for the session manager."""

    async def launch(self) -> Browser: ...

    async def shutdown(self, browser: Browser) -> None: ...


class PlaywrightLauncher:
    """Launches headless Chromium through Playwright.

    Each launched browser owns its own Playwright driver so that a crashed
    browser can be discarded without touching the next one.
    """

    def __init__(self, settings: BrowserConfig | None = None) -> None:
        if settings is None:
            from partscout.utils.config import get_settings

            settings = get_settings().browser
        self._settings = settings
        self._drivers: dict[int, Playwright] = {}

    async def launch(self) -> Browser:
        from playwright.async_api import async_playwright

        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=self._settings.headless,
                args=list(self._settings.launch_args),
            )
        except Exception:
            await playwright.stop()
            raise

        self._drivers[id(browser)] = playwright
        logger.info("Chromium launched", headless=self._settings.headless)
        return browser

    async def shutdown(self, browser: Browser) -> None:
        playwright = self._drivers.pop(id(browser), None)
        try:
            await browser.close()
        except Exception as e:
            logger.debug("Browser close failed", error=str(e))
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.debug("Playwright stop failed", error=str(e))


class BrowserSessionManager:
    """Supervises the single shared browser.

    Example:
        manager = get_browser_session_manager()
        browser = await manager.acquire()
        context = await browser.new_context()
    """

    def __init__(
        self,
        launcher: BrowserLauncher | None = None,
        idle_timeout_seconds: float = 180.0,
        events: LifecycleEventBus | None = None,
    ) -> None:
        """Initialize session manager.

        Args:
            launcher: Browser launcher. Defaults to PlaywrightLauncher.
            idle_timeout_seconds: Inactivity period after which the browser
                is torn down.
            events: Lifecycle bus. Defaults to the process-wide bus.
        """
        if idle_timeout_seconds <= 0:
            raise ValueError("idle_timeout_seconds must be positive")

        self._launcher: BrowserLauncher = launcher or PlaywrightLauncher()
        self._idle_timeout = idle_timeout_seconds
        self._events = events
        self._state = SessionState.ABSENT
        self._browser: Browser | None = None
        self._lock = asyncio.Lock()
        self._idle_handle: asyncio.TimerHandle | None = None
        # Incremented on every re-arm and teardown; stale deadlines compare unequal
        self._generation = 0
        self._background: set[asyncio.Task[Any]] = set()
        self._launch_count = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def browser(self) -> Browser | None:
        return self._browser

    @property
    def has_idle_timer(self) -> bool:
        return self._idle_handle is not None

    @property
    def launch_count(self) -> int:
        return self._launch_count

    async def acquire(self) -> Browser:
        """Return the shared browser, launching it if needed.

        Every call re-arms the inactivity deadline.

        Raises:
            Exception: Whatever the launcher raised; the session is left ABSENT.
        """
        async with self._lock:
            if self._state is SessionState.READY and self._browser is not None:
                self._arm_idle_timer()
                return self._browser

            self._state = SessionState.LAUNCHING
            logger.info("Launching browser session")
            try:
                browser = await self._launcher.launch()
            except Exception as e:
                self._state = SessionState.ABSENT
                logger.error("Browser launch failed", error=str(e))
                raise

            self._browser = browser
            self._state = SessionState.READY
            self._launch_count += 1
            self._watch_disconnect(browser)
            self._arm_idle_timer()
            logger.info("Browser session ready", launch_count=self._launch_count)
            return browser

    async def close(self, reason: str = "shutdown") -> bool:
        """Tear down the browser if one is live.

        Args:
            reason: Why the session is closing. Only "inactivity" is
                published on the lifecycle bus.

        Returns:
            True if a live browser was torn down.
        """
        async with self._lock:
            if self._state is not SessionState.READY or self._browser is None:
                self._cancel_idle_timer()
                return False
            await self._teardown_locked(reason)

        if reason == INACTIVITY_REASON:
            self._publish_closed(reason)
        return True

    # ------------------------------------------------------------------
    # Idle deadline
    # ------------------------------------------------------------------

    def _arm_idle_timer(self) -> None:
        self._cancel_idle_timer()
        self._generation += 1
        loop = asyncio.get_running_loop()
        self._idle_handle = loop.call_later(
            self._idle_timeout, self._on_idle_deadline, self._generation
        )

    def _cancel_idle_timer(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None

    def _on_idle_deadline(self, generation: int) -> None:
        self._idle_handle = None
        self._track(asyncio.ensure_future(self._expire(generation)))

    async def _expire(self, generation: int) -> None:
        async with self._lock:
            # An acquire() that slipped in before the lock re-armed the deadline
            if generation != self._generation or self._state is not SessionState.READY:
                return
            logger.info("Browser session idle", idle_timeout_seconds=self._idle_timeout)
            await self._teardown_locked(INACTIVITY_REASON)

        self._publish_closed(INACTIVITY_REASON)

    # ------------------------------------------------------------------
    # Teardown and disconnect
    # ------------------------------------------------------------------

    async def _teardown_locked(self, reason: str) -> None:
        self._cancel_idle_timer()
        self._generation += 1
        browser = self._browser
        self._state = SessionState.CLOSING
        try:
            if browser is not None:
                await self._launcher.shutdown(browser)
        except Exception as e:
            logger.warning("Browser teardown failed", error=str(e))
        finally:
            self._browser = None
            self._state = SessionState.ABSENT
        logger.info("Browser session closed", reason=reason)

    def _watch_disconnect(self, browser: Browser) -> None:
        def handler(_: Any) -> None:
            self._on_disconnected(browser)

        browser.on("disconnected", handler)

    def _on_disconnected(self, browser: Browser) -> None:
        if browser is not self._browser or self._state is not SessionState.READY:
            return

        logger.warning("Browser disconnected; session reset")
        self._cancel_idle_timer()
        self._generation += 1
        self._browser = None
        self._state = SessionState.ABSENT
        # Release the driver that owned the dead browser
        self._track(asyncio.ensure_future(self._launcher.shutdown(browser)))

    def _publish_closed(self, reason: str) -> None:
        events = self._events or get_lifecycle_events()
        events.publish(SessionEvent.closed(reason))

    def _track(self, task: asyncio.Future[Any]) -> None:
        self._background.add(task)  # type: ignore[arg-type]
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Future[Any]) -> None:
        self._background.discard(task)  # type: ignore[arg-type]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("Browser session background task failed", error=str(error))


# ============================================================================
# Global Instance
# ============================================================================

_session_manager: BrowserSessionManager | None = None


def get_browser_session_manager() -> BrowserSessionManager:
    """Get or create the global BrowserSessionManager."""
    global _session_manager

    if _session_manager is None:
        from partscout.utils.config import get_settings

        browser_settings = get_settings().browser
        _session_manager = BrowserSessionManager(
            launcher=PlaywrightLauncher(browser_settings),
            idle_timeout_seconds=browser_settings.idle_timeout_seconds,
        )

    return _session_manager


async def close_browser_session_manager() -> None:
    """Close the global session manager's browser."""
    global _session_manager

    if _session_manager is not None:
        await _session_manager.close(reason="shutdown")
        _session_manager = None


def reset_browser_session_manager() -> None:
    """Reset the global manager without closing. For testing only."""
    global _session_manager
    _session_manager = None
