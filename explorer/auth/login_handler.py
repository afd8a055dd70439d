"""
Login Handler
=============
Generic form-based login on whatever page is currently loaded.

Flow:
    1. Find a visible password field and an email / username field
    2. If neither is present, click the first "log in / sign in"
       affordance and search again
    3. No password field → return False (nothing was submitted)
    4. Fill the fields the caller has values for, press Enter
    5. Poll (bounded) for a success signal:
         - the location changed
         - the password field is no longer visible
         - the password field handle is stale (document replaced)
    6. Return True whether or not a signal fired

The optimistic return in step 6 is intentional: some single-page apps give
no detectable signal, and skipping a real authenticated area is costlier
than briefly crawling a logged-out page.

Only redacted descriptions ("filled password") reach the action log.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Tuple

from ..context import CrawlContext
from ..heuristics import classify_as_login, is_identity_field, is_password_field
from ..interaction import describe
from ..models import ActionType
from .credentials import Credentials

logger = logging.getLogger(__name__)

INPUT_SELECTOR = "input"
LOGIN_AFFORDANCE_SELECTOR = 'a, button, [role="button"], input[type="submit"]'
IS_CONNECTED_JS = "el => el.isConnected"


# ---------------------------------------------------------------------------
# Success predicates, each evaluable on its own
# ---------------------------------------------------------------------------

async def location_changed(page, before_url: str) -> bool:
    return page.url != before_url


async def element_hidden(handle) -> bool:
    try:
        return not await handle.is_visible()
    except Exception:
        # A handle that can no longer be queried is reported by element_stale
        return False


async def element_stale(handle) -> bool:
    try:
        return not await handle.evaluate(IS_CONNECTED_JS)
    except Exception:
        return True


async def poll_until(
    predicate: Callable[[], Awaitable[bool]],
    timeout_ms: float,
    interval_ms: float,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Evaluate *predicate* until it holds or *timeout_ms* elapses.

    The predicate is always evaluated at least once.
    """
    deadline = clock() + timeout_ms / 1000.0
    while True:
        if await predicate():
            return True
        remaining = deadline - clock()
        if remaining <= 0:
            return False
        await asyncio.sleep(min(interval_ms / 1000.0, remaining))


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------

class LoginHandler:
    """Attempts a login with the supplied credentials.

    Usage::

        handler = LoginHandler(ctx)
        proceed = await handler.login(page, Credentials(password="x"))
    """

    def __init__(self, ctx: CrawlContext):
        self.ctx = ctx
        self.config = ctx.config

    async def login(self, page, creds: Credentials) -> bool:
        """Returns True if the authenticated phase should run."""
        identity, password = await self._find_fields(page)

        if identity is None and password is None:
            if await self._click_login_affordance(page):
                identity, password = await self._find_fields(page)

        if password is None:
            logger.info("[AUTH] No password field found — skipping authentication")
            return False

        if creds.email and identity is not None:
            await self._fill(identity, creds.email, "Filled email field")
        if creds.password:
            await self._fill(password, creds.password, "Filled password")

        before_url = page.url
        try:
            await page.keyboard.press("Enter")
            self.ctx.result.log_action(ActionType.KEYPRESS, "Pressed Enter to submit login form")
        except Exception as e:
            logger.warning(f"[AUTH] Submit keypress failed: {e}")

        signal = await self.wait_for_signal(page, password[0], before_url)
        if signal:
            logger.info(f"[AUTH] Login signal: {signal}")
            self.ctx.result.log_action(ActionType.AUTH, f"Login submitted ({signal})")
        else:
            logger.info("[AUTH] No login signal before timeout — proceeding anyway")
            self.ctx.result.log_action(
                ActionType.AUTH, "Login submitted (no success signal, proceeding)"
            )
        return True

    async def wait_for_signal(self, page, password_handle, before_url: str) -> Optional[str]:
        """Name of the first success signal observed, or None on timeout."""
        fired: list = []

        async def any_signal() -> bool:
            if await location_changed(page, before_url):
                fired.append("location changed")
            elif await element_stale(password_handle):
                fired.append("password field detached")
            elif await element_hidden(password_handle):
                fired.append("password field hidden")
            return bool(fired)

        await poll_until(
            any_signal,
            timeout_ms=self.ctx.bounded_timeout(self.config.auth_timeout_ms),
            interval_ms=self.config.auth_poll_interval_ms,
        )
        return fired[0] if fired else None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _find_fields(self, page) -> Tuple[Optional[tuple], Optional[tuple]]:
        """Return ``(identity, password)``, each ``(handle, info)`` or None."""
        identity = password = None
        try:
            inputs = await page.query_selector_all(INPUT_SELECTOR)
        except Exception as e:
            logger.debug(f"[AUTH] Input query failed: {e}")
            return None, None

        for handle in inputs:
            try:
                if not await handle.is_visible():
                    continue
            except Exception:
                continue
            info = await describe(handle)
            if info is None:
                continue
            if password is None and is_password_field(
                info.field_name, info.type, info.autocomplete
            ):
                password = (handle, info)
            elif identity is None and is_identity_field(
                info.field_name, info.type, info.autocomplete
            ):
                identity = (handle, info)
            if identity and password:
                break

        logger.debug(
            f"[AUTH] Fields — identity: {identity is not None}, "
            f"password: {password is not None}"
        )
        return identity, password

    async def _click_login_affordance(self, page) -> bool:
        try:
            candidates = await page.query_selector_all(LOGIN_AFFORDANCE_SELECTOR)
        except Exception as e:
            logger.debug(f"[AUTH] Affordance query failed: {e}")
            return False

        for handle in candidates:
            info = await describe(handle)
            if info is None or not classify_as_login(info.label):
                continue
            try:
                if not await handle.is_visible():
                    continue
                await handle.click(timeout=self.ctx.bounded_timeout(self.config.click_timeout_ms))
            except Exception as e:
                logger.debug(f"[AUTH] Login affordance click failed: {e}")
                continue

            logger.info(f"[AUTH] Clicked login affordance '{info.label[:40]}'")
            self.ctx.result.log_action(
                ActionType.CLICK,
                f"Clicked login affordance '{info.label[:60]}'",
                selector=info.selector(),
            )
            settle_ms = min(self.config.login_affordance_settle_ms, self.ctx.monitor.remaining_ms())
            if settle_ms > 0:
                await asyncio.sleep(settle_ms / 1000)
            return True

        logger.debug("[AUTH] No login affordance found")
        return False

    async def _fill(self, field: tuple, value: str, description: str) -> None:
        handle, info = field
        try:
            await handle.fill(value, timeout=self.ctx.bounded_timeout(self.config.fill_timeout_ms))
        except Exception as e:
            logger.warning(f"[AUTH] Fill failed on {info.selector()}: {e}")
            return
        logger.info(f"[AUTH] {description}")
        self.ctx.result.log_action(ActionType.AUTH, description, selector=info.selector())
