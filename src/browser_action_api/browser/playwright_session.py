"""Playwright-powered browser target implementation."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from playwright.sync_api import Error, sync_playwright
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from ..config import BrowserConfig
from .base import (
    ActionTimeoutError,
    BrowserActionError,
    BrowserTarget,
    ElementNotFoundError,
    ElementSnapshot,
    FetchedResource,
    NavigationError,
    PageState,
    SessionFatalError,
)

LOGGER = logging.getLogger(__name__)

_FATAL_MARKERS = (
    "has been closed",
    "target closed",
    "crash",
    "connection closed",
)

_SNAPSHOT_SCRIPT = """
(elements, limit) => elements.slice(0, limit == null ? elements.length : limit).map(el => ({
  text: (el.textContent || '').trim(),
  href: el.href || '',
  src: el.src || '',
  alt: el.alt || '',
  title: el.title || '',
  className: typeof el.className === 'string' ? el.className : '',
  label: el.getAttribute('aria-label') || '',
  width: el.naturalWidth || el.width || 0,
  height: el.naturalHeight || el.height || 0,
}))
"""

_FETCH_SCRIPT = """
async ({endpoint, method, headers, data}) => {
  try {
    const response = await fetch(endpoint, {
      method,
      headers: {'Content-Type': 'application/json', ...headers},
      body: method !== 'GET' ? JSON.stringify(data) : undefined,
    });
    const payload = await response.json();
    return {success: response.ok, status: response.status, data: payload};
  } catch (error) {
    return {success: false, error: error.message};
  }
}
"""


class PlaywrightBrowserTarget(BrowserTarget):
    """Browser target backed by a headless Chromium page.

    The sync Playwright API is bound to the thread that started it, so every
    method must be called from that same thread.
    """

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        self._config = config or BrowserConfig()
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    def start(self) -> None:
        LOGGER.debug("Starting Playwright browser target")
        try:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(
                headless=self._config.headless,
                args=list(self._config.launch_args),
            )
            viewport = {
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            }
            self._context = self._browser.new_context(viewport=viewport)
            self._page = self._context.new_page()
        except Error as exc:
            self.stop()
            raise SessionFatalError(f"Browser could not be started: {exc.message}") from exc

    def stop(self) -> None:
        LOGGER.debug("Stopping Playwright browser target")
        try:
            if self._context:
                self._context.close()
        finally:
            try:
                if self._browser:
                    self._browser.close()
            finally:
                if self._playwright:
                    self._playwright.stop()
                self._context = None
                self._browser = None
                self._playwright = None
                self._page = None

    def is_alive(self) -> bool:
        if not self._page or not self._browser:
            return False
        return not self._page.is_closed() and self._browser.is_connected()

    def goto(self, url: str, timeout: float) -> PageState:
        page = self._require_page()
        with self._translate_errors(f"Navigation to {url}", NavigationError):
            page.goto(url, wait_until="networkidle", timeout=timeout)
            return PageState(url=page.url, title=page.title())

    def snapshot(self) -> PageState:
        page = self._require_page()
        with self._translate_errors("Reading page state"):
            return PageState(url=page.url, title=page.title())

    def wait_for_selector(self, selector: str, timeout: float, *, visible: bool = False) -> None:
        page = self._require_page()
        state = "visible" if visible else "attached"
        with self._translate_errors(f"Waiting for {selector}"):
            page.wait_for_selector(selector, state=state, timeout=timeout)

    def clear_value(self, selector: str) -> None:
        page = self._require_page()
        with self._translate_errors(f"Clearing {selector}"):
            page.evaluate(
                "(sel) => { const el = document.querySelector(sel); if (el) el.value = ''; }",
                selector,
            )

    def type_text(self, selector: str, text: str, delay: float = 0) -> None:
        page = self._require_page()
        with self._translate_errors(f"Typing into {selector}"):
            page.type(selector, text, delay=delay)

    def click(self, selector: str) -> None:
        page = self._require_page()
        with self._translate_errors(f"Clicking {selector}"):
            page.click(selector)

    def query_text(self, selector: str) -> Optional[str]:
        page = self._require_page()
        with self._translate_errors(f"Reading text of {selector}"):
            handle = page.query_selector(selector)
            if handle is None:
                return None
            return handle.evaluate("(el) => (el.textContent || '').trim()")

    def query_all_text(self, selector: str) -> list[str]:
        page = self._require_page()
        with self._translate_errors(f"Reading text of {selector}"):
            return page.eval_on_selector_all(
                selector,
                "(els) => els.map(el => (el.textContent || '').trim())",
            )

    def query_elements(self, selector: str, limit: Optional[int] = None) -> list[ElementSnapshot]:
        page = self._require_page()
        with self._translate_errors(f"Collecting {selector}"):
            raw = page.eval_on_selector_all(selector, _SNAPSHOT_SCRIPT, limit)
        return [
            ElementSnapshot(
                text=item["text"],
                href=item["href"],
                src=item["src"],
                alt=item["alt"],
                title=item["title"],
                class_name=item["className"],
                label=item["label"],
                width=int(item["width"] or 0),
                height=int(item["height"] or 0),
            )
            for item in raw
        ]

    def screenshot(self, selector: Optional[str] = None, *, full_page: bool = False) -> bytes:
        page = self._require_page()
        with self._translate_errors("Screenshot"):
            if selector:
                handle = page.query_selector(selector)
                if handle is None:
                    raise ElementNotFoundError(
                        f"Element not found: {selector}",
                        details={"selector": selector},
                    )
                return handle.screenshot(type="png")
            return page.screenshot(type="png", full_page=full_page)

    def fetch(self, url: str, timeout: float) -> FetchedResource:
        page = self._require_page()
        with self._translate_errors(f"Fetching {url}", NavigationError):
            response = page.goto(url, wait_until="networkidle", timeout=timeout)
            if response is None:
                raise NavigationError(f"No response received for {url}")
            headers = response.headers
            return FetchedResource(
                url=url,
                status=response.status,
                content_type=headers.get("content-type", "application/octet-stream"),
                body=response.body() if response.ok else b"",
            )

    def fetch_json(
        self,
        endpoint: str,
        *,
        method: str = "POST",
        headers: Optional[dict[str, str]] = None,
        data: Any = None,
    ) -> dict[str, Any]:
        page = self._require_page()
        with self._translate_errors(f"Requesting {endpoint}"):
            return page.evaluate(
                _FETCH_SCRIPT,
                {"endpoint": endpoint, "method": method, "headers": headers or {}, "data": data},
            )

    def pause(self, milliseconds: float) -> None:
        page = self._require_page()
        with self._translate_errors("Pausing"):
            page.wait_for_timeout(milliseconds)

    # Internal helpers -------------------------------------------------

    def _require_page(self):
        if not self._page:
            raise SessionFatalError("Browser target is not started")
        return self._page

    @contextmanager
    def _translate_errors(
        self,
        description: str,
        error_cls: type[BrowserActionError] = BrowserActionError,
    ) -> Iterator[None]:
        try:
            yield
        except PlaywrightTimeoutError as exc:
            raise ActionTimeoutError(f"{description} timed out: {exc.message}") from exc
        except Error as exc:
            message = exc.message or str(exc)
            if any(marker in message.lower() for marker in _FATAL_MARKERS):
                raise SessionFatalError(f"{description} failed: {message}") from exc
            raise error_cls(f"{description} failed: {message}") from exc
