from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional

import pytest

from browser_action_api.browser.base import (
    ActionTimeoutError,
    BrowserTarget,
    ElementNotFoundError,
    ElementSnapshot,
    FetchedResource,
    NavigationError,
    PageState,
    SessionFatalError,
)


class StubTarget(BrowserTarget):
    """In-memory page: selectors in ``present`` exist, everything else times out."""

    def __init__(
        self,
        *,
        present: Optional[set[str]] = None,
        texts: Optional[dict[str, list[str]]] = None,
        elements: Optional[dict[str, list[ElementSnapshot]]] = None,
        resources: Optional[dict[str, Any]] = None,
        fatal_urls: Optional[set[str]] = None,
        broken_urls: Optional[set[str]] = None,
        gates: Optional[dict[str, threading.Event]] = None,
    ) -> None:
        self.present = set(present or ())
        self.texts = dict(texts or {})
        self.elements = dict(elements or {})
        self.resources = dict(resources or {})
        self.fatal_urls = set(fatal_urls or ())
        self.broken_urls = set(broken_urls or ())
        self.gates = dict(gates or {})
        self.calls: list[tuple[Any, ...]] = []
        self.started = False
        self.stopped = False
        self.url = "about:blank"
        self.title = ""

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def is_alive(self) -> bool:
        return self.started and not self.stopped

    def goto(self, url: str, timeout: float) -> PageState:
        self.calls.append(("goto", url))
        gate = self.gates.get(url)
        if gate is not None:
            gate.wait(15)
        if url in self.fatal_urls:
            raise SessionFatalError("Target crashed")
        if url in self.broken_urls:
            raise NavigationError(f"Navigation to {url} failed: net::ERR_NAME_NOT_RESOLVED")
        self.url = url
        self.title = f"Title of {url}"
        return PageState(url=self.url, title=self.title)

    def snapshot(self) -> PageState:
        return PageState(url=self.url, title=self.title)

    def wait_for_selector(self, selector: str, timeout: float, *, visible: bool = False) -> None:
        self.calls.append(("wait", selector, timeout, visible))
        if selector not in self.present:
            raise ActionTimeoutError(f"Waiting for {selector} timed out")

    def clear_value(self, selector: str) -> None:
        self.calls.append(("clear", selector))

    def type_text(self, selector: str, text: str, delay: float = 0) -> None:
        self.calls.append(("type", selector, text, delay))

    def click(self, selector: str) -> None:
        self.calls.append(("click", selector))

    def query_text(self, selector: str) -> Optional[str]:
        values = self.texts.get(selector)
        if not values:
            return None
        return values[0]

    def query_all_text(self, selector: str) -> list[str]:
        return list(self.texts.get(selector, []))

    def query_elements(self, selector: str, limit: Optional[int] = None) -> list[ElementSnapshot]:
        self.calls.append(("query", selector, limit))
        found = self.elements.get(selector, [])
        return list(found if limit is None else found[:limit])

    def screenshot(self, selector: Optional[str] = None, *, full_page: bool = False) -> bytes:
        self.calls.append(("screenshot", selector, full_page))
        if selector and selector not in self.present:
            raise ElementNotFoundError(f"Element not found: {selector}")
        return b"\x89PNG"

    def fetch(self, url: str, timeout: float) -> FetchedResource:
        self.calls.append(("fetch", url))
        resource = self.resources[url]
        if isinstance(resource, Exception):
            raise resource
        return resource

    def fetch_json(
        self,
        endpoint: str,
        *,
        method: str = "POST",
        headers: Optional[dict[str, str]] = None,
        data: Any = None,
    ) -> dict[str, Any]:
        self.calls.append(("fetch_json", endpoint, method))
        return {"success": True, "status": 200, "data": {"echo": data}}

    def pause(self, milliseconds: float) -> None:
        self.calls.append(("pause", milliseconds))


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.01)


@pytest.fixture
def target() -> StubTarget:
    stub = StubTarget()
    stub.start()
    return stub
