"""Browser target abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from ..models import ErrorKind


@dataclass
class PageState:
    """Location of the automation target after an action."""

    url: Optional[str] = None
    title: Optional[str] = None


@dataclass
class ElementSnapshot:
    """Plain-data view of a DOM element read from the page."""

    text: str = ""
    href: str = ""
    src: str = ""
    alt: str = ""
    title: str = ""
    class_name: str = ""
    label: str = ""
    width: int = 0
    height: int = 0


@dataclass
class FetchedResource:
    """Response body fetched by loading a URL in the target."""

    url: str
    status: int
    content_type: str
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class BrowserActionError(RuntimeError):
    """Raised when executing a browser action fails."""

    kind = ErrorKind.EXECUTION_ERROR

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = dict(details or {})


class ElementNotFoundError(BrowserActionError):
    """A selector matched nothing."""

    kind = ErrorKind.ELEMENT_NOT_FOUND


class ActionTimeoutError(BrowserActionError):
    """A wait condition was not met within its bound."""

    kind = ErrorKind.TIMEOUT


class NavigationError(BrowserActionError):
    """The page failed to load."""

    kind = ErrorKind.NAVIGATION_ERROR


class SessionFatalError(BrowserActionError):
    """The automation target crashed or could not be created."""

    kind = ErrorKind.SESSION_FATAL


@dataclass
class Viewport:
    width: int = 1280
    height: int = 720

    def as_dict(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}


class BrowserTarget(ABC):
    """Interface for the single page driven by the service.

    Implementations raise :class:`ActionTimeoutError` when a wait runs out,
    :class:`SessionFatalError` when the underlying browser is gone and
    :class:`BrowserActionError` for anything else. Timeouts are in
    milliseconds.
    """

    @abstractmethod
    def start(self) -> None:
        """Launch the browser and open the page."""

    @abstractmethod
    def stop(self) -> None:
        """Close the page and terminate the browser."""

    @abstractmethod
    def is_alive(self) -> bool:
        """Return whether the page can still accept commands."""

    @abstractmethod
    def goto(self, url: str, timeout: float) -> PageState:
        """Load ``url`` and wait for network activity to settle."""

    @abstractmethod
    def snapshot(self) -> PageState:
        """Return the current location."""

    @abstractmethod
    def wait_for_selector(self, selector: str, timeout: float, *, visible: bool = False) -> None:
        """Block until ``selector`` is attached (and visible if requested)."""

    @abstractmethod
    def clear_value(self, selector: str) -> None:
        """Empty the value of the first element matching ``selector``."""

    @abstractmethod
    def type_text(self, selector: str, text: str, delay: float = 0) -> None:
        """Type ``text`` into ``selector`` keystroke by keystroke."""

    @abstractmethod
    def click(self, selector: str) -> None:
        """Click the first element matching ``selector``."""

    @abstractmethod
    def query_text(self, selector: str) -> Optional[str]:
        """Return the trimmed text of the first match, or ``None`` if absent."""

    @abstractmethod
    def query_all_text(self, selector: str) -> list[str]:
        """Return the trimmed text of every match."""

    @abstractmethod
    def query_elements(self, selector: str, limit: Optional[int] = None) -> list[ElementSnapshot]:
        """Return up to ``limit`` matches in document order."""

    @abstractmethod
    def screenshot(self, selector: Optional[str] = None, *, full_page: bool = False) -> bytes:
        """Capture a PNG of the page or of a single element."""

    @abstractmethod
    def fetch(self, url: str, timeout: float) -> FetchedResource:
        """Load ``url`` in the page and return the main response."""

    @abstractmethod
    def fetch_json(
        self,
        endpoint: str,
        *,
        method: str = "POST",
        headers: Optional[dict[str, str]] = None,
        data: Any = None,
    ) -> dict[str, Any]:
        """Issue a JSON request from inside the page context."""

    @abstractmethod
    def pause(self, milliseconds: float) -> None:
        """Idle the page for the given time."""

