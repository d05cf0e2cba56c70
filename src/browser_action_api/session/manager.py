"""Lifecycle of the single automation target owned by the service."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from ..browser.base import BrowserTarget, SessionFatalError, Viewport

LOGGER = logging.getLogger(__name__)


@dataclass
class Session:
    """The live automation target plus the settings it was created with."""

    target: BrowserTarget
    viewport: Viewport
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionManager:
    """Create the browser target on demand, reuse it, and tear it down.

    ``target_factory`` builds an unstarted :class:`BrowserTarget`; the manager
    starts it on first use. A failed start leaves no session behind, so the
    next :meth:`acquire_target` call tries again.
    """

    def __init__(
        self,
        target_factory: Callable[[], BrowserTarget],
        *,
        viewport: Optional[Viewport] = None,
    ) -> None:
        self._target_factory = target_factory
        self._viewport = viewport or Viewport()
        self._lock = threading.Lock()
        self._session: Optional[Session] = None
        self._creations = 0

    @property
    def creation_count(self) -> int:
        with self._lock:
            return self._creations

    @property
    def session(self) -> Optional[Session]:
        with self._lock:
            return self._session

    def acquire_target(self) -> BrowserTarget:
        with self._lock:
            if self._session and self._session.target.is_alive():
                return self._session.target
            if self._session:
                LOGGER.warning("Browser target is no longer alive; recreating it")
                self._close(self._session)
                self._session = None
            target = self._target_factory()
            try:
                target.start()
            except SessionFatalError:
                LOGGER.error("Browser target could not be started")
                raise
            except Exception as exc:
                LOGGER.exception("Browser target could not be started")
                raise SessionFatalError(f"Browser could not be started: {exc}") from exc
            self._session = Session(target=target, viewport=self._viewport)
            self._creations += 1
            LOGGER.info(
                "Browser target created (%sx%s)",
                self._viewport.width,
                self._viewport.height,
            )
            return target

    def teardown(self) -> None:
        with self._lock:
            session = self._session
            self._session = None
        if session is None:
            return
        self._close(session)
        LOGGER.info("Browser target closed")

    def describe(self) -> dict[str, Any]:
        with self._lock:
            session = self._session
            creations = self._creations
        return {
            "active": session is not None,
            "createdAt": session.created_at.isoformat() if session else None,
            "viewport": self._viewport.as_dict(),
            "creations": creations,
        }

    @staticmethod
    def _close(session: Session) -> None:
        try:
            session.target.stop()
        except Exception:
            LOGGER.exception("Failed to close browser target cleanly")
