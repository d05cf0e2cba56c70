"""Single-worker FIFO queue in front of the shared browser target."""

from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Deque, Optional

from ..browser.base import BrowserActionError, SessionFatalError
from ..executor.actions import ActionExecutor
from ..models import ActionFailure, ActionRequest, ActionResult, ActionSuccess, ErrorKind
from .manager import SessionManager

LOGGER = logging.getLogger(__name__)


@dataclass
class _QueuedAction:
    request: ActionRequest
    future: Future


class ActionSerializer:
    """Run submitted actions one at a time, in submission order.

    Callers either block in :meth:`submit` or await the future returned by
    :meth:`submit_future`. Only the worker thread touches the browser target.
    """

    def __init__(self, sessions: SessionManager, executor: ActionExecutor) -> None:
        self._sessions = sessions
        self._executor = executor
        self._condition = threading.Condition()
        self._pending: Deque[_QueuedAction] = deque()
        self._closed = False
        self._thread: Optional[threading.Thread] = None

    # Public API --------------------------------------------------------------

    def start(self) -> None:
        with self._condition:
            if self._thread is not None or self._closed:
                return
            self._thread = threading.Thread(
                target=self._run,
                name="action-serializer",
                daemon=True,
            )
            self._thread.start()

    def submit(self, request: ActionRequest) -> ActionResult:
        """Queue ``request`` and block until its result is known."""

        return self.submit_future(request).result()

    def submit_future(self, request: ActionRequest) -> Future[ActionResult]:
        """Queue ``request`` and return a future resolved with its result.

        The future always resolves with an :class:`ActionResult`; a cancelled
        future is skipped by the worker.
        """

        self.start()
        future: Future = Future()
        with self._condition:
            if self._closed:
                future.set_result(
                    ActionFailure(ErrorKind.SESSION_FATAL, "Service is shutting down")
                )
                return future
            self._pending.append(_QueuedAction(request=request, future=future))
            self._condition.notify()
        return future

    def pending_count(self) -> int:
        with self._condition:
            return len(self._pending)

    def close(self, timeout: Optional[float] = None) -> None:
        """Fail queued actions, wait for the in-flight one and release the target."""

        with self._condition:
            if self._closed:
                return
            self._closed = True
            self._fail_pending_locked("Service is shutting down")
            self._condition.notify_all()
            thread = self._thread
        if thread is not None:
            thread.join(timeout)
        else:
            self._sessions.teardown()

    # Worker ------------------------------------------------------------------

    def _run(self) -> None:
        while True:
            with self._condition:
                while not self._pending and not self._closed:
                    self._condition.wait()
                if not self._pending:
                    break
                item = self._pending.popleft()
            if not item.future.set_running_or_notify_cancel():
                continue
            item.future.set_result(self._execute(item.request))
        self._sessions.teardown()
        LOGGER.info("Action serializer stopped")

    def _execute(self, request: ActionRequest) -> ActionResult:
        try:
            target = self._sessions.acquire_target()
            payload = self._executor.execute(target, request)
        except SessionFatalError as exc:
            LOGGER.error("Session failure during %s: %s", request.kind.value, exc)
            with self._condition:
                self._fail_pending_locked(f"Session failed while queued: {exc}")
            self._sessions.teardown()
            return ActionFailure(exc.kind, str(exc), exc.details)
        except BrowserActionError as exc:
            LOGGER.info("Action %s failed: %s", request.kind.value, exc)
            return ActionFailure(exc.kind, str(exc), exc.details)
        except Exception as exc:
            LOGGER.exception("Unexpected error while executing %s", request.kind.value)
            return ActionFailure(ErrorKind.EXECUTION_ERROR, str(exc))
        return ActionSuccess(payload)

    def _fail_pending_locked(self, message: str) -> None:
        while self._pending:
            item = self._pending.popleft()
            if item.future.set_running_or_notify_cancel():
                item.future.set_result(ActionFailure(ErrorKind.SESSION_FATAL, message))
