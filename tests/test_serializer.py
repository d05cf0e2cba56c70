import threading

from browser_action_api.executor.actions import ActionExecutor
from browser_action_api.models import (
    ActionFailure,
    ActionKind,
    ActionRequest,
    ActionResult,
    ActionSuccess,
    ErrorKind,
    NavigateParams,
)
from browser_action_api.session.manager import SessionManager
from browser_action_api.session.serializer import ActionSerializer
from conftest import StubTarget, wait_until


class _ExplodingTarget(StubTarget):
    def goto(self, url, timeout):
        raise ValueError("unexpected page state")


def _navigate(url: str) -> ActionRequest:
    return ActionRequest(ActionKind.NAVIGATE, NavigateParams(url=url))


def _serializer(*targets: StubTarget) -> tuple[ActionSerializer, SessionManager]:
    queue = list(targets)
    manager = SessionManager(lambda: queue.pop(0) if queue else StubTarget())
    return ActionSerializer(manager, ActionExecutor()), manager


def _submit_in_background(
    serializer: ActionSerializer,
    request: ActionRequest,
    results: dict[str, ActionResult],
    name: str,
) -> threading.Thread:
    def run() -> None:
        results[name] = serializer.submit(request)

    thread = threading.Thread(target=run)
    thread.start()
    return thread


def test_actions_run_in_submission_order() -> None:
    gate = threading.Event()
    target = StubTarget(gates={"https://a.test": gate})
    serializer, manager = _serializer(target)
    results: dict[str, ActionResult] = {}

    threads = [_submit_in_background(serializer, _navigate("https://a.test"), results, "a")]
    wait_until(lambda: ("goto", "https://a.test") in target.calls)
    threads.append(_submit_in_background(serializer, _navigate("https://b.test"), results, "b"))
    wait_until(lambda: serializer.pending_count() == 1)
    threads.append(_submit_in_background(serializer, _navigate("https://c.test"), results, "c"))
    wait_until(lambda: serializer.pending_count() == 2)

    gate.set()
    for thread in threads:
        thread.join(5)

    assert [call[1] for call in target.calls if call[0] == "goto"] == [
        "https://a.test",
        "https://b.test",
        "https://c.test",
    ]
    assert all(isinstance(result, ActionSuccess) for result in results.values())
    assert results["c"].payload["currentUrl"] == "https://c.test"
    assert manager.creation_count == 1
    serializer.close(5)


def test_session_failure_fails_queued_actions_and_recovers() -> None:
    gate = threading.Event()
    doomed = StubTarget(
        gates={"https://crash.test": gate},
        fatal_urls={"https://crash.test"},
    )
    serializer, manager = _serializer(doomed)
    results: dict[str, ActionResult] = {}

    threads = [_submit_in_background(serializer, _navigate("https://crash.test"), results, "a")]
    wait_until(lambda: ("goto", "https://crash.test") in doomed.calls)
    threads.append(_submit_in_background(serializer, _navigate("https://b.test"), results, "b"))
    threads.append(_submit_in_background(serializer, _navigate("https://c.test"), results, "c"))
    wait_until(lambda: serializer.pending_count() == 2)

    gate.set()
    for thread in threads:
        thread.join(5)

    assert isinstance(results["a"], ActionFailure)
    assert results["a"].kind is ErrorKind.SESSION_FATAL
    for name in ("b", "c"):
        assert results[name].kind is ErrorKind.SESSION_FATAL
        assert results[name].message.startswith("Session failed while queued")
    assert doomed.stopped
    assert manager.session is None

    recovered = serializer.submit(_navigate("https://d.test"))

    assert isinstance(recovered, ActionSuccess)
    assert manager.creation_count == 2
    serializer.close(5)


def test_ordinary_failures_keep_the_session() -> None:
    target = StubTarget(broken_urls={"https://broken.test"})
    serializer, manager = _serializer(target)

    failed = serializer.submit(_navigate("https://broken.test"))
    succeeded = serializer.submit(_navigate("https://ok.test"))

    assert failed.kind is ErrorKind.NAVIGATION_ERROR
    assert isinstance(succeeded, ActionSuccess)
    assert manager.creation_count == 1
    assert not target.stopped
    serializer.close(5)


def test_unexpected_exception_becomes_execution_error() -> None:
    serializer, _ = _serializer(_ExplodingTarget())

    result = serializer.submit(_navigate("https://a.test"))

    assert result.kind is ErrorKind.EXECUTION_ERROR
    assert result.message == "unexpected page state"
    serializer.close(5)


def test_close_tears_down_and_rejects_new_work() -> None:
    target = StubTarget()
    serializer, manager = _serializer(target)
    assert isinstance(serializer.submit(_navigate("https://a.test")), ActionSuccess)

    serializer.close(5)

    assert target.stopped
    assert manager.session is None
    result = serializer.submit(_navigate("https://b.test"))
    assert result.kind is ErrorKind.SESSION_FATAL
    assert result.message == "Service is shutting down"


def test_close_without_worker_is_safe() -> None:
    serializer, manager = _serializer(StubTarget())

    serializer.close()
    serializer.close()

    assert manager.session is None
    assert serializer.pending_count() == 0


def test_submit_future_resolves_without_blocking_the_caller() -> None:
    gate = threading.Event()
    target = StubTarget(gates={"https://a.test": gate})
    serializer, _ = _serializer(target)

    future = serializer.submit_future(_navigate("https://a.test"))
    wait_until(lambda: ("goto", "https://a.test") in target.calls)

    assert not future.done()
    gate.set()
    result = future.result(5)
    assert isinstance(result, ActionSuccess)
    serializer.close(5)


def test_cancelled_future_is_skipped() -> None:
    gate = threading.Event()
    target = StubTarget(gates={"https://a.test": gate})
    serializer, _ = _serializer(target)

    first = serializer.submit_future(_navigate("https://a.test"))
    wait_until(lambda: ("goto", "https://a.test") in target.calls)
    skipped = serializer.submit_future(_navigate("https://b.test"))
    assert skipped.cancel()
    gate.set()
    first.result(5)
    serializer.submit(_navigate("https://c.test"))

    assert [call[1] for call in target.calls if call[0] == "goto"] == [
        "https://a.test",
        "https://c.test",
    ]
    serializer.close(5)


def test_submit_future_after_close_is_already_failed() -> None:
    serializer, _ = _serializer(StubTarget())
    serializer.close()

    future = serializer.submit_future(_navigate("https://a.test"))

    assert future.done()
    assert future.result().kind is ErrorKind.SESSION_FATAL
