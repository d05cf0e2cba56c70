import pytest
from pydantic import ValidationError

from browser_action_api.browser.base import ActionTimeoutError, ElementSnapshot
from browser_action_api.executor.extraction import (
    IMAGE_SELECTOR,
    LINK_SELECTOR,
    METRIC_SELECTOR,
    TEXT_SELECTOR,
    extract,
)
from browser_action_api.models import ExtractionConfig
from conftest import StubTarget


def _page() -> StubTarget:
    target = StubTarget(
        present={"#feed"},
        elements={
            TEXT_SELECTOR: [
                ElementSnapshot(text="Short"),
                ElementSnapshot(text="A paragraph with enough words"),
                ElementSnapshot(text="Another long paragraph here"),
            ],
            LINK_SELECTOR: [
                ElementSnapshot(text="Home", href="https://example.test/", title="Start"),
            ],
            IMAGE_SELECTOR: [
                ElementSnapshot(src="https://cdn.test/a.png", alt="A", width=640, height=480),
                ElementSnapshot(src="https://cdn.test/b.png", alt="B", width=320, height=240),
            ],
            METRIC_SELECTOR: [
                ElementSnapshot(text=str(i), label=f"{i} likes") for i in range(5)
            ],
            ".card": [
                ElementSnapshot(text=f"card {i}", class_name="card") for i in range(4)
            ],
        },
    )
    target.start()
    target.url = "https://example.test/feed"
    return target


def test_text_category_keeps_only_substantial_fragments() -> None:
    target = _page()

    result = extract(target, ExtractionConfig(data_types=["text"], limit=10), 30000)

    assert result["url"] == "https://example.test/feed"
    assert result["extractedData"] == {
        "allText": ["A paragraph with enough words", "Another long paragraph here"],
    }


def test_limit_applies_to_each_category_but_not_metrics() -> None:
    target = _page()
    config = ExtractionConfig(
        selectors={"cards": ".card"},
        data_types=["links", "images", "metrics"],
        limit=1,
    )

    data = extract(target, config, 30000)["extractedData"]

    assert data["cards"] == [
        {"text": "card 0", "href": "", "src": "", "alt": "", "className": "card"}
    ]
    assert data["links"] == [{"text": "Home", "url": "https://example.test/", "title": "Start"}]
    assert data["images"] == [
        {"src": "https://cdn.test/a.png", "alt": "A", "width": 640, "height": 480}
    ]
    assert len(data["metrics"]) == 5
    assert data["metrics"][0] == {"text": "0", "label": "0 likes"}
    assert ("query", METRIC_SELECTOR, None) in target.calls
    assert "allText" not in data


def test_empty_categories_are_not_errors() -> None:
    target = StubTarget()
    target.start()

    data = extract(target, ExtractionConfig(), 30000)["extractedData"]

    assert data == {"allText": [], "links": [], "images": []}


def test_wait_for_times_out_when_selector_missing() -> None:
    target = _page()

    with pytest.raises(ActionTimeoutError):
        extract(target, ExtractionConfig(wait_for="#missing"), 30000)

    extract(target, ExtractionConfig(wait_for="#feed"), 30000)
    assert ("wait", "#feed", 30000, False) in target.calls


def test_custom_selector_names_cannot_shadow_categories() -> None:
    with pytest.raises(ValidationError):
        ExtractionConfig(selectors={"links": "a"})


def test_limit_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        ExtractionConfig(limit=0)
