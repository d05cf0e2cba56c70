"""Structured data extraction from the current page."""

from __future__ import annotations

import logging
from typing import Any

from ..browser.base import BrowserTarget, ElementSnapshot
from ..models import CATEGORY_KEYS, DataType, ExtractionConfig

LOGGER = logging.getLogger(__name__)

TEXT_SELECTOR = "p, h1, h2, h3, span"
LINK_SELECTOR = 'a[href]:not([href=""])'
IMAGE_SELECTOR = 'img[src]:not([src=""])'
METRIC_SELECTOR = '[aria-label*="like"], [aria-label*="view"], [data-testid*="like"]'

# Fragments this short are layout noise rather than prose.
MIN_TEXT_LENGTH = 10


def extract(target: BrowserTarget, config: ExtractionConfig, timeout: float) -> dict[str, Any]:
    """Run every requested extraction against ``target``.

    Returns ``{"url": ..., "extractedData": {...}}``. A category that finds
    nothing yields an empty list; it never raises.
    """

    if config.wait_for:
        target.wait_for_selector(config.wait_for, timeout)

    data: dict[str, list[Any]] = {}
    for name, selector in config.selectors.items():
        elements = target.query_elements(selector, config.limit)
        data[name] = [_custom_record(element) for element in elements]

    requested = set(config.data_types)
    if DataType.TEXT in requested:
        data[CATEGORY_KEYS[DataType.TEXT]] = collect_text(target, config.limit)
    if DataType.LINKS in requested:
        data[CATEGORY_KEYS[DataType.LINKS]] = [
            {"text": element.text, "url": element.href, "title": element.title}
            for element in target.query_elements(LINK_SELECTOR, config.limit)
        ]
    if DataType.IMAGES in requested:
        data[CATEGORY_KEYS[DataType.IMAGES]] = [
            {
                "src": element.src,
                "alt": element.alt,
                "width": element.width,
                "height": element.height,
            }
            for element in target.query_elements(IMAGE_SELECTOR, config.limit)
        ]
    if DataType.METRICS in requested:
        # Engagement counters are few per page; no limit is applied here.
        data[CATEGORY_KEYS[DataType.METRICS]] = [
            {"text": element.text, "label": element.label}
            for element in target.query_elements(METRIC_SELECTOR)
        ]

    state = target.snapshot()
    LOGGER.debug("Extracted %s categories from %s", len(data), state.url)
    return {"url": state.url, "extractedData": data}


def collect_text(target: BrowserTarget, limit: int) -> list[str]:
    """Return prose fragments among the first ``limit`` text-bearing elements."""

    elements = target.query_elements(TEXT_SELECTOR, limit)
    return [element.text for element in elements if len(element.text) > MIN_TEXT_LENGTH]


def _custom_record(element: ElementSnapshot) -> dict[str, str]:
    return {
        "text": element.text,
        "href": element.href,
        "src": element.src,
        "alt": element.alt,
        "className": element.class_name,
    }
