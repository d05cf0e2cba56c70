"""Text analytics helpers shared by the content pipeline."""

from __future__ import annotations

import re
from collections import Counter
from decimal import Decimal, InvalidOperation
from typing import Any, Union

Number = Union[int, float]

_HASHTAG_RE = re.compile(r"#\w+")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_LEADING_NUMBER_RE = re.compile(r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+))")
_SCALES = {"k": Decimal(1_000), "m": Decimal(1_000_000)}


def parse_metric(value: Any) -> Number:
    """Parse a human-readable count such as ``"12.3k"`` or ``"2M views"``.

    The leading number is scaled by 1,000 when the text contains ``k`` anywhere
    and by 1,000,000 when it contains ``m``; ``k`` wins when both appear.
    Otherwise the number is truncated to an integer. Input without a leading
    number yields ``0``.
    """

    if value is None or isinstance(value, bool):
        return 0
    text = str(value).lower()
    match = _LEADING_NUMBER_RE.match(text)
    if not match:
        return 0
    try:
        amount = Decimal(match.group(1))
    except InvalidOperation:
        return 0
    for marker, scale in _SCALES.items():
        if marker in text:
            amount *= scale
            break
    else:
        amount = Decimal(int(amount))
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def extract_hashtags(text: str) -> list[str]:
    """Return every ``#tag`` in ``text``, lowercased, in order of appearance."""

    return [tag.lower() for tag in _HASHTAG_RE.findall(text)]


def top_words(text: str, limit: int = 10) -> list[dict[str, Any]]:
    """Most frequent words longer than three characters.

    Ties keep the order in which words first appeared.
    """

    words = [
        word
        for word in _PUNCTUATION_RE.sub("", text.lower()).split()
        if len(word) > 3
    ]
    return [{"word": word, "count": count} for word, count in Counter(words).most_common(limit)]


def word_count(text: str) -> int:
    return len(text.split())
