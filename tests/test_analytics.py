import pytest

from browser_action_api.content.analytics import (
    extract_hashtags,
    parse_metric,
    top_words,
    word_count,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12.3k", 12300),
        ("2m", 2_000_000),
        ("", 0),
        ("45", 45),
        ("1.5K", 1500),
        ("2.1M views", 2_100_000),
        ("45 likes", 45_000),
        ("1.5 million", 1_500_000),
        ("3 views", 3),
        ("1,234", 1),
        ("12.5", 12),
        ("n/a", 0),
        (None, 0),
        (1500, 1500),
    ],
)
def test_parse_metric(raw, expected) -> None:
    assert parse_metric(raw) == expected


def test_parse_metric_scales_on_marker_anywhere_in_text() -> None:
    assert parse_metric("2 weeks ago") == 2000
    assert parse_metric("7 comments") == 7_000_000
    assert parse_metric("1.2K comments") == 1200


def test_parse_metric_returns_int_for_whole_values() -> None:
    assert isinstance(parse_metric("12.3k"), int)
    assert parse_metric("1.2345k") == pytest.approx(1234.5)


def test_extract_hashtags_is_case_folded() -> None:
    assert extract_hashtags("Loving #ViralContent and #Trending!") == [
        "#viralcontent",
        "#trending",
    ]
    assert extract_hashtags("no tags here") == []


def test_top_words_counts_long_words_and_keeps_first_seen_order_on_ties() -> None:
    text = "Beta alpha, beta! Gamma alpha the cat delta gamma."

    assert top_words(text, 3) == [
        {"word": "beta", "count": 2},
        {"word": "alpha", "count": 2},
        {"word": "gamma", "count": 2},
    ]
    assert [entry["word"] for entry in top_words(text)] == ["beta", "alpha", "gamma", "delta"]


def test_word_count_splits_on_any_whitespace() -> None:
    assert word_count("one  two\tthree\nfour") == 4
