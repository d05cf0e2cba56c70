"""Content transformations that run without a browser session."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .analytics import extract_hashtags, parse_metric, top_words, word_count
from .platforms import PLATFORM_RULES, get_rule

SOCIAL_MEDIA_TEMPLATE = "social-media"


class PlatformVariant(BaseModel):
    """Base content reshaped for one platform."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    platform: str
    primary_text: str
    hashtags: list[str]
    dimensions: str


def substitute_template(template: str, data: Mapping[str, Any]) -> str:
    """Replace ``{{ key }}`` placeholders; unknown placeholders are kept as-is."""

    processed = template
    for key, value in data.items():
        pattern = re.compile(r"\{\{\s*" + re.escape(str(key)) + r"\s*\}\}")
        replacement = _stringify(value)
        processed = pattern.sub(lambda _match: replacement, processed)
    return processed


def process_template(
    template: str,
    data: Mapping[str, Any],
    template_type: str = "text",
) -> dict[str, Any]:
    processed = substitute_template(template, data)
    result: dict[str, Any] = {"processed": processed}
    if template_type == SOCIAL_MEDIA_TEMPLATE:
        result["platforms"] = {
            name: processed[: rule.max_text_length] for name, rule in PLATFORM_RULES.items()
        }
    return result


def analyze_content(
    content: Union[str, Sequence[Mapping[str, Any]]],
    analysis_types: Iterable[str] = ("keywords", "engagement"),
) -> dict[str, Any]:
    """Summarise either a list of post records or a block of free text."""

    requested = set(analysis_types)
    analysis: dict[str, Any] = {}
    if isinstance(content, str):
        if "keywords" in requested:
            analysis["keywords"] = top_words(content, 10)
            analysis["hashtags"] = extract_hashtags(content)
        analysis["wordCount"] = word_count(content)
        return analysis

    records = list(content)
    analysis["contentCount"] = len(records)
    if "engagement" in requested:
        analysis["engagement"] = _engagement(records)
    return analysis


def generate_variants(base_content: str, platforms: Iterable[str]) -> dict[str, dict[str, Any]]:
    """Build one variant per known platform; unknown names are skipped."""

    hashtags = extract_hashtags(base_content)
    variants: dict[str, dict[str, Any]] = {}
    for platform in platforms:
        rule = get_rule(platform)
        if rule is None:
            continue
        variant = PlatformVariant(
            platform=rule.name,
            primary_text=base_content[: rule.max_text_length],
            hashtags=hashtags[: rule.max_hashtags],
            dimensions=rule.dimensions,
        )
        variants[rule.name] = variant.model_dump(by_alias=True)
    return variants


def _engagement(records: list[Mapping[str, Any]]) -> dict[str, Any]:
    likes = [parse_metric(record.get("likes")) for record in records]
    comments = [parse_metric(record.get("comments")) for record in records]
    count = len(records)
    scored = [
        {**record, "totalEngagement": like + comment}
        for record, like, comment in zip(records, likes, comments)
    ]
    # sorted() is stable, so equal totals keep their input order.
    top = sorted(scored, key=lambda item: item["totalEngagement"], reverse=True)[:3]
    return {
        "avgLikes": sum(likes) / count if count else 0,
        "avgComments": sum(comments) / count if count else 0,
        "topPerforming": top,
    }


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)
