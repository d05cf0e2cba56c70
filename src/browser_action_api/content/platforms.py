"""Static per-platform publishing rules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PlatformRule:
    """Caps and canonical output size for one social platform."""

    name: str
    max_text_length: int
    max_hashtags: int
    dimensions: str
    login_url: Optional[str] = None


PLATFORM_RULES: dict[str, PlatformRule] = {
    "instagram": PlatformRule(
        name="instagram",
        max_text_length=2200,
        max_hashtags=30,
        dimensions="1080x1080",
        login_url="https://www.instagram.com/accounts/login/",
    ),
    "twitter": PlatformRule(
        name="twitter",
        max_text_length=280,
        max_hashtags=2,
        dimensions="1200x675",
    ),
    "tiktok": PlatformRule(
        name="tiktok",
        max_text_length=150,
        max_hashtags=5,
        dimensions="1080x1920",
        login_url="https://www.tiktok.com/login",
    ),
}


def get_rule(platform: str) -> Optional[PlatformRule]:
    """Look up a platform by name, ignoring case and surrounding whitespace."""

    return PLATFORM_RULES.get(platform.strip().lower())
