"""
Badge component.

Small status pill used for verification state ("Verified" / "Pending") and
counters in section headers.
"""

from __future__ import annotations

from .base import Component

BADGE_VARIANTS = ("default", "secondary", "error", "success", "warning", "info")

# Aliases resolve to a canonical variant before rendering.
_VARIANT_ALIASES = {"danger": "error"}


class Badge(Component):
    """
    Renders an inline badge.

    Args:
        text: Badge label (escaped).
        variant: One of BADGE_VARIANTS or "danger" (rendered as "error").
            Unknown variants fall back to "default".
        extra_class: Optional additional CSS classes.
    """

    def __init__(self, text: str, variant: str = "default", *, extra_class: str = "") -> None:
        self.text = text
        self.variant = self.resolve_variant(variant)
        self.extra_class = extra_class

    @staticmethod
    def resolve_variant(variant: str | None) -> str:
        key = (variant or "default").strip().lower()
        key = _VARIANT_ALIASES.get(key, key)
        return key if key in BADGE_VARIANTS else "default"

    def render(self) -> str:
        css = self.classes("badge", f"badge--{self.variant}", self.extra_class)
        return f'<span class="{self.escape(css)}">{self.escape(self.text)}</span>'


def verification_badge(is_verified: bool) -> Badge:
    """Badge for a grower/dispensary verification flag."""
    return Badge("Verified", "success") if is_verified else Badge("Pending", "warning")
