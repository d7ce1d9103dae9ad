# PhenoFarm Component System
# Pure Python Components for type-safe HTML generation

from .base import Component
from .badge import Badge, BADGE_VARIANTS, verification_badge
from .cards import Card, CardHeader, CardTitle, CardContent, CardFooter, StatCard
from .empty_state import EmptyState
from .layout import Layout
from .navigation import Navigation

__all__ = [
    "Component",
    "Badge",
    "BADGE_VARIANTS",
    "verification_badge",
    "Card",
    "CardHeader",
    "CardTitle",
    "CardContent",
    "CardFooter",
    "StatCard",
    "EmptyState",
    "Layout",
    "Navigation",
]
