"""
EmptyState component.

Shown in place of a list or table when there is nothing to display.
"""

from __future__ import annotations

from typing import Optional

from .base import Component


class EmptyState(Component):
    """
    Args:
        title: Headline (escaped).
        description: Explanatory text (escaped).
        action_label: Optional call-to-action label; requires `action_href`.
        action_href: Target of the call-to-action link.
        icon_html: Optional trusted icon markup.
    """

    def __init__(
        self,
        title: str,
        description: str,
        *,
        action_label: Optional[str] = None,
        action_href: Optional[str] = None,
        icon_html: Optional[str] = None,
        extra_class: str = "",
    ) -> None:
        self.title = title
        self.description = description
        self.action_label = action_label
        self.action_href = action_href
        self.icon_html = icon_html
        self.extra_class = extra_class

    def render(self) -> str:
        icon = (
            f'<div class="empty-state__icon" aria-hidden="true">{self.icon_html}</div>'
            if self.icon_html
            else ""
        )
        action = ""
        if self.action_label and self.action_href:
            action = (
                f'<a class="btn btn-primary empty-state__action" href="{self.escape(self.action_href)}">'
                f"{self.escape(self.action_label)}</a>"
            )
        css = self.classes("empty-state", self.extra_class)
        return (
            f'<div class="{self.escape(css)}">'
            f"{icon}"
            f'<h3 class="empty-state__title">{self.escape(self.title)}</h3>'
            f'<p class="empty-state__description">{self.escape(self.description)}</p>'
            f"{action}"
            "</div>"
        )
