"""
Card components.

A `Card` is a bordered surface with optional header and footer. The small
building blocks (`CardHeader`, `CardTitle`, `CardContent`, `CardFooter`) can be
composed freely; `StatCard` is the dashboard figure used on the admin overview.
"""

from __future__ import annotations

from typing import Optional, Union

from ..base import Component

Renderable = Union[str, Component]


def _html(part: Optional[Renderable]) -> str:
    """Render a child: components render themselves, strings are trusted HTML."""
    if part is None:
        return ""
    if isinstance(part, Component):
        return part.render()
    return str(part)


class CardTitle(Component):
    def __init__(self, text: str) -> None:
        self.text = text

    def render(self) -> str:
        return f'<h3 class="card__title">{self.escape(self.text)}</h3>'


class CardHeader(Component):
    def __init__(self, content: Renderable, *, extra_class: str = "") -> None:
        self.content = content
        self.extra_class = extra_class

    def render(self) -> str:
        css = self.classes("card__header", self.extra_class)
        return f'<div class="{self.escape(css)}">{_html(self.content)}</div>'


class CardContent(Component):
    def __init__(self, content: Renderable, *, extra_class: str = "") -> None:
        self.content = content
        self.extra_class = extra_class

    def render(self) -> str:
        css = self.classes("card__content", self.extra_class)
        return f'<div class="{self.escape(css)}">{_html(self.content)}</div>'


class CardFooter(Component):
    def __init__(self, content: Renderable, *, extra_class: str = "") -> None:
        self.content = content
        self.extra_class = extra_class

    def render(self) -> str:
        css = self.classes("card__footer", self.extra_class)
        return f'<div class="{self.escape(css)}">{_html(self.content)}</div>'


class Card(Component):
    """
    Renders a card surface.

    Args:
        content: Body markup or component; wrapped in CardContent unless it
            already is one.
        header: Optional header; a plain string becomes a CardTitle.
        footer: Optional footer markup or component.
        extra_class: Additional CSS classes for the outer element.
        card_id: Optional id attribute for anchors.
    """

    def __init__(
        self,
        content: Renderable,
        *,
        header: Optional[Renderable] = None,
        footer: Optional[Renderable] = None,
        extra_class: str = "",
        card_id: Optional[str] = None,
    ) -> None:
        self.content = content
        self.header = header
        self.footer = footer
        self.extra_class = extra_class
        self.card_id = card_id

    def render(self) -> str:
        header_html = ""
        if self.header is not None:
            header = self.header
            if isinstance(header, str):
                header = CardHeader(CardTitle(header))
            elif not isinstance(header, CardHeader):
                header = CardHeader(header)
            header_html = header.render()

        body = self.content if isinstance(self.content, CardContent) else CardContent(self.content)

        footer_html = ""
        if self.footer is not None:
            footer = self.footer if isinstance(self.footer, CardFooter) else CardFooter(self.footer)
            footer_html = footer.render()

        attrs = self.attributes(class_=self.classes("card", self.extra_class), id=self.card_id)
        return f"<div {attrs}>{header_html}{body.render()}{footer_html}</div>"


class StatCard(Component):
    """Dashboard figure: a label above a large value."""

    def __init__(self, label: str, value: object, *, tone: str = "default") -> None:
        self.label = label
        self.value = value
        self.tone = tone

    def render(self) -> str:
        inner = (
            f'<p class="stat-card__label">{self.escape(self.label)}</p>'
            f'<p class="stat-card__value stat-card__value--{self.escape(self.tone)}">{self.escape(self.value)}</p>'
        )
        return Card(inner, extra_class="stat-card").render()
