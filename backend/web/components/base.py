"""
Base Component Class for PhenoFarm UI Components

This module provides the foundation for all server-rendered UI components.
Using pure Python for HTML generation keeps components type-checked and unit
testable without a template engine.
"""

from typing import Optional, Any
import html


class Component:
    """Base class for all UI components

    Subclasses implement `render()` and must escape every piece of
    user-supplied text via `escape()`.
    """

    def render(self) -> str:
        """Render the component as an HTML string

        Returns:
            str: HTML representation of the component
        """
        raise NotImplementedError("Subclasses must implement render()")

    def __str__(self) -> str:
        return self.render()

    @staticmethod
    def escape(text: Optional[Any]) -> str:
        """Escape HTML entities to prevent XSS attacks

        Args:
            text: Text to escape (can be None)

        Returns:
            str: Escaped text or empty string if None
        """
        return html.escape(str(text)) if text is not None else ""

    @staticmethod
    def classes(*args: str, **conditionals: bool) -> str:
        """Helper to build CSS class strings with conditional classes

        Example:
            >>> Component.classes("badge", "badge--success", muted=True, active=False)
            "badge badge--success muted"
        """
        classes = [c for c in args if c]
        classes.extend(key for key, value in conditionals.items() if value)
        return " ".join(classes)

    @staticmethod
    def attributes(**attrs: Any) -> str:
        """Build HTML attributes from keyword arguments

        Example:
            >>> Component.attributes(id="g1", data_status="pending", disabled=True)
            'id="g1" data-status="pending" disabled'
        """
        result = []
        for key, value in attrs.items():
            # Special-case trailing underscore for reserved names: class_ -> class, for_ -> for
            if key.endswith("_"):
                key = key[:-1]
            else:
                # Convert inner underscores to hyphens (data_value -> data-value)
                key = key.replace("_", "-")

            if value is True:
                result.append(key)
            elif value is not False and value is not None:
                result.append(f'{key}="{html.escape(str(value))}"')

        return " ".join(result)
