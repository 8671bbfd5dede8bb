"""
Base class for AgriVerse UI components.

Pages are assembled from small Python classes that return HTML strings. All
user-provided text passes through `escape`; nothing is rendered raw unless it
was produced by another component.
"""

from typing import Any, Optional
import html


class Component:
    """Base class for server-rendered components."""

    def render(self) -> str:
        raise NotImplementedError("Subclasses must implement render()")

    @staticmethod
    def escape(text: Optional[Any]) -> str:
        """HTML-escape `text`; None becomes an empty string."""
        return html.escape(str(text)) if text is not None else ""

    @staticmethod
    def classes(*args: str, **conditionals: bool) -> str:
        """Join CSS classes, adding each keyword class whose value is truthy.

        >>> Component.classes("btn", "btn-primary", disabled=True, active=False)
        'btn btn-primary disabled'
        """
        names = [a for a in args if a]
        names.extend(key.replace("_", "-") for key, value in conditionals.items() if value)
        return " ".join(names)

    @staticmethod
    def attributes(**attrs: Any) -> str:
        """Build an attribute string.

        `class_` -> `class`, `data_value` -> `data-value`; True renders a bare
        boolean attribute, False/None drop the attribute.
        """
        parts = []
        for key, value in attrs.items():
            name = key[:-1] if key.endswith("_") else key.replace("_", "-")
            if value is True:
                parts.append(name)
            elif value is not False and value is not None:
                parts.append(f'{name}="{html.escape(str(value))}"')
        return " ".join(parts)

    @staticmethod
    def csrf_input(token: str) -> str:
        return f'<input type="hidden" name="csrf_token" value="{html.escape(token or "")}">'

    @staticmethod
    def amount(value: Any, unit: str = "Rs") -> str:
        """Format a price for display, e.g. `Rs 1,250.00`."""
        try:
            return f"{unit} {float(value):,.2f}"
        except (TypeError, ValueError):
            return "-"

    @staticmethod
    def kg(value: Any) -> str:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return "-"
        return f"{number:,.0f} kg" if number.is_integer() else f"{number:,.2f} kg"
