"""
Buttons: the primary submit button and one-click POST actions.
"""

from typing import Optional

from ..base import Component


class SubmitButton(Component):
    """Primary form action button."""

    def __init__(self, label: str, *, variant: str = "primary", disabled: bool = False) -> None:
        self.label = label
        self.variant = variant
        self.disabled = disabled

    def render(self) -> str:
        attrs = self.attributes(type="submit", class_=f"btn btn-{self.variant}", disabled=self.disabled)
        return f"<button {attrs}>{self.escape(self.label)}</button>"


class PostButton(Component):
    """A single button wrapped in its own CSRF-protected POST form.

    Used for row actions (approve, delete, book, join) where a full form
    would be noise. `confirm` adds a browser confirmation via agriverse.js.
    """

    def __init__(
        self,
        action: str,
        label: str,
        csrf_token: str,
        *,
        variant: str = "secondary",
        confirm: Optional[str] = None,
        hidden: Optional[dict] = None,
    ) -> None:
        self.action = action
        self.label = label
        self.csrf_token = csrf_token
        self.variant = variant
        self.confirm = confirm
        self.hidden = hidden or {}

    def render(self) -> str:
        form_attrs = self.attributes(method="post", action=self.action, class_="inline-form", data_confirm=self.confirm)
        extra = "".join(
            f'<input type="hidden" name="{self.escape(k)}" value="{self.escape(v)}">' for k, v in self.hidden.items()
        )
        return (
            f"<form {form_attrs}>{self.csrf_input(self.csrf_token)}{extra}"
            f"{SubmitButton(self.label, variant=self.variant).render()}</form>"
        )
