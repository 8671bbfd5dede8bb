"""
Generic record form.

Listing, booking and profile forms are all "a handful of fields posted to one
action with a CSRF token", so they share this renderer. Concrete forms only
declare their action, fields and submit label.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Tuple

from ..base import Component
from .fields import CheckboxField, SelectField, TextAreaField, TextInputField
from .map_picker import MapPickerField
from .submit import SubmitButton


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    kind: str = "text"  # text | email | password | tel | number | date | textarea | select | checkbox
    required: bool = False
    options: Sequence[Tuple[str, str]] = field(default_factory=tuple)
    step: Optional[str] = None
    help_text: Optional[str] = None


class RecordForm(Component):
    """Render `fields` as a POST form; subclasses set the class attributes."""

    action: str = ""
    submit_label: str = "Save"
    css_class: str = "record-form"
    fields: Sequence[FieldSpec] = ()
    with_location: bool = False

    def __init__(
        self,
        csrf_token: str,
        *,
        values: Optional[Mapping[str, Any]] = None,
        action: Optional[str] = None,
        error: Optional[str] = None,
        hidden: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.csrf_token = csrf_token
        self.values = dict(values or {})
        if action is not None:
            self.action = action
        self.error = error
        self.hidden = dict(hidden or {})

    def _render_field(self, entry: FieldSpec) -> str:
        value = self.values.get(entry.name, "")
        if entry.kind == "select":
            return SelectField(entry.name, entry.label, required=entry.required, help_text=entry.help_text).render(
                entry.options, value=value, placeholder=None if entry.required else "-"
            )
        if entry.kind == "checkbox":
            return CheckboxField(entry.name, entry.label, help_text=entry.help_text).render(checked=bool(value))
        if entry.kind == "textarea":
            return TextAreaField(entry.name, entry.label, required=entry.required, help_text=entry.help_text).render(value)
        extra = {}
        if entry.kind == "number":
            extra = {"step": entry.step or "any", "min": "0"}
        return TextInputField(entry.name, entry.label, required=entry.required, help_text=entry.help_text).render(
            value=value, input_type=entry.kind, **extra
        )

    def render(self) -> str:
        body = "".join(self._render_field(entry) for entry in self.fields)
        if self.with_location:
            body += MapPickerField(lat=self.values.get("location_lat"), lng=self.values.get("location_long")).render()
        error_html = f'<div class="form-error" role="alert">{self.escape(self.error)}</div>' if self.error else ""
        attrs = self.attributes(method="post", action=self.action, class_=self.classes("card", self.css_class))
        hidden = "".join(
            f'<input type="hidden" name="{self.escape(k)}" value="{self.escape(v)}">' for k, v in self.hidden.items()
        )
        return f"""
        <form {attrs}>
            {self.csrf_input(self.csrf_token)}{hidden}
            {body}
            {error_html}
            <div class="form-actions">{SubmitButton(self.submit_label).render()}</div>
        </form>"""
