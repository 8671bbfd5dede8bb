"""
Form field components.

Small wrappers that keep label, input, help and error markup identical
across every listing and booking form.
"""

from typing import Optional, Sequence, Tuple

from ..base import Component


class FormField(Component):
    """Wrapper that renders label, input slot, help, and error text."""

    def __init__(
        self,
        field_id: str,
        label: str,
        *,
        required: bool = False,
        help_text: Optional[str] = None,
        error_text: Optional[str] = None,
    ) -> None:
        self.field_id = field_id
        self.label = label
        self.required = required
        self.help_text = help_text
        self.error_text = error_text

    def _aria(self) -> dict:
        return {
            "aria_describedby": f"{self.field_id}-help" if self.help_text else None,
            "aria_invalid": "true" if self.error_text else "false",
        }

    def render(self, input_html: str) -> str:
        required_marker = '<span class="form-required" aria-hidden="true">*</span>' if self.required else ""
        help_html = (
            f'<p class="form-help" id="{self.field_id}-help">{self.escape(self.help_text)}</p>'
            if self.help_text
            else ""
        )
        error_html = (
            f'<p class="form-error" role="alert">{self.escape(self.error_text)}</p>' if self.error_text else ""
        )
        label_attrs = self.attributes(for_=self.field_id, class_="form-label")
        return (
            f'<div class="{self.classes("form-field", form_field__error=bool(self.error_text))}">'
            f"<label {label_attrs}>{self.escape(self.label)}{required_marker}</label>"
            f"{input_html}{help_html}{error_html}"
            "</div>"
        )


class TextInputField(FormField):
    """Single-line input; `input_type` covers text, email, password, number and date."""

    def render(
        self,
        *,
        value: object = "",
        input_type: str = "text",
        autocomplete: Optional[str] = None,
        placeholder: Optional[str] = None,
        **attrs: object,
    ) -> str:
        input_attrs = self.attributes(
            id=self.field_id,
            name=self.field_id,
            type=input_type,
            value=None if input_type == "password" else ("" if value is None else value),
            autocomplete=autocomplete,
            placeholder=placeholder,
            required=self.required,
            class_="form-input",
            **self._aria(),
            **attrs,
        )
        return super().render(f"<input {input_attrs}>")


class TextAreaField(FormField):
    def render(self, value: object = "", rows: int = 3, **attrs: object) -> str:
        textarea_attrs = self.attributes(
            id=self.field_id,
            name=self.field_id,
            rows=str(rows),
            required=self.required,
            class_="form-input",
            **self._aria(),
            **attrs,
        )
        return super().render(f"<textarea {textarea_attrs}>{self.escape(value or '')}</textarea>")


class SelectField(FormField):
    """Dropdown built from (value, label) pairs."""

    def render(self, options: Sequence[Tuple[str, str]], *, value: object = "", placeholder: Optional[str] = None) -> str:
        selected = "" if value is None else str(value)
        opts = []
        if placeholder:
            opts.append(f'<option value="">{self.escape(placeholder)}</option>')
        for opt_value, opt_label in options:
            attrs = self.attributes(value=opt_value, selected=(str(opt_value) == selected))
            opts.append(f"<option {attrs}>{self.escape(opt_label)}</option>")
        select_attrs = self.attributes(
            id=self.field_id, name=self.field_id, required=self.required, class_="form-input", **self._aria()
        )
        return super().render(f"<select {select_attrs}>{''.join(opts)}</select>")


class CheckboxField(FormField):
    def render(self, *, checked: bool = False) -> str:
        attrs = self.attributes(id=self.field_id, name=self.field_id, type="checkbox", value="on", checked=bool(checked))
        return super().render(f"<input {attrs}>")
