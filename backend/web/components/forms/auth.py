"""
Sign-in, sign-up and profile forms.

The sign-up form carries an extra godown fieldset that agriverse.js shows
only when "Godown admin" is the selected role; the server validates the
godown fields for that role regardless of what the browser displayed.
"""

from typing import Any, Mapping, Optional

from backend.identity_access.domain import BUYER, FARMER, GODOWN_ADMIN

from ..base import Component
from .fields import CheckboxField, SelectField, TextInputField
from .map_picker import MapPickerField
from .record import FieldSpec, RecordForm
from .submit import SubmitButton

ROLE_OPTIONS = [(FARMER, "Farmer"), (BUYER, "Buyer"), (GODOWN_ADMIN, "Godown admin")]
LANGUAGE_OPTIONS = [("ur", "اردو (Urdu)"), ("en", "English")]

ERROR_MESSAGES = {
    "invalid_credentials": "Email or password is incorrect.",
    "email_taken": "An account with this email already exists.",
    "invalid_email": "Please enter a valid email address.",
    "password_too_short": "The password must be at least 6 characters long.",
    "invalid_role": "Please choose a role.",
    "csrf": "Your form expired. Please try again.",
    "empty_question": "Please type a question.",
    "chat_failed": "FarmGPT could not answer right now. Please try again later.",
    "upstream_failed": "FarmGPT could not answer right now. Please try again later.",
    "cart_empty": "Your cart is empty.",
    "quantity_exceeds_stock": "That is more than the available stock.",
    "already_member": "You are already a member of this cooperative.",
    "name_taken": "A cooperative with this name already exists.",
    "end_before_start": "The end date must be after the start date.",
    "request_not_pending": "This request has already been decided.",
}


def error_text(code: Optional[str]) -> Optional[str]:
    if not code:
        return None
    if code in ERROR_MESSAGES:
        return ERROR_MESSAGES[code]
    if code.startswith("missing_"):
        return f"Please fill in {code[len('missing_'):].replace('_', ' ')}."
    if code.startswith("invalid_"):
        return f"Please check {code[len('invalid_'):].replace('_', ' ')}."
    return code.replace("_", " ").capitalize() + "."


class LoginForm(Component):
    def __init__(self, csrf_token: str, *, email: str = "", error: Optional[str] = None) -> None:
        self.csrf_token = csrf_token
        self.email = email
        self.error = error

    def render(self) -> str:
        message = error_text(self.error)
        error_html = f'<div class="form-error" role="alert">{self.escape(message)}</div>' if message else ""
        return f"""
        <form method="post" action="/login" class="card auth-form">
            {self.csrf_input(self.csrf_token)}
            {TextInputField("email", "Email", required=True).render(value=self.email, input_type="email", autocomplete="email")}
            {TextInputField("password", "Password", required=True).render(input_type="password", autocomplete="current-password")}
            {error_html}
            <div class="form-actions">{SubmitButton("Sign in").render()}</div>
            <p class="text-muted">No account yet? <a href="/signup">Create one</a></p>
        </form>"""


class SignupForm(Component):
    def __init__(self, csrf_token: str, *, values: Optional[Mapping[str, Any]] = None, error: Optional[str] = None) -> None:
        self.csrf_token = csrf_token
        self.values = dict(values or {})
        self.error = error

    def _godown_fieldset(self) -> str:
        v = self.values
        hidden = "" if v.get("role") == GODOWN_ADMIN else " hidden"
        return f"""
            <fieldset class="godown-fields" data-role-section="{GODOWN_ADMIN}"{hidden}>
                <legend>Your godown</legend>
                {TextInputField("godown_name", "Godown name").render(value=v.get("godown_name"))}
                {TextInputField("city", "City").render(value=v.get("city"))}
                {TextInputField("address", "Address").render(value=v.get("address"))}
                {TextInputField("godown_phone", "Godown phone").render(value=v.get("godown_phone"), input_type="tel")}
                {TextInputField("total_capacity_kg", "Total capacity (kg)").render(value=v.get("total_capacity_kg"), input_type="number", step="any", min="0")}
                {TextInputField("storage_fee_per_day", "Storage fee per day (Rs)").render(value=v.get("storage_fee_per_day"), input_type="number", step="any", min="0")}
                {CheckboxField("temperature_control", "Temperature control").render(checked=bool(v.get("temperature_control")))}
                {CheckboxField("humidity_control", "Humidity control").render(checked=bool(v.get("humidity_control")))}
            </fieldset>"""

    def render(self) -> str:
        v = self.values
        message = error_text(self.error)
        error_html = f'<div class="form-error" role="alert">{self.escape(message)}</div>' if message else ""
        return f"""
        <form method="post" action="/signup" class="card auth-form signup-form">
            {self.csrf_input(self.csrf_token)}
            {TextInputField("full_name", "Full name", required=True).render(value=v.get("full_name"), autocomplete="name")}
            {TextInputField("email", "Email", required=True).render(value=v.get("email"), input_type="email", autocomplete="email")}
            {TextInputField("password", "Password", required=True, help_text="At least 6 characters").render(input_type="password", autocomplete="new-password")}
            {TextInputField("phone", "Phone").render(value=v.get("phone"), input_type="tel", autocomplete="tel")}
            {SelectField("role", "I am a", required=True).render(ROLE_OPTIONS, value=v.get("role") or FARMER)}
            {SelectField("language_preference", "Language").render(LANGUAGE_OPTIONS, value=v.get("language_preference"), placeholder="-")}
            {MapPickerField(lat=v.get("location_lat"), lng=v.get("location_long")).render()}
            {self._godown_fieldset()}
            {error_html}
            <div class="form-actions">{SubmitButton("Create account").render()}</div>
            <p class="text-muted">Already registered? <a href="/login">Sign in</a></p>
        </form>"""


class ProfileForm(RecordForm):
    submit_label = "Save profile"
    fields = [
        FieldSpec("full_name", "Full name", required=True),
        FieldSpec("email", "Email", "email", required=True),
        FieldSpec("phone", "Phone", "tel"),
        FieldSpec("language_preference", "Language", "select", options=LANGUAGE_OPTIONS),
    ]
