"""
Form components for AgriVerse.

Basic building blocks (fields, buttons, map picker) plus the concrete forms
used by the page routes.
"""

from .fields import CheckboxField, FormField, SelectField, TextAreaField, TextInputField
from .submit import PostButton, SubmitButton
from .map_picker import MapPickerField
from .record import FieldSpec, RecordForm
from .auth import LoginForm, ProfileForm, SignupForm, error_text
from .marketplace import (
    AddToCartForm,
    CooperativeForm,
    GodownForm,
    StorageRequestForm,
    ToolBookingForm,
    ToolForm,
    TruckBookingForm,
    TruckForm,
    WarechainItemForm,
    WasteForm,
)

__all__ = [
    "FormField",
    "TextInputField",
    "TextAreaField",
    "SelectField",
    "CheckboxField",
    "SubmitButton",
    "PostButton",
    "MapPickerField",
    "FieldSpec",
    "RecordForm",
    "LoginForm",
    "SignupForm",
    "ProfileForm",
    "error_text",
    "AddToCartForm",
    "CooperativeForm",
    "GodownForm",
    "StorageRequestForm",
    "ToolBookingForm",
    "ToolForm",
    "TruckBookingForm",
    "TruckForm",
    "WarechainItemForm",
    "WasteForm",
]
