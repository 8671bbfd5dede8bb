# AgriVerse component system
# Pure Python components for server-rendered HTML

from .base import Component
from .layout import Layout
from .flash import FlashMessage, FlashStore, ToastStack
from .navigation import Navigation
from .cards import CardGrid, DataTable, ListingCard, MetaItem
from .forms import (
    FormField,
    TextAreaField,
    TextInputField,
    SelectField,
    CheckboxField,
    SubmitButton,
    PostButton,
    MapPickerField,
)

__all__ = [
    "Component",
    "Layout",
    "FlashMessage",
    "FlashStore",
    "ToastStack",
    "Navigation",
    "CardGrid",
    "DataTable",
    "ListingCard",
    "MetaItem",
    "FormField",
    "TextAreaField",
    "TextInputField",
    "SelectField",
    "CheckboxField",
    "SubmitButton",
    "PostButton",
    "MapPickerField",
]
