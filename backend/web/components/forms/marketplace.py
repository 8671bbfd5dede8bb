"""
Concrete listing and booking forms.
"""

from typing import Any, List, Mapping, Optional, Sequence

from backend.marketplace.services.waste import WASTE_TYPES

from .record import FieldSpec, RecordForm


class StorageRequestForm(RecordForm):
    action = "/storage/requests"
    submit_label = "Send request"

    def __init__(self, csrf_token: str, godowns: Sequence[Mapping[str, Any]], **kwargs: Any) -> None:
        super().__init__(csrf_token, **kwargs)
        options = [
            (str(g.get("godown_id")), f"{g.get('name')} ({g.get('city') or '-'}) - Rs {g.get('storage_fee_per_day') or 0}/day")
            for g in godowns
        ]
        self.fields = [
            FieldSpec("godown_id", "Godown", "select", required=True, options=options),
            FieldSpec("product_name", "Product", required=True),
            FieldSpec("quantity_kg", "Quantity (kg)", "number", required=True),
            FieldSpec("price_per_kg", "Asking price per kg", "number", required=True),
            FieldSpec("start_date", "From", "date", required=True),
            FieldSpec("end_date", "Until", "date", required=True),
            FieldSpec("temperature_required", "Temperature (optional)"),
            FieldSpec("humidity_required", "Humidity (optional)"),
        ]


class GodownForm(RecordForm):
    submit_label = "Update godown"
    fields = [
        FieldSpec("total_capacity_kg", "Total capacity (kg)", "number", required=True),
        FieldSpec("available_capacity_kg", "Available capacity (kg)", "number", required=True),
        FieldSpec("storage_fee_per_day", "Fee per day (Rs)", "number", required=True),
        FieldSpec("temperature_control", "Temperature control", "checkbox"),
        FieldSpec("humidity_control", "Humidity control", "checkbox"),
    ]


class ToolForm(RecordForm):
    action = "/marketplace/tools"
    submit_label = "List tool"
    with_location = True
    fields = [
        FieldSpec("tool_name", "Tool name", required=True),
        FieldSpec("tool_type", "Type", required=True, help_text="e.g. tractor, harvester, sprayer"),
        FieldSpec("rent_price_per_day", "Rent per day (Rs)", "number", required=True),
    ]


class ToolBookingForm(RecordForm):
    submit_label = "Book"
    css_class = "booking-form"
    fields = [
        FieldSpec("start_date", "From", "date", required=True),
        FieldSpec("end_date", "Until", "date"),
    ]


class TruckForm(RecordForm):
    action = "/marketplace/trucks"
    submit_label = "List truck"
    with_location = True
    fields = [
        FieldSpec("vehicle_number", "Vehicle number", required=True),
        FieldSpec("driver_name", "Driver name", required=True),
        FieldSpec("driver_phone", "Driver phone", "tel"),
        FieldSpec("route_from", "Usual route from"),
        FieldSpec("route_to", "Usual route to"),
        FieldSpec("capacity_kg", "Capacity (kg)", "number", required=True),
        FieldSpec("cost_per_km", "Cost per km (Rs)", "number", required=True),
    ]


class TruckBookingForm(RecordForm):
    submit_label = "Book"
    css_class = "booking-form"
    fields = [
        FieldSpec("pickup", "Pickup", required=True),
        FieldSpec("destination", "Destination", required=True),
        FieldSpec("estimated_km", "Distance (km)", "number", required=True),
    ]


WASTE_OPTIONS: List = list(WASTE_TYPES.items())


class WasteForm(RecordForm):
    action = "/marketplace/waste"
    submit_label = "List waste"
    with_location = True
    fields = [
        FieldSpec("waste_type", "Waste type", "select", required=True, options=WASTE_OPTIONS),
        FieldSpec("quantity_kg", "Quantity (kg)", "number", required=True),
        FieldSpec("price", "Price (Rs)", "number", required=True),
        FieldSpec("suggested_use", "Suggested use"),
        FieldSpec("description", "Description", "textarea"),
    ]


class CooperativeForm(RecordForm):
    action = "/dashboard/cooperatives"
    submit_label = "Create cooperative"
    fields = [
        FieldSpec("name", "Name", required=True),
        FieldSpec("region", "Region"),
        FieldSpec("description", "Description", "textarea"),
    ]


class WarechainItemForm(RecordForm):
    action = "/dashboard/warechain/items"
    submit_label = "Add to inventory"
    fields = [
        FieldSpec("product_name", "Product", required=True),
        FieldSpec("quantity_kg", "Quantity (kg)", "number", required=True),
        FieldSpec("price_per_kg", "Price per kg (Rs)", "number", required=True),
        FieldSpec("godown_name", "Stored at"),
        FieldSpec("city", "City"),
    ]


class AddToCartForm(RecordForm):
    action = "/buyer/cart"
    submit_label = "Add to cart"
    css_class = "cart-form"

    def __init__(self, csrf_token: str, item_id: str, stock_kg: Optional[float] = None, **kwargs: Any) -> None:
        super().__init__(csrf_token, hidden={"item_id": item_id}, **kwargs)
        help_text = f"Up to {stock_kg:g} kg; empty buys everything" if stock_kg is not None else None
        self.fields = [FieldSpec("quantity_kg", "Quantity (kg)", "number", help_text=help_text)]
