"""Shared farm resources: tool rental and truck hire.

Both follow the same shape: owners list and manage their resources, other
users book them. Booking flips the resource's availability; cancelling
flips it back. Owners cannot book their own resources.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping

from backend.marketplace.compensation import run_compensated
from backend.marketplace.errors import ValidationError
from backend.marketplace.pricing import positive_number, rental_cost, truck_cost
from backend.marketplace.records import RecordStore
from backend.marketplace.services.common import fetch_one, fetch_owned, location, optional_text, required_text

logger = logging.getLogger("agriverse.resources")

CANCELLED = "cancelled"


@dataclass
class ToolService:
    records: RecordStore

    def list_tools(self) -> List[dict]:
        return self.records.select("tools", order_by="created_at", desc=True)

    def list_bookings(self, renter_id: str) -> List[dict]:
        return self.records.select(
            "tool_bookings", where={"renter_id": renter_id}, neq={"payment_status": CANCELLED},
            order_by="created_at", desc=True,
        )

    def add_tool(self, owner_id: str, form: Mapping[str, Any]) -> dict:
        row = {
            "owner_id": owner_id,
            "tool_name": required_text(form, "tool_name"),
            "tool_type": required_text(form, "tool_type", max_len=80),
            "rent_price_per_day": positive_number(form.get("rent_price_per_day"), "rent_price_per_day"),
            "availability_status": "available",
            **location(form),
        }
        return self.records.insert("tools", row)

    def delete_tool(self, owner_id: str, tool_id: str) -> None:
        fetch_owned(self.records, "tools", tool_id, "owner_id", owner_id)
        self.records.delete("tools", {"tool_id": tool_id})

    def book(self, renter_id: str, tool_id: str, form: Mapping[str, Any]) -> dict:
        tool = fetch_one(self.records, "tools", tool_id)
        if str(tool.get("owner_id")) == str(renter_id):
            raise PermissionError("own_tool")
        if tool.get("availability_status") != "available":
            raise ValidationError("tool_not_available")
        start = form.get("start_date")
        end = form.get("end_date") or start
        cost = rental_cost(start, end, float(tool.get("rent_price_per_day") or 0))
        booking = {
            "tool_id": tool_id,
            "renter_id": renter_id,
            "start_date": str(start)[:10],
            "end_date": str(end)[:10],
            "total_cost": cost,
            "payment_status": "pending",
        }

        def _mark_rented(row: dict) -> dict:
            self.records.update("tools", {"tool_id": tool_id}, {"availability_status": "rented"})
            return row

        created = run_compensated(
            lambda: self.records.insert("tool_bookings", booking),
            _mark_rented,
            lambda row: self.records.delete("tool_bookings", {"booking_id": row["booking_id"]}),
            operation="book_tool",
        )
        logger.info("tool booked")
        return created

    def cancel_booking(self, renter_id: str, booking_id: str) -> None:
        booking = fetch_owned(self.records, "tool_bookings", booking_id, "renter_id", renter_id)
        if booking.get("payment_status") == CANCELLED:
            return
        self.records.update("tool_bookings", {"booking_id": booking_id}, {"payment_status": CANCELLED})
        self.records.update("tools", {"tool_id": booking["tool_id"]}, {"availability_status": "available"})


@dataclass
class TruckService:
    records: RecordStore

    def list_trucks(self) -> List[dict]:
        return self.records.select("trucks", order_by="created_at", desc=True)

    def list_bookings(self, renter_id: str) -> List[dict]:
        return self.records.select(
            "truck_bookings", where={"renter_id": renter_id}, neq={"payment_status": CANCELLED},
            order_by="created_at", desc=True,
        )

    @staticmethod
    def _fields(form: Mapping[str, Any]) -> dict:
        return {
            "vehicle_number": required_text(form, "vehicle_number", max_len=40),
            "driver_name": required_text(form, "driver_name"),
            "driver_phone": optional_text(form, "driver_phone", max_len=40),
            "route_from": optional_text(form, "route_from", max_len=120),
            "route_to": optional_text(form, "route_to", max_len=120),
            "capacity_kg": positive_number(form.get("capacity_kg"), "capacity_kg"),
            "cost_per_km": positive_number(form.get("cost_per_km"), "cost_per_km"),
            **location(form),
        }

    def add_truck(self, owner_id: str, form: Mapping[str, Any]) -> dict:
        return self.records.insert("trucks", {"owner_id": owner_id, "availability": "available", **self._fields(form)})

    def update_truck(self, owner_id: str, truck_id: str, form: Mapping[str, Any]) -> dict:
        truck = fetch_owned(self.records, "trucks", truck_id, "owner_id", owner_id)
        changes = self._fields(form)
        rows = self.records.update("trucks", {"truck_id": truck_id}, changes)
        return rows[0] if rows else {**truck, **changes}

    def delete_truck(self, owner_id: str, truck_id: str) -> None:
        fetch_owned(self.records, "trucks", truck_id, "owner_id", owner_id)
        self.records.delete("trucks", {"truck_id": truck_id})

    def book(self, renter_id: str, truck_id: str, form: Mapping[str, Any]) -> dict:
        truck = fetch_one(self.records, "trucks", truck_id)
        if str(truck.get("owner_id")) == str(renter_id):
            raise PermissionError("own_truck")
        if truck.get("availability") != "available":
            raise ValidationError("truck_not_available")
        km = positive_number(form.get("estimated_km"), "estimated_km")
        booking = {
            "truck_id": truck_id,
            "renter_id": renter_id,
            "pickup": required_text(form, "pickup"),
            "destination": required_text(form, "destination"),
            "estimated_km": km,
            "total_cost": truck_cost(km, float(truck.get("cost_per_km") or 0)),
            "payment_status": "pending",
        }

        def _mark_on_trip(row: dict) -> dict:
            self.records.update("trucks", {"truck_id": truck_id}, {"availability": "on_trip"})
            return row

        created = run_compensated(
            lambda: self.records.insert("truck_bookings", booking),
            _mark_on_trip,
            lambda row: self.records.delete("truck_bookings", {"booking_id": row["booking_id"]}),
            operation="book_truck",
        )
        logger.info("truck booked")
        return created

    def cancel_booking(self, renter_id: str, booking_id: str) -> None:
        booking = fetch_owned(self.records, "truck_bookings", booking_id, "renter_id", renter_id)
        if booking.get("payment_status") == CANCELLED:
            return
        self.records.update("truck_bookings", {"booking_id": booking_id}, {"payment_status": CANCELLED})
        self.records.update("trucks", {"truck_id": booking["truck_id"]}, {"availability": "available"})


__all__ = ["ToolService", "TruckService", "CANCELLED"]
