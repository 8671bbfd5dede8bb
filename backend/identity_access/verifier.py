"""
Credential verifier: email/password against the `users` collection.

Why:
    Login and signup are the only places that touch password hashes. Both
    return an `Identity` without the hash so the session layer never sees it.

Behavior:
    - `authenticate` compares emails case-insensitively and raises
      `AuthError("invalid_credentials")` for unknown emails and wrong
      passwords alike.
    - `register` validates every field before the first write. Signing up as
      `godown_admin` also creates the admin's godown; if that insert fails the
      new user row is removed again.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from backend.identity_access.domain import ALLOWED_ROLES, GODOWN_ADMIN, LANGUAGES, Identity
from backend.identity_access.passwords import hash_password, needs_rehash, verify_password
from backend.marketplace.compensation import run_compensated
from backend.marketplace.errors import AuthError, ValidationError
from backend.marketplace.pricing import positive_number
from backend.marketplace.records import RecordStore

logger = logging.getLogger("agriverse.auth")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


def normalize_email(value: Any) -> str:
    email = str(value or "").strip().lower()
    if not email or not _EMAIL_RE.match(email):
        raise ValidationError("invalid_email")
    return email


def _required(value: Any, field: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationError(f"missing_{field}")
    return text


def _optional_float(value: Any, field: str) -> Optional[float]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid_{field}")


@dataclass
class GodownDraft:
    name: str
    city: str
    address: str
    total_capacity_kg: float
    storage_fee_per_day: float
    phone: Optional[str] = None
    temperature_control: bool = False
    humidity_control: bool = False
    location_latitude: Optional[float] = None
    location_longitude: Optional[float] = None

    @classmethod
    def from_form(cls, data: Mapping[str, Any]) -> "GodownDraft":
        return cls(
            name=_required(data.get("godown_name"), "godown_name"),
            city=_required(data.get("city"), "city"),
            address=_required(data.get("address"), "address"),
            total_capacity_kg=positive_number(data.get("total_capacity_kg"), "total_capacity_kg"),
            storage_fee_per_day=positive_number(data.get("storage_fee_per_day"), "storage_fee_per_day"),
            phone=(str(data.get("godown_phone") or "").strip() or None),
            temperature_control=bool(data.get("temperature_control")),
            humidity_control=bool(data.get("humidity_control")),
            location_latitude=_optional_float(data.get("location_lat"), "location_lat"),
            location_longitude=_optional_float(data.get("location_long"), "location_long"),
        )

    def to_row(self, admin_id: str) -> dict:
        return {
            "admin_id": admin_id,
            "name": self.name,
            "city": self.city,
            "address": self.address,
            "phone": self.phone,
            "total_capacity_kg": self.total_capacity_kg,
            "available_capacity_kg": self.total_capacity_kg,
            "storage_fee_per_day": self.storage_fee_per_day,
            "temperature_control": self.temperature_control,
            "humidity_control": self.humidity_control,
            "location_latitude": self.location_latitude,
            "location_longitude": self.location_longitude,
        }


class CredentialVerifier:
    def __init__(self, records: RecordStore) -> None:
        self._records = records

    def _find_user(self, email: str) -> Optional[dict]:
        rows = self._records.select("users", where={"email": email}, limit=1)
        return rows[0] if rows else None

    def authenticate(self, email: Any, password: Any) -> Identity:
        try:
            normalized = normalize_email(email)
        except ValidationError:
            raise AuthError("invalid_credentials")
        row = self._find_user(normalized)
        if not row or not verify_password(str(password or ""), row.get("password_hash")):
            logger.info("login rejected")
            raise AuthError("invalid_credentials")
        if needs_rehash(row["password_hash"]):
            self._records.update("users", {"id": row["id"]}, {"password_hash": hash_password(str(password))})
        return Identity.from_row(row)

    def register(
        self,
        *,
        full_name: Any,
        email: Any,
        password: Any,
        role: Any,
        phone: Any = None,
        language_preference: Any = None,
        location_lat: Any = None,
        location_long: Any = None,
        godown: Optional[Mapping[str, Any]] = None,
    ) -> Identity:
        name = _required(full_name, "full_name")
        normalized = normalize_email(email)
        secret = str(password or "")
        if len(secret) < MIN_PASSWORD_LENGTH:
            raise ValidationError("password_too_short")
        role_value = str(role or "").strip()
        if role_value not in ALLOWED_ROLES:
            raise ValidationError("invalid_role")
        lang = str(language_preference or "").strip() or None
        if lang is not None and lang not in LANGUAGES:
            raise ValidationError("invalid_language_preference")
        draft = GodownDraft.from_form(godown or {}) if role_value == GODOWN_ADMIN else None

        if self._find_user(normalized) is not None:
            raise AuthError("email_taken")

        row = {
            "full_name": name,
            "email": normalized,
            "password_hash": hash_password(secret),
            "phone": (str(phone or "").strip() or None),
            "role": role_value,
            "language_preference": lang,
            "location_lat": _optional_float(location_lat, "location_lat"),
            "location_long": _optional_float(location_long, "location_long"),
        }
        if draft is None:
            created = self._records.insert("users", row)
        else:
            def _create_godown(user: dict) -> dict:
                self._records.insert("godowns", draft.to_row(user["id"]))
                return user

            created = run_compensated(
                lambda: self._records.insert("users", row),
                _create_godown,
                lambda user: self._records.delete("users", {"id": user["id"]}),
                operation="godown_admin_signup",
            )
        logger.info("registered user role=%s", role_value)
        return Identity.from_row(created)


__all__ = ["CredentialVerifier", "GodownDraft", "normalize_email", "MIN_PASSWORD_LENGTH"]
