"""Profile edits for the signed-in user."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from backend.identity_access.domain import LANGUAGES, Identity
from backend.identity_access.verifier import normalize_email
from backend.marketplace.errors import AuthError, ValidationError
from backend.marketplace.records import RecordStore
from backend.marketplace.services.common import optional_text, required_text


@dataclass
class ProfileService:
    records: RecordStore

    def update(self, identity: Identity, form: Mapping[str, Any]) -> Identity:
        """Persist the edit and return the refreshed identity for the session."""
        email = normalize_email(form.get("email"))
        if email != identity.email:
            clash = self.records.select("users", where={"email": email}, limit=1)
            if clash and str(clash[0].get("id")) != identity.id:
                raise AuthError("email_taken")
        lang = optional_text(form, "language_preference", max_len=5)
        if lang is not None and lang not in LANGUAGES:
            raise ValidationError("invalid_language_preference")
        changes = {
            "full_name": required_text(form, "full_name"),
            "email": email,
            "phone": optional_text(form, "phone", max_len=40),
            "language_preference": lang,
        }
        rows = self.records.update("users", {"id": identity.id}, changes)
        if not rows:
            raise LookupError("users_not_found")
        return Identity.from_row(rows[0])
