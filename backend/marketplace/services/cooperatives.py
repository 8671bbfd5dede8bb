"""Farmer cooperatives: create, join, leave."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Set

from backend.marketplace.compensation import run_compensated
from backend.marketplace.errors import AuthError
from backend.marketplace.records import RecordStore
from backend.marketplace.services.common import fetch_one, optional_text, required_text


@dataclass
class CooperativeService:
    records: RecordStore

    def list_cooperatives(self) -> List[dict]:
        return self.records.select("cooperatives", order_by="name")

    def memberships(self, farmer_id: str) -> Set[str]:
        rows = self.records.select("cooperative_members", where={"farmer_id": farmer_id})
        return {str(r.get("coop_id")) for r in rows}

    def member_count(self, coop_id: str) -> int:
        return len(self.records.select("cooperative_members", where={"coop_id": coop_id}))

    def create(self, farmer_id: str, form: Mapping[str, Any]) -> dict:
        name = required_text(form, "name", max_len=120)
        if self.records.select("cooperatives", where={"name": name}, limit=1):
            raise AuthError("name_taken")
        coop = {
            "name": name,
            "description": optional_text(form, "description"),
            "region": optional_text(form, "region", max_len=120),
            "created_by": farmer_id,
        }

        def _join_creator(row: dict) -> dict:
            self.records.insert("cooperative_members", {"coop_id": row["coop_id"], "farmer_id": farmer_id})
            return row

        return run_compensated(
            lambda: self.records.insert("cooperatives", coop),
            _join_creator,
            lambda row: self.records.delete("cooperatives", {"coop_id": row["coop_id"]}),
            operation="create_cooperative",
        )

    def join(self, farmer_id: str, coop_id: str) -> dict:
        fetch_one(self.records, "cooperatives", coop_id)
        if coop_id in self.memberships(farmer_id):
            raise AuthError("already_member")
        return self.records.insert("cooperative_members", {"coop_id": coop_id, "farmer_id": farmer_id})

    def leave(self, farmer_id: str, coop_id: str) -> bool:
        return self.records.delete("cooperative_members", {"coop_id": coop_id, "farmer_id": farmer_id}) > 0
