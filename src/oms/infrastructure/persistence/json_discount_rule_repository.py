"""JSON-file-backed implementation of DiscountRuleRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from oms.domain.model.discount import DiscountRule
from oms.domain.repository.discount_rule_repository import DiscountRuleRepository
from oms.infrastructure.persistence.json_collection import JsonCollection


class JsonDiscountRuleRepository(DiscountRuleRepository):

    def __init__(self, file_path: Path) -> None:
        self._records = JsonCollection(file_path, "DiscountRule")

    def get_by_id(self, rule_id: int) -> DiscountRule | None:
        raw = self._records.find(lambda r: r["id"] == rule_id)
        return self._records.decode(raw, self._to_domain) if raw is not None else None

    def save(self, rule: DiscountRule) -> None:
        if rule.id is None:
            rule.id = self._records.next_id()
        self._records.upsert(self._to_raw(rule))

    def delete(self, rule_id: int) -> None:
        self._records.remove(lambda r: r["id"] == rule_id)

    @staticmethod
    def _to_raw(rule: DiscountRule) -> dict:
        return {
            "id": rule.id,
            "name": rule.name,
            "valid_from": rule.valid_from.isoformat(),
            "valid_to": rule.valid_to.isoformat(),
            "customer_id": rule.customer_id,
            "quantity": rule.quantity,
            "quantity_per_user": rule.quantity_per_user,
            "minimum_amount_currency": rule.minimum_amount_currency,
            "reduction_currency": rule.reduction_currency,
            "reduction_percent": str(rule.reduction_percent),
            "free_shipping": rule.free_shipping,
            "active": rule.active,
        }

    @staticmethod
    def _to_domain(raw: dict) -> DiscountRule:
        return DiscountRule(
            id=raw["id"],
            name=raw["name"],
            valid_from=datetime.fromisoformat(raw["valid_from"]),
            valid_to=datetime.fromisoformat(raw["valid_to"]),
            customer_id=raw.get("customer_id"),
            quantity=raw.get("quantity", 1),
            quantity_per_user=raw.get("quantity_per_user", 1),
            minimum_amount_currency=raw.get("minimum_amount_currency"),
            reduction_currency=raw.get("reduction_currency"),
            reduction_percent=Decimal(raw.get("reduction_percent", "0")),
            free_shipping=raw.get("free_shipping", False),
            active=raw.get("active", True),
        )
