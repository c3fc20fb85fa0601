"""A JSON file holding a list of records, shared by the JSON repositories.

Also hosts the small codecs for the value objects stored in records.
Decimals are written as strings so no precision is lost.
"""

from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable, TypeVar

from oms.domain.exceptions import PersistenceError, ValidationError
from oms.domain.model.value_objects import Money, TaxedAmount

Record = dict
Predicate = Callable[[Record], bool]
T = TypeVar("T")

# What a malformed record raises while being matched or decoded.
DECODE_ERRORS = (KeyError, TypeError, ValueError, InvalidOperation, ValidationError)


class JsonCollection:

    def __init__(self, file_path: Path, entity: str) -> None:
        self._file_path = file_path
        self._entity = entity
        self._ensure_file()

    # --- Queries --------------------------------------------------------------

    def load(self) -> list[Record]:
        try:
            return json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(self._entity, "*", f"cannot read {self._file_path}: {exc}") from exc

    def find(self, predicate: Predicate) -> Record | None:
        for raw in self.load():
            if self._matches(predicate, raw):
                return raw
        return None

    def filter(self, predicate: Predicate) -> list[Record]:
        return [raw for raw in self.load() if self._matches(predicate, raw)]

    def decode(self, raw: Record, codec: Callable[[Record], T]) -> T:
        """Build a domain object from *raw*; a malformed record raises PersistenceError."""
        try:
            return codec(raw)
        except DECODE_ERRORS as exc:
            raise self._malformed(raw, exc) from exc

    def decode_all(self, records: list[Record], codec: Callable[[Record], T]) -> list[T]:
        return [self.decode(raw, codec) for raw in records]

    def next_id(self) -> int:
        records = self.load()
        if not records:
            return 1
        return max(r["id"] for r in records) + 1

    # --- Mutations ------------------------------------------------------------

    def upsert(self, record: Record, same: Predicate | None = None) -> None:
        """Replace the record matching *same* (by id by default), otherwise append."""
        if same is None:
            same = lambda raw: raw["id"] == record["id"]  # noqa: E731
        records = self.load()

        # Upsert: replace if exists, otherwise append
        replaced = False
        for i, raw in enumerate(records):
            if same(raw):
                records[i] = record
                replaced = True
                break
        if not replaced:
            records.append(record)

        self.persist(records, entity_id=record.get("id", "*"))

    def remove(self, predicate: Predicate) -> int:
        records = self.load()
        kept = [raw for raw in records if not predicate(raw)]
        if len(kept) != len(records):
            self.persist(kept)
        return len(records) - len(kept)

    def persist(self, records: list[Record], entity_id: object = "*") -> None:
        try:
            self._file_path.write_text(
                json.dumps(records, indent=2) + "\n", encoding="utf-8"
            )
        except OSError as exc:
            raise PersistenceError(self._entity, entity_id, f"cannot write {self._file_path}: {exc}") from exc

    def _matches(self, predicate: Predicate, raw: Record) -> bool:
        try:
            return predicate(raw)
        except DECODE_ERRORS as exc:
            raise self._malformed(raw, exc) from exc

    def _malformed(self, raw: object, exc: Exception) -> PersistenceError:
        entity_id = raw.get("id", "*") if isinstance(raw, dict) else "*"
        return PersistenceError(
            self._entity, entity_id, f"malformed record in {self._file_path}: {exc!r}"
        )

    # --- File helpers ---------------------------------------------------------

    def _ensure_file(self) -> None:
        if self._file_path.exists():
            return
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(self._entity, "*", f"cannot create {self._file_path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Codecs
# ---------------------------------------------------------------------------


def money_to_raw(money: Money | None) -> str | None:
    return str(money.amount) if money is not None else None


def money_from_raw(raw: str | None, currency: str) -> Money | None:
    return Money.of(raw, currency) if raw is not None else None


def taxed_to_raw(amount: TaxedAmount) -> dict:
    return {
        "tax_excl": str(amount.tax_excl.amount),
        "tax_incl": str(amount.tax_incl.amount),
        "currency": amount.currency,
    }


def taxed_from_raw(raw: dict) -> TaxedAmount:
    currency = raw["currency"]
    return TaxedAmount(
        Money.of(raw["tax_excl"], currency),
        Money.of(raw["tax_incl"], currency),
    )


def decimal_or_none(raw: str | None) -> Decimal | None:
    return Decimal(raw) if raw is not None else None
