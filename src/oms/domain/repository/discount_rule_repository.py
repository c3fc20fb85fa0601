"""Abstract repository for DiscountRule aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from oms.domain.model.discount import DiscountRule


class DiscountRuleRepository(ABC):

    @abstractmethod
    def get_by_id(self, rule_id: int) -> DiscountRule | None:
        """Return a discount rule by its ID, or None if not found."""

    @abstractmethod
    def save(self, rule: DiscountRule) -> None:
        """Persist a new or updated rule, assigning an id to new ones."""

    @abstractmethod
    def delete(self, rule_id: int) -> None:
        """Remove a rule."""
