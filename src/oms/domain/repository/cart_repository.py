"""Abstract repository for Cart aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from oms.domain.model.cart import Cart


class CartRepository(ABC):

    @abstractmethod
    def get_by_order_id(self, order_id: int) -> Cart | None:
        """Return the cart an order was placed from, or None."""

    @abstractmethod
    def save(self, cart: Cart) -> None:
        """Persist a new or updated cart."""
