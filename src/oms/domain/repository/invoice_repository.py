"""Abstract repository for Invoice aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from oms.domain.model.invoice import Invoice


class InvoiceRepository(ABC):

    @abstractmethod
    def get_by_id(self, invoice_id: int) -> Invoice | None:
        """Return an invoice by its ID, or None if not found."""

    @abstractmethod
    def list_for_order(self, order_id: int) -> list[Invoice]:
        """Return the invoices of an order, oldest first."""

    @abstractmethod
    def last_number(self) -> int:
        """Highest invoice number issued so far (0 when none)."""

    @abstractmethod
    def save(self, invoice: Invoice) -> None:
        """Persist a new or updated invoice, assigning an id to new ones."""

    @abstractmethod
    def delete(self, invoice_id: int) -> None:
        """Remove an invoice."""
