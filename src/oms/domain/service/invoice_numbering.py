"""Domain service: sequential invoice numbers."""

from __future__ import annotations

from oms.domain.repository.invoice_repository import InvoiceRepository


class InvoiceNumbering:

    def __init__(self, invoice_repo: InvoiceRepository, start_number: int = 0) -> None:
        self._invoice_repo = invoice_repo
        self._start_number = start_number

    def next_number(self) -> int:
        """Next number in the shop-wide sequence, never below the start number."""
        return max(self._invoice_repo.last_number() + 1, self._start_number)
