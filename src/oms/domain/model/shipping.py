"""Carriers, addresses and the tax calculator they produce."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from oms.domain.model.value_objects import Money

HUNDRED = Decimal("100")


class TaxComputationMethod(Enum):
    COMBINE = 0          # rates are added, then applied once
    ONE_AFTER_ANOTHER = 1  # each rate applies on the previously taxed amount


@dataclass(frozen=True)
class TaxCalculator:
    rates: tuple[Decimal, ...] = ()
    computation_method: TaxComputationMethod = TaxComputationMethod.COMBINE

    def taxes_amount(self, amount: Money) -> list[Money]:
        """Tax due for each rate, in order, for a tax excluded *amount*."""
        if self.computation_method is TaxComputationMethod.COMBINE:
            return [amount * (rate / HUNDRED) for rate in self.rates]

        taxes: list[Money] = []
        base = amount
        for rate in self.rates:
            tax = base * (rate / HUNDRED)
            taxes.append(tax)
            base = base + tax
        return taxes

    def total_tax(self, amount: Money) -> Money:
        total = Money.zero(amount.currency)
        for tax in self.taxes_amount(amount):
            total = total + tax
        return total

    def add_taxes(self, amount: Money) -> Money:
        return amount + self.total_tax(amount)

    @staticmethod
    def single(rate: Decimal) -> TaxCalculator:
        return TaxCalculator(rates=(rate,) if rate else ())


@dataclass
class Address:
    id: int
    customer_id: int
    country_iso: str


@dataclass
class Carrier:
    """A shipping method.

    ``shipping_cost`` is tax excluded, in the shop default currency.
    ``tax_rates`` maps a country ISO code to the ordered rates applied
    to shipping for deliveries in that country.
    """

    id: int
    name: str
    shipping_cost: Decimal = Decimal("0")
    free_shipping_threshold: Decimal | None = None
    tax_rates: dict[str, tuple[Decimal, ...]] = field(default_factory=dict)
    computation_method: TaxComputationMethod = TaxComputationMethod.COMBINE

    def tax_calculator(self, address: Address | None) -> TaxCalculator:
        rates = self.tax_rates.get(address.country_iso, ()) if address else ()
        return TaxCalculator(rates=tuple(rates), computation_method=self.computation_method)
