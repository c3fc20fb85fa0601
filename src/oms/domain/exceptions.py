"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class IntegrityError(DomainException):
    """Stored data contradicts itself (not a user input problem)."""


class PersistenceError(DomainException):
    """The storage layer failed to read or write an entity."""

    def __init__(self, entity: str, entity_id: object, message: str) -> None:
        super().__init__(f"{entity} #{entity_id}: {message}")
        self.entity = entity
        self.entity_id = entity_id


# ---------------------------------------------------------------------------
# Order edition
# ---------------------------------------------------------------------------


class OrderAlreadyShippedError(ValidationError):
    """Lines cannot be added to an order that has been shipped."""


class DuplicateProductInOrderError(ValidationError):
    """The product is already present in an order without invoices."""


class DuplicateProductInInvoiceError(ValidationError):
    """The product is already present in the targeted invoice."""

    def __init__(self, invoice_number: str) -> None:
        super().__init__(
            f"You cannot add this product in invoice {invoice_number} "
            f"as it is already present"
        )
        self.invoice_number = invoice_number


class ProductOutOfStockError(ValidationError):
    """Not enough stock to sell the requested quantity."""


class MinimumQuantityViolationError(ValidationError):
    """Requested quantity is below the product (or variant) minimum."""

    def __init__(self, minimum: int) -> None:
        super().__init__(f'Minimum quantity of "{minimum}" must be added')
        self.minimum = minimum


class CartNotFoundError(IntegrityError):
    """The cart an order was placed from cannot be found."""


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


class CannotDeleteProductError(DomainException):
    """Storage refused to delete a product."""
