"""
Exceptions for Depotman.

All errors are StockError subclasses with a structured code for programmatic
handling. The subclass tells the caller what to do about it:

- ValidationError: fix the input, nothing was written
- ConflictError: re-read the product and retry
- NotFoundError: the referenced product does not exist
- PartialWriteError: materialized stock and ledger diverged
- ReportTimeoutError: aggregation exceeded its timeout, no result returned
"""

from decimal import Decimal
from typing import Any

GENERIC_MESSAGE = 'Opération échouée, veuillez réessayer'


class StockError(Exception):
    """
    Structured exception for stock operations.

    Usage:
        try:
            stock.apply(product.pk, 'remove', Decimal('5'), 'Casse', user)
        except StockError as e:
            if e.code == 'INSUFFICIENT_QUANTITY':
                print(f"Seulement {e.available} en stock")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {self.data!r})"

    @property
    def field(self) -> str | None:
        """Name of the offending input, when known."""
        return self.data.get('field')

    @property
    def available(self) -> Decimal:
        """Shortcut for data['available']."""
        return self.data.get('available', Decimal('0'))

    @property
    def requested(self) -> Decimal:
        """Shortcut for data['requested']."""
        return self.data.get('requested', Decimal('0'))

    @property
    def user_message(self) -> str:
        """Message safe to show to end users."""
        return self.message

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.user_message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class ValidationError(StockError):
    """Malformed or out-of-range input. Raised before any write."""

    _default_messages = {
        'INVALID_QUANTITY': 'Quantité invalide (doit être un nombre positif)',
        'INVALID_TYPE': "Type d'ajustement invalide",
        'INVALID_UNIT': 'Unité invalide pour ce produit',
        'FRACTIONAL_BARS': 'Les barres doivent être entières',
        'REASON_REQUIRED': 'La raison est obligatoire',
        'ACTOR_REQUIRED': "L'utilisateur est obligatoire",
        'INSUFFICIENT_QUANTITY': 'Quantité insuffisante en stock',
        'INVALID_RATE': 'Taux de change invalide (doit être positif)',
        'UNSUPPORTED_CURRENCY': 'Devise non prise en charge',
        'INVALID_MOVEMENT': 'Mouvement de stock invalide',
        'INVALID_BUCKETING': 'Regroupement invalide',
    }


class ConflictError(StockError):
    """Stock changed since the caller's last read. Re-read and retry."""

    _default_messages = {
        'CONCURRENT_MODIFICATION': 'Le stock a été modifié entre-temps, veuillez recharger',
        'STALE_PREVIOUS_QUANTITY': 'La quantité précédente ne correspond pas au dernier mouvement',
    }


class NotFoundError(StockError):
    """Referenced product does not exist."""

    _default_messages = {
        'PRODUCT_NOT_FOUND': 'Produit introuvable',
    }

    @property
    def user_message(self) -> str:
        return GENERIC_MESSAGE


class PartialWriteError(StockError):
    """Materialized raw stock and the ledger disagree."""

    _default_messages = {
        'LEDGER_MISMATCH': 'Le stock enregistré ne correspond pas au registre des mouvements',
    }

    @property
    def user_message(self) -> str:
        return GENERIC_MESSAGE


class ReportTimeoutError(StockError):
    """Report aggregation did not finish in time. No partial result."""

    _default_messages = {
        'REPORT_TIMEOUT': 'Le rapport a dépassé le délai autorisé',
    }

    @property
    def user_message(self) -> str:
        return GENERIC_MESSAGE
