"""Payment strategies.

Payments are simulated: no gateway is called. A strategy either returns a
``Receipt`` or raises ``PaymentRejected``.
"""
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol

from exceptions import PaymentRejected, ValidationError

logger = logging.getLogger(__name__)

_EXPIRY_RE = re.compile(r"^([0-9]{2})/([0-9]{2}|[0-9]{4})$")
_CARD_NUMBER_RE = re.compile(r"[0-9]{13,19}")
_CVV_RE = re.compile(r"[0-9]{3,4}")


@dataclass(frozen=True)
class Receipt:
    """Result of a successful payment."""
    success: bool
    transaction_id: str
    method: str
    amount: Decimal
    last4: Optional[str] = None


class PaymentStrategy(Protocol):
    """A payment method the order service can charge through."""

    name: str

    async def process_payment(self, amount: Decimal, details: Dict[str, Any]) -> Receipt:
        """Charge ``amount``.

        Raises:
            PaymentRejected: If the payment cannot be taken
        """
        ...


def _require_positive(amount: Decimal) -> None:
    if amount is None or amount <= 0:
        raise PaymentRejected(f"Payment amount must be positive, got {amount}")


def _transaction_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


def luhn_valid(digits: str) -> bool:
    """Luhn checksum for a string of digits."""
    total = 0
    for i, ch in enumerate(reversed(digits)):
        n = int(ch)
        if i % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


class CashPaymentStrategy:
    name = "cash"

    async def process_payment(self, amount: Decimal, details: Dict[str, Any]) -> Receipt:
        _require_positive(amount)
        logger.info("Processing cash payment", extra={"amount": str(amount)})
        return Receipt(
            success=True,
            transaction_id=_transaction_id("CASH"),
            method=self.name,
            amount=amount,
        )


class CreditCardPaymentStrategy:
    """
    Simulated card payment.

    Expects ``card_number``, ``cvv`` and ``expiry_date`` (``MM/YY`` or
    ``MM/YYYY``) in the payment details.
    """
    name = "credit_card"

    def __init__(self, today=date.today):
        self._today = today

    async def process_payment(self, amount: Decimal, details: Dict[str, Any]) -> Receipt:
        _require_positive(amount)
        details = details or {}

        card_number = str(details.get("card_number") or "")
        cvv = str(details.get("cvv") or "")
        expiry_date = str(details.get("expiry_date") or "")

        missing = [
            field for field, value in (
                ("card_number", card_number),
                ("cvv", cvv),
                ("expiry_date", expiry_date),
            ) if not value
        ]
        if missing:
            raise PaymentRejected(f"Invalid credit card details: missing {', '.join(missing)}")

        digits = re.sub(r"[\s-]", "", card_number)
        if not _CARD_NUMBER_RE.fullmatch(digits) or not luhn_valid(digits):
            raise PaymentRejected("Invalid credit card details: bad card number")

        if not _CVV_RE.fullmatch(cvv):
            raise PaymentRejected("Invalid credit card details: bad cvv")

        self._check_expiry(expiry_date)

        logger.info("Processing credit card payment", extra={
            "amount": str(amount),
            "last4": digits[-4:]
        })
        return Receipt(
            success=True,
            transaction_id=_transaction_id("CC"),
            method=self.name,
            amount=amount,
            last4=digits[-4:],
        )

    def _check_expiry(self, expiry_date: str) -> None:
        match = _EXPIRY_RE.match(expiry_date.strip())
        if not match:
            raise PaymentRejected("Invalid credit card details: bad expiry date")

        month = int(match.group(1))
        year = int(match.group(2))
        if year < 100:
            year += 2000
        if not 1 <= month <= 12:
            raise PaymentRejected("Invalid credit card details: bad expiry date")

        today = self._today()
        if (year, month) < (today.year, today.month):
            raise PaymentRejected("Invalid credit card details: card expired")


PAYMENT_STRATEGIES = {
    CashPaymentStrategy.name: CashPaymentStrategy,
    CreditCardPaymentStrategy.name: CreditCardPaymentStrategy,
}


def get_payment_strategy(name: str) -> PaymentStrategy:
    """
    Build a strategy from its configured name.

    Raises:
        ValidationError: If no strategy has that name
    """
    try:
        return PAYMENT_STRATEGIES[name]()
    except KeyError:
        raise ValidationError(
            f"Unknown payment method '{name}'. "
            f"Available: {', '.join(sorted(PAYMENT_STRATEGIES))}"
        ) from None
