"""Tests for the simulated payment strategies."""
from datetime import date
from decimal import Decimal

import pytest

from exceptions import PaymentRejected, ValidationError
from services.payment import (
    CashPaymentStrategy,
    CreditCardPaymentStrategy,
    get_payment_strategy,
    luhn_valid,
)

VALID_CARD = {"card_number": "4242 4242 4242 4242", "cvv": "123", "expiry_date": "12/30"}


def fixed_today():
    return date(2026, 6, 15)


@pytest.mark.asyncio
async def test_cash_payment_returns_receipt():
    receipt = await CashPaymentStrategy().process_payment(Decimal("7.00"), {})

    assert receipt.success is True
    assert receipt.method == "cash"
    assert receipt.amount == Decimal("7.00")
    assert receipt.transaction_id.startswith("CASH-")


@pytest.mark.asyncio
async def test_cash_payment_rejects_non_positive_amount():
    with pytest.raises(PaymentRejected):
        await CashPaymentStrategy().process_payment(Decimal("0"), {})


@pytest.mark.asyncio
async def test_credit_card_payment_returns_last4():
    strategy = CreditCardPaymentStrategy(today=fixed_today)

    receipt = await strategy.process_payment(Decimal("12.99"), VALID_CARD)

    assert receipt.method == "credit_card"
    assert receipt.last4 == "4242"
    assert receipt.transaction_id.startswith("CC-")


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["card_number", "cvv", "expiry_date"])
async def test_credit_card_missing_field_is_rejected(missing):
    details = {k: v for k, v in VALID_CARD.items() if k != missing}

    with pytest.raises(PaymentRejected, match=missing):
        await CreditCardPaymentStrategy(today=fixed_today).process_payment(Decimal("5"), details)


@pytest.mark.asyncio
@pytest.mark.parametrize("field,value", [
    ("card_number", "4242 4242 4242 4241"),
    ("card_number", "1234"),
    ("cvv", "12"),
    ("cvv", "abc"),
    ("cvv", "\u0661\u0662\u0663"),
    ("card_number", "4242 4242 4242 424\u00b2"),
    ("expiry_date", "13/30"),
    ("expiry_date", "2030-12"),
    ("expiry_date", "05/26"),
])
async def test_credit_card_invalid_field_is_rejected(field, value):
    details = dict(VALID_CARD, **{field: value})

    with pytest.raises(PaymentRejected):
        await CreditCardPaymentStrategy(today=fixed_today).process_payment(Decimal("5"), details)


@pytest.mark.asyncio
async def test_credit_card_expiring_this_month_is_accepted():
    details = dict(VALID_CARD, expiry_date="06/2026")

    receipt = await CreditCardPaymentStrategy(today=fixed_today).process_payment(Decimal("5"), details)

    assert receipt.success is True


def test_luhn():
    assert luhn_valid("4111111111111111")
    assert not luhn_valid("4111111111111112")


def test_get_payment_strategy_by_name():
    assert isinstance(get_payment_strategy("cash"), CashPaymentStrategy)
    assert isinstance(get_payment_strategy("credit_card"), CreditCardPaymentStrategy)

    with pytest.raises(ValidationError):
        get_payment_strategy("bitcoin")
