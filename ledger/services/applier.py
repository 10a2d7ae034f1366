"""
Transaction applier — the balance rules shared by every store.

Both stores run the same read-check-write sequence as one atomic unit:

  1. Load the account, constrained to the caller (missing -> AccountNotFoundError)
  2. Reject a debit larger than the balance (InsufficientFundsError, no mutation)
  3. delta = +amount for a credit, -amount for a debit
  4. balance += delta, updated_at = now
  5. Append the transaction record
  6. Commit both together

How a store makes that sequence atomic differs (a database transaction with
a row lock, or an in-process lock), but the decisions themselves live here
so the two stores cannot drift apart.
"""

import uuid
from decimal import Decimal, InvalidOperation

from ledger.domain import TransactionType
from ledger.exceptions import InsufficientFundsError, InvalidRequestError

CENT = Decimal("0.01")

# Numeric(18, 2): 16 digits before the point
MAX_AMOUNT = Decimal("9999999999999999.99")


def validate_money(value, field: str = "Amount", allow_zero: bool = False) -> Decimal:
    """
    Coerce a money value to a Decimal with exactly two decimal places.

    Both stores keep money at cent precision, so anything finer would be
    rounded on one side of the ledger and not the other.

    Raises:
        InvalidRequestError: If the value is not a finite number, has
            sub-cent precision, is out of range, or is not positive
            (not negative when allow_zero is set).
    """
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidRequestError(f"{field} must be a number")

    if not amount.is_finite():
        raise InvalidRequestError(f"{field} must be a finite number")
    if abs(amount) > MAX_AMOUNT:
        raise InvalidRequestError(f"{field} is out of range (max {MAX_AMOUNT})")

    quantized = amount.quantize(CENT)
    if quantized != amount:
        raise InvalidRequestError(f"{field} cannot have more than two decimal places")

    if allow_zero:
        if quantized < 0:
            raise InvalidRequestError(f"{field} cannot be negative")
    elif quantized <= 0:
        raise InvalidRequestError(f"{field} must be greater than zero")
    return quantized


def normalize_type(value: str | None) -> str:
    """Trim and lowercase a transaction type, rejecting anything but credit/debit."""
    normalized = (value or "").strip().lower()
    if normalized not in TransactionType.ALL:
        raise InvalidRequestError(
            f"Transaction type must be 'credit' or 'debit', got {value!r}"
        )
    return normalized


def signed_delta(
    account_id: uuid.UUID,
    balance: Decimal,
    amount: Decimal,
    txn_type: str,
) -> Decimal:
    """
    Return the balance change for a transaction, or refuse the debit.

    Raises:
        InsufficientFundsError: If a debit is larger than `balance`.
    """
    if txn_type == TransactionType.DEBIT:
        if amount > balance:
            raise InsufficientFundsError(
                account_id=account_id,
                requested=amount,
                available=balance,
            )
        return -amount
    return amount


def resolve_currency(requested: str | None, account_currency: str) -> str:
    """A blank requested currency falls back to the account's own."""
    if requested is None or not requested.strip():
        return account_currency
    return requested.strip().upper()


def payment_description(
    description: str | None,
    payee_name: str | None,
    payee_account_number: str | None,
) -> str:
    """
    Description for a payment debit.

    An explicit description wins; otherwise it is derived from the payee.
    """
    if description is not None and description.strip():
        return description
    if payee_name is not None and payee_name.strip():
        return f"Payment to {payee_name} ({payee_account_number or ''})"
    return "Payment"
