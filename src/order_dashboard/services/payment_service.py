"""Payment calculations for the deposit-then-balance model.

An order is paid in up to four installments stored in ``payment_1`` ..
``payment_4`` with their dates in ``date_p1`` .. ``date_p4``. The first
installment is normally a 25% deposit; the rest settle the balance.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from order_dashboard.config.constants import (
    DEPOSIT_RATE,
    MAX_PAYMENT_INSTALLMENTS,
    PAYMENT_STATUS_DEPOSIT,
    PAYMENT_STATUS_NONE,
    PAYMENT_STATUS_PAID,
    PAYMENT_STATUS_PARTIAL,
    PAYMENT_TOLERANCE,
    PAYMENT_TYPES,
)
from order_dashboard.core.exceptions import InvalidRequestError
from order_dashboard.core.logger import setup_logger
from order_dashboard.db.models import Order
from order_dashboard.models.order import PaymentSummary

logger = setup_logger(__name__)

PAYMENT_SLOTS = [(f"payment_{i}", f"date_p{i}") for i in range(1, MAX_PAYMENT_INSTALLMENTS + 1)]


def _installments(order: Order) -> List[float]:
    return [float(getattr(order, amount_col) or 0) for amount_col, _ in PAYMENT_SLOTS]


def paid_amount(order: Order) -> float:
    """Sum of all recorded installments."""
    return round(sum(_installments(order)), 2)


def total_due(order: Order) -> float:
    return round(float(order.total_topay or 0), 2)


def outstanding_amount(order: Order) -> float:
    return max(0.0, round(total_due(order) - paid_amount(order), 2))


def deposit_required(order: Order) -> float:
    """Deposit stored on the order, or 25% of the total when none was set."""
    if order.deposit_25:
        return round(float(order.deposit_25), 2)
    return round(total_due(order) * DEPOSIT_RATE, 2)


def is_deposit_paid(order: Order) -> bool:
    return paid_amount(order) + PAYMENT_TOLERANCE >= deposit_required(order)


def is_fully_paid(order: Order) -> bool:
    return paid_amount(order) + PAYMENT_TOLERANCE >= total_due(order)


def next_payment_due(order: Order) -> float:
    """The deposit while nothing is paid yet, afterwards the remaining balance."""
    if is_fully_paid(order):
        return 0.0
    if paid_amount(order) <= 0:
        return min(deposit_required(order), outstanding_amount(order))
    return outstanding_amount(order)


def derive_payment_status(total: float, paid: float, payment_type: Optional[str] = None) -> str:
    """
    Payment status label for a paid amount.

    A payment recorded as a deposit, or any amount up to the deposit share,
    counts as "Deposit Paid"; more than that without settling the total is
    "Partial Payment".
    """
    if paid <= 0:
        return PAYMENT_STATUS_NONE
    if paid + PAYMENT_TOLERANCE >= total:
        return PAYMENT_STATUS_PAID
    if payment_type == "deposit" or paid <= total * DEPOSIT_RATE + PAYMENT_TOLERANCE:
        return PAYMENT_STATUS_DEPOSIT
    return PAYMENT_STATUS_PARTIAL


def default_payment_type(order: Order) -> str:
    return "deposit" if paid_amount(order) <= 0 else "final"


def record_payment(
    order: Order,
    amount: Optional[float] = None,
    payment_type: Optional[str] = None,
    paid_on: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Work out the column updates for a new installment.

    Args:
        order: Order receiving the payment
        amount: Amount paid; defaults to the deposit or the balance
        payment_type: "deposit", "final" or "additional"
        paid_on: Payment date, defaults to now

    Returns:
        Column updates to apply to the order

    Raises:
        InvalidRequestError: Unknown type, non-positive amount, overpayment,
            or all installment slots already used
    """
    payment_type = payment_type or default_payment_type(order)
    if payment_type not in PAYMENT_TYPES:
        raise InvalidRequestError(
            f"Invalid payment type '{payment_type}', expected one of {', '.join(PAYMENT_TYPES)}"
        )

    if total_due(order) > 0 and is_fully_paid(order):
        raise InvalidRequestError(f"Order {order.order_ref} is already fully paid")

    if amount is None:
        if payment_type == "deposit":
            amount = min(max(deposit_required(order) - paid_amount(order), 0.0), outstanding_amount(order))
        elif payment_type == "final":
            amount = outstanding_amount(order)
        else:
            raise InvalidRequestError("Amount is required for additional payments")

    amount = round(float(amount), 2)
    if amount <= 0:
        raise InvalidRequestError("Payment amount must be greater than zero")

    paid = paid_amount(order)
    total = total_due(order)
    if paid + amount > total + PAYMENT_TOLERANCE:
        raise InvalidRequestError(
            f"Payment of {amount:.2f} exceeds the outstanding balance of {outstanding_amount(order):.2f}"
        )

    slot = next(
        (cols for cols in PAYMENT_SLOTS if not getattr(order, cols[0])),
        None,
    )
    if slot is None:
        raise InvalidRequestError(
            f"All {MAX_PAYMENT_INSTALLMENTS} payment installments are already recorded"
        )

    amount_col, date_col = slot
    new_paid = round(paid + amount, 2)
    updates: Dict[str, Any] = {
        amount_col: amount,
        date_col: paid_on or datetime.utcnow(),
        "payment_status": derive_payment_status(total, new_paid, payment_type),
    }
    if payment_type == "deposit" and not order.deposit_25:
        updates["deposit_25"] = deposit_required(order)

    logger.info(
        f"Recording {payment_type} payment of {amount:.2f} on order {order.order_ref} "
        f"into {amount_col} ({new_paid:.2f}/{total:.2f} paid)"
    )
    return updates


def order_payment_summary(order: Order) -> Dict[str, Any]:
    """Derived payment figures for a single order."""
    summary = PaymentSummary(
        total_due=total_due(order),
        paid=paid_amount(order),
        outstanding=outstanding_amount(order),
        next_payment_due=next_payment_due(order),
        deposit_required=deposit_required(order),
        deposit_paid=is_deposit_paid(order),
        fully_paid=is_fully_paid(order),
        installments_used=sum(1 for value in _installments(order) if value),
    )
    return summary.model_dump()


def payment_summary(orders: Iterable[Order]) -> Dict[str, Any]:
    """
    Aggregate payment figures across orders.

    Returns:
        totalOutstanding: Sum of unpaid balances
        pendingDeposits: Orders with nothing paid yet
        pendingFinalPayments: Orders with the deposit in but a balance left
        fullyPaid: Orders settled in full
    """
    total_outstanding = 0.0
    pending_deposits = 0
    pending_final = 0
    fully_paid = 0

    for order in orders:
        total_outstanding += outstanding_amount(order)
        if is_fully_paid(order):
            fully_paid += 1
        elif paid_amount(order) <= 0:
            pending_deposits += 1
        else:
            pending_final += 1

    return {
        "totalOutstanding": round(total_outstanding, 2),
        "pendingDeposits": pending_deposits,
        "pendingFinalPayments": pending_final,
        "fullyPaid": fully_paid,
    }
