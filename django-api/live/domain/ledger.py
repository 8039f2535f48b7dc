"""Earnings records derived from the request ledger."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from live.domain.models import SongRequest, Transaction, TransactionType
from live.domain.value_objects import Money


def transaction_details(request: SongRequest) -> str:
    if request.is_tip_only:
        return f"From {request.requester_name}"
    return f"{request.song_title} by {request.requester_name}"


def split_transactions(request: SongRequest, now: datetime) -> list[Transaction]:
    """Split a request's payment into Request and Tip earnings lines.

    Song requests always produce a Request line for ``amount_paid - tip`` and
    a Tip line when the tip is positive. Tip-only requests produce a single
    Tip line.
    """
    details = transaction_details(request)

    def line(kind: TransactionType, amount: Money) -> Transaction:
        return Transaction(
            id=uuid4(),
            performer_id=request.performer_id,
            request_id=request.id,
            type=kind,
            amount=amount,
            details=details,
            created_at=now,
        )

    if request.is_tip_only:
        return [line(TransactionType.TIP, request.amount_paid)]

    lines = [line(TransactionType.REQUEST, request.amount_paid - request.tip)]
    if request.tip:
        lines.append(line(TransactionType.TIP, request.tip))
    return lines


@dataclass(frozen=True)
class EarningsSummary:
    """Payout figures for the performer."""

    transactions: tuple[Transaction, ...]
    gross: Money
    commission: Money
    net: Money


def summarize_earnings(
    transactions: Iterable[Transaction], commission_rate: Decimal
) -> EarningsSummary:
    ordered = sorted(transactions, key=lambda t: t.created_at, reverse=True)
    gross = sum((t.amount for t in ordered), Money.zero())
    commission = Money.of(gross.amount * commission_rate)
    return EarningsSummary(
        transactions=tuple(ordered),
        gross=gross,
        commission=commission,
        net=gross - commission,
    )
