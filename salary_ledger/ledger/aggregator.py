"""
Balance aggregation over the three unpaid sources.

    total_owed = round_half_up(unpaid_hours * effective_rate + unpaid_permanent, cents)

Absent sources count as zero. When a user has several hourly-rate rows the
effective rate is chosen by a ``RateAggregation`` policy instead of whichever
row the database happens to return first.
"""
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Sequence, Union

from salary_ledger.core.config import settings
from salary_ledger.core.exceptions import ConfigurationError
from salary_ledger.core.validators import CENT, validate_user_id
from salary_ledger.ledger.schemas import BalanceTotals
from salary_ledger.ledger.store import LedgerStore, SourceSnapshot, ZERO


class RateAggregation(str, Enum):
    SUM = "sum"
    MAX = "max"
    FIRST = "first"  # oldest row

    @classmethod
    def parse(cls, value: Union[str, "RateAggregation"]) -> "RateAggregation":
        try:
            return cls(value.lower() if isinstance(value, str) else value)
        except ValueError:
            raise ConfigurationError(
                detail=f"Unknown rate aggregation policy: {value}",
                config_key="rate_aggregation",
                error_data={"allowed": [policy.value for policy in cls]}
            )


def to_cents(amount: Decimal) -> Decimal:
    """Round a money amount to cents, half up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def resolve_rate(rates: Sequence[Decimal], policy: RateAggregation) -> Decimal:
    """Reduce a user's hourly-rate rows (ordered by id) to one effective rate."""
    if not rates:
        return ZERO
    if policy is RateAggregation.SUM:
        return sum(rates, ZERO)
    if policy is RateAggregation.MAX:
        return max(rates)
    return rates[0]


class BalanceAggregator:
    def __init__(self, store: LedgerStore, rate_policy: Union[str, RateAggregation, None] = None):
        self.store = store
        self.rate_policy = RateAggregation.parse(rate_policy or settings.rate_aggregation)

    def compute_balance(self, user_id) -> BalanceTotals:
        """Compute a user's current unpaid totals without taking locks."""
        user_id = validate_user_id(user_id)
        return self.totals_from(self.store.read_aggregates(user_id))

    def totals_from(self, snapshot: SourceSnapshot) -> BalanceTotals:
        effective_rate = resolve_rate(snapshot.rates, self.rate_policy)
        return BalanceTotals(
            user_id=snapshot.user_id,
            unpaid_hours=snapshot.hours_total,
            effective_rate=effective_rate,
            unpaid_permanent=snapshot.permanent_total,
            total_owed=to_cents(snapshot.hours_total * effective_rate + snapshot.permanent_total),
        )
