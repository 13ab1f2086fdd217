"""
Rate selection: pick exactly one pay rate from the candidates.
"""
from datetime import datetime
from typing import Iterable, Sequence
from haulsettle.core.exceptions import NoApplicableRateError
from haulsettle.models.pay_rate import PayRate

DEFAULT_PRECEDENCE = ("driver", "material", "customer", "default")


def _scope_name(rate: PayRate) -> str:
    scope = rate.scope_type
    return getattr(scope, "value", scope)


def _recency_key(rate: PayRate):
    # Newest first; id settles rates created in the same instant
    return (rate.created_at or datetime.min, rate.id or 0)


def select_rate(
    candidates: Iterable[PayRate],
    driver_id: str,
    precedence: Sequence[str] = DEFAULT_PRECEDENCE
) -> PayRate:
    """
    Choose the rate to apply.

    The first scope in ``precedence`` that has any candidate wins. Several
    candidates at that scope resolve to the most recently created one.
    Candidates whose scope is not listed are ignored. Raises
    NoApplicableRateError when nothing is left to choose from.
    """
    rank = {scope: position for position, scope in enumerate(precedence)}
    ranked = [rate for rate in candidates if _scope_name(rate) in rank]
    if not ranked:
        raise NoApplicableRateError(driver_id)

    best = min(rank[_scope_name(rate)] for rate in ranked)
    tied = [rate for rate in ranked if rank[_scope_name(rate)] == best]
    return max(tied, key=_recency_key)
