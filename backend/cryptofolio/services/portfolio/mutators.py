# backend/cryptofolio/services/portfolio/mutators.py
"""
Invariant-preserving mutators for a Portfolio held in memory.

Every mutator validates its input before touching the portfolio, so a
failed call leaves the portfolio exactly as it was. Successful calls
recompute `total_cost_basis` and bump `updated_at`.

Merge rule:
    Adding a purchase for an asset that already has a holding merges the
    two lots: amounts are summed and the unit cost becomes the
    amount-weighted average

        new_cost = (old_amount * old_cost + added_amount * added_cost)
                   / (old_amount + added_amount)

    The merged unit cost is rounded half-up to 8 decimal places to fit the
    unit_cost column, so the merged cost basis may differ from the exact
    sum of the two lots by less than one unit of that precision per unit
    held (1 @ 1 + 2 @ 2 merges to 3 @ 1.66666667, cost basis 5.00000001).

    The existing note is kept unless a new one is supplied.

Bounds:
    Amounts and unit costs (including merged ones) must fit Numeric(24, 8)
    and the portfolio's total cost basis must not exceed
    MAX_TOTAL_COST_BASIS; larger values are rejected before any change.

Persistence is the store's job; these functions do no I/O.
"""

import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP

from cryptofolio.services.constants import (
    MAX_HOLDING_QUANTITY,
    MAX_PORTFOLIO_NAME_LENGTH,
    MAX_TOTAL_COST_BASIS,
    SHARE_PRECISION,
    ZERO,
)
from cryptofolio.services.exceptions import HoldingNotFoundError, ValidationError
from cryptofolio.services.portfolio.types import (
    Holding,
    HoldingInput,
    HoldingPatch,
    Portfolio,
    utcnow,
)

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("asset_id", "name", "symbol", "amount", "unit_cost")
_POSITIVE_MESSAGE = "amount/price must be positive"


# =============================================================================
# MUTATORS
# =============================================================================

def add_holding(portfolio: Portfolio, holding_input: HoldingInput) -> Portfolio:
    """
    Record a purchase, merging into an existing holding for the same asset.

    Raises:
        ValidationError: "missing field: <field>" for an absent/blank field,
            "amount/price must be positive" for amount or unit_cost <= 0,
            or a (merged) value beyond the storable bounds
    """
    for field_name in _REQUIRED_FIELDS:
        value = getattr(holding_input, field_name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"missing field: {field_name}", field=field_name)

    if holding_input.amount <= ZERO or holding_input.unit_cost <= ZERO:
        raise ValidationError(_POSITIVE_MESSAGE, field="amount")
    _check_quantity("amount", holding_input.amount)
    _check_quantity("unit_cost", holding_input.unit_cost)

    asset_id = holding_input.asset_id.strip()
    existing = portfolio.find_by_asset(asset_id)

    if existing is not None:
        merged_amount = existing.amount + holding_input.amount
        merged_cost = weighted_unit_cost(
            existing.amount, existing.unit_cost,
            holding_input.amount, holding_input.unit_cost,
        )
        _check_quantity("amount", merged_amount)
        _check_total(portfolio, existing, merged_amount * merged_cost)
        existing.amount = merged_amount
        existing.unit_cost = merged_cost
        if holding_input.note is not None:
            existing.note = holding_input.note
        logger.debug(f"Merged purchase into holding {existing.id} ({existing.symbol})")
    else:
        _check_total(portfolio, None, holding_input.amount * holding_input.unit_cost)
        holding = Holding(
            id=str(uuid.uuid4()),
            asset_id=asset_id,
            name=holding_input.name.strip(),
            symbol=holding_input.symbol.strip().upper(),
            amount=holding_input.amount,
            unit_cost=holding_input.unit_cost,
            acquired_at=holding_input.acquired_at or utcnow(),
            note=holding_input.note,
        )
        portfolio.holdings.append(holding)
        logger.debug(f"Appended holding {holding.id} ({holding.symbol})")

    _touch(portfolio)
    return portfolio


def update_holding(portfolio: Portfolio, holding_id: str, patch: HoldingPatch) -> Portfolio:
    """
    Overwrite amount, unit cost and/or note of one holding.

    Raises:
        HoldingNotFoundError: holding_id is not in this portfolio
        ValidationError: a provided amount or unit_cost is <= 0 or beyond
            the storable bounds
    """
    holding = portfolio.find_holding(holding_id)
    if holding is None:
        raise HoldingNotFoundError(holding_id)

    if patch.amount is not None and patch.amount <= ZERO:
        raise ValidationError(_POSITIVE_MESSAGE, field="amount")
    if patch.unit_cost is not None and patch.unit_cost <= ZERO:
        raise ValidationError(_POSITIVE_MESSAGE, field="unit_cost")

    new_amount = holding.amount if patch.amount is None else patch.amount
    new_cost = holding.unit_cost if patch.unit_cost is None else patch.unit_cost
    _check_quantity("amount", new_amount)
    _check_quantity("unit_cost", new_cost)
    _check_total(portfolio, holding, new_amount * new_cost)

    if patch.amount is not None:
        holding.amount = patch.amount
    if patch.unit_cost is not None:
        holding.unit_cost = patch.unit_cost
    if patch.note is not None:
        holding.note = patch.note or None

    _touch(portfolio)
    return portfolio


def remove_holding(portfolio: Portfolio, holding_id: str) -> Portfolio:
    """
    Delete one holding. Removing the last one leaves an empty portfolio.

    Raises:
        HoldingNotFoundError: holding_id is not in this portfolio
    """
    holding = portfolio.find_holding(holding_id)
    if holding is None:
        raise HoldingNotFoundError(holding_id)

    portfolio.holdings.remove(holding)
    _touch(portfolio)
    return portfolio


def rename_portfolio(portfolio: Portfolio, new_name: str | None) -> Portfolio:
    """
    Raises:
        ValidationError: name is empty, blank or too long
    """
    name = (new_name or "").strip()
    if not name:
        raise ValidationError("missing field: name", field="name")
    if len(name) > MAX_PORTFOLIO_NAME_LENGTH:
        raise ValidationError(
            f"name must be at most {MAX_PORTFOLIO_NAME_LENGTH} characters",
            field="name",
        )

    portfolio.display_name = name
    portfolio.updated_at = utcnow()
    return portfolio


# =============================================================================
# INVARIANT HELPERS
# =============================================================================

def weighted_unit_cost(
        amount_a: Decimal,
        cost_a: Decimal,
        amount_b: Decimal,
        cost_b: Decimal,
) -> Decimal:
    """
    Amount-weighted average of two lots, rounded half-up to 8 decimal
    places (the unit_cost column scale). The result times the summed amount
    may therefore differ slightly from the exact cost of the two lots.
    """
    total_amount = amount_a + amount_b
    average = (amount_a * cost_a + amount_b * cost_b) / total_amount
    return average.quantize(SHARE_PRECISION, rounding=ROUND_HALF_UP)


def _check_quantity(field_name: str, value: Decimal) -> None:
    if value > MAX_HOLDING_QUANTITY:
        raise ValidationError(
            f"{field_name} must be at most {MAX_HOLDING_QUANTITY}",
            field=field_name,
        )


def _check_total(portfolio: Portfolio, replaced: Holding | None, new_cost_basis: Decimal) -> None:
    """Reject a change that would push the total cost basis past the bound."""
    total = portfolio.total_cost_basis + new_cost_basis
    if replaced is not None:
        total -= replaced.cost_basis
    if total > MAX_TOTAL_COST_BASIS:
        raise ValidationError(
            f"total cost basis must be at most {MAX_TOTAL_COST_BASIS}",
            field="amount",
        )


def recompute_totals(portfolio: Portfolio) -> Portfolio:
    portfolio.total_cost_basis = portfolio.compute_cost_basis()
    return portfolio


def is_consistent(portfolio: Portfolio) -> bool:
    """True when the cached total matches a fresh recomputation."""
    return portfolio.total_cost_basis == portfolio.compute_cost_basis()


def _touch(portfolio: Portfolio) -> None:
    recompute_totals(portfolio)
    portfolio.updated_at = utcnow()
