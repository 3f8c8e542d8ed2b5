"""Duplicate holding reconciliation.

Prior bugs and races left some users with several records for the same
asset. reconcile() merges each duplicate set into one record (the most
recently updated one survives) and describes the store changes needed;
apply_reconciliation() performs them. The pass is stateless and idempotent.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING

from portfolio_engine.services.portfolio.cost_basis import weighted_average_price
from portfolio_engine.services.portfolio.identity import holding_identity_key
from portfolio_engine.services.portfolio.valuation_types import (
    ZERO,
    HoldingState,
    MergeAction,
    ReconciliationResult,
    ReconciliationStats,
)
from portfolio_engine.services.repositories.exceptions import RepositoryError

if TYPE_CHECKING:
    from portfolio_engine.services.repositories.base import RecordStore

logger = logging.getLogger(__name__)

_EPOCH = datetime.min


def _recency(holding: HoldingState) -> tuple[datetime, str]:
    return (holding.updated_at or holding.created_at or _EPOCH, holding.id)


def _creation_order(holding: HoldingState) -> tuple[datetime, str]:
    return (holding.created_at or _EPOCH, holding.id)


def merge_group(group: list[HoldingState]) -> HoldingState:
    """Collapse a duplicate set into a single holding.

    The most recently updated record provides every non-numeric field and the
    current price; quantity is summed and the average price is the
    quantity-weighted mean across the set.
    """
    base = max(group, key=_recency)
    quantity = sum((holding.quantity for holding in group), ZERO)
    average_price = weighted_average_price(
        [(holding.quantity, holding.average_price) for holding in group],
        fallback=base.average_price,
    )
    return replace(
        base,
        quantity=quantity,
        average_price=average_price,
        invested_amount=quantity * average_price,
        current_value=quantity * base.current_price,
    )


def reconcile(holdings: list[HoldingState]) -> ReconciliationResult:
    """Group holdings by identity key and merge every duplicate set.

    Args:
        holdings: One user's holdings, in any order

    Returns:
        ReconciliationResult with the merged collection (newest first), every
        identity group, and one MergeAction per duplicate set
    """
    groups: dict[str, list[HoldingState]] = {}
    for holding in holdings:
        groups.setdefault(holding_identity_key(holding), []).append(holding)

    merged: list[HoldingState] = []
    actions: list[MergeAction] = []

    for key, group in groups.items():
        if len(group) == 1:
            merged.append(group[0])
            continue

        combined = merge_group(group)
        retired_ids = sorted(holding.id for holding in group if holding.id != combined.id)
        merged.append(combined)
        actions.append(
            MergeAction(survivor_id=combined.id, merged=combined, retired_ids=retired_ids)
        )
        logger.info(
            f"Merging {len(group)} duplicate holdings for {key} into {combined.id} "
            f"(quantity={combined.quantity}, average_price={combined.average_price})"
        )

    merged.sort(key=_creation_order, reverse=True)
    ordered_groups = sorted(
        (sorted(group, key=_creation_order, reverse=True) for group in groups.values()),
        key=lambda group: _creation_order(group[0]),
        reverse=True,
    )
    actions.sort(key=lambda action: action.survivor_id)

    return ReconciliationResult(merged=merged, groups=ordered_groups, actions=actions)


def apply_reconciliation(store: "RecordStore", result: ReconciliationResult) -> ReconciliationStats:
    """Write a reconciliation result back to the store.

    Each duplicate set is written with one merge_holdings() call, which updates
    the survivor, repoints the retired records' transactions and deletes the
    retired records together. A failed write is logged and skipped; the set is
    left exactly as it was and the next pass merges it again.
    """
    stats = ReconciliationStats()

    for action in result.actions:
        merged = action.merged
        try:
            written = store.merge_holdings(
                action.survivor_id,
                {
                    "quantity": merged.quantity,
                    "average_price": merged.average_price,
                    "invested_amount": merged.invested_amount,
                    "current_value": merged.current_value,
                },
                action.retired_ids,
            )
        except RepositoryError as e:
            logger.warning(f"Could not merge duplicates into {action.survivor_id}: {e}")
            stats.errors.append(f"merge {action.survivor_id}: {e}")
            continue

        if written is None:
            logger.warning(f"Survivor {action.survivor_id} vanished; skipping its duplicates")
            stats.errors.append(f"merge {action.survivor_id}: not found")
            continue

        stats.survivors_updated += 1
        stats.transactions_repointed += written.transactions_repointed
        stats.records_deleted += written.records_deleted
        stats.groups_merged += 1

    if result.actions:
        logger.info(
            f"Reconciliation applied: {stats.groups_merged} groups merged, "
            f"{stats.records_deleted} records deleted, "
            f"{stats.transactions_repointed} transactions repointed"
        )
    return stats
