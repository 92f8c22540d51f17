"""Training strategies and the rule table that drives synchronization.

Each strategy is described once, as a row of :data:`STRATEGY_RULES`.
The synchronization engine reads the row for the selected strategy and
never branches on the enum itself, so the per-strategy behaviour lives
in exactly one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TrainingStrategy(str, Enum):
    """Policy governing collection lifecycle and per-item dedup/update."""

    RETRAIN_FROM_SCRATCH = "retrain_from_scratch"
    INCREMENTAL_ADD = "incremental_add"
    INCREMENTAL_UPDATE = "incremental_update"
    PROCESS_ONLY = "process_only"


class ExistingItemAction(str, Enum):
    """What to do with an item whose id is already in the store."""

    OVERWRITE = "overwrite"
    SKIP = "skip"
    UPDATE = "update"


@dataclass(frozen=True)
class StrategyRule:
    """One row of the strategy table.

    Attributes
    ----------
    drop_collection:
        Clear the destination collection before the per-item loop.
    vector_operations:
        Embed and upsert items at all.  ``False`` means chunking only.
    check_existing:
        Look each id up in the store before deciding what to do.
    on_existing:
        Action for ids that already exist (only meaningful with
        ``check_existing``).
    """

    drop_collection: bool
    vector_operations: bool
    check_existing: bool
    on_existing: ExistingItemAction


STRATEGY_RULES: dict[TrainingStrategy, StrategyRule] = {
    TrainingStrategy.RETRAIN_FROM_SCRATCH: StrategyRule(
        drop_collection=True,
        vector_operations=True,
        check_existing=False,
        on_existing=ExistingItemAction.OVERWRITE,
    ),
    TrainingStrategy.INCREMENTAL_ADD: StrategyRule(
        drop_collection=False,
        vector_operations=True,
        check_existing=True,
        on_existing=ExistingItemAction.SKIP,
    ),
    TrainingStrategy.INCREMENTAL_UPDATE: StrategyRule(
        drop_collection=False,
        vector_operations=True,
        check_existing=True,
        on_existing=ExistingItemAction.UPDATE,
    ),
    TrainingStrategy.PROCESS_ONLY: StrategyRule(
        drop_collection=False,
        vector_operations=False,
        check_existing=False,
        on_existing=ExistingItemAction.SKIP,
    ),
}


def rule_for(strategy: TrainingStrategy | str) -> StrategyRule:
    """Return the rule row for *strategy* (enum member or its string value)."""
    return STRATEGY_RULES[TrainingStrategy(strategy)]
