"""
Resolver — turns raw findings into the list shown on the project page.

Deduplicates by reason code, orders by priority then weight, and caps the
list length.
"""

from typing import Dict, Iterable, List, Union

from attention_kernel.models.attention import AttentionItem, Priority, ReasonCode

MAX_ITEMS = 6
UNKNOWN_PRIORITY_RANK = 999

PRIORITY_RANK: Dict[Priority, int] = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


def priority_rank(priority: Union[Priority, str, None]) -> int:
    return PRIORITY_RANK.get(priority, UNKNOWN_PRIORITY_RANK)


def _replaces(incoming: AttentionItem, keeper: AttentionItem) -> bool:
    """
    Whether a later finding displaces the one already kept for its reason code.

    Only upgrades displace: CRITICAL always, HIGH unless the keeper is
    CRITICAL. A later HIGH does replace an earlier HIGH.
    """
    if incoming.priority == Priority.CRITICAL:
        return True
    return incoming.priority == Priority.HIGH and keeper.priority != Priority.CRITICAL


def deduplicate(findings: Iterable[AttentionItem]) -> List[AttentionItem]:
    """One item per reason code, kept in first-seen position."""
    kept: Dict[ReasonCode, AttentionItem] = {}
    for item in findings:
        keeper = kept.get(item.reason_code)
        if keeper is None or _replaces(item, keeper):
            kept[item.reason_code] = item
    return list(kept.values())


def sort_items(items: Iterable[AttentionItem]) -> List[AttentionItem]:
    """Priority rank ascending, then sort weight descending. Stable."""
    return sorted(
        items,
        key=lambda item: (priority_rank(item.priority), -(item.sort_weight or 0)),
    )


def resolve(findings: Iterable[AttentionItem], max_items: int = MAX_ITEMS) -> List[AttentionItem]:
    """Deduplicate, sort and truncate raw findings."""
    return sort_items(deduplicate(findings))[:max_items]
