"""
Budget category vocabulary

Closed set of labels shared by budgets and expenses. The active set is
configurable (Settings.BUDGET_CATEGORIES); this module holds the default.
"""
from typing import Iterable, List


DEFAULT_BUDGET_CATEGORIES = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Utilities",
    "Healthcare",
    "Education",
    "Travel",
    "Other",
)


def category_order(known: Iterable[str], present: Iterable[str]) -> List[str]:
    """
    Stable ordering for the categories in `present`.

    Categories from the configured vocabulary come first, in vocabulary
    order; anything else (e.g. a label the ledger still carries after the
    vocabulary changed) follows, sorted by name.

    Example:
        >>> category_order(["Food & Dining", "Travel"], {"Travel", "Legacy", "Food & Dining"})
        ['Food & Dining', 'Travel', 'Legacy']
    """
    present_set = set(present)
    known_list = [c for c in known if c in present_set]
    seen = set(known_list)
    rest = sorted(c for c in present_set if c not in seen)
    return known_list + rest
