"""Isolated heuristics that can be revisited without touching the pipeline."""

from typing import Optional

from conversion_fixer.domain.entities import SymbolInfo, SymbolKind


def assignment_target_exists(is_bare_identifier: bool, symbol: Optional[SymbolInfo]) -> bool:
    """
    Decide whether an assignment's left side is an addressable existing value.

    True only for a bare name that resolves to something other than a
    property. The mapping engine may then write member by member into the
    existing value instead of constructing a new one.

    This is a speculative special case: attribute targets (``obj.attr``)
    and unresolved names always report False, even when the attribute is
    a plain field holding a live instance.
    """
    if not is_bare_identifier or symbol is None:
        return False
    return symbol.kind != SymbolKind.PROPERTY
