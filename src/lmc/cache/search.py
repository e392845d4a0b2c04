"""Binary lookups against the index."""

from __future__ import annotations

from lmc.cache.models import BinaryEntry, MatchMode
from lmc.cache.store import IndexStore


class SearchEngine:
    """Answers "which module provides this binary?" from the index."""

    def __init__(self, store: IndexStore):
        self.store = store

    def search(
        self,
        bin_name: str,
        mode: MatchMode = MatchMode.EXACT,
        ignore_case: bool = False,
        distinct: bool = False,
    ) -> list[BinaryEntry]:
        """Search the index.

        Args:
            bin_name: Executable name to look for
            mode: EXACT for equal names, SIMILAR for substring matches
            ignore_case: Fold ASCII case (SIMILAR only)
            distinct: Drop repeated (root, code, bin) rows

        Returns:
            Matching entries in store order; empty if nothing matches
        """
        mode = MatchMode(mode)
        if mode is MatchMode.EXACT:
            results = self.store.search_exact(bin_name)
        else:
            results = self.store.search_similar(bin_name, ignore_case=ignore_case)

        if distinct:
            results = list(dict.fromkeys(results))
        return results
