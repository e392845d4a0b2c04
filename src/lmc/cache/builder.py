"""Full cache rebuild: crawl every module root and replace the index."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor

from lmc.cache.crawler import ModuleTreeCrawler
from lmc.cache.expander import VariableStore
from lmc.cache.models import BuildReport, CrawlReport
from lmc.cache.parser import ModulefileParser
from lmc.cache.store import IndexStore
from lmc.common.errors import IndexStoreError

logger = logging.getLogger(__name__)


class CacheBuilder:
    """Rebuilds the index from a list of module roots.

    Args:
        store: Open index store
        roots: Module roots, crawled in order
        parser: Modulefile parser (constructed here if omitted, which compiles
            the Lmod grammar and may raise GrammarError)
        share_variables: Share one variable store across every module file
        jobs: Number of roots crawled in parallel. Ignored when variables are
            shared, since the shared store must be mutated in file order.
    """

    def __init__(
        self,
        store: IndexStore,
        roots: Iterable[str],
        parser: ModulefileParser | None = None,
        share_variables: bool = False,
        jobs: int = 1,
    ):
        self.store = store
        self.roots = list(roots)
        self.parser = parser or ModulefileParser()
        self.share_variables = share_variables
        self.jobs = max(1, jobs)

        if not self.roots:
            logger.warning("no module paths, will not be able to find modules")

    def _crawler(self, store: VariableStore) -> ModuleTreeCrawler:
        return ModuleTreeCrawler(self.parser, store, share_variables=self.share_variables)

    def _crawl(self) -> Iterator[CrawlReport]:
        base = VariableStore.from_environ()

        if self.share_variables or self.jobs == 1 or len(self.roots) < 2:
            crawler = self._crawler(base)
            for root in self.roots:
                logger.debug(f"using module root {root}")
                yield crawler.crawl_root(root)
            return

        # Each worker gets its own copy of the base store; results come back
        # in root order and are written by this thread only.
        with ThreadPoolExecutor(max_workers=self.jobs) as executor:
            yield from executor.map(lambda root: self._crawler(base.copy()).crawl_root(root), self.roots)

    def build(self) -> BuildReport:
        """Replace the index with a fresh crawl of every module root.

        Raises:
            IndexStoreError: If the rebuild transaction cannot be started or
                committed. The previous index is left intact.
        """
        report = BuildReport()
        start = time.perf_counter()

        with self.store.rebuild():
            self.store.clear()
            for root_report in self._crawl():
                report.roots.append(root_report)
                for entry in root_report.entries:
                    try:
                        self.store.insert(entry)
                    except IndexStoreError as err:
                        logger.error(str(err))
                        report.insert_failures += 1
                        continue
                    report.inserted += 1

        report.duration = time.perf_counter() - start
        logger.info(f"rebuild of {len(self.roots)} roots took {report.duration:.2f}s")
        return report
