"""Module cache: crawl module trees, index their binaries and search the index."""

from lmc.cache.builder import CacheBuilder
from lmc.cache.crawler import ModuleTreeCrawler, module_code
from lmc.cache.expander import Expander, VariableStore
from lmc.cache.models import BinaryEntry, BuildReport, CrawlReport, Dialect, MatchMode, ModuleFile, ParseResult
from lmc.cache.parser import LmodParser, ModulefileParser, TclParser
from lmc.cache.scanner import scan_path
from lmc.cache.search import SearchEngine
from lmc.cache.store import IndexStore

__all__ = [
    "BinaryEntry",
    "BuildReport",
    "CacheBuilder",
    "CrawlReport",
    "Dialect",
    "Expander",
    "IndexStore",
    "LmodParser",
    "MatchMode",
    "ModuleFile",
    "ModuleTreeCrawler",
    "ModulefileParser",
    "ParseResult",
    "SearchEngine",
    "TclParser",
    "VariableStore",
    "module_code",
    "scan_path",
]
