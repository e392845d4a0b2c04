"""Module tree crawler.

A module root holds one directory per package, each containing one file
per installed version::

    <root>/gcc/12.2.0
    <root>/python/3.11.lua

Every version file is parsed, its PATH candidates are scanned for
executables and one ``BinaryEntry`` is produced per executable found.
"""

from __future__ import annotations

import logging
import os
import stat

from lmc.cache.expander import VariableStore
from lmc.cache.models import BinaryEntry, CrawlReport, ModuleFile
from lmc.cache.parser import ModulefileParser
from lmc.cache.scanner import scan_path
from lmc.common.errors import ModuleFileError

logger = logging.getLogger(__name__)

VERSION_FILE_SUFFIXES = (".lua",)


def module_code(module_name: str, file_name: str) -> str:
    """Build the module code for a version file.

    Example:
        >>> module_code("foo", "1.2.3.lua")
        'foo/1.2.3'
    """
    code = f"{module_name}/{file_name}"
    for suffix in VERSION_FILE_SUFFIXES:
        if code.endswith(suffix):
            return code[: -len(suffix)]
    return code


class ModuleTreeCrawler:
    """Walks module roots and collects binary entries.

    Args:
        parser: Modulefile parser to use
        store: Base variable store. When ``share_variables`` is False every
            module file is parsed against its own copy of it, otherwise the
            store itself is mutated and ``set`` statements leak into later files.
        share_variables: Whether variables set in one file are visible to the next
    """

    def __init__(
        self,
        parser: ModulefileParser | None = None,
        store: VariableStore | None = None,
        share_variables: bool = False,
    ):
        self.parser = parser or ModulefileParser()
        self.store = store if store is not None else VariableStore.from_environ()
        self.share_variables = share_variables

    def _warn(self, report: CrawlReport, message: str, level: int = logging.WARNING) -> None:
        logger.log(level, message)
        report.warnings.append(message)

    def _list_dir(self, path: str) -> list[str]:
        with os.scandir(path) as it:
            return sorted(entry.name for entry in it)

    def crawl_root(self, root: str) -> CrawlReport:
        """Crawl one module root.

        Unreadable directories and files are reported as warnings and skipped.
        """
        report = CrawlReport(root=root)
        try:
            names = self._list_dir(root)
        except OSError as err:
            self._warn(report, f"couldn't open module root {root}: {err}", logging.INFO)
            return report

        for name in names:
            module_dir = os.path.join(root, name)
            try:
                st = os.stat(module_dir)
            except OSError as err:
                self._warn(report, f"stat() failed for {module_dir}: {err}")
                continue

            if stat.S_ISDIR(st.st_mode):
                self.crawl_module_dir(report, module_dir, name)

        logger.info(f"crawled {report.modules} modules under {root}, {len(report.entries)} binaries")
        return report

    def crawl_module_dir(self, report: CrawlReport, module_dir: str, name: str) -> None:
        try:
            file_names = self._list_dir(module_dir)
        except OSError as err:
            self._warn(report, f"couldn't open module dir {module_dir}: {err}")
            return

        for file_name in file_names:
            file_path = os.path.join(module_dir, file_name)
            try:
                st = os.stat(file_path)
            except OSError as err:
                self._warn(report, f"stat() failed for {file_path}: {err}")
                continue

            if stat.S_ISREG(st.st_mode):
                module = ModuleFile(
                    root=report.root,
                    name=name,
                    path=file_path,
                    code=module_code(name, file_name),
                )
                self.crawl_module_file(report, module)

    def crawl_module_file(self, report: CrawlReport, module: ModuleFile) -> None:
        logger.debug(f"building {module.code} from {module.path}")
        store = self.store if self.share_variables else self.store.copy()

        try:
            result = self.parser.parse(module.path, store)
        except ModuleFileError as err:
            self._warn(report, str(err))
            return

        report.modules += 1
        logger.debug(f"searching {len(result.candidates)} potential paths for {module.code}")

        for candidate in result.candidates:
            for bin_name in scan_path(candidate, report.warnings, origin=module.code):
                report.entries.append(BinaryEntry(root=module.root, code=module.code, bin=bin_name))
