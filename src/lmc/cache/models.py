"""Data types shared by the crawl, parse, index and search stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Dialect(str, Enum):
    """Modulefile dialects understood by the parser."""

    TCL = "tcl"
    LMOD = "lmod"


class MatchMode(str, Enum):
    """How a search query is matched against stored binary names."""

    EXACT = "exact"
    SIMILAR = "similar"


@dataclass(frozen=True)
class BinaryEntry:
    """One (root, module code, executable name) association."""

    root: str
    code: str
    bin: str

    def format(self) -> str:
        return f'=> root="{self.root}", code="{self.code}", bin="{self.bin}"'

    def to_dict(self) -> dict[str, str]:
        return {"root": self.root, "code": self.code, "bin": self.bin}


@dataclass(frozen=True)
class ModuleFile:
    """A module file found one level below a module directory."""

    root: str
    name: str
    path: str
    code: str


@dataclass
class ParseResult:
    """Path candidates extracted from one module file."""

    dialect: Dialect
    candidates: list[str] = field(default_factory=list)
    applied_variables: dict[str, str] = field(default_factory=dict)


@dataclass
class CrawlReport:
    """Outcome of crawling one module root."""

    root: str
    modules: int = 0
    entries: list[BinaryEntry] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class BuildReport:
    """Outcome of one full cache rebuild."""

    roots: list[CrawlReport] = field(default_factory=list)
    inserted: int = 0
    insert_failures: int = 0
    duration: float = 0.0

    @property
    def modules(self) -> int:
        return sum(report.modules for report in self.roots)

    @property
    def warnings(self) -> list[str]:
        return [warning for report in self.roots for warning in report.warnings]
