"""Modulefile parsers.

Two dialects are supported, selected by looking at the file contents
rather than its name:

* Tcl modulefiles, recognised by the ``#%Module`` cookie on the first line.
  ``set`` statements update the variable store and ``prepend-path PATH`` /
  ``append-path PATH`` values are expanded into path candidates.
* Lmod (Lua) modulefiles, where ``prepend_path("PATH", "...")`` and
  ``append_path("PATH", "...")`` calls contribute their literal second
  argument.

The Tcl parser is always tried first; Lmod is only attempted when the file
is not a Tcl modulefile at all.
"""

from __future__ import annotations

import logging
import re

from lmc.cache.expander import Expander, VariableStore
from lmc.cache.models import Dialect, ParseResult
from lmc.common.errors import DialectMismatch, ExpansionError, GrammarError, ModuleFileError

logger = logging.getLogger(__name__)

TCL_MAGIC = "#%Module"
PATH_COMMANDS = ("prepend-path", "append-path")

LMOD_GRAMMAR = (
    r"^\s*(prepend_path|append_path)"
    r"\s*\(\s*(?P<q>[\"'])PATH(?P=q)\s*"
    r",\s*(?P<v>[\"'])(?P<value>(?:(?!(?P=v)).)+)(?P=v)\s*"
    r"(?:,\s*(?P<t>[\"'])(?:(?!(?P=t)).)*(?P=t)\s*)?\)\s*$"
)


def compile_lmod_grammar(source: str = LMOD_GRAMMAR) -> re.Pattern[str]:
    """Compile the Lmod statement grammar.

    Raises:
        GrammarError: If the grammar does not compile
    """
    try:
        return re.compile(source)
    except re.error as err:
        raise GrammarError(f"failed to compile lmod grammar: {err}") from err


def _read_lines(path: str) -> list[str]:
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read().splitlines()
    except OSError as err:
        raise ModuleFileError(f"couldn't open {path} for reading: {err}") from err


class TclParser:
    """Parser for ``#%Module`` Tcl modulefiles."""

    dialect = Dialect.TCL

    def parse(self, path: str, store: VariableStore) -> ParseResult:
        lines = _read_lines(path)
        if not lines or not lines[0].startswith(TCL_MAGIC):
            raise DialectMismatch(f"{path} has no {TCL_MAGIC} header")

        expander = Expander(store)
        result = ParseResult(dialect=self.dialect)

        for line in lines[1:]:
            if not line or line.startswith("#"):
                continue

            parts = line.split(None, 2)
            if len(parts) < 3:
                continue
            cmd, key, value = parts

            if cmd == "set":
                try:
                    expanded = expander.expand(value)
                except ExpansionError as err:
                    logger.debug(f"skipping set {key} in {path}: {err}")
                    continue
                if not expanded:
                    continue
                expander.set_variable(key, expanded)
                result.applied_variables[key] = expanded

            elif cmd in PATH_COMMANDS:
                if key != "PATH":
                    continue
                try:
                    expanded = expander.expand(value)
                except ExpansionError as err:
                    logger.info(f"expansion failed in {cmd} value {value!r} ({path}): {err}")
                    continue
                if not expanded:
                    continue
                result.candidates.append(expanded)

        logger.debug(f"tcl parser pulled {len(result.candidates)} paths from {path}")
        return result


class LmodParser:
    """Parser for Lmod Lua modulefiles."""

    dialect = Dialect.LMOD

    def __init__(self, grammar: str = LMOD_GRAMMAR):
        self.pattern = compile_lmod_grammar(grammar)

    def parse(self, path: str, store: VariableStore | None = None) -> ParseResult:
        result = ParseResult(dialect=self.dialect)
        for line in _read_lines(path):
            match = self.pattern.match(line)
            if match and match.group("value"):
                result.candidates.append(match.group("value"))

        logger.debug(f"lmod parser pulled {len(result.candidates)} paths from {path}")
        return result


class ModulefileParser:
    """Picks the dialect of a module file and extracts its path candidates."""

    def __init__(self, tcl: TclParser | None = None, lmod: LmodParser | None = None):
        self.tcl = tcl or TclParser()
        self.lmod = lmod or LmodParser()

    def parse(self, path: str, store: VariableStore) -> ParseResult:
        """Parse ``path`` as Tcl, falling back to Lmod if it is not Tcl.

        A valid Tcl file without PATH statements is not retried as Lmod.

        Raises:
            ModuleFileError: If the file cannot be read
        """
        try:
            return self.tcl.parse(path, store)
        except DialectMismatch as err:
            logger.debug(str(err))
        except ModuleFileError as err:
            logger.debug(f"tcl parse failed, trying lmod: {err}")
        return self.lmod.parse(path, store)
