"""Shell-style word expansion for modulefile values.

Values in Tcl modulefiles are expanded the way a POSIX shell expands a
word list: tilde expansion, parameter substitution and pathname (glob)
expansion, with single quotes, double quotes and backslashes controlling
which of those apply. Command substitution is never executed.

There are no positional parameters: ``$1``, ``$@``, ``$*``, ``$!`` and
``$-`` are unset, ``$#`` and ``$?`` are ``0`` and ``$$`` is the process id.

All words produced by an expansion are concatenated without a separator.
"""

from __future__ import annotations

import glob
import os
import re
import string
from collections.abc import Iterator, Mapping

from lmc.common.errors import ExpansionError

_NAME_START = frozenset(string.ascii_letters + "_")
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_BRACED_RE = re.compile(
    r"(#?)([A-Za-z_][A-Za-z0-9_]*|[0-9]+|[@*#?$!-])(?:(:?[-+])(.*))?\Z",
    re.DOTALL,
)
_SPECIAL_PARAMS = frozenset(string.digits + "@*#?$!-")
_BLANKS = frozenset(" \t")
_SPECIAL = frozenset("|&;<>(){}\n")
_GLOB_CHARS = frozenset("*?[")
_DQUOTE_ESCAPABLE = frozenset('$`"\\')


def _special_parameter(name: str) -> str | None:
    if name == "$":
        return str(os.getpid())
    if name in ("#", "?"):
        return "0"
    return None


def _closing_brace(raw: str, start: int) -> int:
    """Find the ``}`` closing a ``${`` whose body starts at ``raw[start]``.

    Nested ``${...}`` and quoted text are skipped. Returns -1 if unterminated.
    """
    outer_quotes: list[str | None] = []
    quote = None
    i = start
    while i < len(raw):
        ch = raw[i]
        if quote == "'":
            if ch == "'":
                quote = None
        elif ch == "\\":
            i += 1
        elif ch == '"':
            quote = None if quote else '"'
        elif ch == "'" and quote is None:
            quote = "'"
        elif ch == "$" and raw[i + 1 : i + 2] == "{":
            outer_quotes.append(quote)
            quote = None
            i += 1
        elif ch == "}" and quote is None:
            if not outer_quotes:
                return i
            quote = outer_quotes.pop()
        i += 1
    return -1


class VariableStore:
    """Mutable key/value store consulted during expansion.

    Lookups fall back to the process environment for keys that were never set.
    """

    def __init__(self, values: Mapping[str, str] | None = None):
        self._values: dict[str, str] = dict(values or {})

    @classmethod
    def from_environ(cls) -> VariableStore:
        return cls(os.environ)

    def get(self, key: str, default: str | None = None) -> str | None:
        if key in self._values:
            return self._values[key]
        return os.environ.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def copy(self) -> VariableStore:
        return VariableStore(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values or key in os.environ

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


class _Word:
    """One word under construction, tracking which characters were quoted."""

    def __init__(self):
        self.literal: list[str] = []
        self.pattern: list[str] = []
        self.magic = False
        self.started = False

    def add(self, text: str, quoted: bool) -> None:
        self.started = True
        self.literal.append(text)
        if quoted:
            self.pattern.append(glob.escape(text))
        else:
            self.pattern.append(text)
            if any(ch in _GLOB_CHARS for ch in text):
                self.magic = True

    def resolve(self) -> list[str]:
        literal = "".join(self.literal)
        if not self.magic:
            return [literal]
        matches = sorted(glob.glob("".join(self.pattern)))
        return matches or [literal]


class _WordList:
    def __init__(self):
        self.words: list[_Word] = []
        self.current = _Word()

    def finish(self) -> None:
        if self.current.started:
            self.words.append(self.current)
        self.current = _Word()

    def add_split(self, text: str) -> None:
        """Add an unquoted substitution result, splitting it on blanks."""
        for ch in text:
            if ch in _BLANKS or ch == "\n":
                self.finish()
            else:
                self.current.add(ch, quoted=False)


class Expander:
    """Expands strings against a VariableStore."""

    def __init__(self, store: VariableStore | None = None):
        self.store = store if store is not None else VariableStore.from_environ()

    def set_variable(self, key: str, value: str) -> None:
        self.store.set(key, value)

    def expand(self, raw: str) -> str:
        """Expand ``raw`` and concatenate the resulting words.

        Raises:
            ExpansionError: On unbalanced quoting, unsupported substitutions
                or unquoted shell metacharacters
        """
        words = _WordList()
        i, n = 0, len(raw)

        while i < n:
            ch = raw[i]
            if ch in _BLANKS:
                words.finish()
                i += 1
            elif ch == "\\":
                if i + 1 >= n:
                    raise ExpansionError(f"trailing backslash in {raw!r}")
                words.current.add(raw[i + 1], quoted=True)
                i += 2
            elif ch == "'":
                end = raw.find("'", i + 1)
                if end < 0:
                    raise ExpansionError(f"unbalanced single quote in {raw!r}")
                words.current.add(raw[i + 1 : end], quoted=True)
                i = end + 1
            elif ch == '"':
                i = self._double_quoted(raw, i + 1, words.current)
            elif ch == "`":
                raise ExpansionError(f"command substitution is not supported: {raw!r}")
            elif ch == "$":
                value, i = self._parameter(raw, i)
                if value is None:
                    words.current.add("$", quoted=True)
                else:
                    words.add_split(value)
            elif ch in _SPECIAL:
                raise ExpansionError(f"illegal character {ch!r} in {raw!r}")
            elif ch == "~" and not words.current.started:
                i = self._tilde(raw, i, words.current)
            else:
                words.current.add(ch, quoted=False)
                i += 1

        words.finish()
        return "".join(part for word in words.words for part in word.resolve())

    def _double_quoted(self, raw: str, i: int, word: _Word, closing: bool = True) -> int:
        """Add the double-quoted text starting at ``raw[i]`` to ``word``.

        With ``closing`` False the text runs to the end of ``raw`` and any
        double quotes in it are removed. That is how the word of a
        ``${VAR:-word}`` inside double quotes is expanded.
        """
        n = len(raw)
        word.add("", quoted=True)
        while i < n:
            ch = raw[i]
            if ch == '"':
                if closing:
                    return i + 1
                i += 1
            elif ch == "\\" and i + 1 < n and raw[i + 1] in _DQUOTE_ESCAPABLE:
                word.add(raw[i + 1], quoted=True)
                i += 2
            elif ch == "`":
                raise ExpansionError(f"command substitution is not supported: {raw!r}")
            elif ch == "$":
                value, i = self._parameter(raw, i, quoted=True)
                word.add("$" if value is None else value, quoted=True)
            else:
                word.add(ch, quoted=True)
                i += 1
        if not closing:
            return n
        raise ExpansionError(f"unbalanced double quote in {raw!r}")

    def _quoted_word(self, text: str) -> str:
        word = _Word()
        self._double_quoted(text, 0, word, closing=False)
        return "".join(word.literal)

    def _parameter(self, raw: str, i: int, quoted: bool = False) -> tuple[str | None, int]:
        """Expand the parameter starting at ``raw[i] == "$"``.

        Returns the substituted value (None for a lone ``$``) and the index
        just past the parameter.
        """
        nxt = raw[i + 1] if i + 1 < len(raw) else ""
        if nxt == "(":
            raise ExpansionError(f"command substitution is not supported: {raw!r}")
        if nxt == "{":
            end = _closing_brace(raw, i + 2)
            if end < 0:
                raise ExpansionError(f"unterminated ${{ in {raw!r}")
            return self._braced(raw[i + 2 : end], raw, quoted), end + 1
        if nxt in _NAME_START:
            match = _NAME_RE.match(raw, i + 1)
            return self.store.get(match.group(0), "") or "", match.end()
        if nxt in _SPECIAL_PARAMS:
            return _special_parameter(nxt) or "", i + 2
        return None, i + 1

    def _braced(self, body: str, raw: str, quoted: bool = False) -> str:
        match = _BRACED_RE.match(body)
        if match is None:
            raise ExpansionError(f"bad substitution ${{{body}}} in {raw!r}")
        length, name, op, word = match.groups()
        if name in _SPECIAL_PARAMS or name.isdigit():
            value = _special_parameter(name)
        else:
            value = self.store.get(name)

        if length:
            if op:
                raise ExpansionError(f"bad substitution ${{{body}}} in {raw!r}")
            return str(len(value or ""))

        if op is None:
            return value or ""

        is_set = value is not None and (value != "" or not op.startswith(":"))
        if op.endswith("-"):
            if is_set:
                return value
        elif not is_set:
            return ""
        # Inside double quotes the word is neither split nor globbed.
        return self._quoted_word(word) if quoted else self.expand(word)

    def _tilde(self, raw: str, i: int, word: _Word) -> int:
        end = i + 1
        while end < len(raw) and raw[end] != "/" and raw[end] not in _BLANKS:
            if raw[end] in "'\"\\$`" or raw[end] in _SPECIAL:
                word.add("~", quoted=False)
                return i + 1
            end += 1

        user = raw[i + 1 : end]
        if user:
            home = os.path.expanduser(f"~{user}")
            if home.startswith("~"):
                word.add("~", quoted=False)
                return i + 1
        else:
            home = self.store.get("HOME") or os.path.expanduser("~")

        word.add(home, quoted=True)
        return end
