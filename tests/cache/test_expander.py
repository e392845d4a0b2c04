"""Tests for cache.expander module."""

import os
from unittest.mock import patch

import pytest

from lmc.cache.expander import Expander, VariableStore
from lmc.common.errors import ExpansionError


@pytest.fixture
def expander():
    store = VariableStore({"HOME": "/home/tester", "PREFIX": "/opt/app", "SPACED": "a b"})
    return Expander(store)


class TestVariableStore:
    """Test VariableStore lookups and isolation."""

    def test_set_and_get(self):
        store = VariableStore()
        store.set("FOO", "bar")
        assert store.get("FOO") == "bar"
        assert "FOO" in store

    def test_falls_back_to_environment(self):
        with patch.dict(os.environ, {"LMC_TEST_ONLY_ENV": "from-env"}):
            store = VariableStore()
            assert store.get("LMC_TEST_ONLY_ENV") == "from-env"

    def test_store_value_shadows_environment(self):
        with patch.dict(os.environ, {"LMC_TEST_SHADOW": "env"}):
            store = VariableStore({"LMC_TEST_SHADOW": "store"})
            assert store.get("LMC_TEST_SHADOW") == "store"

    def test_from_environ_seeds_values(self):
        with patch.dict(os.environ, {"LMC_TEST_SEED": "seeded"}):
            store = VariableStore.from_environ()
        assert store.get("LMC_TEST_SEED") == "seeded"

    def test_copy_is_independent(self):
        store = VariableStore({"A": "1"})
        child = store.copy()
        child.set("A", "2")
        child.set("LMC_TEST_CHILD_ONLY", "3")
        assert store.get("A") == "1"
        assert store.get("LMC_TEST_CHILD_ONLY") is None


class TestExpand:
    """Test shell-style expansion."""

    def test_plain_string(self, expander):
        assert expander.expand("/usr/bin") == "/usr/bin"

    def test_dollar_variable(self, expander):
        assert expander.expand("$PREFIX/bin") == "/opt/app/bin"

    def test_braced_variable(self, expander):
        assert expander.expand("${PREFIX}bin") == "/opt/appbin"

    def test_unset_variable_is_empty(self, expander):
        assert expander.expand("$LMC_SURELY_UNSET_VAR/bin") == "/bin"

    def test_default_value(self, expander):
        assert expander.expand("${LMC_SURELY_UNSET_VAR:-/fallback}/bin") == "/fallback/bin"
        assert expander.expand("${PREFIX:-/fallback}") == "/opt/app"

    def test_alternate_value(self, expander):
        assert expander.expand("${PREFIX:+set}") == "set"
        assert expander.expand("${LMC_SURELY_UNSET_VAR:+set}") == ""

    def test_quoted_default_keeps_blanks(self, expander):
        assert expander.expand('"${LMC_SURELY_UNSET_VAR:-a b}"') == "a b"
        assert expander.expand('"${PREFIX:+x y}"') == "x y"

    def test_quoted_default_is_not_globbed(self, tmp_path):
        (tmp_path / "x1").mkdir()
        expander = Expander(VariableStore({"DIR": str(tmp_path)}))
        assert expander.expand('"${LMC_SURELY_UNSET_VAR:-$DIR/x*}"') == f"{tmp_path}/x*"
        assert expander.expand("${LMC_SURELY_UNSET_VAR:-$DIR/x*}") == str(tmp_path / "x1")

    def test_nested_parameter_in_default(self):
        expander = Expander(VariableStore({"B": "/opt/b"}))
        assert expander.expand("${LMC_SURELY_UNSET_VAR:-${B}}/bin") == "/opt/b/bin"
        assert expander.expand('"${LMC_SURELY_UNSET_VAR:-"${B}"}"/bin') == "/opt/b/bin"

    def test_quoted_brace_in_default(self, expander):
        assert expander.expand('"${LMC_SURELY_UNSET_VAR:-"}"}"') == "}"

    def test_positional_parameters_are_unset(self, expander):
        assert expander.expand("$1/bin") == "/bin"
        assert expander.expand("${1:-/opt}/bin") == "/opt/bin"
        assert expander.expand('"$@"') == ""

    def test_special_parameters(self, expander):
        assert expander.expand("$#") == "0"
        assert expander.expand("$?") == "0"
        assert expander.expand("$$") == str(os.getpid())

    def test_length(self, expander):
        assert expander.expand("${#PREFIX}") == "8"

    def test_set_variable_visible_to_later_expansions(self, expander):
        expander.set_variable("FOO", "bar")
        assert expander.expand("$FOO/bin") == "bar/bin"

    def test_tilde(self, expander):
        assert expander.expand("~/bin") == "/home/tester/bin"
        assert expander.expand("~") == "/home/tester"

    def test_tilde_only_at_word_start(self, expander):
        assert expander.expand("/opt/~/bin") == "/opt/~/bin"

    def test_quoted_tilde_is_literal(self, expander):
        assert expander.expand("'~'/bin") == "~/bin"

    def test_single_quotes_are_literal(self, expander):
        assert expander.expand("'$PREFIX'") == "$PREFIX"

    def test_double_quotes_substitute(self, expander):
        assert expander.expand('"$PREFIX/my dir"') == "/opt/app/my dir"

    def test_backslash_escape(self, expander):
        assert expander.expand(r"\$PREFIX") == "$PREFIX"

    def test_lone_dollar_is_literal(self, expander):
        assert expander.expand("cost$") == "cost$"

    def test_words_are_concatenated(self, expander):
        assert expander.expand("/opt/a /opt/b") == "/opt/a/opt/b"

    def test_unquoted_value_is_split_then_concatenated(self, expander):
        assert expander.expand("$SPACED/bin") == "ab/bin"

    def test_empty_input(self, expander):
        assert expander.expand("") == ""
        assert expander.expand("   ") == ""

    def test_glob_matches_are_sorted(self, tmp_path):
        (tmp_path / "b1").mkdir()
        (tmp_path / "a1").mkdir()
        expander = Expander(VariableStore({"DIR": str(tmp_path)}))
        assert expander.expand("$DIR/a*") == str(tmp_path / "a1")
        assert expander.expand("$DIR/?1") == f"{tmp_path / 'a1'}{tmp_path / 'b1'}"

    def test_glob_without_match_keeps_word(self, tmp_path):
        expander = Expander(VariableStore({"DIR": str(tmp_path)}))
        assert expander.expand("$DIR/nothing*") == f"{tmp_path}/nothing*"

    def test_quoted_glob_is_not_expanded(self, tmp_path):
        (tmp_path / "a1").mkdir()
        expander = Expander(VariableStore({"DIR": str(tmp_path)}))
        assert expander.expand('"$DIR/a*"') == f"{tmp_path}/a*"


class TestExpandErrors:
    """Test malformed input is rejected."""

    @pytest.mark.parametrize(
        "raw",
        [
            "'unbalanced",
            '"unbalanced',
            "${PREFIX",
            "trailing\\",
            "$(whoami)",
            "`whoami`",
            "a|b",
            "a;b",
            "a&b",
            "{a,b}",
            "${PREFIX/x/y}",
        ],
    )
    def test_malformed(self, expander, raw):
        with pytest.raises(ExpansionError):
            expander.expand(raw)
