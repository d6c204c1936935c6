import sys
from pathlib import Path

import pytest

# Allow tests to run without installing the package.
SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_ROOT))

from runtime_cfg.parser import MAX_NESTING_DEPTH, parse_str  # noqa: E402
from runtime_cfg.predicate import (  # noqa: E402
    all_,
    any_,
    name,
    name_value,
    not_,
)
from runtime_cfg.printer import quote_literal, to_text  # noqa: E402


@pytest.mark.parametrize(
    ("predicate", "text"),
    [
        (name("test"), "test"),
        (name_value("target_os", "macos"), 'target_os = "macos"'),
        (any_([name("foo"), name("bar")]), "any(foo, bar)"),
        (not_(name("foo")), "not(foo)"),
        (all_([]), "all()"),
        (any_([]), "any()"),
        (all_([name("unix")]), "all(unix)"),
        (
            all_([name("unix"), name_value("target_pointer_width", "32")]),
            'all(unix, target_pointer_width = "32")',
        ),
        (
            not_(any_([all_([]), not_(name_value("a", ""))])),
            'not(any(all(), not(a = "")))',
        ),
    ],
)
def test_to_text(predicate: object, text: str) -> None:
    assert to_text(predicate) == text


def test_trailing_comma_is_normalized() -> None:
    assert to_text(parse_str("any(foo,bar,)")) == "any(foo, bar)"


def test_quote_literal_escapes() -> None:
    assert quote_literal("plain") == '"plain"'
    assert quote_literal('say "hi"') == '"say \\"hi\\""'
    assert quote_literal("back\\slash") == '"back\\\\slash"'
    assert quote_literal("a\nb\tc\rd\0") == '"a\\nb\\tc\\rd\\0"'
    assert quote_literal("\x01\x7f") == '"\\u{1}\\u{7f}"'
    assert quote_literal("ünïcode") == '"ünïcode"'


@pytest.mark.parametrize(
    "value",
    ["", "32", 'quote"inside', "back\\slash", "multi\nline", "\x1b[0m", "tab\t", "'"],
)
def test_values_round_trip(value: str) -> None:
    predicate = all_([name_value("key", value), not_(name("other"))])

    assert parse_str(to_text(predicate)) == predicate


def test_output_is_deterministic() -> None:
    predicate = any_([name("b"), name("a"), all_([name_value("c", "d")])])

    assert to_text(predicate) == to_text(predicate)
    assert to_text(predicate) == to_text(parse_str(to_text(predicate)))


def test_unknown_node_type() -> None:
    with pytest.raises(TypeError):
        to_text(("name", "unix"))


def test_deeply_nested_parse_prints_back() -> None:
    depth = MAX_NESTING_DEPTH
    text = "all(" * depth + "x" + ")" * depth

    predicate = parse_str(text)

    assert to_text(predicate) == text
    assert parse_str(to_text(predicate)) == predicate


def test_deeply_nested_built_tree_prints() -> None:
    predicate = name("x")
    for idx in range(5000):
        predicate = not_(predicate) if idx % 2 else any_([predicate, name("y")])

    text = to_text(predicate)

    assert text.startswith("not(any(not(any(")
    assert text.count("(") == text.count(")") == 5000
