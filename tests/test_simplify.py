import itertools
import logging

import pytest

from kconftools.expr import (
    SYMBOL_MOD,
    SYMBOL_NO,
    SYMBOL_YES,
    ExprType,
    Symbol,
    SymbolType,
    Tristate,
    binary,
    calc_value,
    compare,
    is_no,
    is_yes,
    symbol,
    to_string,
    unary,
)
from kconftools.simplify import (
    eliminate_dups,
    extract_eq_and,
    extract_eq_or,
    simplify_unmet_dep,
    trans_compare,
    transform,
)

AND, OR, NOT = ExprType.AND, ExprType.OR, ExprType.NOT
EQ, NE = ExprType.EQUAL, ExprType.UNEQUAL


def _bool(name):
    return Symbol(name, SymbolType.BOOLEAN)


def _tri(name):
    return Symbol(name, SymbolType.TRISTATE)


def _assignments(symbols):
    ranges = [
        (Tristate.NO, Tristate.YES)
        if s.type is SymbolType.BOOLEAN
        else (Tristate.NO, Tristate.MOD, Tristate.YES)
        for s in symbols
    ]
    for values in itertools.product(*ranges):
        for s, v in zip(symbols, values):
            s.tri = v
        yield


# --- transform ---------------------------------------------------------


def test_transform_none():
    assert transform(None) is None


@pytest.mark.parametrize(
    "op,const,expected",
    [(EQ, SYMBOL_NO, "!A"), (EQ, SYMBOL_YES, "A"), (NE, SYMBOL_NO, "A"), (NE, SYMBOL_YES, "!A")],
)
def test_transform_boolean_comparisons(op, const, expected):
    a = _bool("A")
    assert to_string(transform(compare(op, a, const))) == expected


def test_transform_boolean_equal_mod_forced_no(caplog):
    a = _bool("A")
    with caplog.at_level(logging.WARNING):
        result = transform(compare(EQ, a, SYMBOL_MOD))
    assert is_no(result)
    assert "test forced to 'n'" in caplog.text


def test_transform_boolean_unequal_mod_forced_yes():
    a = _bool("A")
    assert is_yes(transform(compare(NE, a, SYMBOL_MOD)))


def test_transform_tristate_comparison_unchanged():
    t = _tri("T")
    assert to_string(transform(compare(EQ, t, SYMBOL_NO))) == "T=n"


def test_transform_double_negation():
    inner = symbol(_bool("A"))
    assert transform(unary(NOT, unary(NOT, inner))) is inner


def test_transform_negated_comparison_flips():
    t = _tri("T")
    assert to_string(transform(unary(NOT, compare(EQ, t, SYMBOL_YES)))) == "T!=y"


def test_transform_de_morgan():
    a, b = _bool("A"), _bool("B")
    or_result = transform(unary(NOT, binary(OR, symbol(a), symbol(b))))
    assert or_result.type is AND
    assert to_string(or_result) == "!A && !B"
    and_result = transform(unary(NOT, binary(AND, symbol(a), symbol(b))))
    assert and_result.type is OR
    assert to_string(and_result) == "!A || !B"


def test_transform_negated_constants():
    assert is_no(transform(unary(NOT, symbol(SYMBOL_YES))))
    assert is_yes(transform(unary(NOT, symbol(SYMBOL_NO))))
    assert transform(unary(NOT, symbol(SYMBOL_MOD))).left is SYMBOL_MOD


def test_transform_preserves_value():
    a, b = _bool("A"), _bool("B")
    original = unary(NOT, binary(AND, symbol(a), unary(NOT, symbol(b))))
    result = transform(original.copy())
    for _ in _assignments([a, b]):
        assert calc_value(result) == calc_value(original)


# --- eliminate_dups ----------------------------------------------------


def test_eliminate_dups_none():
    assert eliminate_dups(None) is None


def test_eliminate_dups_repeated_operand():
    a = _bool("A")
    assert to_string(eliminate_dups(binary(AND, symbol(a), symbol(a)))) == "A"


def test_eliminate_dups_tautology():
    a = _bool("A")
    assert is_yes(eliminate_dups(binary(OR, symbol(a), unary(NOT, symbol(a)))))


def test_eliminate_dups_tristate_union():
    t = _tri("T")
    e = binary(OR, compare(EQ, t, SYMBOL_YES), compare(EQ, t, SYMBOL_MOD))
    assert to_string(eliminate_dups(e)) == "T!=n"


def test_eliminate_dups_contradiction():
    a, b = _bool("A"), _bool("B")
    e = binary(
        AND,
        binary(OR, symbol(a), symbol(b)),
        binary(AND, unary(NOT, symbol(a)), unary(NOT, symbol(b))),
    )
    assert is_no(eliminate_dups(e))


def test_eliminate_dups_independent_operands_kept():
    a, b = _bool("A"), _bool("B")
    assert to_string(eliminate_dups(binary(AND, symbol(a), symbol(b)))) == "A && B"


def _cases():
    a, b = _bool("A"), _bool("B")
    t = _tri("T")
    return [
        ([a], binary(AND, symbol(a), symbol(a))),
        ([a], binary(OR, symbol(a), unary(NOT, symbol(a)))),
        ([a, b], binary(AND, symbol(a), binary(OR, symbol(a), symbol(b)))),
        ([a, b], binary(OR, binary(AND, symbol(a), symbol(b)), symbol(a))),
        ([a, b], binary(AND, binary(AND, symbol(a), symbol(b)), symbol(a))),
        (
            [a, b],
            binary(
                OR,
                binary(AND, symbol(a), symbol(b)),
                binary(OR, unary(NOT, symbol(a)), unary(NOT, symbol(b))),
            ),
        ),
        ([t], binary(OR, compare(EQ, t, SYMBOL_MOD), compare(EQ, t, SYMBOL_NO))),
        ([t], binary(AND, compare(NE, t, SYMBOL_YES), compare(NE, t, SYMBOL_NO))),
    ]


@pytest.mark.parametrize("index", range(8))
def test_eliminate_dups_preserves_value(index):
    symbols, e = _cases()[index]
    reference = e.copy()
    result = eliminate_dups(e)
    for _ in _assignments(symbols):
        assert calc_value(result) == calc_value(reference)


# --- extract_eq --------------------------------------------------------


def test_extract_eq_and_common_part():
    a, b, c = _bool("A"), _bool("B"), _bool("C")
    common, r1, r2 = extract_eq_and(
        binary(AND, symbol(a), symbol(b)), binary(AND, symbol(a), symbol(c))
    )
    assert (to_string(common), to_string(r1), to_string(r2)) == ("A", "B", "C")


def test_extract_eq_or_common_part():
    a, b, c = _bool("A"), _bool("B"), _bool("C")
    common, r1, r2 = extract_eq_or(
        binary(OR, symbol(a), symbol(b)), binary(OR, symbol(a), symbol(c))
    )
    assert (to_string(common), to_string(r1), to_string(r2)) == ("A", "B", "C")


def test_extract_eq_nothing_common():
    a, b, c, d = _bool("A"), _bool("B"), _bool("C"), _bool("D")
    common, r1, r2 = extract_eq_and(
        binary(AND, symbol(a), symbol(b)), binary(AND, symbol(c), symbol(d))
    )
    assert common is None
    assert to_string(r1) == "A && B"
    assert to_string(r2) == "C && D"


# --- trans_compare -----------------------------------------------------


def test_trans_compare_missing_expression():
    a = _bool("A")
    assert to_string(trans_compare(None, EQ, a)) == "A"
    assert to_string(trans_compare(None, NE, a)) == "!A"


def test_trans_compare_symbol():
    a = _bool("A")
    assert to_string(trans_compare(symbol(a), EQ, SYMBOL_YES)) == "A=y"
    assert to_string(trans_compare(symbol(a), NE, SYMBOL_NO)) == "A!=n"


def test_trans_compare_and():
    a, b = _bool("A"), _bool("B")
    e = binary(AND, symbol(a), symbol(b))
    assert to_string(trans_compare(e, EQ, SYMBOL_YES)) == "A=y && B=y"
    assert to_string(trans_compare(e, EQ, SYMBOL_NO)) == "A=n || B=n"


def test_trans_compare_not_flips():
    a = _bool("A")
    assert to_string(trans_compare(unary(NOT, symbol(a)), EQ, SYMBOL_YES)) == "A!=y"


def test_trans_compare_comparison_against_mod():
    t = _tri("T")
    assert is_no(trans_compare(compare(EQ, t, SYMBOL_YES), EQ, SYMBOL_MOD))
    assert is_yes(trans_compare(compare(EQ, t, SYMBOL_YES), NE, SYMBOL_MOD))


def test_trans_compare_list_unsupported():
    a = _bool("A")
    assert trans_compare(binary(ExprType.LIST, None, None), EQ, a) is None


def test_trans_compare_yes_matches_truth():
    a, b, c = _bool("A"), _bool("B"), _bool("C")
    e = binary(OR, binary(AND, symbol(a), unary(NOT, symbol(b))), symbol(c))
    rewritten = trans_compare(e, EQ, SYMBOL_YES)
    for _ in _assignments([a, b, c]):
        expected = Tristate.YES if calc_value(e) is Tristate.YES else Tristate.NO
        assert calc_value(rewritten) == expected


# --- simplify_unmet_dep ------------------------------------------------


def test_simplify_unmet_dep_symbol_is_copied():
    a = _bool("A")
    e1 = symbol(a)
    result = simplify_unmet_dep(e1, symbol(_bool("B")))
    assert result is not e1
    assert to_string(result) == "A"


def test_simplify_unmet_dep_or_conjoins_parts():
    a, b, c = _bool("A"), _bool("B"), _bool("C")
    result = simplify_unmet_dep(binary(OR, symbol(a), symbol(b)), symbol(c))
    assert to_string(result) == "A && B"


def test_simplify_unmet_dep_and_not_covered():
    a, b, c = _bool("A"), _bool("B"), _bool("C")
    result = simplify_unmet_dep(binary(AND, symbol(a), symbol(b)), symbol(c))
    assert to_string(result) == "A"


def test_simplify_unmet_dep_and_covered():
    a, b = _bool("A"), _bool("B")
    assert simplify_unmet_dep(binary(AND, symbol(a), symbol(b)), symbol(a)) is None