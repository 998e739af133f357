"""Rewriting and simplification of Kconfig dependency expressions."""

from __future__ import annotations

import logging
from typing import Optional

from .expr import (
    SYMBOL_MOD,
    SYMBOL_NO,
    SYMBOL_YES,
    Expr,
    ExprType,
    Symbol,
    SymbolType,
    and_,
    binary,
    compare,
    eliminate_yn,
    equivalent,
    is_no,
    is_yes,
    symbol,
    unary,
)

log = logging.getLogger(__name__)

_JUNCTIONS = (ExprType.AND, ExprType.OR)
_COMPARISONS = (ExprType.EQUAL, ExprType.UNEQUAL)
_SIMPLE = (ExprType.EQUAL, ExprType.UNEQUAL, ExprType.SYMBOL, ExprType.NOT)


class _Box:
    """Holds a root expression so that it can be replaced in place."""

    __slots__ = ("value",)

    def __init__(self, value: Optional[Expr]) -> None:
        self.value = value


# A slot is a (holder, attribute) pair naming where an expression lives.
_Slot = tuple


def _get(slot: _Slot) -> Expr:
    holder, attr = slot
    return getattr(holder, attr)


def _set(slot: _Slot, value: Optional[Expr]) -> None:
    holder, attr = slot
    setattr(holder, attr, value)


def _root(box: _Box) -> _Slot:
    return (box, "value")


def transform(e: Optional[Expr]) -> Optional[Expr]:
    """Normalise an expression: push negations inward and simplify boolean tests."""
    if e is None:
        return None
    if e.type not in (ExprType.EQUAL, ExprType.UNEQUAL, ExprType.SYMBOL, ExprType.LIST):
        if isinstance(e.left, Expr):
            e.left = transform(e.left)
        if isinstance(e.right, Expr):
            e.right = transform(e.right)

    t = e.type
    if t is ExprType.EQUAL:
        if e.left.type is not SymbolType.BOOLEAN:
            return e
        if e.right is SYMBOL_NO:
            e.type, e.left, e.right = ExprType.NOT, symbol(e.left), None
        elif e.right is SYMBOL_MOD:
            log.warning("boolean symbol %s tested for 'm'? test forced to 'n'", e.left.name)
            e.type, e.left, e.right = ExprType.SYMBOL, SYMBOL_NO, None
        elif e.right is SYMBOL_YES:
            e.type, e.right = ExprType.SYMBOL, None
        return e
    if t is ExprType.UNEQUAL:
        if e.left.type is not SymbolType.BOOLEAN:
            return e
        if e.right is SYMBOL_NO:
            e.type, e.right = ExprType.SYMBOL, None
        elif e.right is SYMBOL_MOD:
            log.warning("boolean symbol %s tested for 'm'? test forced to 'y'", e.left.name)
            e.type, e.left, e.right = ExprType.SYMBOL, SYMBOL_YES, None
        elif e.right is SYMBOL_YES:
            e.type, e.left, e.right = ExprType.NOT, symbol(e.left), None
        return e
    if t is ExprType.NOT:
        inner = e.left
        it = inner.type
        if it is ExprType.NOT:
            # !!a -> a
            return transform(inner.left)
        if it in _COMPARISONS:
            # !a='x' -> a!='x'
            inner.type = ExprType.UNEQUAL if it is ExprType.EQUAL else ExprType.EQUAL
            return inner
        if it in _JUNCTIONS:
            # !(a || b) -> !a && !b ; !(a && b) -> !a || !b
            e.type = ExprType.AND if it is ExprType.OR else ExprType.OR
            e.right = unary(ExprType.NOT, inner.right)
            inner.type = ExprType.NOT
            inner.right = None
            return transform(e)
        if it is ExprType.SYMBOL:
            flipped = {SYMBOL_YES: SYMBOL_NO, SYMBOL_MOD: SYMBOL_MOD, SYMBOL_NO: SYMBOL_YES}
            for const, result in flipped.items():
                if inner.left is const:
                    inner.left = result
                    return inner
        return e
    return e


def _operand_symbols(e1: Expr, e2: Expr) -> Optional[tuple[Symbol, Symbol]]:
    if e1.type not in _SIMPLE or e2.type not in _SIMPLE:
        return None
    if e1.type is ExprType.NOT:
        inner = e1.left
        if inner.type not in (ExprType.EQUAL, ExprType.UNEQUAL, ExprType.SYMBOL):
            return None
        sym1 = inner.left
    else:
        sym1 = e1.left
    if e2.type is ExprType.NOT:
        if e2.left.type is not ExprType.SYMBOL:
            return None
        sym2 = e2.left.left
    else:
        sym2 = e2.left
    if sym1 is not sym2:
        return None
    if sym1.type not in (SymbolType.BOOLEAN, SymbolType.TRISTATE):
        return None
    return sym1, sym2


def _pair(e1: Expr, e2: Expr, t1: ExprType, r1: Symbol, t2: ExprType, r2: Symbol) -> bool:
    return (e1.type is t1 and e2.type is t2 and e1.right is r1 and e2.right is r2) or (
        e1.type is t2 and e2.type is t1 and e1.right is r2 and e2.right is r1
    )


def _sym_and(e1: Expr, e2: Expr, t: ExprType, r: Symbol) -> bool:
    return (e1.type is ExprType.SYMBOL and e2.type is t and e2.right is r) or (
        e2.type is ExprType.SYMBOL and e1.type is t and e1.right is r
    )


def _join_or(e1: Expr, e2: Expr) -> Optional[Expr]:
    if equivalent(e1, e2):
        return e1.copy()
    syms = _operand_symbols(e1, e2)
    if syms is None:
        return None
    sym1, sym2 = syms
    eq = ExprType.EQUAL
    if sym1.type is SymbolType.TRISTATE:
        if _pair(e1, e2, eq, SYMBOL_YES, eq, SYMBOL_MOD):
            return compare(ExprType.UNEQUAL, sym1, SYMBOL_NO)
        if _pair(e1, e2, eq, SYMBOL_YES, eq, SYMBOL_NO):
            return compare(ExprType.UNEQUAL, sym1, SYMBOL_MOD)
        if _pair(e1, e2, eq, SYMBOL_MOD, eq, SYMBOL_NO):
            return compare(ExprType.UNEQUAL, sym1, SYMBOL_YES)
    if sym1.type is SymbolType.BOOLEAN and sym1 is sym2:
        if (
            e1.type is ExprType.NOT
            and e1.left.type is ExprType.SYMBOL
            and e2.type is ExprType.SYMBOL
        ) or (
            e2.type is ExprType.NOT
            and e2.left.type is ExprType.SYMBOL
            and e1.type is ExprType.SYMBOL
        ):
            return symbol(SYMBOL_YES)
    return None


def _join_and(e1: Expr, e2: Expr) -> Optional[Expr]:
    if equivalent(e1, e2):
        return e1.copy()
    syms = _operand_symbols(e1, e2)
    if syms is None:
        return None
    sym1, _ = syms
    eq, ne = ExprType.EQUAL, ExprType.UNEQUAL
    if _sym_and(e1, e2, eq, SYMBOL_YES):
        return compare(eq, sym1, SYMBOL_YES)
    if _sym_and(e1, e2, ne, SYMBOL_NO):
        return symbol(sym1)
    if _sym_and(e1, e2, ne, SYMBOL_MOD):
        return compare(eq, sym1, SYMBOL_YES)
    if sym1.type is SymbolType.TRISTATE:
        if e1.type is eq and e2.type is ne:
            value = e1.right
            if e2.right.const and value.const:
                return compare(eq, sym1, value) if value is not e2.right else symbol(SYMBOL_NO)
        if e1.type is ne and e2.type is eq:
            value = e2.right
            if e1.right.const and value.const:
                return compare(eq, sym1, value) if value is not e1.right else symbol(SYMBOL_NO)
        if _pair(e1, e2, ne, SYMBOL_YES, ne, SYMBOL_NO):
            return compare(eq, sym1, SYMBOL_MOD)
        if _pair(e1, e2, ne, SYMBOL_YES, ne, SYMBOL_MOD):
            return compare(eq, sym1, SYMBOL_NO)
        if _pair(e1, e2, ne, SYMBOL_MOD, ne, SYMBOL_NO):
            return compare(eq, sym1, SYMBOL_YES)
    return None


def _extract_eq(type: ExprType, acc: Optional[Expr], s1: _Slot, s2: _Slot) -> Optional[Expr]:
    e1, e2 = _get(s1), _get(s2)
    if e1.type is type:
        acc = _extract_eq(type, acc, (e1, "left"), s2)
        return _extract_eq(type, acc, (_get(s1), "right"), s2)
    if e2.type is type:
        acc = _extract_eq(type, acc, s1, (e2, "left"))
        return _extract_eq(type, acc, s1, (_get(s2), "right"))
    if equivalent(e1, e2):
        acc = binary(type, acc, e1) if acc is not None else e1
        const = SYMBOL_YES if type is ExprType.AND else SYMBOL_NO
        if type in _JUNCTIONS:
            _set(s1, symbol(const))
            _set(s2, symbol(const))
    return acc


def _extract(type: ExprType, e1: Expr, e2: Expr) -> tuple[Optional[Expr], Expr, Expr]:
    b1, b2 = _Box(e1), _Box(e2)
    common = _extract_eq(type, None, _root(b1), _root(b2))
    if common is not None:
        b1.value = eliminate_yn(b1.value)
        b2.value = eliminate_yn(b2.value)
    return common, b1.value, b2.value


def extract_eq_and(e1: Expr, e2: Expr) -> tuple[Optional[Expr], Expr, Expr]:
    """Pull the conjuncts common to both expressions out; return (common, e1, e2)."""
    return _extract(ExprType.AND, e1, e2)


def extract_eq_or(e1: Expr, e2: Expr) -> tuple[Optional[Expr], Expr, Expr]:
    """Pull the disjuncts common to both expressions out; return (common, e1, e2)."""
    return _extract(ExprType.OR, e1, e2)


class _DupEliminator:
    """One pass of duplicate elimination, counting the rewrites it made."""

    def __init__(self) -> None:
        self.count = 0

    def first(self, type: ExprType, s1: _Slot, s2: _Slot) -> None:
        e1, e2 = _get(s1), _get(s2)
        if e1.type is type:
            self.first(type, (e1, "left"), s2)
            self.first(type, (_get(s1), "right"), s2)
            return
        if e2.type is type:
            self.first(type, s1, (e2, "left"))
            self.first(type, s1, (_get(s2), "right"))
            return
        if e1 is e2:
            return
        if e1.type in _JUNCTIONS:
            self.first(e1.type, s1, s1)
        e1, e2 = _get(s1), _get(s2)
        if type is ExprType.OR:
            joined, const = _join_or(e1, e2), SYMBOL_NO
        elif type is ExprType.AND:
            joined, const = _join_and(e1, e2), SYMBOL_YES
        else:
            return
        if joined is not None:
            _set(s1, symbol(const))
            _set(s2, joined)
            self.count += 1

    def second(self, type: ExprType, s1: _Slot, s2: _Slot) -> None:
        e1, e2 = _get(s1), _get(s2)
        if e1.type is type:
            self.second(type, (e1, "left"), s2)
            self.second(type, (_get(s1), "right"), s2)
            return
        if e2.type is type:
            self.second(type, s1, (e2, "left"))
            self.second(type, s1, (_get(s2), "right"))
        e1, e2 = _get(s1), _get(s2)
        if e1 is e2:
            return
        if e1.type is ExprType.OR:
            # (FOO || BAR) && (!FOO && !BAR) -> n
            self.second(e1.type, s1, s1)
            negated = transform(unary(ExprType.NOT, _get(s1).copy()))
            _, rest, _ = extract_eq_and(negated, _get(s2).copy())
            if is_yes(rest):
                _set(s1, symbol(SYMBOL_NO))
                self.count += 1
        elif e1.type is ExprType.AND:
            # (FOO && BAR) || (!FOO || !BAR) -> y
            self.second(e1.type, s1, s1)
            negated = transform(unary(ExprType.NOT, _get(s1).copy()))
            _, rest, _ = extract_eq_or(negated, _get(s2).copy())
            if is_no(rest):
                _set(s1, symbol(SYMBOL_YES))
                self.count += 1


def eliminate_dups(e: Optional[Expr]) -> Optional[Expr]:
    """Repeatedly merge redundant operands of AND/OR trees until nothing changes."""
    if e is None:
        return None
    box = _Box(e)
    root = _root(box)
    while True:
        pass_ = _DupEliminator()
        if box.value.type in _JUNCTIONS:
            pass_.first(box.value.type, root, root)
            if box.value.type in _JUNCTIONS:
                pass_.second(box.value.type, root, root)
        if not pass_.count:
            break
        box.value = eliminate_yn(box.value)
    return box.value


def trans_compare(e: Optional[Expr], type: ExprType, sym: Symbol) -> Optional[Expr]:
    """Rewrite '(e) = sym' or '(e) != sym' as an expression over e's operands."""
    if e is None:
        result = symbol(sym)
        return unary(ExprType.NOT, result) if type is ExprType.UNEQUAL else result
    t = e.type
    if t in _JUNCTIONS:
        left = trans_compare(e.left, ExprType.EQUAL, sym)
        right = trans_compare(e.right, ExprType.EQUAL, sym)
        result = e
        if sym is SYMBOL_YES:
            result = binary(t, left, right)
        if sym is SYMBOL_NO:
            flipped = ExprType.OR if t is ExprType.AND else ExprType.AND
            result = binary(flipped, left, right)
        return unary(ExprType.NOT, result) if type is ExprType.UNEQUAL else result
    if t is ExprType.NOT:
        flipped = ExprType.UNEQUAL if type is ExprType.EQUAL else ExprType.EQUAL
        return trans_compare(e.left, flipped, sym)
    if t in _COMPARISONS:
        if type is ExprType.EQUAL:
            if sym is SYMBOL_YES:
                return e.copy()
            if sym is SYMBOL_MOD:
                return symbol(SYMBOL_NO)
            if sym is SYMBOL_NO:
                return unary(ExprType.NOT, e.copy())
        else:
            if sym is SYMBOL_YES:
                return unary(ExprType.NOT, e.copy())
            if sym is SYMBOL_MOD:
                return symbol(SYMBOL_YES)
            if sym is SYMBOL_NO:
                return e.copy()
        return None
    if t is ExprType.SYMBOL:
        return compare(type, e.left, sym)
    return None


def _leftmost_symbol(e: Optional[Expr]) -> Optional[Expr]:
    if e is None:
        return None
    while e.type is not ExprType.SYMBOL:
        e = e.left
    return e.copy()


def simplify_unmet_dep(e1: Expr, e2: Optional[Expr]) -> Optional[Expr]:
    """Return the leading symbol of the longest part of e1 not implied by e2."""
    if e1.type is ExprType.OR:
        return and_(simplify_unmet_dep(e1.left, e2), simplify_unmet_dep(e1.right, e2))
    if e1.type is ExprType.AND:
        merged = eliminate_dups(and_(e1.copy(), e2.copy() if e2 is not None else None))
        result = e1 if not equivalent(merged, e1) else None
    else:
        result = e1
    return _leftmost_symbol(result)