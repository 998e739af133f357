"""Kconfig dependency expressions: construction, evaluation and printing."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union


class Tristate(IntEnum):
    """The three values a dependency can take."""

    NO = 0
    MOD = 1
    YES = 2


class ExprType(IntEnum):
    """Kinds of expression nodes."""

    NONE = 0
    OR = 1
    AND = 2
    NOT = 3
    EQUAL = 4
    UNEQUAL = 5
    LIST = 6
    SYMBOL = 7
    RANGE = 8


class SymbolType(IntEnum):
    """Types of configuration symbols."""

    UNKNOWN = 0
    BOOLEAN = 1
    TRISTATE = 2
    INT = 3
    HEX = 4
    STRING = 5
    OTHER = 6


CHOICE_PLACEHOLDER = "<choice>....."

_TRISTATE_TEXT = {Tristate.NO: "n", Tristate.MOD: "m", Tristate.YES: "y"}


@dataclass(eq=False)
class Symbol:
    """A configuration symbol; compared by identity like the nodes that use it."""

    name: Optional[str]
    type: SymbolType = SymbolType.UNKNOWN
    tri: Tristate = Tristate.NO
    value: Optional[str] = None
    const: bool = False

    def string_value(self) -> str:
        """Return the current value as it would be written in a config file."""
        if self.type in (SymbolType.BOOLEAN, SymbolType.TRISTATE):
            return _TRISTATE_TEXT[Tristate(self.tri)]
        if self.value is not None:
            return self.value
        if self.const and self.name is not None:
            return self.name
        return ""


SYMBOL_YES = Symbol("y", SymbolType.TRISTATE, Tristate.YES, const=True)
SYMBOL_MOD = Symbol("m", SymbolType.TRISTATE, Tristate.MOD, const=True)
SYMBOL_NO = Symbol("n", SymbolType.TRISTATE, Tristate.NO, const=True)

Operand = Union["Expr", Symbol, None]


@dataclass(eq=False)
class Expr:
    """A node of an expression tree; operands are expressions or symbols."""

    type: ExprType
    left: Operand = None
    right: Operand = None

    def copy(self) -> "Expr":
        """Return a deep copy; symbols are shared, not copied."""
        t = self.type
        if t is ExprType.SYMBOL:
            return Expr(t, self.left, self.right)
        if t is ExprType.NOT:
            return Expr(t, _copy_operand(self.left), self.right)
        if t in (ExprType.EQUAL, ExprType.UNEQUAL):
            return Expr(t, self.left, self.right)
        if t in (ExprType.AND, ExprType.OR, ExprType.LIST):
            return Expr(t, _copy_operand(self.left), _copy_operand(self.right))
        raise ValueError(f"can't copy type {int(t)}")


def _copy_operand(operand: Operand) -> Operand:
    return operand.copy() if isinstance(operand, Expr) else operand


def symbol(sym: Symbol) -> Expr:
    """Build an expression referring to a single symbol."""
    return Expr(ExprType.SYMBOL, sym)


def unary(type: ExprType, expr: Optional[Expr]) -> Expr:
    """Build a node with a single sub-expression."""
    return Expr(type, expr)


def binary(type: ExprType, left: Optional[Expr], right: Optional[Expr]) -> Expr:
    """Build a node with two sub-expressions."""
    return Expr(type, left, right)


def compare(type: ExprType, s1: Symbol, s2: Symbol) -> Expr:
    """Build a comparison between two symbols."""
    return Expr(type, s1, s2)


def and_(e1: Optional[Expr], e2: Optional[Expr]) -> Optional[Expr]:
    """Conjoin two expressions, treating None as absent."""
    if e1 is None:
        return e2
    return binary(ExprType.AND, e1, e2) if e2 is not None else e1


def or_(e1: Optional[Expr], e2: Optional[Expr]) -> Optional[Expr]:
    """Disjoin two expressions, treating None as absent."""
    if e1 is None:
        return e2
    return binary(ExprType.OR, e1, e2) if e2 is not None else e1


def is_yes(e: Optional[Expr]) -> bool:
    """True for a missing expression or the constant 'y'."""
    return e is None or (e.type is ExprType.SYMBOL and e.left is SYMBOL_YES)


def is_no(e: Optional[Expr]) -> bool:
    """True for the constant 'n'."""
    return e is not None and e.type is ExprType.SYMBOL and e.left is SYMBOL_NO


def _is_const_yn(e: Expr) -> bool:
    return e.type is ExprType.SYMBOL and e.left in (SYMBOL_YES, SYMBOL_NO)


def _eliminate_eq(type: ExprType, e1: Expr, e2: Expr) -> tuple[Expr, Expr]:
    if e1.type is type:
        e1.left, e2 = _eliminate_eq(type, e1.left, e2)
        e1.right, e2 = _eliminate_eq(type, e1.right, e2)
        return e1, e2
    if e2.type is type:
        e1, e2.left = _eliminate_eq(type, e1, e2.left)
        e1, e2.right = _eliminate_eq(type, e1, e2.right)
        return e1, e2
    if (
        e1.type is ExprType.SYMBOL
        and e2.type is ExprType.SYMBOL
        and e1.left is e2.left
        and _is_const_yn(e1)
    ):
        return e1, e2
    if not equivalent(e1, e2):
        return e1, e2
    if type is ExprType.OR:
        return symbol(SYMBOL_NO), symbol(SYMBOL_NO)
    if type is ExprType.AND:
        return symbol(SYMBOL_YES), symbol(SYMBOL_YES)
    return e1, e2


def eliminate_eq(
    e1: Optional[Expr], e2: Optional[Expr]
) -> tuple[Optional[Expr], Optional[Expr]]:
    """Remove operands common to both expressions; return the reduced pair."""
    if e1 is None or e2 is None:
        return e1, e2
    if e1.type in (ExprType.OR, ExprType.AND):
        e1, e2 = _eliminate_eq(e1.type, e1, e2)
    if e1.type is not e2.type and e2.type in (ExprType.OR, ExprType.AND):
        e1, e2 = _eliminate_eq(e2.type, e1, e2)
    return eliminate_yn(e1), eliminate_yn(e2)


def equivalent(e1: Expr, e2: Expr) -> bool:
    """Decide whether two expressions are structurally equivalent."""
    if e1.type is not e2.type:
        return False
    t = e1.type
    if t in (ExprType.EQUAL, ExprType.UNEQUAL):
        return e1.left is e2.left and e1.right is e2.right
    if t is ExprType.SYMBOL:
        return e1.left is e2.left
    if t is ExprType.NOT:
        return equivalent(e1.left, e2.left)
    if t in (ExprType.AND, ExprType.OR):
        c1, c2 = eliminate_eq(e1.copy(), e2.copy())
        return (
            c1.type is ExprType.SYMBOL
            and c2.type is ExprType.SYMBOL
            and c1.left is c2.left
        )
    return False


def _become(e: Expr, other: Expr) -> Expr:
    e.type, e.left, e.right = other.type, other.left, other.right
    return e


def _become_const(e: Expr, sym: Symbol) -> Expr:
    e.type, e.left, e.right = ExprType.SYMBOL, sym, None
    return e


def eliminate_yn(e: Optional[Expr]) -> Optional[Expr]:
    """Fold constant 'y' and 'n' operands out of AND and OR nodes."""
    if e is None or e.type not in (ExprType.AND, ExprType.OR):
        return e
    e.left = eliminate_yn(e.left)
    e.right = eliminate_yn(e.right)
    absorbing, neutral = (
        (SYMBOL_NO, SYMBOL_YES) if e.type is ExprType.AND else (SYMBOL_YES, SYMBOL_NO)
    )
    left, right = e.left, e.right
    if left.type is ExprType.SYMBOL:
        if left.left is absorbing:
            return _become_const(e, absorbing)
        if left.left is neutral:
            return _become(e, right)
    if right.type is ExprType.SYMBOL:
        if right.left is absorbing:
            return _become_const(e, absorbing)
        if right.left is neutral:
            return _become(e, left)
    return e


def trans_bool(e: Optional[Expr]) -> Optional[Expr]:
    """Rewrite tristate 'FOO!=n' tests as plain 'FOO'."""
    if e is None:
        return None
    if e.type in (ExprType.AND, ExprType.OR, ExprType.NOT):
        e.left = trans_bool(e.left)
        e.right = trans_bool(e.right)
    elif e.type is ExprType.UNEQUAL:
        if e.left.type is SymbolType.TRISTATE and e.right is SYMBOL_NO:
            e.type = ExprType.SYMBOL
            e.right = None
    return e


def calc_value(e: Optional[Expr]) -> Tristate:
    """Evaluate an expression against the symbols' current values."""
    if e is None:
        return Tristate.YES
    t = e.type
    if t is ExprType.SYMBOL:
        return Tristate(e.left.tri)
    if t is ExprType.AND:
        return min(calc_value(e.left), calc_value(e.right))
    if t is ExprType.OR:
        return max(calc_value(e.left), calc_value(e.right))
    if t is ExprType.NOT:
        return Tristate(2 - calc_value(e.left))
    if t in (ExprType.EQUAL, ExprType.UNEQUAL):
        same = e.left.string_value() == e.right.string_value()
        return Tristate.YES if same == (t is ExprType.EQUAL) else Tristate.NO
    raise ValueError(f"expr_calc_value: {int(t)}?")


_BINDING_RANK = {
    ExprType.EQUAL: 0,
    ExprType.UNEQUAL: 0,
    ExprType.NOT: 1,
    ExprType.AND: 2,
    ExprType.OR: 3,
    ExprType.LIST: 4,
}

_OUTER_RANK = {
    ExprType.NOT: 1,
    ExprType.AND: 2,
    ExprType.OR: 3,
    ExprType.LIST: 4,
    ExprType.NONE: 5,
}


def compare_type(t1: ExprType, t2: ExprType) -> int:
    """Return 1 when a t2 node nested under a t1 node needs parentheses."""
    if t1 is t2:
        return 0
    rank = _BINDING_RANK.get(t1)
    outer = _OUTER_RANK.get(t2)
    if rank is not None and outer is not None and rank < outer:
        return 1
    return -1


def contains_symbol(dep: Optional[Expr], sym: Symbol) -> bool:
    """True if the symbol occurs anywhere in the expression."""
    if dep is None:
        return False
    t = dep.type
    if t in (ExprType.AND, ExprType.OR):
        return contains_symbol(dep.left, sym) or contains_symbol(dep.right, sym)
    if t is ExprType.SYMBOL:
        return dep.left is sym
    if t in (ExprType.EQUAL, ExprType.UNEQUAL):
        return dep.left is sym or dep.right is sym
    if t is ExprType.NOT:
        return contains_symbol(dep.left, sym)
    return False


def depends_symbol(dep: Optional[Expr], sym: Symbol) -> bool:
    """True if the expression can only hold when the symbol is set."""
    if dep is None:
        return False
    t = dep.type
    if t is ExprType.AND:
        return depends_symbol(dep.left, sym) or depends_symbol(dep.right, sym)
    if t is ExprType.SYMBOL:
        return dep.left is sym
    if t is ExprType.EQUAL:
        return dep.left is sym and dep.right in (SYMBOL_YES, SYMBOL_MOD)
    if t is ExprType.UNEQUAL:
        return dep.left is sym and dep.right is SYMBOL_NO
    return False


def _named(sym: Symbol, fallback: str) -> tuple[Optional[Symbol], str]:
    return (sym, sym.name) if sym.name is not None else (None, fallback)


def tokens(
    e: Optional[Expr], prevtoken: ExprType = ExprType.NONE
) -> Iterator[tuple[Optional[Symbol], str]]:
    """Yield (symbol or None, text) pieces that spell out the expression."""
    if e is None:
        yield None, "y"
        return
    paren = compare_type(prevtoken, e.type) > 0
    if paren:
        yield None, "("
    t = e.type
    if t is ExprType.SYMBOL:
        yield _named(e.left, CHOICE_PLACEHOLDER)
    elif t is ExprType.NOT:
        yield None, "!"
        yield from tokens(e.left, ExprType.NOT)
    elif t in (ExprType.EQUAL, ExprType.UNEQUAL):
        yield _named(e.left, "<choice>")
        yield None, "=" if t is ExprType.EQUAL else "!="
        yield e.right, e.right.name
    elif t in (ExprType.OR, ExprType.AND):
        yield from tokens(e.left, t)
        yield None, " || " if t is ExprType.OR else " && "
        yield from tokens(e.right, t)
    elif t is ExprType.LIST:
        yield e.right, e.right.name
        if e.left is not None:
            yield None, " ^ "
            yield from tokens(e.left, ExprType.LIST)
    elif t is ExprType.RANGE:
        yield None, "["
        yield e.left, e.left.name
        yield None, " "
        yield e.right, e.right.name
        yield None, "]"
    else:
        yield None, f"<unknown type {int(t)}>"
    if paren:
        yield None, ")"


def to_string(e: Optional[Expr]) -> str:
    """Render an expression in Kconfig syntax."""
    return "".join(text for _, text in tokens(e))


def gstr_print(e: Optional[Expr], max_width: int = 0) -> str:
    """Render an expression with each symbol's value, wrapping at max_width."""
    out = ""
    for sym, text in tokens(e):
        sym_str = sym.string_value() if sym is not None else None
        if max_width:
            extra = len(text)
            if sym_str is not None:
                extra += 4 + len(sym_str)
            last_cr = out.rfind("\n")
            last_line_length = len(out) - (last_cr if last_cr >= 0 else 0)
            if last_line_length + extra > max_width:
                out += "\\\n"
        out += text
        if sym is not None and sym.type is not SymbolType.UNKNOWN:
            out += f" [={sym_str}]"
    return out