"""Engine-neutral formula values.

Formulas are immutable trees built with ordinary Python operators::

    x = Variable("x")
    y = Variable("y")
    formula = And(x + y == 10, x - y == 2)

Comparison operators build :class:`Comparison` nodes instead of returning
booleans, so expressions have no truth value and cannot be hashed. Engine
adapters translate the trees; :func:`evaluate` computes a value under a
concrete assignment.
"""

from __future__ import annotations

import operator
from typing import Callable, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from .constants import VarType

Value = Union[int, bool]
Operand = Union["Expr", int, bool]

COMPARATORS: Dict[str, Callable[[int, int], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class Expr:
    """Base class of every formula node."""

    sort: VarType = VarType.INT

    def children(self) -> Tuple["Expr", ...]:
        return ()

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        raise NotImplementedError

    # arithmetic -------------------------------------------------------
    def __add__(self, other: Operand) -> "Addition":
        return Addition(self, as_expr(other))

    def __radd__(self, other: Operand) -> "Addition":
        return Addition(as_expr(other), self)

    def __sub__(self, other: Operand) -> "Addition":
        return Addition(self, Negation(as_expr(other)))

    def __rsub__(self, other: Operand) -> "Addition":
        return Addition(as_expr(other), Negation(self))

    def __mul__(self, other: Operand) -> "Product":
        return Product(self, as_expr(other))

    def __rmul__(self, other: Operand) -> "Product":
        return Product(as_expr(other), self)

    def __neg__(self) -> "Negation":
        return Negation(self)

    def __abs__(self) -> "Absolute":
        return Absolute(self)

    # comparisons ------------------------------------------------------
    def __eq__(self, other: Operand) -> "Comparison":  # type: ignore[override]
        return Comparison("==", self, as_expr(other))

    def __ne__(self, other: Operand) -> "Comparison":  # type: ignore[override]
        return Comparison("!=", self, as_expr(other))

    def __lt__(self, other: Operand) -> "Comparison":
        return Comparison("<", self, as_expr(other))

    def __le__(self, other: Operand) -> "Comparison":
        return Comparison("<=", self, as_expr(other))

    def __gt__(self, other: Operand) -> "Comparison":
        return Comparison(">", self, as_expr(other))

    def __ge__(self, other: Operand) -> "Comparison":
        return Comparison(">=", self, as_expr(other))

    # connectives ------------------------------------------------------
    def __and__(self, other: Operand) -> "Conjunction":
        return And(self, other)

    def __rand__(self, other: Operand) -> "Conjunction":
        return And(other, self)

    def __or__(self, other: Operand) -> "Disjunction":
        return Or(self, other)

    def __ror__(self, other: Operand) -> "Disjunction":
        return Or(other, self)

    def __invert__(self) -> "Complement":
        return Complement(self)

    def __bool__(self) -> bool:
        raise TypeError(
            "Symbolic expressions have no truth value; assert them on a context instead"
        )

    __hash__ = None  # type: ignore[assignment]


class Variable(Expr):
    """A named, typed symbolic quantity."""

    def __init__(
        self,
        name: str,
        sort: VarType = VarType.INT,
        lo: Optional[int] = None,
        hi: Optional[int] = None,
    ) -> None:
        if not name:
            raise ValueError("Variable name must be non-empty")
        self.name = name
        self.sort = VarType(sort)
        if self.sort == VarType.BOOL and (lo is not None or hi is not None):
            raise ValueError(f"Boolean variable {name!r} cannot carry integer bounds")
        if lo is not None and hi is not None and lo > hi:
            raise ValueError(f"Variable {name!r} has empty domain [{lo}, {hi}]")
        self.lo = lo
        self.hi = hi

    def same_declaration(self, other: "Variable") -> bool:
        return (self.name, self.sort, self.lo, self.hi) == (other.name, other.sort, other.lo, other.hi)

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        if self.name in values:
            return values[self.name]
        if not complete:
            raise KeyError(self.name)
        return False if self.sort == VarType.BOOL else 0

    def __repr__(self) -> str:
        return self.name


class Constant(Expr):
    def __init__(self, value: Value) -> None:
        self.value = value
        self.sort = VarType.BOOL if isinstance(value, bool) else VarType.INT

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        return self.value

    def __repr__(self) -> str:
        return repr(self.value)


class Addition(Expr):
    def __init__(self, *terms: Expr) -> None:
        flat = []
        for term in terms:
            if isinstance(term, Addition):
                flat.extend(term.terms)
            else:
                flat.append(term)
        self.terms: Tuple[Expr, ...] = tuple(flat)

    def children(self) -> Tuple[Expr, ...]:
        return self.terms

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        return sum(int(term.evaluate(values, complete)) for term in self.terms)

    def __repr__(self) -> str:
        return "(" + " + ".join(repr(term) for term in self.terms) + ")"


class Product(Expr):
    def __init__(self, left: Expr, right: Expr) -> None:
        self.left = left
        self.right = right

    def children(self) -> Tuple[Expr, ...]:
        return (self.left, self.right)

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        return int(self.left.evaluate(values, complete)) * int(self.right.evaluate(values, complete))

    def __repr__(self) -> str:
        return f"({self.left!r} * {self.right!r})"


class Negation(Expr):
    def __init__(self, arg: Expr) -> None:
        self.arg = arg

    def children(self) -> Tuple[Expr, ...]:
        return (self.arg,)

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        return -int(self.arg.evaluate(values, complete))

    def __repr__(self) -> str:
        return f"-{self.arg!r}"


class Absolute(Expr):
    def __init__(self, arg: Expr) -> None:
        self.arg = arg

    def children(self) -> Tuple[Expr, ...]:
        return (self.arg,)

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        return abs(int(self.arg.evaluate(values, complete)))

    def __repr__(self) -> str:
        return f"|{self.arg!r}|"


class Conditional(Expr):
    """If-then-else; boolean when both branches are boolean."""

    def __init__(self, cond: Expr, then: Expr, orelse: Expr) -> None:
        self.cond = cond
        self.then = then
        self.orelse = orelse
        both_bool = then.sort == VarType.BOOL and orelse.sort == VarType.BOOL
        self.sort = VarType.BOOL if both_bool else VarType.INT

    def children(self) -> Tuple[Expr, ...]:
        return (self.cond, self.then, self.orelse)

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        branch = self.then if self.cond.evaluate(values, complete) else self.orelse
        value = branch.evaluate(values, complete)
        return bool(value) if self.sort == VarType.BOOL else int(value)

    def __repr__(self) -> str:
        return f"If({self.cond!r}, {self.then!r}, {self.orelse!r})"


class Comparison(Expr):
    sort = VarType.BOOL

    def __init__(self, op: str, left: Expr, right: Expr) -> None:
        if op not in COMPARATORS:
            raise ValueError(f"Unknown comparison operator {op!r}")
        self.op = op
        self.left = left
        self.right = right

    @property
    def is_boolean(self) -> bool:
        """True for ``==``/``!=`` between two boolean operands."""

        return (
            self.op in ("==", "!=")
            and self.left.sort == VarType.BOOL
            and self.right.sort == VarType.BOOL
        )

    def children(self) -> Tuple[Expr, ...]:
        return (self.left, self.right)

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        left = self.left.evaluate(values, complete)
        right = self.right.evaluate(values, complete)
        if self.is_boolean:
            return COMPARATORS[self.op](bool(left), bool(right))
        return COMPARATORS[self.op](int(left), int(right))

    def __repr__(self) -> str:
        return f"({self.left!r} {self.op} {self.right!r})"


class Conjunction(Expr):
    sort = VarType.BOOL

    def __init__(self, args: Tuple[Expr, ...]) -> None:
        self.args = args

    def children(self) -> Tuple[Expr, ...]:
        return self.args

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        return all(bool(arg.evaluate(values, complete)) for arg in self.args)

    def __repr__(self) -> str:
        return "And(" + ", ".join(repr(arg) for arg in self.args) + ")"


class Disjunction(Expr):
    sort = VarType.BOOL

    def __init__(self, args: Tuple[Expr, ...]) -> None:
        self.args = args

    def children(self) -> Tuple[Expr, ...]:
        return self.args

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        return any(bool(arg.evaluate(values, complete)) for arg in self.args)

    def __repr__(self) -> str:
        return "Or(" + ", ".join(repr(arg) for arg in self.args) + ")"


class Complement(Expr):
    sort = VarType.BOOL

    def __init__(self, arg: Expr) -> None:
        self.arg = arg

    def children(self) -> Tuple[Expr, ...]:
        return (self.arg,)

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        return not bool(self.arg.evaluate(values, complete))

    def __repr__(self) -> str:
        return f"Not({self.arg!r})"


class Implication(Expr):
    sort = VarType.BOOL

    def __init__(self, premise: Expr, conclusion: Expr) -> None:
        self.premise = premise
        self.conclusion = conclusion

    def children(self) -> Tuple[Expr, ...]:
        return (self.premise, self.conclusion)

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        if not self.premise.evaluate(values, complete):
            return True
        return bool(self.conclusion.evaluate(values, complete))

    def __repr__(self) -> str:
        return f"Implies({self.premise!r}, {self.conclusion!r})"


class Distinctness(Expr):
    sort = VarType.BOOL

    def __init__(self, args: Tuple[Expr, ...]) -> None:
        self.args = args

    def children(self) -> Tuple[Expr, ...]:
        return self.args

    def evaluate(self, values: Mapping[str, Value], complete: bool = True) -> Value:
        seen = [int(arg.evaluate(values, complete)) for arg in self.args]
        return len(seen) == len(set(seen))

    def __repr__(self) -> str:
        return "Distinct(" + ", ".join(repr(arg) for arg in self.args) + ")"


# ----------------------------------------------------------------------
# Builders
# ----------------------------------------------------------------------
def as_expr(value: Operand) -> Expr:
    """Wrap Python ``int``/``bool`` constants; pass expressions through."""

    if isinstance(value, Expr):
        return value
    if isinstance(value, (bool, int)):
        return Constant(value)
    # numpy integers and similar
    if hasattr(value, "item"):
        return Constant(value.item())
    raise TypeError(f"Cannot use {type(value).__name__} in a formula")


def _collect(args: tuple) -> Tuple[Expr, ...]:
    if len(args) == 1 and not isinstance(args[0], (Expr, bool, int)):
        args = tuple(args[0])
    return tuple(as_expr(arg) for arg in args)


def And(*args) -> Conjunction:
    flat = []
    for arg in _collect(args):
        if isinstance(arg, Conjunction):
            flat.extend(arg.args)
        else:
            flat.append(arg)
    return Conjunction(tuple(flat))


def Or(*args) -> Disjunction:
    flat = []
    for arg in _collect(args):
        if isinstance(arg, Disjunction):
            flat.extend(arg.args)
        else:
            flat.append(arg)
    return Disjunction(tuple(flat))


def Not(arg: Operand) -> Complement:
    return Complement(as_expr(arg))


def Implies(premise: Operand, conclusion: Operand) -> Implication:
    return Implication(as_expr(premise), as_expr(conclusion))


def If(cond: Operand, then: Operand, orelse: Operand) -> Conditional:
    return Conditional(as_expr(cond), as_expr(then), as_expr(orelse))


def Abs(arg: Operand) -> Absolute:
    return Absolute(as_expr(arg))


def Distinct(*args) -> Distinctness:
    return Distinctness(_collect(args))


def Sum(terms: Iterable[Operand]) -> Expr:
    collected = [as_expr(term) for term in terms]
    if not collected:
        return Constant(0)
    return Addition(*collected)


def iter_variables(expr: Expr) -> Iterator[Variable]:
    """Yield every variable occurrence in ``expr`` (duplicates included)."""

    stack = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, Variable):
            yield node
        else:
            stack.extend(node.children())


def evaluate(expr: Operand, values: Mapping[str, Value], complete: bool = True) -> Value:
    """Evaluate ``expr`` under ``values`` (variable name to value).

    With ``complete`` unset, a variable missing from ``values`` raises
    ``KeyError``; otherwise it defaults to ``0``/``False``.
    """

    return as_expr(expr).evaluate(values, complete)
