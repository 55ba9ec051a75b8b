"""hoareup Update Algebra — delayed symbolic assignment.

An update u is a total substitution  Identifier -> Expr.  It records what each
variable would hold, in terms of the *original* state, after the assignments
performed so far:

  identity()          x |-> x                      for every x
  assign(u, x, e)     x |-> apply_expr(u, e),  y |-> u(y)  for y != x

Updates are lifted homomorphically to every syntactic category, and to
states by evaluation:

  apply_state(u, s)   x |-> eval_expr(s, u(x))

Correctness law, one per category:

  eval(s, apply(u, t)) == eval(apply_state(u, s), t)

Representation: a persistent map plus a default. The default is either the
identity (None) or a constant expression; bindings equal to the default image
are never stored, so two updates are equal exactly when they agree on every
identifier. Every operation returns a new Update, which is what makes
branching on an update free: both branches start from the same value and
neither can observe the other's assignments.
"""

from __future__ import annotations

from typing import Dict, Iterator, Mapping, Optional, Tuple

from hoareup.ast_nodes import (
    Identifier,
    Expr, EConst, EVar, EBin,
    BExpr, BConst, BCmp, BAnd, BOr, BNot,
    Formula, FConst, FCmp, FBool, FAnd, FOr, FNot, FImplies,
)
from hoareup.errors import MalformedNodeError
from hoareup.semantics import eval_expr
from hoareup.state import State


class Update:
    """Total map Identifier -> Expr with an identity or constant default."""

    __slots__ = ("_bindings", "_default")

    def __init__(self, bindings: Optional[Mapping[Identifier, Expr]] = None,
                 default: Optional[Expr] = None) -> None:
        if default is not None and not isinstance(default, Expr):
            raise MalformedNodeError(default, "Expr")
        self._default = default
        self._bindings: Dict[Identifier, Expr] = {}
        for ident, expr in (bindings or {}).items():
            if not isinstance(expr, Expr):
                raise MalformedNodeError(expr, "Expr")
            if expr != self._default_image(ident):
                self._bindings[ident] = expr

    @classmethod
    def identity(cls) -> "Update":
        return cls()

    @classmethod
    def constant(cls, expr: Expr) -> "Update":
        """The update mapping every identifier to ``expr``."""
        return cls(default=expr)

    def _default_image(self, ident: Identifier) -> Expr:
        return EVar(ident) if self._default is None else self._default

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, ident: Identifier) -> Expr:
        return self._bindings.get(ident, self._default_image(ident))

    __getitem__ = get

    @property
    def default(self) -> Optional[Expr]:
        """The constant default, or None for the identity default."""
        return self._default

    def is_identity(self) -> bool:
        return self._default is None and not self._bindings

    def bindings(self) -> Iterator[Tuple[Identifier, Expr]]:
        """Bindings that differ from the default, ordered by identifier."""
        return iter(sorted(self._bindings.items(), key=lambda kv: kv[0]))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def bind(self, ident: Identifier, expr: Expr) -> "Update":
        """Point update: ``ident |-> expr`` verbatim, unchanged elsewhere."""
        bindings = dict(self._bindings)
        bindings[ident] = expr
        return Update(bindings, self._default)

    def assign(self, ident: Identifier, expr: Expr) -> "Update":
        """Compose the assignment ``ident := expr`` after this update."""
        return self.bind(ident, apply_expr(self, expr))

    def copy(self) -> "Update":
        """A distinct instance with the same logical content.

        Updates are never mutated, so later changes to either one (which are
        always new values) are invisible to the other.
        """
        return Update(self._bindings, self._default)

    # ------------------------------------------------------------------
    # Value semantics
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Update):
            return NotImplemented
        return self._default == other._default and self._bindings == other._bindings

    def __hash__(self) -> int:
        return hash((self._default, frozenset(self._bindings.items())))

    def __str__(self) -> str:
        parts = [f"{k} |-> {v}" for k, v in self.bindings()]
        if self._default is not None:
            parts.append(f"_ |-> {self._default}")
        return "{" + ", ".join(parts) + "}"

    def __repr__(self) -> str:
        return f"Update({self})"


# ---------------------------------------------------------------------------
# Algebra
# ---------------------------------------------------------------------------

def identity() -> Update:
    return Update.identity()


def assign(u: Update, ident: Identifier, expr: Expr) -> Update:
    return u.assign(ident, expr)


def apply_expr(u: Update, expr: Expr) -> Expr:
    if isinstance(expr, EConst):
        return expr
    if isinstance(expr, EVar):
        return u.get(expr.ident)
    if isinstance(expr, EBin):
        return EBin(apply_expr(u, expr.left), expr.op, apply_expr(u, expr.right))
    raise MalformedNodeError(expr, "Expr")


def apply_bool(u: Update, bexpr: BExpr) -> BExpr:
    if isinstance(bexpr, BConst):
        return bexpr
    if isinstance(bexpr, BCmp):
        return BCmp(apply_expr(u, bexpr.left), bexpr.op, apply_expr(u, bexpr.right))
    if isinstance(bexpr, BAnd):
        return BAnd(apply_bool(u, bexpr.left), apply_bool(u, bexpr.right))
    if isinstance(bexpr, BOr):
        return BOr(apply_bool(u, bexpr.left), apply_bool(u, bexpr.right))
    if isinstance(bexpr, BNot):
        return BNot(apply_bool(u, bexpr.operand))
    raise MalformedNodeError(bexpr, "BExpr")


def apply_formula(u: Update, formula: Formula) -> Formula:
    if isinstance(formula, FConst):
        return formula
    if isinstance(formula, FCmp):
        return FCmp(apply_expr(u, formula.left), formula.op,
                    apply_expr(u, formula.right))
    if isinstance(formula, FBool):
        return FBool(apply_bool(u, formula.bexpr))
    if isinstance(formula, FAnd):
        return FAnd(apply_formula(u, formula.left), apply_formula(u, formula.right))
    if isinstance(formula, FOr):
        return FOr(apply_formula(u, formula.left), apply_formula(u, formula.right))
    if isinstance(formula, FNot):
        return FNot(apply_formula(u, formula.operand))
    if isinstance(formula, FImplies):
        return FImplies(apply_formula(u, formula.lhs), apply_formula(u, formula.rhs))
    raise MalformedNodeError(formula, "Formula")


def apply_state(u: Update, state: State) -> State:
    """The state ``x |-> eval_expr(state, u(x))``.

    Identifiers outside the explicit bindings of both u and state take the
    same value as each other, so the result is described finitely: the
    default is the state's default (identity u) or the value of u's constant.
    """
    if u.default is None:
        values: Dict[Identifier, int] = dict(state.bindings())
        default = state.default
    else:
        values = {}
        default = eval_expr(state, u.default)
    for ident, expr in u.bindings():
        values[ident] = eval_expr(state, expr)
    return State(values, default)
