"""hoareup AST node definitions.

Four syntactic categories, all immutable and hashable:

  Expr      integer expressions          EConst | EVar | EBin
  BExpr     Boolean program expressions  BConst | BCmp | BAnd | BOr | BNot
  Formula   assertions over states       FConst | FCmp | FBool | FAnd | FOr
                                         | FNot | FImplies
  Stmt      annotated statements         Skip | Assign | If | While | Seq

Loop invariants live on ``While`` nodes; they never affect execution.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, Set, Union

from hoareup.errors import MalformedNodeError


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

@dataclass(frozen=True, order=True)
class Identifier:
    """An opaque program variable, compared and ordered by its integer tag."""
    tag: int
    name: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.name if self.name else f"v{self.tag}"


class IdentifierPool:
    """Interns display names to identifiers with sequential tags.

        ids = IdentifierPool()
        x, y = ids["x"], ids["y"]
    """

    def __init__(self) -> None:
        self._by_name: Dict[str, Identifier] = {}

    def __getitem__(self, name: str) -> Identifier:
        ident = self._by_name.get(name)
        if ident is None:
            ident = Identifier(len(self._by_name), name)
            self._by_name[name] = ident
        return ident

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[Identifier]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def names(self, *names: str) -> tuple:
        return tuple(self[n] for n in names)


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------

class BinOp(Enum):
    PLUS = "+"
    MINUS = "-"
    MUL = "*"


class CmpOp(Enum):
    EQ = "="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

class Expr:
    """Base class for integer expressions."""
    __slots__ = ()


@dataclass(frozen=True)
class EConst(Expr):
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class EVar(Expr):
    ident: Identifier

    def __str__(self) -> str:
        return str(self.ident)


@dataclass(frozen=True)
class EBin(Expr):
    left: Expr
    op: BinOp
    right: Expr

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


# ---------------------------------------------------------------------------
# Boolean expressions
# ---------------------------------------------------------------------------

class BExpr:
    """Base class for Boolean program expressions (loop and branch guards)."""
    __slots__ = ()


@dataclass(frozen=True)
class BConst(BExpr):
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class BCmp(BExpr):
    left: Expr
    op: CmpOp
    right: Expr

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


@dataclass(frozen=True)
class BAnd(BExpr):
    left: BExpr
    right: BExpr

    def __str__(self) -> str:
        return f"({self.left} && {self.right})"


@dataclass(frozen=True)
class BOr(BExpr):
    left: BExpr
    right: BExpr

    def __str__(self) -> str:
        return f"({self.left} || {self.right})"


@dataclass(frozen=True)
class BNot(BExpr):
    operand: BExpr

    def __str__(self) -> str:
        return f"!{self.operand}"


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------

class Formula:
    """Base class for quantifier-free assertions over program states."""
    __slots__ = ()


@dataclass(frozen=True)
class FConst(Formula):
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class FCmp(Formula):
    left: Expr
    op: CmpOp
    right: Expr

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


@dataclass(frozen=True)
class FBool(Formula):
    """Embedding of a Boolean program expression into the assertion language."""
    bexpr: BExpr

    def __str__(self) -> str:
        return f"[{self.bexpr}]"


@dataclass(frozen=True)
class FAnd(Formula):
    left: Formula
    right: Formula

    def __str__(self) -> str:
        return f"({self.left} /\\ {self.right})"


@dataclass(frozen=True)
class FOr(Formula):
    left: Formula
    right: Formula

    def __str__(self) -> str:
        return f"({self.left} \\/ {self.right})"


@dataclass(frozen=True)
class FNot(Formula):
    operand: Formula

    def __str__(self) -> str:
        return f"~{self.operand}"


@dataclass(frozen=True)
class FImplies(Formula):
    lhs: Formula
    rhs: Formula

    def __str__(self) -> str:
        return f"({self.lhs} => {self.rhs})"


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

class Stmt:
    """Base class for annotated statements."""
    __slots__ = ()


@dataclass(frozen=True)
class Skip(Stmt):

    def __str__(self) -> str:
        return "skip"


@dataclass(frozen=True)
class Assign(Stmt):
    target: Identifier
    value: Expr

    def __str__(self) -> str:
        return f"{self.target} := {self.value}"


@dataclass(frozen=True)
class If(Stmt):
    cond: BExpr
    then_branch: Stmt
    else_branch: Stmt

    def __str__(self) -> str:
        return f"if {self.cond} then {{ {self.then_branch} }} else {{ {self.else_branch} }}"


@dataclass(frozen=True)
class While(Stmt):
    cond: BExpr
    invariant: Formula
    body: Stmt

    def __str__(self) -> str:
        return f"while {self.cond} invariant {self.invariant} do {{ {self.body} }}"


@dataclass(frozen=True)
class Seq(Stmt):
    first: Stmt
    second: Stmt

    def __str__(self) -> str:
        parts = []
        pending: List[Stmt] = [self]
        while pending:
            s = pending.pop()
            if isinstance(s, Seq):
                pending.append(s.second)
                pending.append(s.first)
            else:
                parts.append(str(s))
        return "; ".join(parts)


Node = Union[Expr, BExpr, Formula, Stmt]


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def const(value: int) -> EConst:
    return EConst(value)


def var(ident: Identifier) -> EVar:
    return EVar(ident)


def plus(left: Expr, right: Expr) -> EBin:
    return EBin(left, BinOp.PLUS, right)


def minus(left: Expr, right: Expr) -> EBin:
    return EBin(left, BinOp.MINUS, right)


def times(left: Expr, right: Expr) -> EBin:
    return EBin(left, BinOp.MUL, right)


def conj(*parts: Formula) -> Formula:
    """Left-nested conjunction; ``conj()`` is ``true``."""
    if not parts:
        return FConst(True)
    result = parts[0]
    for p in parts[1:]:
        result = FAnd(result, p)
    return result


def seq(*stmts: Stmt) -> Stmt:
    """Right-nested sequence ``s1; (s2; (...; sn))``; ``seq()`` is ``skip``."""
    if not stmts:
        return Skip()
    result = stmts[-1]
    for s in reversed(stmts[:-1]):
        result = Seq(s, result)
    return result


def seq_left(*stmts: Stmt) -> Stmt:
    """Left-nested sequence ``((s1; s2); ...); sn``."""
    if not stmts:
        return Skip()
    result = stmts[0]
    for s in stmts[1:]:
        result = Seq(result, s)
    return result


# ---------------------------------------------------------------------------
# Size metric
# ---------------------------------------------------------------------------

def size(stmt: Stmt) -> int:
    """Termination measure for sequence-normalising recursions.

    A sequence weighs its head twice, so that re-associating
    ``(c1; c2); c3`` into ``c1; (c2; c3)`` strictly decreases the size:
    ``3 + 4|c1| + 2|c2| + |c3|`` against ``2 + 2|c1| + 2|c2| + |c3|``.
    """
    total = 0
    # (statement, multiplicity of its contribution)
    pending = [(stmt, 1)]
    while pending:
        s, weight = pending.pop()
        total += weight
        if isinstance(s, (Skip, Assign)):
            pass
        elif isinstance(s, If):
            pending.append((s.then_branch, weight))
            pending.append((s.else_branch, weight))
        elif isinstance(s, While):
            pending.append((s.body, weight))
        elif isinstance(s, Seq):
            pending.append((s.first, 2 * weight))
            pending.append((s.second, weight))
        else:
            raise MalformedNodeError(s, "Stmt")
    return total


# ---------------------------------------------------------------------------
# Free identifiers
# ---------------------------------------------------------------------------

def free_identifiers(node: Node) -> FrozenSet[Identifier]:
    """All identifiers mentioned by a node (loop invariants included)."""
    found: Set[Identifier] = set()
    _collect(node, found)
    return frozenset(found)


def _collect(node: Node, found: Set[Identifier]) -> None:
    pending = [node]
    while pending:
        n = pending.pop()
        if isinstance(n, EVar):
            found.add(n.ident)
        elif isinstance(n, (EConst, BConst, FConst, Skip)):
            pass
        elif isinstance(n, (EBin, BCmp, FCmp, BAnd, BOr, FAnd, FOr)):
            pending.extend((n.left, n.right))
        elif isinstance(n, (BNot, FNot)):
            pending.append(n.operand)
        elif isinstance(n, FBool):
            pending.append(n.bexpr)
        elif isinstance(n, FImplies):
            pending.extend((n.lhs, n.rhs))
        elif isinstance(n, Assign):
            found.add(n.target)
            pending.append(n.value)
        elif isinstance(n, If):
            pending.extend((n.cond, n.then_branch, n.else_branch))
        elif isinstance(n, While):
            pending.extend((n.cond, n.invariant, n.body))
        elif isinstance(n, Seq):
            pending.extend((n.first, n.second))
        else:
            raise MalformedNodeError(n, "AST node")


def identifiers_of(nodes: Iterable[Node]) -> FrozenSet[Identifier]:
    found: Set[Identifier] = set()
    for n in nodes:
        _collect(n, found)
    return frozenset(found)
