"""hoareup reference semantics — evaluators and the execution relation.

Evaluation is total and pure over well-formed trees:

  eval_expr(s, e)   : int
  eval_bool(s, b)   : bool
  satisfies(s, p)   : bool

Execution realises the big-step relation  s --c--> s'  as a function:

  skip            s --> s
  x := e          s --> s[x := eval_expr(s, e)]
  c1; c2          s --c1--> s1 --c2--> s'
  if b c1 c2      branch on eval_bool(s, b)
  while b c       s --> s                      if not b holds in s
                  s --c--> s1 --while b c--> s' otherwise

Assignments are evaluated directly; the symbolic update algebra is never
consulted here. That is what makes this module a usable oracle for it.

Divergence is not represented: a loop that never exits has no final state.
Because the oracle has to terminate, execution carries a budget of loop
iterations; when it runs out, ``execute`` returns None ("no final state
found") exactly as it does for a genuinely diverging loop.
"""

from __future__ import annotations

from typing import List, Optional

from hoareup.ast_nodes import (
    Expr, EConst, EVar, EBin, BinOp,
    BExpr, BConst, BCmp, BAnd, BOr, BNot, CmpOp,
    Formula, FConst, FCmp, FBool, FAnd, FOr, FNot, FImplies,
    Stmt, Skip, Assign, If, While, Seq,
)
from hoareup.errors import MalformedNodeError
from hoareup.state import State


DEFAULT_MAX_ITERATIONS = 10_000


_ARITH = {
    BinOp.PLUS: lambda l, r: l + r,
    BinOp.MINUS: lambda l, r: l - r,
    BinOp.MUL: lambda l, r: l * r,
}

_COMPARE = {
    CmpOp.EQ: lambda l, r: l == r,
    CmpOp.LT: lambda l, r: l < r,
    CmpOp.LE: lambda l, r: l <= r,
    CmpOp.GT: lambda l, r: l > r,
    CmpOp.GE: lambda l, r: l >= r,
}


# ---------------------------------------------------------------------------
# Evaluators
# ---------------------------------------------------------------------------

def eval_expr(state: State, expr: Expr) -> int:
    if isinstance(expr, EConst):
        return expr.value
    if isinstance(expr, EVar):
        return state.get(expr.ident)
    if isinstance(expr, EBin):
        return _ARITH[expr.op](eval_expr(state, expr.left),
                              eval_expr(state, expr.right))
    raise MalformedNodeError(expr, "Expr")


def eval_bool(state: State, bexpr: BExpr) -> bool:
    if isinstance(bexpr, BConst):
        return bexpr.value
    if isinstance(bexpr, BCmp):
        return _COMPARE[bexpr.op](eval_expr(state, bexpr.left),
                                  eval_expr(state, bexpr.right))
    if isinstance(bexpr, BAnd):
        return eval_bool(state, bexpr.left) and eval_bool(state, bexpr.right)
    if isinstance(bexpr, BOr):
        return eval_bool(state, bexpr.left) or eval_bool(state, bexpr.right)
    if isinstance(bexpr, BNot):
        return not eval_bool(state, bexpr.operand)
    raise MalformedNodeError(bexpr, "BExpr")


def satisfies(state: State, formula: Formula) -> bool:
    if isinstance(formula, FConst):
        return formula.value
    if isinstance(formula, FCmp):
        return _COMPARE[formula.op](eval_expr(state, formula.left),
                                    eval_expr(state, formula.right))
    if isinstance(formula, FBool):
        return eval_bool(state, formula.bexpr)
    if isinstance(formula, FAnd):
        return satisfies(state, formula.left) and satisfies(state, formula.right)
    if isinstance(formula, FOr):
        return satisfies(state, formula.left) or satisfies(state, formula.right)
    if isinstance(formula, FNot):
        return not satisfies(state, formula.operand)
    if isinstance(formula, FImplies):
        return (not satisfies(state, formula.lhs)) or satisfies(state, formula.rhs)
    raise MalformedNodeError(formula, "Formula")


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

class Machine:
    """Executes statements under a shared loop-iteration budget."""

    def __init__(self, max_iterations: int = DEFAULT_MAX_ITERATIONS) -> None:
        self.max_iterations = max_iterations
        self.iterations = 0

    @property
    def exhausted(self) -> bool:
        return self.iterations >= self.max_iterations

    def run(self, state: State, stmt: Stmt) -> Optional[State]:
        # Statements still to run, next one last.
        pending: List[Stmt] = [stmt]
        while pending:
            c = pending.pop()
            if isinstance(c, Skip):
                pass
            elif isinstance(c, Assign):
                state = state.set(c.target, eval_expr(state, c.value))
            elif isinstance(c, Seq):
                pending.append(c.second)
                pending.append(c.first)
            elif isinstance(c, If):
                pending.append(c.then_branch if eval_bool(state, c.cond) else c.else_branch)
            elif isinstance(c, While):
                # One more pass per true guard: the loop goes back under its body.
                if eval_bool(state, c.cond):
                    if self.exhausted:
                        return None
                    self.iterations += 1
                    pending.append(c)
                    pending.append(c.body)
            else:
                raise MalformedNodeError(c, "Stmt")
        return state


def execute(state: State, stmt: Stmt,
            max_iterations: int = DEFAULT_MAX_ITERATIONS) -> Optional[State]:
    """Final state of ``stmt`` from ``state``, or None if none was reached."""
    return Machine(max_iterations).run(state, stmt)


def runs_to(state: State, stmt: Stmt, final: State,
            max_iterations: int = DEFAULT_MAX_ITERATIONS) -> bool:
    """The relation view of ``execute``: does ``stmt`` take ``state`` to ``final``?"""
    result = execute(state, stmt, max_iterations)
    return result is not None and result == final
