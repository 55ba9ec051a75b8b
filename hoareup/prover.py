"""hoareup Z3 adapter — the downstream prover for verification conditions.

The core never decides validity; this module is the external collaborator
that does. Every VC lives in quantifier-free linear integer arithmetic over
program identifiers (nonlinear only if the program multiplies variables), so
it is handed to Z3 directly:

  VC valid   iff   Not(VC) is UNSAT

A SAT answer yields a counterexample model, reported as a witness mapping
Z3 symbol names (see ``symbol_name``) to integers. UNKNOWN (timeout,
nonlinear give-up) is a result, not an error. Only a crash inside Z3 raises
``ProverError``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict

import z3

from hoareup.ast_nodes import (
    Identifier,
    Expr, EConst, EVar, EBin, BinOp,
    BExpr, BConst, BCmp, BAnd, BOr, BNot, CmpOp,
    Formula, FConst, FCmp, FBool, FAnd, FOr, FNot, FImplies,
)
from hoareup.errors import MalformedNodeError, ProverError
from hoareup.obligations import SolverResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 10_000


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


def symbol_name(ident: Identifier) -> str:
    """Z3 constant name; the tag keeps identically named identifiers apart."""
    return f"{ident.name or 'v'}_{ident.tag}"


class Z3Translator:
    """Translates hoareup terms to Z3, one integer constant per identifier."""

    def __init__(self) -> None:
        self.symbols: Dict[Identifier, z3.ArithRef] = {}

    def symbol(self, ident: Identifier) -> z3.ArithRef:
        sym = self.symbols.get(ident)
        if sym is None:
            sym = z3.Int(symbol_name(ident))
            self.symbols[ident] = sym
        return sym

    def expr(self, e: Expr) -> z3.ArithRef:
        if isinstance(e, EConst):
            return z3.IntVal(e.value)
        if isinstance(e, EVar):
            return self.symbol(e.ident)
        if isinstance(e, EBin):
            return _ARITH[e.op](self.expr(e.left), self.expr(e.right))
        raise MalformedNodeError(e, "Expr")

    def bexpr(self, b: BExpr) -> z3.BoolRef:
        if isinstance(b, BConst):
            return z3.BoolVal(b.value)
        if isinstance(b, BCmp):
            return _COMPARE[b.op](self.expr(b.left), self.expr(b.right))
        if isinstance(b, BAnd):
            return z3.And(self.bexpr(b.left), self.bexpr(b.right))
        if isinstance(b, BOr):
            return z3.Or(self.bexpr(b.left), self.bexpr(b.right))
        if isinstance(b, BNot):
            return z3.Not(self.bexpr(b.operand))
        raise MalformedNodeError(b, "BExpr")

    def formula(self, f: Formula) -> z3.BoolRef:
        if isinstance(f, FConst):
            return z3.BoolVal(f.value)
        if isinstance(f, FCmp):
            return _COMPARE[f.op](self.expr(f.left), self.expr(f.right))
        if isinstance(f, FBool):
            return self.bexpr(f.bexpr)
        if isinstance(f, FAnd):
            return z3.And(self.formula(f.left), self.formula(f.right))
        if isinstance(f, FOr):
            return z3.Or(self.formula(f.left), self.formula(f.right))
        if isinstance(f, FNot):
            return z3.Not(self.formula(f.operand))
        if isinstance(f, FImplies):
            return z3.Implies(self.formula(f.lhs), self.formula(f.rhs))
        raise MalformedNodeError(f, "Formula")


@dataclass
class ProverOutcome:
    result: SolverResult
    witness: Dict[str, int] = field(default_factory=dict)
    smtlib2: str = ""
    duration_ms: float = 0.0

    @property
    def valid(self) -> bool:
        return self.result == SolverResult.UNSAT


def check_valid(formula: Formula, timeout_ms: int = DEFAULT_TIMEOUT_MS,
                emit_smtlib2: bool = True) -> ProverOutcome:
    """Decide validity of ``formula`` by refuting its negation."""
    translator = Z3Translator()
    goal = translator.formula(formula)

    solver = z3.Solver()
    solver.set("timeout", timeout_ms)
    solver.add(z3.Not(goal))
    smtlib2 = solver.to_smt2() if emit_smtlib2 else ""

    start = time.perf_counter()
    try:
        answer = solver.check()
    except z3.Z3Exception as exc:
        raise ProverError(str(formula), str(exc), exc) from exc
    duration_ms = (time.perf_counter() - start) * 1000.0

    if answer == z3.unsat:
        logger.debug("valid (%.1f ms): %s", duration_ms, formula)
        return ProverOutcome(SolverResult.UNSAT, {}, smtlib2, duration_ms)

    if answer == z3.sat:
        model = solver.model()
        witness = {
            symbol_name(ident): model.eval(sym, model_completion=True).as_long()
            for ident, sym in sorted(translator.symbols.items())
        }
        logger.debug("refuted (%.1f ms): %s with %s", duration_ms, formula, witness)
        return ProverOutcome(SolverResult.SAT, witness, smtlib2, duration_ms)

    logger.debug("unknown (%s): %s", solver.reason_unknown(), formula)
    return ProverOutcome(SolverResult.UNKNOWN, {}, smtlib2, duration_ms)


def is_valid(formula: Formula, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> bool:
    """True only when the prover establishes validity."""
    return check_valid(formula, timeout_ms, emit_smtlib2=False).valid
