"""hoareup Verification Condition Generator.

vcgen(P, u, c, Q) computes a finite set of formulas whose joint validity
implies that {P} u |- c {Q} is derivable in the annotation-directed system,
and which are all valid whenever it is. The update u is threaded forward,
so assignments are never substituted backwards into Q: they accumulate in u
and are applied once, at the end of a path.

  skip                 { P => u(Q) }
  x := e               { P => u[x := e](Q) }
  if b c1 c2           vcgen(P /\\ u(b), u, c1, Q)  U  vcgen(P /\\ u(!b), u, c2, Q)
  while b {I} c        { P => u(I),  I /\\ !b => Q }  U  vcgen(I /\\ b, id, c, I)

  skip; k              vcgen(P, u, k, Q)
  x := e; k            vcgen(P, u[x := e], k, Q)
  if b c1 c2; k        vcgen(P /\\ u(b), u, c1; k, Q)  U  vcgen(P /\\ u(!b), u, c2; k, Q)
  while b {I} c; k     { P => u(I) }  U  vcgen(I /\\ b, id, c, I)  U  vcgen(I /\\ !b, id, k, Q)
  (c1; c2); k          vcgen(P, u, c1; (c2; k), Q)

The loop body and the loop continuation start from the identity update: the
invariant already summarises everything the loop may have done.

Termination: every recursive call, and every pass of the sequence loop, is on a
statement of strictly smaller ``size``. The last rule is why ``size`` weighs a
sequence's head twice; plain node count does not decrease under re-association.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Set

from hoareup.ast_nodes import (
    BNot, FAnd, FBool, FImplies, Formula,
    Stmt, Skip, Assign, If, While, Seq,
)
from hoareup.errors import MalformedNodeError
from hoareup.hoare import HoareTriple, guard_fails, guard_holds
from hoareup.updates import Update, apply_formula, identity

logger = logging.getLogger(__name__)


class VCOrigin(Enum):
    """Which rule emitted a verification condition."""
    POSTCONDITION = "postcondition"   # end of a straight-line path
    LOOP_ENTRY = "loop-entry"         # precondition establishes the invariant
    LOOP_EXIT = "loop-exit"           # invariant and negated guard give the post


@dataclass(frozen=True)
class VC:
    formula: Formula
    origin: VCOrigin

    def __str__(self) -> str:
        return f"[{self.origin.value}] {self.formula}"


def generate_vcs(pre: Formula, update: Update, stmt: Stmt,
                 post: Formula) -> FrozenSet[VC]:
    """VCGen with each obligation tagged by the rule that produced it."""
    vcs = _vcgen(pre, update, stmt, post, 0)
    logger.debug("generated %d verification conditions", len(vcs))
    return vcs


def vcgen(pre: Formula, update: Update, stmt: Stmt,
          post: Formula) -> FrozenSet[Formula]:
    """The set of verification conditions for {pre} update |- stmt {post}."""
    return frozenset(vc.formula for vc in generate_vcs(pre, update, stmt, post))


def vcgen_triple(triple: HoareTriple) -> FrozenSet[Formula]:
    return vcgen(triple.pre, triple.update, triple.stmt, triple.post)


def _vcgen(p: Formula, u: Update, c: Stmt, q: Formula,
           depth: int) -> FrozenSet[VC]:
    found: Set[VC] = set()
    d = depth + 1

    # Sequence heads are consumed in place; only branches and loop bodies recurse.
    while True:
        logger.debug("%svcgen %s", "  " * depth, type(c).__name__)

        if isinstance(c, Seq):
            head, rest = c.first, c.second

            if isinstance(head, Skip):
                c = rest
                continue

            if isinstance(head, Assign):
                u = u.assign(head.target, head.value)
                c = rest
                continue

            if isinstance(head, Seq):
                c = Seq(head.first, Seq(head.second, rest))
                continue

            if isinstance(head, If):
                found |= _vcgen(guard_holds(p, u, head.cond), u,
                                Seq(head.then_branch, rest), q, d)
                found |= _vcgen(guard_fails(p, u, head.cond), u,
                                Seq(head.else_branch, rest), q, d)
                return frozenset(found)

            if isinstance(head, While):
                inv = head.invariant
                found.add(VC(FImplies(p, apply_formula(u, inv)), VCOrigin.LOOP_ENTRY))
                found |= _vcgen(FAnd(inv, FBool(head.cond)), identity(), head.body, inv, d)
                p, u, c = FAnd(inv, FBool(BNot(head.cond))), identity(), rest
                continue

            raise MalformedNodeError(head, "Stmt")

        if isinstance(c, Skip):
            found.add(VC(FImplies(p, apply_formula(u, q)), VCOrigin.POSTCONDITION))
            return frozenset(found)

        if isinstance(c, Assign):
            u2 = u.assign(c.target, c.value)
            found.add(VC(FImplies(p, apply_formula(u2, q)), VCOrigin.POSTCONDITION))
            return frozenset(found)

        if isinstance(c, If):
            found |= _vcgen(guard_holds(p, u, c.cond), u, c.then_branch, q, d)
            found |= _vcgen(guard_fails(p, u, c.cond), u, c.else_branch, q, d)
            return frozenset(found)

        if isinstance(c, While):
            inv = c.invariant
            found.add(VC(FImplies(p, apply_formula(u, inv)), VCOrigin.LOOP_ENTRY))
            found.add(VC(FImplies(FAnd(inv, FBool(BNot(c.cond))), q), VCOrigin.LOOP_EXIT))
            found |= _vcgen(FAnd(inv, FBool(c.cond)), identity(), c.body, inv, d)
            return frozenset(found)

        raise MalformedNodeError(c, "Stmt")
