"""hoareup inference systems for triples with updates.

Two judgments share one rule set:

  FREE            loop rules may use any invariant (chosen by the caller)
  ANNOTATED       loop rules must use the invariant written on the loop

Rules, one per statement shape plus the sequence normalisations:

  SKIP        P => u(Q)                                   |- {P} u |- skip {Q}
  ASSIGN      P => u[x:=e](Q)                             |- {P} u |- x := e {Q}
  IF          {P /\\ u(b)} u |- c1 {Q}   {P /\\ u(!b)} u |- c2 {Q}
  WHILE       P => u(I)   {I /\\ b} id |- c {I}   I /\\ !b => Q
  SEQ_SKIP    {P} u |- k {Q}
  SEQ_ASSIGN  {P} u[x:=e] |- k {Q}
  SEQ_IF      {P /\\ u(b)} u |- c1; k {Q}   {P /\\ u(!b)} u |- c2; k {Q}
  SEQ_WHILE   P => u(I)   {I /\\ b} id |- c {I}   {I /\\ !b} id |- k {Q}
  SEQ_SEQ     {P} u |- c1; (c2; k) {Q}

Side conditions are formulas that must be valid; premises are sub-triples.
Every premise is on a statement of strictly smaller ``size``, so building a
derivation by recursion always terminates.

Soundness: a derivation whose side conditions are all valid proves a valid
triple. The free system is also complete given suitable invariants; the
annotated one is complete for a triple only when the program is
well-annotated for it, which is the caller's obligation and is not checked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, FrozenSet, Iterator, Mapping, Optional, Set, Tuple

from hoareup.ast_nodes import (
    BNot, FAnd, FBool, FImplies, Formula,
    Stmt, Skip, Assign, If, While, Seq,
)
from hoareup.errors import MalformedNodeError
from hoareup.hoare import HoareTriple, guard_fails, guard_holds
from hoareup.updates import apply_formula, identity


class Rule(Enum):
    SKIP = "skip"
    ASSIGN = "assign"
    IF = "if"
    WHILE = "while"
    SEQ_SKIP = "seq-skip"
    SEQ_ASSIGN = "seq-assign"
    SEQ_IF = "seq-if"
    SEQ_WHILE = "seq-while"
    SEQ_SEQ = "seq-seq"


# Picks the invariant a loop rule uses for the given loop in the given goal.
InvariantChooser = Callable[[While, HoareTriple], Formula]


def annotated_invariant(loop: While, goal: HoareTriple) -> Formula:
    return loop.invariant


def invariants_from(table: Mapping[While, Formula]) -> InvariantChooser:
    """Chooser that looks loops up in ``table``, falling back to the annotation."""
    def choose(loop: While, goal: HoareTriple) -> Formula:
        return table.get(loop, loop.invariant)
    return choose


@dataclass(frozen=True)
class Inference:
    """One rule application: what it asks to be valid and what it recurses on."""
    rule: Rule
    side_conditions: Tuple[Formula, ...]
    subgoals: Tuple[HoareTriple, ...]


@dataclass(frozen=True)
class Derivation:
    goal: HoareTriple
    rule: Rule
    side_conditions: Tuple[Formula, ...] = ()
    premises: Tuple["Derivation", ...] = field(default=())

    def walk(self) -> Iterator["Derivation"]:
        """Pre-order traversal."""
        stack = [self]
        while stack:
            d = stack.pop()
            yield d
            stack.extend(reversed(d.premises))

    def depth(self) -> int:
        best = 0
        stack = [(self, 1)]
        while stack:
            d, k = stack.pop()
            best = max(best, k)
            stack.extend((p, k + 1) for p in d.premises)
        return best

    def rules(self) -> Set[Rule]:
        return {d.rule for d in self.walk()}

    def pretty(self, indent: int = 0) -> str:
        lines = []
        stack = [(self, indent)]
        while stack:
            d, level = stack.pop()
            pad = "  " * level
            lines.append(f"{pad}{d.rule.value}: {d.goal}")
            for sc in d.side_conditions:
                lines.append(f"{pad}  |= {sc}")
            stack.extend((p, level + 1) for p in reversed(d.premises))
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Rule selection
# ---------------------------------------------------------------------------

def _loop_premises(pre, u, loop: While, inv: Formula):
    entry = FImplies(pre, apply_formula(u, inv))
    body = HoareTriple(FAnd(inv, FBool(loop.cond)), identity(), loop.body, inv)
    return entry, body


def expand(goal: HoareTriple,
           choose: InvariantChooser = annotated_invariant) -> Inference:
    """The unique rule that applies to ``goal``, with its premises."""
    p, u, c, q = goal.pre, goal.update, goal.stmt, goal.post

    if isinstance(c, Skip):
        return Inference(Rule.SKIP, (FImplies(p, apply_formula(u, q)),), ())

    if isinstance(c, Assign):
        u2 = u.assign(c.target, c.value)
        return Inference(Rule.ASSIGN, (FImplies(p, apply_formula(u2, q)),), ())

    if isinstance(c, If):
        return Inference(Rule.IF, (), (
            HoareTriple(guard_holds(p, u, c.cond), u, c.then_branch, q),
            HoareTriple(guard_fails(p, u, c.cond), u, c.else_branch, q),
        ))

    if isinstance(c, While):
        inv = choose(c, goal)
        entry, body = _loop_premises(p, u, c, inv)
        exit_ = FImplies(FAnd(inv, FBool(BNot(c.cond))), q)
        return Inference(Rule.WHILE, (entry, exit_), (body,))

    if isinstance(c, Seq):
        head, rest = c.first, c.second

        if isinstance(head, Skip):
            return Inference(Rule.SEQ_SKIP, (), (HoareTriple(p, u, rest, q),))

        if isinstance(head, Assign):
            u2 = u.assign(head.target, head.value)
            return Inference(Rule.SEQ_ASSIGN, (), (HoareTriple(p, u2, rest, q),))

        if isinstance(head, If):
            return Inference(Rule.SEQ_IF, (), (
                HoareTriple(guard_holds(p, u, head.cond), u,
                            Seq(head.then_branch, rest), q),
                HoareTriple(guard_fails(p, u, head.cond), u,
                            Seq(head.else_branch, rest), q),
            ))

        if isinstance(head, While):
            inv = choose(head, goal)
            entry, body = _loop_premises(p, u, head, inv)
            after = HoareTriple(FAnd(inv, FBool(BNot(head.cond))), identity(), rest, q)
            return Inference(Rule.SEQ_WHILE, (entry,), (body, after))

        if isinstance(head, Seq):
            return Inference(Rule.SEQ_SEQ, (), (
                HoareTriple(p, u, Seq(head.first, Seq(head.second, rest)), q),
            ))

        raise MalformedNodeError(head, "Stmt")

    raise MalformedNodeError(c, "Stmt")


# ---------------------------------------------------------------------------
# Derivations
# ---------------------------------------------------------------------------

def derive(goal: HoareTriple,
           choose: InvariantChooser = annotated_invariant) -> Derivation:
    """Build the (unique, rule-directed) derivation tree for ``goal``."""
    # Frames of (goal, rule application, finished premises); a long sequence
    # gives a deep tree, so the tree is built bottom-up without recursion.
    frames = [(goal, expand(goal, choose), [])]
    while True:
        g, step, done = frames[-1]
        if len(done) < len(step.subgoals):
            sub = step.subgoals[len(done)]
            frames.append((sub, expand(sub, choose), []))
            continue
        frames.pop()
        node = Derivation(g, step.rule, step.side_conditions, tuple(done))
        if not frames:
            return node
        frames[-1][2].append(node)


def derive_free(goal: HoareTriple, choose: InvariantChooser) -> Derivation:
    return derive(goal, choose)


def derive_annotated(goal: HoareTriple) -> Derivation:
    return derive(goal, annotated_invariant)


def side_conditions(derivation: Derivation) -> FrozenSet[Formula]:
    return frozenset(sc for d in derivation.walk() for sc in d.side_conditions)


def is_derivable(derivation: Derivation,
                 is_valid: Callable[[Formula], bool]) -> bool:
    """Does every side condition of ``derivation`` pass ``is_valid``?"""
    return all(is_valid(sc) for sc in side_conditions(derivation))


def first_failure(derivation: Derivation,
                  is_valid: Callable[[Formula], bool],
                  ) -> Optional[Tuple[Derivation, Formula]]:
    """The first rule application (pre-order) with an invalid side condition."""
    for d in derivation.walk():
        for sc in d.side_conditions:
            if not is_valid(sc):
                return d, sc
    return None
