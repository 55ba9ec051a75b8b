"""hoareup Hoare triples with updates and their semantic validity.

A triple  {P} u |- c {Q}  asserts:

  for all states s, s':  s |= P  and  apply_state(u, s) --c--> s'  imply  s' |= Q

The update u is the symbolic prefix of the program already executed; the
ordinary Hoare triple {P} c {Q} is the special case u = identity.

Validity quantifies over every state, which no finite check can do. The
oracle below decides it over a caller-supplied sample of states, typically
``enumerate_states`` over the triple's identifiers and a small value range.
It is the ground truth the inference systems and VCGen are tested against.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Iterator, Optional, Sequence, Tuple

from hoareup.ast_nodes import (
    BExpr, BNot, FAnd, FBool, Formula, Identifier, Stmt, identifiers_of,
)
from hoareup.semantics import DEFAULT_MAX_ITERATIONS, execute, satisfies
from hoareup.state import State
from hoareup.updates import Update, apply_bool, apply_state


@dataclass(frozen=True)
class HoareTriple:
    pre: Formula
    update: Update
    stmt: Stmt
    post: Formula

    @classmethod
    def plain(cls, pre: Formula, stmt: Stmt, post: Formula) -> "HoareTriple":
        """{pre} stmt {post} under the identity update."""
        return cls(pre, Update.identity(), stmt, post)

    def identifiers(self) -> FrozenSet[Identifier]:
        """Identifiers of pre, stmt, post and of the update's expressions."""
        nodes = [self.pre, self.stmt, self.post]
        for ident, expr in self.update.bindings():
            nodes.append(expr)
        found = set(identifiers_of(nodes))
        found.update(ident for ident, _ in self.update.bindings())
        if self.update.default is not None:
            found.update(identifiers_of([self.update.default]))
        return frozenset(found)

    def __str__(self) -> str:
        if self.update.is_identity():
            return f"{{{self.pre}}} {self.stmt} {{{self.post}}}"
        return f"{{{self.pre}}} {self.update} |- {self.stmt} {{{self.post}}}"


@dataclass(frozen=True)
class Counterexample:
    """A state satisfying pre whose execution ends in a state violating post."""
    initial: State
    final: State
    start: State = field(compare=False)   # apply_state(u, initial)


def enumerate_states(idents: Iterable[Identifier],
                     values: Sequence[int] = (-2, -1, 0, 1, 2),
                     default: int = 0) -> Iterator[State]:
    """Every valuation of ``idents`` over ``values``; other identifiers hold ``default``."""
    ordered = sorted(set(idents))
    for combo in itertools.product(values, repeat=len(ordered)):
        yield State(dict(zip(ordered, combo)), default)


def find_counterexample(triple: HoareTriple, states: Iterable[State],
                        max_iterations: int = DEFAULT_MAX_ITERATIONS,
                        ) -> Optional[Counterexample]:
    for s in states:
        if not satisfies(s, triple.pre):
            continue
        start = apply_state(triple.update, s)
        final = execute(start, triple.stmt, max_iterations)
        if final is not None and not satisfies(final, triple.post):
            return Counterexample(s, final, start)
    return None


def valid_triple(triple: HoareTriple, states: Iterable[State],
                 max_iterations: int = DEFAULT_MAX_ITERATIONS) -> bool:
    """Partial correctness of ``triple`` over the given states."""
    return find_counterexample(triple, states, max_iterations) is None


def valid_formula(formula: Formula, states: Iterable[State]) -> bool:
    """Does every sampled state satisfy ``formula``?"""
    return all(satisfies(s, formula) for s in states)


def exhaustive_states(triple: HoareTriple,
                      values: Sequence[int] = (-2, -1, 0, 1, 2),
                      ) -> Tuple[State, ...]:
    return tuple(enumerate_states(triple.identifiers(), values))


# ---------------------------------------------------------------------------
# Guard strengthening shared by the rules for conditionals and loops
# ---------------------------------------------------------------------------

def guard_holds(pre: Formula, update: Update, cond: BExpr) -> Formula:
    """``pre /\\ u(b)``"""
    return FAnd(pre, FBool(apply_bool(update, cond)))


def guard_fails(pre: Formula, update: Update, cond: BExpr) -> Formula:
    """``pre /\\ u(!b)``"""
    return FAnd(pre, FBool(apply_bool(update, BNot(cond))))
