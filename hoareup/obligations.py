"""hoareup proof obligations — the artifacts of one verification run.

Each verification condition handed to the prover is recorded with:

  1. the VC itself and the rule that emitted it (postcondition, loop-entry,
     loop-exit);
  2. the SMT-LIB2 query sent to the solver, so results can be reproduced
     independently;
  3. the solver's answer: UNSAT for the negated VC means the VC is valid,
     SAT comes with a counterexample (the witness), UNKNOWN means the solver
     gave up.

Usage:
    trace = ProofTrace(subject=str(triple))
    trace.add(ProofObligation(origin="loop-entry", vc_formula=str(f),
                              result=SolverResult.UNSAT))
    print(trace.to_ascii_table())
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List

from hoareup import __version__


class SolverResult(str, Enum):
    """Outcome of a solver query on the negation of a VC."""
    UNSAT = "UNSAT"          # negation unsatisfiable, VC valid
    SAT = "SAT"              # counterexample found
    UNKNOWN = "UNKNOWN"      # solver timed out or gave up
    SKIPPED = "SKIPPED"      # not sent to the solver


@dataclass
class ProofObligation:
    origin: str
    vc_formula: str
    smtlib2: str = ""
    result: SolverResult = SolverResult.UNKNOWN
    witness: Dict[str, int] = field(default_factory=dict)
    proved: bool = False
    duration_ms: float = 0.0

    def __post_init__(self) -> None:
        if self.result == SolverResult.UNSAT:
            self.proved = True

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["result"] = self.result.value
        return d

    def status(self) -> str:
        if self.proved:
            return "PROVED"
        if self.result == SolverResult.SAT:
            return "FAILED"
        return self.result.value

    def to_ascii(self) -> str:
        lines = [
            f"  [{self.origin}] {self.status()}",
            f"    VC        : {self.vc_formula}",
        ]
        if self.witness:
            lines.append(f"    Witness   : {json.dumps(self.witness, sort_keys=True)}")
        if self.duration_ms:
            lines.append(f"    Solver ms : {self.duration_ms:.1f}")
        return "\n".join(lines)


@dataclass
class ProofTrace:
    """Ordered collection of the obligations of one verification run."""
    obligations: List[ProofObligation] = field(default_factory=list)
    subject: str = ""
    version: str = __version__

    def add(self, obligation: ProofObligation) -> None:
        self.obligations.append(obligation)

    # ------------------------------------------------------------------
    # Aggregate statistics
    # ------------------------------------------------------------------

    @property
    def total(self) -> int:
        return len(self.obligations)

    @property
    def proved_count(self) -> int:
        return sum(1 for o in self.obligations if o.proved)

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.obligations if o.result == SolverResult.SAT)

    @property
    def unknown_count(self) -> int:
        return sum(1 for o in self.obligations
                   if o.result in (SolverResult.UNKNOWN, SolverResult.SKIPPED))

    @property
    def all_proved(self) -> bool:
        return self.proved_count == self.total

    def witnesses(self) -> List[Dict[str, Any]]:
        return [
            {"origin": o.origin, "vc": o.vc_formula, "witness": o.witness}
            for o in self.obligations
            if o.witness
        ]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "version": self.version,
            "summary": {
                "total": self.total,
                "proved": self.proved_count,
                "failed": self.failed_count,
                "unknown": self.unknown_count,
                "all_proved": self.all_proved,
            },
            "obligations": [o.to_dict() for o in self.obligations],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def to_ascii_table(self) -> str:
        if not self.obligations:
            return "  (no proof obligations recorded)\n"

        col_w = {"origin": 16, "result": 8}
        header = f"  {'Origin':<{col_w['origin']}} {'Result':<{col_w['result']}} VC"
        sep = "  " + "-" * 72
        rows = [header, sep]
        for o in self.obligations:
            rows.append(
                f"  {o.origin:<{col_w['origin']}} "
                f"{o.status():<{col_w['result']}} "
                f"{o.vc_formula}"
            )
        rows.append(sep)
        rows.append(
            f"  {self.proved_count}/{self.total} obligations proved"
            + (f", {self.failed_count} failed" if self.failed_count else "")
            + (f", {self.unknown_count} unknown" if self.unknown_count else "")
        )
        return "\n".join(rows) + "\n"

    def to_smtlib2_bundle(self) -> str:
        """All recorded SMT-LIB2 queries as one annotated script."""
        parts = [
            "; hoareup proof obligation bundle",
            f"; Subject: {self.subject}",
            f"; Version: {self.version}",
            f"; Total obligations: {self.total}",
            "",
        ]
        for i, o in enumerate(self.obligations, 1):
            if not o.smtlib2:
                continue
            parts += [
                f"; --- Obligation {i}: {o.origin} ---",
                f"; VC     : {o.vc_formula}",
                f"; Result : {o.result.value}",
                o.smtlib2,
                "(reset)",
                "",
            ]
        return "\n".join(parts)
