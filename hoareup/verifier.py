"""hoareup verification pipeline.

For a triple {P} u |- c {Q}:
  1. Generate the verification conditions with VCGen
  2. Discharge each one with the Z3 adapter
  3. Record every query and answer in a ProofTrace
  4. Report each refuted VC as a VC_REJECTED diagnostic

A refuted VC means the proof attempt failed: the program may be wrong, or
its loop invariants may be too weak for this pre/post pair. To tell the two
apart the counterexample is replayed on the reference interpreter when it
satisfies the precondition; a replay that ends in a state violating Q
confirms a genuine bug.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from hoareup.ast_nodes import Formula, Stmt
from hoareup.config import VerifierConfig, load_config
from hoareup.errors import Diagnostic, vc_rejected, vc_unknown
from hoareup.hoare import HoareTriple, find_counterexample
from hoareup.obligations import ProofObligation, ProofTrace, SolverResult
from hoareup.prover import check_valid, symbol_name
from hoareup.semantics import satisfies
from hoareup.state import State
from hoareup.updates import Update
from hoareup.vcgen import VC, generate_vcs

logger = logging.getLogger(__name__)


@dataclass
class VerificationReport:
    triple: HoareTriple
    trace: ProofTrace
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def verified(self) -> bool:
        return self.trace.all_proved and not self.diagnostics

    def render(self, fmt: str = "text") -> str:
        if fmt == "json":
            return self.trace.to_json()
        lines = [f"Triple: {self.triple}", self.trace.to_ascii_table()]
        lines.extend(str(d) for d in self.diagnostics)
        return "\n".join(lines)


class Verifier:
    """Generates and discharges verification conditions for triples."""

    def __init__(self, config: Optional[VerifierConfig] = None) -> None:
        self.config = config if config is not None else load_config()

    def verify(self, triple: HoareTriple) -> VerificationReport:
        vcs = sorted(generate_vcs(triple.pre, triple.update, triple.stmt, triple.post),
                     key=lambda vc: (vc.origin.value, str(vc.formula)))
        logger.info("verifying %s: %d verification conditions", triple, len(vcs))

        report = VerificationReport(triple, ProofTrace(subject=str(triple)))
        for vc in vcs:
            obligation = self._discharge(vc)
            report.trace.add(obligation)
            diagnostic = self._diagnose(triple, vc, obligation)
            if diagnostic is not None:
                report.diagnostics.append(diagnostic)
                if self.config.fail_fast and obligation.result == SolverResult.SAT:
                    logger.info("stopping at first refuted VC")
                    break

        logger.info("%s: %d/%d proved", "verified" if report.verified else "not verified",
                    report.trace.proved_count, report.trace.total)
        return report

    def _discharge(self, vc: VC) -> ProofObligation:
        outcome = check_valid(vc.formula, self.config.prover_timeout_ms,
                              self.config.emit_smtlib2)
        return ProofObligation(
            origin=vc.origin.value,
            vc_formula=str(vc.formula),
            smtlib2=outcome.smtlib2,
            result=outcome.result,
            witness=outcome.witness,
            duration_ms=outcome.duration_ms,
        )

    def _diagnose(self, triple: HoareTriple, vc: VC,
                  obligation: ProofObligation) -> Optional[Diagnostic]:
        if obligation.result == SolverResult.UNSAT:
            return None
        if obligation.result == SolverResult.SAT:
            diagnostic = vc_rejected(obligation.vc_formula, obligation.witness,
                                     obligation.origin)
            replay = self._replay(triple, obligation.witness)
            if replay is not None:
                diagnostic.details["confirmed_by_execution"] = replay
            return diagnostic
        return vc_unknown(obligation.vc_formula, obligation.origin)

    def _replay(self, triple: HoareTriple, witness: Dict[str, int]) -> Optional[bool]:
        """Run the triple from the witness; None when the witness misses P."""
        by_name = {symbol_name(i): i for i in triple.identifiers()}
        state = State({by_name[k]: v for k, v in witness.items() if k in by_name})
        ce = find_counterexample(triple, [state], self.config.max_iterations)
        if ce is not None:
            return True
        if not satisfies(state, triple.pre):
            return None
        return False


def verify_triple(pre: Formula, stmt: Stmt, post: Formula,
                  update: Optional[Update] = None,
                  config: Optional[VerifierConfig] = None) -> VerificationReport:
    """Verify {pre} update |- stmt {post} (identity update by default)."""
    triple = HoareTriple(pre, update if update is not None else Update.identity(),
                         stmt, post)
    return Verifier(config).verify(triple)
