"""Structured diagnostics for hoareup.

Every diagnostic is machine-readable: a kind, a message and a details dict
that serializes to JSON. A verification condition refuted by the prover is a
diagnostic, never an exception; exceptions are reserved for malformed input
and prover crashes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class ErrorKind(Enum):
    MALFORMED_NODE = "malformed_node"
    VC_REJECTED = "vc_rejected"
    VC_UNKNOWN = "vc_unknown"
    PROVER_ERROR = "prover_error"


@dataclass
class Diagnostic:
    kind: ErrorKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.details:
            d["details"] = self.details
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        return f"[{self.kind.value}]: {self.message}"


def malformed_node(node: Any, expected: str) -> Diagnostic:
    return Diagnostic(
        kind=ErrorKind.MALFORMED_NODE,
        message=f"Expected {expected}, got {type(node).__name__}",
        details={
            "expected": expected,
            "actual_type": type(node).__name__,
            "node": repr(node),
        },
    )


def vc_rejected(
    vc_formula: str,
    witness: Dict[str, int],
    origin: str,
) -> Diagnostic:
    return Diagnostic(
        kind=ErrorKind.VC_REJECTED,
        message=f"Verification condition not valid: {vc_formula}",
        details={
            "vc": vc_formula,
            "origin": origin,
            "counterexample": witness,
        },
    )


def vc_unknown(vc_formula: str, origin: str) -> Diagnostic:
    return Diagnostic(
        kind=ErrorKind.VC_UNKNOWN,
        message=f"Prover could not decide: {vc_formula}",
        details={"vc": vc_formula, "origin": origin},
    )


def prover_error(vc_formula: str, reason: str) -> Diagnostic:
    return Diagnostic(
        kind=ErrorKind.PROVER_ERROR,
        message=f"Prover failed on {vc_formula}: {reason}",
        details={"vc": vc_formula, "reason": reason},
    )


class HoareupError(Exception):
    """Exception wrapping one or more Diagnostics."""

    def __init__(self, diagnostics: Union[List[Diagnostic], Diagnostic]):
        if isinstance(diagnostics, Diagnostic):
            diagnostics = [diagnostics]
        self.diagnostics = diagnostics
        super().__init__(self._format())

    def _format(self) -> str:
        return "\n".join(str(d) for d in self.diagnostics)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps([d.to_dict() for d in self.diagnostics], indent=indent)


class MalformedNodeError(HoareupError, TypeError):
    """Raised when a value is not an AST node of the expected category."""

    def __init__(self, node: Any, expected: str):
        self.node = node
        self.expected = expected
        super().__init__(malformed_node(node, expected))


class ProverError(HoareupError):
    """Raised when the external prover crashes (not when it refutes a VC)."""

    def __init__(self, vc_formula: str, reason: str,
                 cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(prover_error(vc_formula, reason))
