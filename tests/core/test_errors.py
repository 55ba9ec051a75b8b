"""hoareup Diagnostics Tests — ERR-001 through ERR-003."""

import json

import pytest

from hoareup.ast_nodes import const, size
from hoareup.errors import (
    Diagnostic, ErrorKind, HoareupError, MalformedNodeError, ProverError,
    malformed_node, vc_rejected, vc_unknown,
)


class TestDiagnostics:
    """ERR-001: diagnostics serialize to JSON."""

    def test_vc_rejected(self):
        d = vc_rejected("(x = 2)", {"x": 1}, "postcondition")
        data = json.loads(d.to_json())
        assert data["kind"] == "vc_rejected"
        assert data["details"]["counterexample"] == {"x": 1}
        assert data["details"]["origin"] == "postcondition"

    def test_no_details_key_when_empty(self):
        assert "details" not in Diagnostic(ErrorKind.VC_UNKNOWN, "m").to_dict()

    def test_str(self):
        assert str(vc_unknown("v", "loop-exit")) == "[vc_unknown]: Prover could not decide: v"


class TestExceptions:
    """ERR-002: exceptions carry their diagnostics."""

    def test_malformed_is_type_error(self):
        with pytest.raises(TypeError) as info:
            size(const(1))  # type: ignore[arg-type]
        err = info.value
        assert isinstance(err, MalformedNodeError)
        assert err.expected == "Stmt"
        assert err.diagnostics[0].kind == ErrorKind.MALFORMED_NODE

    def test_prover_error(self):
        cause = RuntimeError("boom")
        err = ProverError("v", "boom", cause)
        assert err.cause is cause
        assert err.diagnostics[0].details == {"vc": "v", "reason": "boom"}


class TestAggregation:
    """ERR-003: several diagnostics in one exception."""

    def test_many(self):
        err = HoareupError([malformed_node(1, "Expr"), vc_unknown("v", "postcondition")])
        assert len(json.loads(err.to_json())) == 2
        assert str(err).count("\n") == 1
