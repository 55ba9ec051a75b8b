"""hoareup Z3 Adapter Tests — PRV-001 through PRV-004."""

import pytest
import z3

from hoareup.ast_nodes import (
    Identifier, IdentifierPool, CmpOp,
    BAnd, BCmp, BConst, BNot, BOr,
    FAnd, FBool, FConst, FCmp, FImplies, FNot, FOr,
    const, var, plus, minus, times,
)
from hoareup.errors import MalformedNodeError
from hoareup.obligations import SolverResult
from hoareup.prover import Z3Translator, check_valid, is_valid, symbol_name


ids = IdentifierPool()
x, y = ids.names("x", "y")


class TestTranslation:
    """PRV-001: terms translate to the matching Z3 terms."""

    def test_symbols_are_shared(self):
        tr = Z3Translator()
        assert tr.symbol(x) is tr.symbol(x)
        assert set(tr.symbols) == {x}

    def test_symbol_names_keep_tags_apart(self):
        assert symbol_name(Identifier(1, "k")) != symbol_name(Identifier(2, "k"))
        assert symbol_name(Identifier(3)) == "v_3"

    def test_arith_and_connectives(self):
        tr = Z3Translator()
        f = FImplies(
            FAnd(FCmp(var(x), CmpOp.GE, const(0)), FBool(BOr(BConst(False), BNot(BConst(False))))),
            FOr(FNot(FConst(False)), FCmp(times(var(x), const(2)), CmpOp.EQ, minus(var(y), const(1)))),
        )
        assert z3.is_bool(tr.formula(f))

    def test_bexpr(self):
        tr = Z3Translator()
        assert z3.is_bool(tr.bexpr(BAnd(BCmp(var(x), CmpOp.LT, var(y)), BConst(True))))

    def test_malformed(self):
        with pytest.raises(MalformedNodeError):
            Z3Translator().formula(const(1))  # type: ignore[arg-type]


class TestValidity:
    """PRV-002: valid formulas are proved (negation UNSAT)."""

    def test_tautology(self):
        assert is_valid(FImplies(FCmp(var(x), CmpOp.GT, const(0)), FCmp(var(x), CmpOp.GE, const(1))))

    def test_constants(self):
        assert is_valid(FConst(True))
        assert not is_valid(FConst(False))

    def test_embedded_guard(self):
        g = BCmp(var(x), CmpOp.LT, var(y))
        assert is_valid(FImplies(FBool(g), FNot(FBool(BNot(g)))))

    def test_outcome_fields(self):
        out = check_valid(FCmp(plus(var(x), const(0)), CmpOp.EQ, var(x)))
        assert out.valid and out.result == SolverResult.UNSAT
        assert out.witness == {}
        assert "assert" in out.smtlib2


class TestCounterexamples:
    """PRV-003: invalid formulas come with a witness model."""

    def test_witness_refutes(self):
        f = FImplies(FCmp(var(x), CmpOp.GE, const(0)), FCmp(var(x), CmpOp.GT, const(5)))
        out = check_valid(f)
        assert out.result == SolverResult.SAT
        assert 0 <= out.witness[symbol_name(x)] <= 5

    def test_witness_covers_all_symbols(self):
        f = FCmp(var(x), CmpOp.EQ, var(y))
        out = check_valid(f)
        assert set(out.witness) == {symbol_name(x), symbol_name(y)}
        assert out.witness[symbol_name(x)] != out.witness[symbol_name(y)]

    def test_same_name_identifiers_get_separate_entries(self):
        first, second = Identifier(0, "k"), Identifier(1, "k")
        out = check_valid(FImplies(FCmp(var(first), CmpOp.EQ, const(1)),
                                   FCmp(var(second), CmpOp.EQ, const(1))))
        assert out.result == SolverResult.SAT
        assert out.witness[symbol_name(first)] == 1
        assert out.witness[symbol_name(second)] != 1


class TestOptions:
    """PRV-004: SMT-LIB2 emission can be turned off."""

    def test_no_smtlib2(self):
        out = check_valid(FConst(True), emit_smtlib2=False)
        assert out.smtlib2 == "" and out.valid
