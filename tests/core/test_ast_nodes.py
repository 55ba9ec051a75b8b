"""hoareup AST Tests — AST-001 through AST-007."""

import pytest

from hoareup.ast_nodes import (
    Identifier, IdentifierPool, BinOp, CmpOp,
    EConst, EVar, EBin, BConst, BCmp, BAnd, BNot,
    FConst, FCmp, FBool, FAnd, FImplies,
    Skip, Assign, If, While, Seq,
    const, var, plus, minus, times, conj, seq, seq_left,
    size, free_identifiers,
)
from hoareup.errors import MalformedNodeError, ErrorKind


ids = IdentifierPool()
x, y, z = ids.names("x", "y", "z")


class TestIdentifiers:
    """AST-001: Identifiers are opaque, ordered atoms."""

    def test_pool_interns_names(self):
        pool = IdentifierPool()
        assert pool["a"] is pool["a"]
        assert pool["a"] != pool["b"]

    def test_pool_assigns_sequential_tags(self):
        pool = IdentifierPool()
        assert [pool[n].tag for n in ("p", "q", "r")] == [0, 1, 2]
        assert len(pool) == 3
        assert "q" in pool

    def test_equality_ignores_name(self):
        assert Identifier(7, "a") == Identifier(7, "b")
        assert hash(Identifier(7, "a")) == hash(Identifier(7))

    def test_ordering_by_tag(self):
        assert sorted([Identifier(3), Identifier(1), Identifier(2)]) == \
            [Identifier(1), Identifier(2), Identifier(3)]

    def test_str_uses_name_or_tag(self):
        assert str(Identifier(4, "n")) == "n"
        assert str(Identifier(4)) == "v4"


class TestBuilders:
    """AST-002: Builders produce the expected trees."""

    def test_arith(self):
        assert plus(var(x), const(1)) == EBin(EVar(x), BinOp.PLUS, EConst(1))
        assert minus(var(x), const(1)).op == BinOp.MINUS
        assert times(var(x), const(1)).op == BinOp.MUL

    def test_seq_is_right_nested(self):
        a, b, c = Assign(x, const(1)), Assign(y, const(2)), Assign(z, const(3))
        assert seq(a, b, c) == Seq(a, Seq(b, c))

    def test_seq_left_is_left_nested(self):
        a, b, c = Assign(x, const(1)), Assign(y, const(2)), Assign(z, const(3))
        assert seq_left(a, b, c) == Seq(Seq(a, b), c)

    def test_empty_seq_is_skip(self):
        assert seq() == Skip()
        assert seq_left() == Skip()

    def test_conj(self):
        p, q = FCmp(var(x), CmpOp.EQ, const(0)), FCmp(var(y), CmpOp.EQ, const(0))
        assert conj() == FConst(True)
        assert conj(p) == p
        assert conj(p, q) == FAnd(p, q)


class TestImmutability:
    """AST-003: Nodes are immutable, hashable values."""

    def test_frozen(self):
        e = EConst(1)
        with pytest.raises(Exception):
            e.value = 2  # type: ignore[misc]

    def test_structural_equality_and_hash(self):
        a = While(BCmp(var(x), CmpOp.LT, const(3)), FConst(True), Assign(x, plus(var(x), const(1))))
        b = While(BCmp(var(x), CmpOp.LT, const(3)), FConst(True), Assign(x, plus(var(x), const(1))))
        assert a == b and hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_distinct_categories_are_unequal(self):
        assert BConst(True) != FConst(True)


class TestSize:
    """AST-004: The size metric weighs a sequence's head twice."""

    def test_atoms(self):
        assert size(Skip()) == 1
        assert size(Assign(x, const(0))) == 1

    def test_compound(self):
        body = Assign(x, const(0))
        assert size(If(BConst(True), body, Skip())) == 3
        assert size(While(BConst(True), FConst(True), body)) == 2
        assert size(Seq(body, Skip())) == 1 + 2 + 1

    def test_reassociation_decreases(self):
        c1, c2, c3 = Assign(x, const(1)), If(BConst(True), Skip(), Skip()), Skip()
        assert size(Seq(Seq(c1, c2), c3)) > size(Seq(c1, Seq(c2, c3)))

    def test_naive_count_does_not_decrease(self):
        def nodes(s):
            if isinstance(s, Seq):
                return 1 + nodes(s.first) + nodes(s.second)
            return 1
        c1, c2, c3 = Skip(), Skip(), Skip()
        assert nodes(Seq(Seq(c1, c2), c3)) == nodes(Seq(c1, Seq(c2, c3)))

    def test_strictly_positive(self):
        for s in (Skip(), Seq(Skip(), Skip()), While(BConst(False), FConst(True), Skip())):
            assert size(s) > 0

    def test_rejects_non_statement(self):
        with pytest.raises(MalformedNodeError) as info:
            size(EConst(1))  # type: ignore[arg-type]
        assert info.value.diagnostics[0].kind == ErrorKind.MALFORMED_NODE


class TestFreeIdentifiers:
    """AST-005: free_identifiers collects every mentioned identifier."""

    def test_expression(self):
        assert free_identifiers(plus(var(x), times(var(y), const(2)))) == {x, y}

    def test_formula_with_embedded_guard(self):
        f = FImplies(FBool(BNot(BCmp(var(z), CmpOp.GE, const(0)))), FConst(False))
        assert free_identifiers(f) == {z}

    def test_statement_includes_targets_and_invariants(self):
        loop = While(BCmp(var(x), CmpOp.LT, const(3)),
                     FCmp(var(z), CmpOp.GE, const(0)),
                     Assign(y, const(1)))
        assert free_identifiers(loop) == {x, y, z}

    def test_constants_have_none(self):
        for n in (EConst(0), BConst(True), FConst(False), Skip()):
            assert free_identifiers(n) == frozenset()

    def test_rejects_foreign_values(self):
        with pytest.raises(MalformedNodeError):
            free_identifiers("x")  # type: ignore[arg-type]


class TestRendering:
    """AST-006: str() gives a readable infix rendering."""

    def test_expr(self):
        assert str(plus(var(x), const(13))) == "(x + 13)"

    def test_formula(self):
        f = FImplies(FAnd(FCmp(var(x), CmpOp.EQ, const(1)), FBool(BAnd(BConst(True), BConst(False)))),
                     FConst(True))
        assert str(f) == "(((x = 1) /\\ [(true && false)]) => true)"

    def test_statement(self):
        s = seq(Assign(x, const(1)), Skip())
        assert str(s) == "x := 1; skip"


class TestLongSequences:
    """AST-007: size, identifiers and rendering handle long sequences."""

    STEPS = [Assign(x, const(k)) for k in range(5000)] + [Assign(y, var(z))]

    def test_size(self):
        assert size(seq(*self.STEPS)) == 3 * (len(self.STEPS) - 1) + 1

    def test_free_identifiers(self):
        assert free_identifiers(seq_left(*self.STEPS)) == {x, y, z}

    def test_str(self):
        rendered = str(seq_left(*self.STEPS))
        assert rendered.startswith("x := 0; x := 1; ")
        assert rendered.endswith("; y := z")
        assert rendered == str(seq(*self.STEPS))
