"""Symbolic types, tracking status and the immutable environment."""
import pytest
import z3

from symanalyze.types import (
    Assert, DuplicateBinding, LostTrack, SymbolicEnv, SymbolicType,
    Tracked, UnresolvedVariable, Untracked, UntrackedVariable, classify,
    construct_var, sort_of,
)
from typedast.build import node
from typedast.nodes import Node, PrimType, TcId


# ══════════════════════════════════════════════════════════════════════
# Classification
# ══════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("prim, sym, sort", [
    (PrimType.INTEGER, SymbolicType.INTEGER, "Int"),
    (PrimType.DECIMAL, SymbolicType.DECIMAL, "Real"),
    (PrimType.BOOL, SymbolicType.BOOLEAN, "Bool"),
    (PrimType.STRING, SymbolicType.STRING, "String"),
])
def test_representable_types_classify(prim, sym, sort):
    assert classify(node("x", 0, prim)) is sym
    assert sort_of(sym) == sort


@pytest.mark.parametrize("prim", [PrimType.TIME, PrimType.KEYSET, PrimType.VALUE, None])
def test_other_types_are_untracked(prim):
    n = node("x", 0, prim)
    assert classify(n) is None
    var = construct_var(n)
    assert var.type is None
    assert isinstance(var.status, Untracked)
    assert not var.tracked


def test_z3_sorts_match_sort_names():
    assert SymbolicType.INTEGER.z3_sort() == z3.IntSort()
    assert SymbolicType.DECIMAL.z3_sort() == z3.RealSort()
    assert SymbolicType.BOOLEAN.z3_sort() == z3.BoolSort()
    assert SymbolicType.STRING.z3_sort() == z3.StringSort()


def test_symbolic_name_comes_from_identity():
    var = construct_var(node("amount", 3, PrimType.DECIMAL))
    assert var.name == "amount3"
    assert var.status == Tracked()
    assert var.term().eq(z3.Real("amount3"))


def test_untracked_var_has_no_term():
    var = construct_var(node("ks", 0, PrimType.KEYSET))
    with pytest.raises(UntrackedVariable) as info:
        var.term()
    assert info.value.reason == "Unsupported Type"


def test_lose_track_keeps_name_and_type():
    var = construct_var(node("a", 1, PrimType.INTEGER)).lose_track("no model")
    assert var.status == LostTrack("no model")
    assert var.type is SymbolicType.INTEGER
    assert var.name == "a1"


# ══════════════════════════════════════════════════════════════════════
# Environment
# ══════════════════════════════════════════════════════════════════════

def test_declare_extends_by_copy():
    n = node("x", 0, PrimType.INTEGER)
    base = SymbolicEnv()
    extended = base.declare(n, construct_var(n))
    assert base.lookup(n) is None
    assert base.commands == ()
    assert extended.get(n).name == "x0"
    assert len(extended.declarations) == 1


def test_duplicate_node_is_rejected_and_env_unchanged():
    n = node("x", 0, PrimType.INTEGER)
    env = SymbolicEnv().declare(n, construct_var(n))
    with pytest.raises(DuplicateBinding):
        env.declare(n, construct_var(n))
    assert len(env.commands) == 1
    assert env.live_names == frozenset({"x0"})


def test_duplicate_symbol_name_is_rejected():
    first = Node(TcId("x", 1), PrimType.INTEGER)
    clash = Node(TcId("x", 1), PrimType.DECIMAL)
    env = SymbolicEnv().declare(first, construct_var(first))
    with pytest.raises(DuplicateBinding):
        env.declare(clash, construct_var(clash))


def test_distinct_bindings_get_distinct_symbols():
    env = SymbolicEnv()
    for nonce in range(3):
        n = node("x", nonce, PrimType.INTEGER)
        env = env.declare(n, construct_var(n))
    assert env.live_names == frozenset({"x0", "x1", "x2"})


def test_commands_keep_introduction_order():
    n = node("x", 0, PrimType.INTEGER)
    x = z3.Int("x0")
    env = SymbolicEnv().declare(n, construct_var(n)).assume(x > 1).assume(x < 5)
    kinds = [type(c).__name__ for c in env.commands]
    assert kinds == ["Declare", "Assert", "Assert"]
    assert env.assertions == (Assert(x > 1), Assert(x < 5))


def test_sibling_extensions_do_not_interfere():
    n = node("x", 0, PrimType.INTEGER)
    x = z3.Int("x0")
    env = SymbolicEnv().declare(n, construct_var(n))
    left = env.assume(x > 0)
    right = env.assume(z3.Not(x > 0))
    assert left.assertions == (Assert(x > 0),)
    assert right.assertions == (Assert(z3.Not(x > 0)),)
    assert env.assertions == ()


def test_get_unknown_node_raises():
    with pytest.raises(UnresolvedVariable):
        SymbolicEnv().get(node("ghost", 9, PrimType.INTEGER))


def test_declaration_smtlib():
    n = node("amount", 2, PrimType.DECIMAL)
    env = SymbolicEnv().declare(n, construct_var(n))
    assert env.declarations[0].smtlib() == "(declare-fun amount2 () Real)"
    ks = node("ks", 3, PrimType.KEYSET)
    env = env.declare(ks, construct_var(ks))
    assert env.declarations[1].smtlib() is None
