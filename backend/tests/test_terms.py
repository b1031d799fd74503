"""Term builder: literals, variables and operator applications."""
from datetime import datetime
from decimal import Decimal

import pytest
import z3

from symanalyze import PathAnalyzer, negate
from symanalyze.types import (
    TermConstructionFailure, UnresolvedVariable, UnsupportedConstruct,
    UnsupportedType, UntrackedVariable,
)
from typedast.build import app, defun, lit, named, var
from typedast.nodes import PrimType

X = named("x", 0, PrimType.INTEGER)
D = named("d", 1, PrimType.DECIMAL)
FLAG = named("flag", 2, PrimType.BOOL)
S = named("name", 3, PrimType.STRING)
KS = named("ks", 4, PrimType.KEYSET)
GHOST = named("ghost", 99, PrimType.INTEGER)


@pytest.fixture
def analyzer():
    return PathAnalyzer()


@pytest.fixture
def env(analyzer):
    return analyzer.initial_env(defun("f", [X, D, FLAG, S, KS]))


def equivalent(a, b) -> bool:
    solver = z3.Solver()
    solver.add(a != b)
    return solver.check() == z3.unsat


# ══════════════════════════════════════════════════════════════════════
# Literals
# ══════════════════════════════════════════════════════════════════════

def test_literal_constants(analyzer, env):
    assert analyzer.build_term(lit(True), env).eq(z3.BoolVal(True))
    assert analyzer.build_term(lit(7), env).eq(z3.IntVal(7))
    assert analyzer.build_term(lit(Decimal("2.5")), env).eq(z3.RealVal("2.5"))
    assert analyzer.build_term(lit("abc"), env).eq(z3.StringVal("abc"))


def test_time_literal_is_rejected(analyzer, env):
    with pytest.raises(UnsupportedType):
        analyzer.build_term(lit(datetime(2024, 1, 1)), env)


# ══════════════════════════════════════════════════════════════════════
# Variables
# ══════════════════════════════════════════════════════════════════════

def test_tracked_variable(analyzer, env):
    assert analyzer.build_term(var(X), env).eq(z3.Int("x0"))


def test_unresolved_variable(analyzer, env):
    with pytest.raises(UnresolvedVariable):
        analyzer.build_term(var(GHOST), env)


def test_untracked_variable_carries_reason(analyzer, env):
    with pytest.raises(UntrackedVariable) as info:
        analyzer.build_term(var(KS), env)
    assert info.value.reason == "Unsupported Type"


# ══════════════════════════════════════════════════════════════════════
# Operator applications
# ══════════════════════════════════════════════════════════════════════

def test_var_lit_comparison(analyzer, env):
    term = analyzer.build_term(app(">", var(X), lit(10)), env)
    assert equivalent(term, z3.Int("x0") > 10)


def test_lit_var_comparison(analyzer, env):
    term = analyzer.build_term(app("<=", lit(Decimal("1.5")), var(D)), env)
    assert equivalent(term, z3.RealVal("1.5") <= z3.Real("d1"))


def test_var_var_arithmetic_promotes_to_real(analyzer, env):
    term = analyzer.build_term(app("-", var(D), var(X)), env)
    assert term.sort() == z3.RealSort()
    assert equivalent(term == 0, z3.Real("d1") - z3.ToReal(z3.Int("x0")) == 0)


def test_integer_numeral_becomes_real_numeral(analyzer, env):
    term = analyzer.build_term(app(">", var(D), lit(10)), env)
    assert term.arg(1).sort() == z3.RealSort()
    assert z3.is_rational_value(term.arg(1))


def test_logical_connective_over_nested_terms(analyzer, env):
    expr = app("and",
               app(">", var(X), lit(0)),
               app("=", var(FLAG), lit(True)))
    term = analyzer.build_term(expr, env)
    x, flag = z3.Int("x0"), z3.Bool("flag2")
    assert equivalent(term, z3.And(x > 0, flag == True))  # noqa: E712


def test_or_and_equality_of_conditions(analyzer, env):
    expr = app("=", app(">", var(X), lit(0)), app("<", var(D), lit(1)))
    term = analyzer.build_term(expr, env)
    assert equivalent(term, (z3.Int("x0") > 0) == (z3.Real("d1") < 1))
    expr = app("or", app(">", var(X), lit(0)), app("<", var(X), lit(-5)))
    assert equivalent(analyzer.build_term(expr, env),
                      z3.Or(z3.Int("x0") > 0, z3.Int("x0") < -5))


def test_unary_not(analyzer, env):
    term = analyzer.build_term(app("not", app(">", var(X), lit(0))), env)
    assert equivalent(term, z3.Not(z3.Int("x0") > 0))


def test_binary_not_is_unsupported(analyzer, env):
    with pytest.raises(UnsupportedConstruct):
        analyzer.build_term(app("not", var(FLAG), lit(True)), env)


def test_unknown_function_is_unsupported(analyzer, env):
    with pytest.raises(UnsupportedConstruct):
        analyzer.build_term(app("str-to-int", var(S)), env)


def test_nested_arithmetic_operand_is_unsupported(analyzer, env):
    with pytest.raises(UnsupportedConstruct):
        analyzer.build_term(app(">", app("+", var(X), lit(1)), lit(3)), env)


def test_literal_pair_is_unsupported(analyzer, env):
    with pytest.raises(UnsupportedConstruct):
        analyzer.build_term(app("+", lit(1), lit(2)), env)


def test_whole_row_read_is_unsupported_type(analyzer, env):
    with pytest.raises(UnsupportedType):
        analyzer.build_term(app("read", var(S), var(S)), env)


# ══════════════════════════════════════════════════════════════════════
# Failure wrapping
# ══════════════════════════════════════════════════════════════════════

def test_first_failure_is_wrapped(analyzer, env):
    expr = app("and",
               app(">", var(GHOST), lit(1)),
               app(">", var(X), lit(0)))
    with pytest.raises(TermConstructionFailure) as info:
        analyzer.build_term(expr, env)
    assert isinstance(info.value.cause, UnresolvedVariable)


def test_time_operand_is_wrapped(analyzer, env):
    with pytest.raises(TermConstructionFailure) as info:
        analyzer.build_term(app(">", lit(datetime(2024, 1, 1)), var(X)), env)
    assert isinstance(info.value.cause, UnsupportedType)


def test_sort_mismatch_is_a_construction_failure(analyzer, env):
    expr = app("and", app(">", var(X), lit(0)), app("+", var(X), lit(1)))
    with pytest.raises(TermConstructionFailure):
        analyzer.build_term(expr, env)


def test_negate():
    t = z3.Int("x0") > 10
    assert negate(t).eq(z3.Not(t))
