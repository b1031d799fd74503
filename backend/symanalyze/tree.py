"""
pact-analyze — Proof tree.

One node per recognised statement shape.  Every node except
``ReturnUnit`` and ``Terminate`` carries the environment snapshot
valid at that point; continuation nodes carry their child in ``rest``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

import z3

from symanalyze.types import SymbolicEnv, SymVar
from typedast.nodes import LitValue


@dataclass(frozen=True, eq=False)
class IfBranch:
    cond: z3.BoolRef
    true: ProofTree
    false: ProofTree
    env: SymbolicEnv


@dataclass(frozen=True, eq=False)
class EnforceConstraint:
    """``env`` assumes ``cond``; ``violation_env`` assumes its negation."""
    message: str
    cond: z3.BoolRef
    rest: ProofTree
    env: SymbolicEnv
    violation_env: SymbolicEnv


@dataclass(frozen=True, eq=False)
class EnforceKeySet:
    keyset: str
    rest: ProofTree
    env: SymbolicEnv


@dataclass(frozen=True, eq=False)
class WithRead:
    table: str
    key: str
    rest: ProofTree
    env: SymbolicEnv


@dataclass(frozen=True, eq=False)
class TableInsert:
    table: str
    key: str
    rest: ProofTree
    env: SymbolicEnv


@dataclass(frozen=True, eq=False)
class TableUpdate:
    table: str
    key: str
    rest: ProofTree
    env: SymbolicEnv


@dataclass(frozen=True, eq=False)
class ReturnLiteral:
    value: LitValue
    env: SymbolicEnv


@dataclass(frozen=True, eq=False)
class ReturnVariable:
    var: SymVar
    env: SymbolicEnv


@dataclass(frozen=True)
class ReturnUnit:
    pass


@dataclass(frozen=True)
class Terminate:
    pass


@dataclass(frozen=True, eq=False)
class CannotAnalyze:
    why: str
    env: SymbolicEnv
    error: str = "analysis-error"


ProofTree = Union[
    IfBranch, EnforceConstraint, EnforceKeySet, WithRead, TableInsert,
    TableUpdate, ReturnLiteral, ReturnVariable, ReturnUnit, Terminate,
    CannotAnalyze,
]

CONTINUATIONS = (EnforceConstraint, EnforceKeySet, WithRead, TableInsert, TableUpdate)
LEAVES = (ReturnLiteral, ReturnVariable, ReturnUnit, Terminate, CannotAnalyze)


def children(tree: ProofTree) -> tuple[ProofTree, ...]:
    if isinstance(tree, IfBranch):
        return (tree.true, tree.false)
    if isinstance(tree, CONTINUATIONS):
        return (tree.rest,)
    return ()


def size(tree: ProofTree) -> int:
    return 1 + sum(size(c) for c in children(tree))


@dataclass(frozen=True, eq=False)
class FunctionAnalysis:
    """Result of analysing one function."""
    function: str
    env: SymbolicEnv
    tree: ProofTree
    warnings: tuple[str, ...] = field(default_factory=tuple)
