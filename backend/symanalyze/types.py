"""
pact-analyze — Symbolic data types and environment.

All data-classes that flow through the path analyzer are defined here,
together with the analysis error hierarchy, ensuring zero circular
imports.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union

import z3

from typedast.nodes import Node, PrimType

logger = logging.getLogger("pact_analyze.symanalyze.types")


# ── Errors ────────────────────────────────────────────────────────────

class AnalysisError(Exception):
    """Base class for everything that ends a single analysis path."""
    kind = "analysis-error"


class UnresolvedVariable(AnalysisError):
    kind = "unresolved-variable"


class UntrackedVariable(AnalysisError):
    kind = "untracked-variable"

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class DuplicateBinding(AnalysisError):
    kind = "duplicate-binding"


class UnsupportedConstruct(AnalysisError):
    kind = "unsupported-construct"

    def __init__(self, message: str, shape: str = "") -> None:
        super().__init__(message)
        self.shape = shape


class UnsupportedType(AnalysisError):
    kind = "unsupported-type"


class TermConstructionFailure(AnalysisError):
    """Wraps the first failure met while composing a multi-part term."""
    kind = "term-construction-failure"

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


# ── Symbolic types ────────────────────────────────────────────────────

class SymbolicType(Enum):
    INTEGER = "Int"
    DECIMAL = "Real"
    BOOLEAN = "Bool"
    STRING = "String"

    def z3_sort(self) -> z3.SortRef:
        if self is SymbolicType.INTEGER:
            return z3.IntSort()
        if self is SymbolicType.DECIMAL:
            return z3.RealSort()
        if self is SymbolicType.BOOLEAN:
            return z3.BoolSort()
        return z3.StringSort()


_PRIM_TO_SYM: dict[PrimType, SymbolicType] = {
    PrimType.INTEGER: SymbolicType.INTEGER,
    PrimType.DECIMAL: SymbolicType.DECIMAL,
    PrimType.BOOL: SymbolicType.BOOLEAN,
    PrimType.STRING: SymbolicType.STRING,
}


def classify(node: Node) -> SymbolicType | None:
    """Symbolic type of *node*, or ``None`` if it has no faithful sort."""
    if node.prim is None:
        return None
    return _PRIM_TO_SYM.get(node.prim)


def sort_of(sym_type: SymbolicType) -> str:
    return sym_type.value


def prim_of_term(term: z3.ExprRef) -> PrimType | None:
    """Primitive type whose solver sort matches *term*, if any."""
    for prim, sym_type in _PRIM_TO_SYM.items():
        if term.sort() == sym_type.z3_sort():
            return prim
    return None


# ── Tracking status ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Tracked:
    label = "tracked"


@dataclass(frozen=True)
class Untracked:
    reason: str
    label = "untracked"


@dataclass(frozen=True)
class LostTrack:
    reason: str
    label = "lost-track"


TrackingStatus = Union[Tracked, Untracked, LostTrack]
TRACKED = Tracked()


# ── Symbolic variables ────────────────────────────────────────────────

@dataclass(frozen=True)
class SymVar:
    name: str
    type: SymbolicType | None
    status: TrackingStatus = TRACKED

    @property
    def tracked(self) -> bool:
        return isinstance(self.status, Tracked)

    def term(self) -> z3.ExprRef:
        if self.type is None:
            raise UntrackedVariable(
                f"Variable {self.name} has no solver sort",
                getattr(self.status, "reason", "Unsupported Type"),
            )
        return z3.Const(self.name, self.type.z3_sort())

    def lose_track(self, reason: str) -> SymVar:
        return SymVar(self.name, self.type, LostTrack(reason))


def construct_var(node: Node) -> SymVar:
    sym_type = classify(node)
    status: TrackingStatus = TRACKED if sym_type is not None else Untracked("Unsupported Type")
    return SymVar(name=node.unique_id, type=sym_type, status=status)


# ── Solver commands ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Declare:
    var: SymVar

    def smtlib(self) -> str | None:
        """``(declare-fun ...)`` text, or ``None`` for unsupported sorts."""
        if self.var.type is None:
            return None
        return f"(declare-fun {self.var.term().sexpr()} () {sort_of(self.var.type)})"


@dataclass(frozen=True, eq=False)
class Assert:
    term: z3.BoolRef

    def smtlib(self) -> str:
        return f"(assert {self.term.sexpr()})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Assert) and self.term.eq(other.term)

    def __hash__(self) -> int:
        return self.term.hash()


Command = Union[Declare, Assert]


# ── SymbolicEnv ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class SymbolicEnv:
    """Immutable proof state threaded through the analyzer.

    ``bindings`` maps type-checker nodes to their symbolic variables;
    ``commands`` is the ordered declare/assert sequence.  Every
    extension returns a new environment and leaves ``self`` untouched,
    so sibling paths never observe each other's facts.
    """
    bindings: Mapping[Node, SymVar] = field(
        default_factory=lambda: MappingProxyType({}))
    commands: tuple[Command, ...] = ()

    def get(self, node: Node) -> SymVar:
        if node in self.bindings:
            return self.bindings[node]
        raise UnresolvedVariable(f"Variable {node.unique_id} not found")

    def lookup(self, node: Node) -> SymVar | None:
        return self.bindings.get(node)

    @property
    def live_names(self) -> frozenset[str]:
        return frozenset(v.name for v in self.bindings.values())

    @property
    def declarations(self) -> tuple[Declare, ...]:
        return tuple(c for c in self.commands if isinstance(c, Declare))

    @property
    def assertions(self) -> tuple[Assert, ...]:
        return tuple(c for c in self.commands if isinstance(c, Assert))

    def declare(self, node: Node, var: SymVar) -> SymbolicEnv:
        if node in self.bindings:
            raise DuplicateBinding(
                f"Duplicate variable declared: {node.unique_id} is already bound"
            )
        if var.name in self.live_names:
            raise DuplicateBinding(
                f"Duplicate variable declared: symbol {var.name} is already live"
            )
        bindings = dict(self.bindings)
        bindings[node] = var
        return SymbolicEnv(MappingProxyType(bindings), self.commands + (Declare(var),))

    def assume(self, term: z3.BoolRef) -> SymbolicEnv:
        return SymbolicEnv(self.bindings, self.commands + (Assert(term),))
