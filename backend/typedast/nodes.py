"""
pact-analyze — Typed expression tree.

The closed grammar produced by the type checker for one contract
function.  Every expression carries a :class:`Node` (stable identity
plus the resolved primitive type, if any).  The path analyzer only
ever dispatches on the constructors defined here.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Union

LitValue = Union[bool, int, Decimal, str, datetime]


class PrimType(str, Enum):
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOL = "bool"
    STRING = "string"
    TIME = "time"
    KEYSET = "keyset"
    VALUE = "value"


# ── Identity ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TcId:
    """Type-checker identity: source name plus a disambiguating nonce."""
    name: str
    nonce: int

    @property
    def unique_id(self) -> str:
        return f"{self.name}{self.nonce}"


@dataclass(frozen=True)
class Node:
    tc_id: TcId
    prim: PrimType | None = None

    @property
    def unique_id(self) -> str:
        return self.tc_id.unique_id


@dataclass(frozen=True)
class Named:
    name: str
    node: Node


# ── Expressions ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class Expr:
    node: Node


@dataclass(frozen=True)
class Lit(Expr):
    value: LitValue = False


@dataclass(frozen=True)
class Var(Expr):
    pass


@dataclass(frozen=True)
class Binding(Expr):
    """``let``-style binding group; also the body of ``with-read``."""
    bindings: tuple[tuple[Named, Expr], ...] = ()
    body: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class App(Expr):
    """Function application.

    ``native`` distinguishes built-ins from user ``defun`` calls.
    ``body`` is only set for natives with a special binding form.
    """
    fn: str = ""
    args: tuple[Expr, ...] = ()
    native: bool = True
    body: Binding | None = None


@dataclass(frozen=True)
class Table(Expr):
    @property
    def name(self) -> str:
        return self.node.tc_id.name


@dataclass(frozen=True)
class Obj(Expr):
    fields: tuple[tuple[Expr, Expr], ...] = ()


@dataclass(frozen=True)
class Fun:
    name: str
    args: tuple[Named, ...] = ()
    body: tuple[Expr, ...] = field(default_factory=tuple)


# ── Diagnostics ───────────────────────────────────────────────────────

def lit_text(value: LitValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, datetime):
        return f'(time "{value.isoformat()}")'
    return str(value)


def shape_of(expr: Expr) -> str:
    """Compact s-expression rendering used in error messages."""
    if isinstance(expr, Lit):
        return lit_text(expr.value)
    if isinstance(expr, Var):
        return expr.node.tc_id.name
    if isinstance(expr, Table):
        return f"<table {expr.name}>"
    if isinstance(expr, Obj):
        inner = ", ".join(f"{shape_of(k)}: {shape_of(v)}" for k, v in expr.fields)
        return "{" + inner + "}"
    if isinstance(expr, Binding):
        binds = " ".join(f"({n.name} {shape_of(e)})" for n, e in expr.bindings)
        body = " ".join(shape_of(e) for e in expr.body)
        return f"(let ({binds}) {body})"
    if isinstance(expr, App):
        parts = [expr.fn if expr.native else f"{expr.fn}*"]
        parts.extend(shape_of(a) for a in expr.args)
        if expr.body is not None:
            parts.append(shape_of(expr.body))
        return "(" + " ".join(parts) + ")"
    return f"<{type(expr).__name__}>"
