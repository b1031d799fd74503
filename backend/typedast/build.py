"""
pact-analyze — Builders for typed expression trees.

Shorthand constructors for callers that assemble typed trees by hand
(bridges from the type checker, tests).  Nonces for anonymous nodes
come from a :class:`NonceSource` so repeated builds stay deterministic.
"""
from __future__ import annotations

import itertools
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from typedast.nodes import (
    App, Binding, Expr, Fun, Lit, LitValue, Named, Node, Obj, PrimType,
    Table, TcId, Var,
)


class NonceSource:
    """Hands out nonces for nodes the caller did not number."""

    def __init__(self, start: int = 1000) -> None:
        self._counter = itertools.count(start)

    def __call__(self) -> int:
        return next(self._counter)


_default_nonces = NonceSource()


def prim_of_value(value: LitValue) -> PrimType:
    if isinstance(value, bool):
        return PrimType.BOOL
    if isinstance(value, int):
        return PrimType.INTEGER
    if isinstance(value, (Decimal, float)):
        return PrimType.DECIMAL
    if isinstance(value, str):
        return PrimType.STRING
    if isinstance(value, datetime):
        return PrimType.TIME
    raise TypeError(f"Unsupported literal value: {value!r}")


def node(name: str, nonce: int, prim: PrimType | None = None) -> Node:
    return Node(TcId(name, nonce), prim)


def named(name: str, nonce: int, prim: PrimType | None = None) -> Named:
    return Named(name, node(name, nonce, prim))


def var(binder: Named | Node) -> Var:
    return Var(binder.node if isinstance(binder, Named) else binder)


def lit(value: LitValue, nonces: NonceSource | None = None) -> Lit:
    if isinstance(value, float):
        value = Decimal(str(value))
    nonces = nonces or _default_nonces
    return Lit(node("lit", nonces(), prim_of_value(value)), value)


def app(fn: str, *args: Expr, prim: PrimType | None = None,
        nonce: int | None = None, native: bool = True,
        body: Binding | None = None,
        nonces: NonceSource | None = None) -> App:
    if nonce is None:
        nonce = (nonces or _default_nonces)()
    return App(node(fn, nonce, prim), fn, tuple(args), native, body)


def let(bindings: Iterable[tuple[Named, Expr]], *body: Expr,
        nonces: NonceSource | None = None) -> Binding:
    nonces = nonces or _default_nonces
    return Binding(node("let", nonces()), tuple(bindings), tuple(body))


def table(name: str, nonce: int = 0) -> Table:
    return Table(node(name, nonce))


def obj(fields: dict[str, Expr], nonces: NonceSource | None = None) -> Obj:
    nonces = nonces or _default_nonces
    pairs = tuple((lit(k, nonces), v) for k, v in fields.items())
    return Obj(node("object", nonces()), pairs)


def with_read(tbl: Table, key: Expr, columns: dict[Named, str],
              *body: Expr, nonce: int | None = None,
              nonces: NonceSource | None = None) -> App:
    """``(with-read tbl key { binder := "column" ... } body...)``."""
    nonces = nonces or _default_nonces
    binds = tuple((b, lit(col, nonces)) for b, col in columns.items())
    return app("with-read", tbl, key, nonce=nonce, nonces=nonces,
               body=Binding(node("with-read-binding", nonces()), binds, tuple(body)))


def defun(name: str, args: Iterable[Named], *body: Expr) -> Fun:
    return Fun(name, tuple(args), tuple(body))
