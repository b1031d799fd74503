"""
pact-analyze — JSON wire schema for typed functions.

The type checker (or any bridge in front of it) ships one function per
document::

    {"name": "transfer",
     "args": [{"name": "amount", "nonce": 1, "type": "decimal"}],
     "body": [{"kind": "app", "fn": "enforce", "args": [...]}]}

Expressions are a discriminated union on ``kind``.  ``to_ast`` turns a
validated model into :mod:`typedast.nodes` values.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, model_validator

from typedast.build import NonceSource, prim_of_value
from typedast.nodes import (
    App, Binding, Expr, Fun, Lit, LitValue, Named, Node, Obj, PrimType,
    Table, TcId, Var,
)


class NodeModel(BaseModel):
    name: str
    nonce: int
    type: PrimType | None = None

    def to_ast(self) -> Node:
        return Node(TcId(self.name, self.nonce), self.type)


class LitModel(BaseModel):
    kind: Literal["lit"]
    value: Union[bool, int, str, float]
    type: PrimType | None = None
    node: NodeModel | None = None

    @model_validator(mode="after")
    def _check_value(self) -> LitModel:
        _coerce_literal(self.value, self.type)
        return self

    def to_ast(self, nonces: NonceSource) -> Lit:
        value = _coerce_literal(self.value, self.type)
        prim = self.type or prim_of_value(value)
        if self.node is not None:
            n = Node(TcId(self.node.name, self.node.nonce), self.node.type or prim)
        else:
            n = Node(TcId("lit", nonces()), prim)
        return Lit(n, value)


class VarModel(BaseModel):
    kind: Literal["var"]
    node: NodeModel

    def to_ast(self, nonces: NonceSource) -> Var:
        return Var(self.node.to_ast())


class TableModel(BaseModel):
    kind: Literal["table"]
    name: str
    nonce: int = 0

    def to_ast(self, nonces: NonceSource) -> Table:
        return Table(Node(TcId(self.name, self.nonce)))


class BinderModel(BaseModel):
    node: NodeModel
    expr: ExprModel

    def to_ast(self, nonces: NonceSource) -> tuple[Named, Expr]:
        n = self.node.to_ast()
        return Named(self.node.name, n), self.expr.to_ast(nonces)


class BindingModel(BaseModel):
    kind: Literal["binding"]
    bindings: list[BinderModel] = Field(default_factory=list)
    body: list[ExprModel] = Field(default_factory=list)
    node: NodeModel | None = None

    def to_ast(self, nonces: NonceSource) -> Binding:
        n = self.node.to_ast() if self.node else Node(TcId("let", nonces()))
        return Binding(
            n,
            tuple(b.to_ast(nonces) for b in self.bindings),
            tuple(e.to_ast(nonces) for e in self.body),
        )


class ObjectModel(BaseModel):
    kind: Literal["object"]
    fields: dict[str, ExprModel] = Field(default_factory=dict)
    node: NodeModel | None = None

    def to_ast(self, nonces: NonceSource) -> Obj:
        n = self.node.to_ast() if self.node else Node(TcId("object", nonces()))
        pairs = tuple(
            (Lit(Node(TcId("lit", nonces()), PrimType.STRING), key), val.to_ast(nonces))
            for key, val in self.fields.items()
        )
        return Obj(n, pairs)


class AppModel(BaseModel):
    kind: Literal["app"]
    fn: str
    args: list[ExprModel] = Field(default_factory=list)
    native: bool = True
    body: BindingModel | None = None
    node: NodeModel | None = None

    def to_ast(self, nonces: NonceSource) -> App:
        n = self.node.to_ast() if self.node else Node(TcId(self.fn, nonces()))
        return App(
            n,
            self.fn,
            tuple(a.to_ast(nonces) for a in self.args),
            self.native,
            self.body.to_ast(nonces) if self.body else None,
        )


ExprModel = Annotated[
    Union[LitModel, VarModel, TableModel, BindingModel, ObjectModel, AppModel],
    Field(discriminator="kind"),
]


class FunctionModel(BaseModel):
    name: str
    args: list[NodeModel] = Field(default_factory=list)
    body: list[ExprModel] = Field(default_factory=list)

    def to_ast(self, nonces: NonceSource | None = None) -> Fun:
        nonces = nonces or NonceSource()
        return Fun(
            self.name,
            tuple(Named(a.name, a.to_ast()) for a in self.args),
            tuple(e.to_ast(nonces) for e in self.body),
        )


BinderModel.model_rebuild()
BindingModel.model_rebuild()
ObjectModel.model_rebuild()
AppModel.model_rebuild()
FunctionModel.model_rebuild()


def _coerce_literal(value: Any, prim: PrimType | None) -> LitValue:
    if prim is PrimType.DECIMAL and not isinstance(value, bool):
        try:
            return Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"invalid decimal literal: {value!r}") from exc
    if prim is PrimType.TIME:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def load_function(data: dict[str, Any]) -> Fun:
    """Validate *data* and return the typed function.

    Raises ``pydantic.ValidationError`` on malformed documents.
    """
    return FunctionModel.model_validate(data).to_ast()
