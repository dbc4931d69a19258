"""Syntax tree of the Wrench language and helpers for building it."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Sequence


def _freeze(obj: object, *names: str) -> None:
    for name in names:
        object.__setattr__(obj, name, tuple(getattr(obj, name)))


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


class TypeConstruct:
    """Base class of all Wrench types."""


@dataclass(frozen=True)
class BoolType(TypeConstruct):
    pass


@dataclass(frozen=True)
class IntType(TypeConstruct):
    pass


@dataclass(frozen=True)
class DoubleType(TypeConstruct):
    pass


@dataclass(frozen=True)
class StringType(TypeConstruct):
    pass


@dataclass(frozen=True)
class NullType(TypeConstruct):
    pass


@dataclass(frozen=True)
class AnyType(TypeConstruct):
    """Accepts a value of any type; used by built-ins such as print."""


@dataclass(frozen=True)
class ArrayType(TypeConstruct):
    element: TypeConstruct


@dataclass(frozen=True)
class FunctionType(TypeConstruct):
    return_type: TypeConstruct
    parameter_types: Sequence[TypeConstruct] = ()

    def __post_init__(self) -> None:
        _freeze(self, "parameter_types")


@dataclass(frozen=True)
class TableType(TypeConstruct):
    columns: Sequence[Parameter] = ()

    def __post_init__(self) -> None:
        _freeze(self, "columns")


@dataclass(frozen=True)
class RowType(TypeConstruct):
    columns: Sequence[Parameter] = ()

    def __post_init__(self) -> None:
        _freeze(self, "columns")


class Operator(enum.Enum):
    """Binary operators of the language."""

    MULTIPLICATION = "*"
    EXPONENT = "**"
    ADDITION = "+"
    SUBTRACTION = "-"
    DIVISION = "/"
    MODULO = "%"
    EQUALS = "=="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    OR = "or"


@dataclass(frozen=True)
class Parameter:
    """A typed name: a function parameter or a table column."""

    type: TypeConstruct
    name: str


@dataclass(frozen=True)
class ColumnAssignment:
    """A typed column and the expression giving its value in a row literal."""

    type: TypeConstruct
    name: str
    value: Expr


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


class Expr:
    """Base class of all expressions."""


@dataclass(frozen=True)
class Number(Expr):
    value: int


@dataclass(frozen=True)
class Double(Expr):
    value: float


@dataclass(frozen=True)
class Null(Expr):
    pass


@dataclass(frozen=True)
class StringLiteral(Expr):
    value: str


@dataclass(frozen=True)
class Identifier(Expr):
    name: str


@dataclass(frozen=True)
class BoolLiteral(Expr):
    value: bool


@dataclass(frozen=True)
class Operation(Expr):
    left: Expr
    operator: Operator
    right: Expr


@dataclass(frozen=True)
class Not(Expr):
    operand: Expr


@dataclass(frozen=True)
class TableExpr(Expr):
    columns: Sequence[Parameter] = ()

    def __post_init__(self) -> None:
        _freeze(self, "columns")


@dataclass(frozen=True)
class RowExpr(Expr):
    assignments: Sequence[ColumnAssignment] = ()

    def __post_init__(self) -> None:
        _freeze(self, "assignments")


@dataclass(frozen=True)
class Indexing(Expr):
    target: Expr
    index: Expr


@dataclass(frozen=True)
class ArrayExpr(Expr):
    elements: Sequence[Expr] = ()

    def __post_init__(self) -> None:
        _freeze(self, "elements")


@dataclass(frozen=True)
class Pipe(Expr):
    source: Expr
    function_name: str
    args: Sequence[Expr] = ()

    def __post_init__(self) -> None:
        _freeze(self, "args")


@dataclass(frozen=True)
class FunctionCall(Expr):
    name: str
    args: Sequence[Expr] = ()

    def __post_init__(self) -> None:
        _freeze(self, "args")


@dataclass(frozen=True)
class ColumnIndexing(Expr):
    target: Expr
    column: str


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


class Statement:
    """Base class of all statements."""


@dataclass(frozen=True)
class ExprStatement(Statement):
    expr: Expr


@dataclass(frozen=True)
class VariableAssignment(Statement):
    name: str
    value: Expr


class Declaration(Statement):
    """Base class of declarations."""


@dataclass(frozen=True)
class VariableDeclaration(Declaration):
    type: TypeConstruct
    name: str
    value: Expr


@dataclass(frozen=True)
class ConstantDeclaration(Declaration):
    type: TypeConstruct
    name: str
    value: Expr


@dataclass(frozen=True)
class FunctionDeclaration(Declaration):
    return_type: TypeConstruct
    name: str
    parameters: Sequence[Parameter]
    body: Statement

    def __post_init__(self) -> None:
        _freeze(self, "parameters")


@dataclass(frozen=True)
class Return(Statement):
    value: Expr


@dataclass(frozen=True)
class If(Statement):
    condition: Expr
    then_branch: Statement
    else_branch: Statement


@dataclass(frozen=True)
class For(Statement):
    parameter: Parameter
    iterable: Expr
    body: Statement


@dataclass(frozen=True)
class While(Statement):
    condition: Expr
    body: Statement


@dataclass(frozen=True)
class Compound(Statement):
    first: Statement
    second: Statement


@dataclass(frozen=True)
class Skip(Statement):
    pass


@dataclass(frozen=True)
class TypedExpr:
    """An expression together with the type inferred for it."""

    expr: Expr
    expr_type: TypeConstruct


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_compound(stmts: Sequence[Statement]) -> Statement:
    """Chain statements into nested compounds ending in a skip."""
    result: Statement = Skip()
    for stmt in reversed(list(stmts)):
        result = Compound(stmt, result)
    return result


def ast_less_than(left: Expr, right: Expr) -> Expr:
    return Operation(left, Operator.LESS_THAN, right)


def ast_less_than_or_equal(left: Expr, right: Expr) -> Expr:
    return Operation(left, Operator.LESS_THAN_OR_EQUAL, right)


def ast_or(left: Expr, right: Expr) -> Expr:
    return Operation(left, Operator.OR, right)


def ast_not(expr: Expr) -> Expr:
    return Not(expr)


def ast_and(left: Expr, right: Expr) -> Expr:
    """`a and b`, written as `!(!a or !b)`."""
    return ast_not(ast_or(ast_not(left), ast_not(right)))


def ast_greater_than_or_equal(left: Expr, right: Expr) -> Expr:
    """`a >= b`, written as `!(a < b)`."""
    return ast_not(ast_less_than(left, right))


def ast_greater_than(left: Expr, right: Expr) -> Expr:
    """`a > b`, written as `!(a <= b)`."""
    return ast_not(ast_less_than_or_equal(left, right))