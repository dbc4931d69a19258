"""Static type checking of Wrench statements."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, MutableMapping

from wrench.ast import (
    ArrayType,
    BoolType,
    Compound,
    ConstantDeclaration,
    ExprStatement,
    For,
    FunctionDeclaration,
    FunctionType,
    If,
    Return,
    RowType,
    Skip,
    Statement,
    TableType,
    VariableAssignment,
    VariableDeclaration,
    While,
)
from wrench.errors import TypeCheckError
from wrench.inference import VariableInfo, check_and_cast_type, infer_type, lookup_variable

Scope = MutableMapping[str, VariableInfo]


@contextmanager
def _nested(scopes: list[Scope]) -> Iterator[Scope]:
    scope: Scope = {}
    scopes.append(scope)
    try:
        yield scope
    finally:
        scopes.pop()


def _check_function(declaration: FunctionDeclaration, scopes: list[Scope]) -> None:
    param_types = [param.type for param in declaration.parameters]
    scopes[0][declaration.name] = VariableInfo(
        FunctionType(declaration.return_type, param_types), is_constant=True
    )
    param_scope: Scope = {
        param.name: VariableInfo(param.type, is_constant=False)
        for param in declaration.parameters
    }
    # Only functions declared so far are visible inside the body.
    function_scope: Scope = {
        name: info
        for name, info in scopes[0].items()
        if isinstance(info.var_type, FunctionType)
    }
    type_check(declaration.body, [function_scope, param_scope])


def _check_for(statement: For, scopes: list[Scope]) -> None:
    iterable_type = infer_type(statement.iterable, scopes).expr_type
    param = statement.parameter
    if isinstance(iterable_type, ArrayType):
        with _nested(scopes) as scope:
            if param.type != iterable_type.element:
                raise TypeCheckError(
                    f"Type mismatch in for-loop: expected {param.type!r}, "
                    f"found {iterable_type.element!r} for iterator '{param.name}'"
                )
            scope[param.name] = VariableInfo(iterable_type.element, is_constant=False)
            type_check(statement.body, scopes)
    elif isinstance(iterable_type, RowType):
        with _nested(scopes) as scope:
            if param.type != iterable_type:
                raise TypeCheckError(
                    f"Row Type mismatch in for-loop: expected {param.type!r}, "
                    f"found {iterable_type!r} for iterator '{param.name}'"
                )
            scope[param.name] = VariableInfo(iterable_type, is_constant=False)
            type_check(statement.body, scopes)
    elif isinstance(iterable_type, TableType):
        with _nested(scopes) as scope:
            if not isinstance(param.type, RowType):
                raise TypeCheckError(
                    "Type mismatch in for-loop: expected Row(...), found "
                    f"Table({list(iterable_type.columns)!r}) for iterator '{param.name}'"
                )
            if param.type.columns != iterable_type.columns:
                raise TypeCheckError(
                    f"Type mismatch in for-loop: expected Row({list(param.type.columns)!r}), "
                    f"found Table({list(iterable_type.columns)!r}) "
                    f"for iterator '{param.name}'"
                )
            scope[param.name] = VariableInfo(param.type, is_constant=False)
            type_check(statement.body, scopes)
    else:
        raise TypeCheckError(
            f"For-loop iterable must be an array, found {iterable_type!r}"
        )


def type_check(statement: Statement, scopes: list[Scope]) -> None:
    """Check a statement against the scope stack, recording declarations in it.

    Raises TypeCheckError on the first problem found.
    """
    if isinstance(statement, Skip):
        return
    if isinstance(statement, Compound):
        type_check(statement.first, scopes)
        type_check(statement.second, scopes)
    elif isinstance(statement, VariableDeclaration):
        info = VariableInfo(statement.type, is_constant=False)
        check_and_cast_type(info, statement.value, scopes)
        scopes[-1][statement.name] = info
    elif isinstance(statement, ConstantDeclaration):
        found = infer_type(statement.value, scopes).expr_type
        if statement.type != found:
            raise TypeCheckError(
                f"Type mismatch: expected {statement.type!r}, found {found!r} "
                f"for constant '{statement.name}'"
            )
        scopes[-1][statement.name] = VariableInfo(statement.type, is_constant=True)
    elif isinstance(statement, FunctionDeclaration):
        _check_function(statement, scopes)
    elif isinstance(statement, For):
        _check_for(statement, scopes)
    elif isinstance(statement, VariableAssignment):
        info = lookup_variable(statement.name, scopes)
        if info is None:
            raise TypeCheckError(f"Undefined variable '{statement.name}'")
        if info.is_constant:
            raise TypeCheckError(f"Cannot assign to constant variable '{statement.name}'")
        check_and_cast_type(info, statement.value, scopes)
        scopes[-1][statement.name] = info
    elif isinstance(statement, (ExprStatement, Return)):
        infer_type(statement.expr if isinstance(statement, ExprStatement) else statement.value, scopes)
    elif isinstance(statement, If):
        if not isinstance(infer_type(statement.condition, scopes).expr_type, BoolType):
            raise TypeCheckError("If condition must be a boolean")
        with _nested(scopes):
            type_check(statement.then_branch, scopes)
        with _nested(scopes):
            type_check(statement.else_branch, scopes)
    elif isinstance(statement, While):
        if not isinstance(infer_type(statement.condition, scopes).expr_type, BoolType):
            raise TypeCheckError("While condition must be a boolean")
        with _nested(scopes):
            type_check(statement.body, scopes)
    else:
        raise TypeCheckError(f"Unknown statement {statement!r}")