"""Type inference for Wrench expressions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, MutableMapping, Sequence

from wrench.ast import (
    AnyType,
    ArrayExpr,
    ArrayType,
    BoolLiteral,
    BoolType,
    ColumnIndexing,
    Double,
    DoubleType,
    Expr,
    FunctionCall,
    FunctionType,
    Identifier,
    Indexing,
    IntType,
    Not,
    Null,
    NullType,
    Number,
    Operation,
    Operator,
    Parameter,
    Pipe,
    RowExpr,
    RowType,
    StringLiteral,
    StringType,
    TableExpr,
    TableType,
    TypeConstruct,
    TypedExpr,
)
from wrench.errors import TypeCheckError

Scopes = Sequence[MutableMapping[str, "VariableInfo"]]

_COMPARISONS = {Operator.EQUALS, Operator.LESS_THAN, Operator.LESS_THAN_OR_EQUAL}
_ARITHMETIC = {
    Operator.ADDITION,
    Operator.SUBTRACTION,
    Operator.MULTIPLICATION,
    Operator.DIVISION,
    Operator.MODULO,
    Operator.EXPONENT,
}
_IMPORTS = {"import", "async_import"}


@dataclass(frozen=True)
class VariableInfo:
    """The declared type of a name and whether it may be reassigned."""

    var_type: TypeConstruct
    is_constant: bool = False


def lookup_variable(
    name: str, scopes: Sequence[Mapping[str, VariableInfo]]
) -> VariableInfo | None:
    """Return the innermost information recorded for a name, or None."""
    for scope in reversed(scopes):
        info = scope.get(name)
        if info is not None:
            return info
    return None


def check_and_cast_type(expected: VariableInfo, expr: Expr, scopes: Scopes) -> Expr:
    """Check that an expression fits the expected type, allowing int to double."""
    typed = infer_type(expr, scopes)
    wanted, found = expected.var_type, typed.expr_type
    if isinstance(wanted, DoubleType) and isinstance(found, IntType):
        return typed.expr
    if isinstance(wanted, IntType) and isinstance(found, DoubleType):
        raise TypeCheckError(
            f"Cannot implicitly cast Double to Int. Expected {expected!r}, found {found!r}"
        )
    if wanted == found:
        return typed.expr
    raise TypeCheckError(f"Type mismatch: expected {expected!r}, found {found!r}")


def _is_row_or_table(type_: TypeConstruct) -> bool:
    return isinstance(type_, (RowType, TableType))


def _infer_operation(expr: Operation, scopes: Scopes) -> TypedExpr:
    left = infer_type(expr.left, scopes)
    right = infer_type(expr.right, scopes)
    widened_left = check_and_cast_type(VariableInfo(right.expr_type), left.expr, scopes)
    widened_right = check_and_cast_type(VariableInfo(left.expr_type), right.expr, scopes)

    if _is_row_or_table(left.expr_type) or _is_row_or_table(right.expr_type):
        raise TypeCheckError("Operation on Row or Table types is not allowed")

    kinds = (type(left.expr_type), type(right.expr_type))
    if kinds == (IntType, IntType):
        result_type: TypeConstruct = IntType()
    elif kinds in {(IntType, DoubleType), (DoubleType, IntType), (DoubleType, DoubleType)}:
        result_type = DoubleType()
    else:
        raise TypeCheckError(
            "Operation on incompatible types. Left-hand side is "
            f"{left.expr_type!r} and right-hand side is {right.expr_type!r}"
        )

    rebuilt = Operation(widened_left, expr.operator, widened_right)
    if expr.operator in _COMPARISONS:
        return TypedExpr(rebuilt, BoolType())
    if expr.operator in _ARITHMETIC:
        if expr.operator is Operator.DIVISION:
            divisor = right.expr
            if isinstance(divisor, (Number, Double)) and divisor.value == 0:
                raise TypeCheckError("Division by zero is not allowed")
        return TypedExpr(rebuilt, result_type)
    if isinstance(left.expr_type, BoolType) and isinstance(right.expr_type, BoolType):
        return TypedExpr(rebuilt, BoolType())
    raise TypeCheckError("Logical operators require boolean operands")


def _infer_array(expr: ArrayExpr, scopes: Scopes) -> TypedExpr:
    if not expr.elements:
        raise TypeCheckError("Cannot infer type of empty array")
    first = infer_type(expr.elements[0], scopes)
    for element in expr.elements[1:]:
        if infer_type(element, scopes).expr_type != first.expr_type:
            raise TypeCheckError("Array elements must have the same type")
    elements = [infer_type(element, scopes).expr for element in expr.elements]
    return TypedExpr(ArrayExpr(elements), ArrayType(first.expr_type))


def _infer_indexing(expr: Indexing, scopes: Scopes) -> TypedExpr:
    target = infer_type(expr.target, scopes)
    index = infer_type(expr.index, scopes)
    if not isinstance(index.expr_type, IntType):
        raise TypeCheckError("Index must be an integer")
    rebuilt = Indexing(target.expr, index.expr)
    if isinstance(target.expr_type, ArrayType):
        return TypedExpr(rebuilt, target.expr_type.element)
    if _is_row_or_table(target.expr_type):
        return TypedExpr(rebuilt, target.expr_type)
    raise TypeCheckError("Cannot index into non-array type")


def _infer_call(expr: FunctionCall, scopes: Scopes) -> TypedExpr:
    name = expr.name
    info = lookup_variable(name, scopes)
    if info is None:
        raise TypeCheckError(f"Undefined function '{name}'")
    func_type = info.var_type
    if not isinstance(func_type, FunctionType):
        raise TypeCheckError(f"'{name}' is not a function")
    params = func_type.parameter_types
    if len(expr.args) != len(params):
        raise TypeCheckError(
            f"Function '{name}' expected {len(params)} arguments, found {len(expr.args)}"
        )
    for position, (arg, param_type) in enumerate(zip(expr.args, params)):
        arg_type = infer_type(arg, scopes).expr_type
        if (
            name in _IMPORTS
            and position == 1
            and isinstance(param_type, TableType)
            and isinstance(arg_type, TableType)
        ):
            continue
        if not isinstance(param_type, AnyType) and arg_type != param_type:
            raise TypeCheckError(
                f"Type mismatch in function call: expected {param_type!r}, found {arg_type!r}"
            )
    if name in _IMPORTS:
        if len(expr.args) > 1:
            table_type = infer_type(expr.args[1], scopes).expr_type
            if isinstance(table_type, TableType):
                return TypedExpr(FunctionCall(name, expr.args), TableType(table_type.columns))
        raise TypeCheckError(
            f"Second argument to '{name}' must be a table declaration "
            "or variable with table type"
        )
    return TypedExpr(FunctionCall(name, expr.args), func_type.return_type)


def _infer_pipe(expr: Pipe, scopes: Scopes) -> TypedExpr:
    left = infer_type(expr.source, scopes)
    if not isinstance(expr.source, Pipe) and not isinstance(left.expr_type, TableType):
        raise TypeCheckError(
            f"A pipeline must start with a Table, but got: {left.expr_type!r}"
        )
    name = expr.function_name
    info = lookup_variable(name, scopes)
    if info is None:
        raise TypeCheckError(f"Undefined pipe function '{name}'")
    func_type = info.var_type
    if not isinstance(func_type, FunctionType):
        raise TypeCheckError(f"'{name}' is not a valid pipe function")
    params = func_type.parameter_types
    effective_args = [left.expr] if not expr.args and len(params) == 1 else list(expr.args)
    if len(effective_args) != len(params):
        raise TypeCheckError(
            f"Pipe function '{name}' expected {len(params)} arguments, "
            f"found {len(effective_args)}"
        )
    if not params:
        raise TypeCheckError(f"Pipe function '{name}' must take at least one parameter")
    first, returned = params[0], func_type.return_type
    allowed = (
        (isinstance(first, RowType) and isinstance(returned, (RowType, BoolType)))
        or (isinstance(first, TableType) and isinstance(returned, TableType))
    )
    rebuilt = Pipe(left.expr, name, expr.args)
    if name == "print":
        if isinstance(left.expr, Pipe) and left.expr.function_name == "print":
            raise TypeCheckError(
                "You cannot use the result of print() in another pipe. "
                "'print' must be the last pipe."
            )
        return TypedExpr(rebuilt, TableType(()))
    if not allowed:
        raise TypeCheckError(
            f"Pipe function '{name}' must be one of: Row->Row (map), Row->Bool (filter), "
            "Table->Table (reduce) with matching columns. "
            f"Got: {first!r} -> {returned!r}"
        )
    if isinstance(returned, RowType):
        return TypedExpr(rebuilt, TableType(returned.columns))
    return TypedExpr(rebuilt, returned)


def _infer_table(expr: TableExpr) -> TypedExpr:
    seen: set[str] = set()
    for column in expr.columns:
        if column.name in seen:
            raise TypeCheckError(
                f"Duplicate parameter name '{column.name}' in table declaration"
            )
        seen.add(column.name)
    return TypedExpr(TableExpr(expr.columns), TableType(expr.columns))


def _infer_row(expr: RowExpr, scopes: Scopes) -> TypedExpr:
    columns = []
    for assignment in expr.assignments:
        found = infer_type(assignment.value, scopes).expr_type
        if assignment.type != found:
            raise TypeCheckError(
                f"Row Type mismatch: expected {assignment.type!r}, found {found!r} "
                f"for column '{assignment.name}'"
            )
        columns.append(Parameter(assignment.type, assignment.name))
    return TypedExpr(RowExpr(expr.assignments), RowType(columns))


def _infer_column(expr: ColumnIndexing, scopes: Scopes) -> TypedExpr:
    target = infer_type(expr.target, scopes)
    if not _is_row_or_table(target.expr_type):
        raise TypeCheckError("Cannot index into non-table/row type")
    for column in target.expr_type.columns:
        if column.name == expr.column:
            return TypedExpr(ColumnIndexing(target.expr, expr.column), column.type)
    raise TypeCheckError(f"Column '{expr.column}' not found in {target.expr_type!r}")


def infer_type(expr: Expr, scopes: Scopes) -> TypedExpr:
    """Infer the type of an expression, raising TypeCheckError when it is ill-typed."""
    if isinstance(expr, Number):
        return TypedExpr(expr, IntType())
    if isinstance(expr, BoolLiteral):
        return TypedExpr(expr, BoolType())
    if isinstance(expr, Double):
        return TypedExpr(expr, DoubleType())
    if isinstance(expr, StringLiteral):
        return TypedExpr(expr, StringType())
    if isinstance(expr, Null):
        return TypedExpr(expr, NullType())
    if isinstance(expr, Identifier):
        info = lookup_variable(expr.name, scopes)
        if info is None:
            raise TypeCheckError(f"Undefined variable '{expr.name}'")
        return TypedExpr(expr, info.var_type)
    if isinstance(expr, Operation):
        return _infer_operation(expr, scopes)
    if isinstance(expr, Not):
        inner = infer_type(expr.operand, scopes)
        if not isinstance(inner.expr_type, BoolType):
            raise TypeCheckError("Logical NOT requires a boolean")
        return TypedExpr(Not(inner.expr), BoolType())
    if isinstance(expr, ArrayExpr):
        return _infer_array(expr, scopes)
    if isinstance(expr, Indexing):
        return _infer_indexing(expr, scopes)
    if isinstance(expr, FunctionCall):
        return _infer_call(expr, scopes)
    if isinstance(expr, Pipe):
        return _infer_pipe(expr, scopes)
    if isinstance(expr, TableExpr):
        return _infer_table(expr)
    if isinstance(expr, RowExpr):
        return _infer_row(expr, scopes)
    if isinstance(expr, ColumnIndexing):
        return _infer_column(expr, scopes)
    raise TypeCheckError(f"Unknown expression {expr!r}")