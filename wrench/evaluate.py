"""Evaluation of Wrench statements, declarations and expressions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence

from wrench.ast import (
    ArrayExpr,
    BoolLiteral,
    ColumnIndexing,
    Compound,
    ConstantDeclaration,
    Declaration,
    Double,
    Expr,
    ExprStatement,
    For,
    FunctionCall,
    FunctionDeclaration,
    Identifier,
    If,
    Indexing,
    Not,
    Null,
    Number,
    Operation,
    Pipe,
    Return,
    RowExpr,
    Skip,
    Statement,
    StringLiteral,
    TableExpr,
    VariableAssignment,
    VariableDeclaration,
    While,
)
from wrench.environment import Environment, Variable, WrenchFunction
from wrench.errors import InterpretationError
from wrench.library import wrench_import, wrench_print, wrench_table_add_row
from wrench.operations import evaluate_operation
from wrench.table import Row, Table, parameters_to_structure

_BUILTINS: dict[str, Callable[[Sequence[Any]], Any]] = {
    "print": wrench_print,
    "import": wrench_import,
    "table_add_row": wrench_table_add_row,
}


@dataclass(frozen=True)
class Returned:
    """The outcome of a statement that executed a return."""

    value: Any


def interpret(program: Statement) -> Environment:
    """Run a program in a fresh environment and return that environment."""
    env = Environment()
    env.push_scope()
    evaluate_statement(program, env)
    return env


def _condition(value: Any) -> bool:
    if not isinstance(value, bool):
        raise InterpretationError("Interpretation error: Condition is not a boolean")
    return value


def _integer_index(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InterpretationError("Interpretation error: Index must be a integer")
    return value


def evaluate_statement(statement: Statement, env: Environment) -> Returned | None:
    """Execute a statement; a Returned result carries the value of a return."""
    if isinstance(statement, Declaration):
        evaluate_declaration(statement, env)
        return None
    if isinstance(statement, ExprStatement):
        evaluate_expression(statement.expr, env)
        return None
    if isinstance(statement, VariableAssignment):
        env.update(statement.name, evaluate_expression(statement.value, env))
        return None
    if isinstance(statement, Compound):
        first = evaluate_statement(statement.first, env)
        if first is not None:
            return first
        return evaluate_statement(statement.second, env)
    if isinstance(statement, Skip):
        return None
    if isinstance(statement, Return):
        return Returned(evaluate_expression(statement.value, env))
    if isinstance(statement, If):
        if _condition(evaluate_expression(statement.condition, env)):
            return evaluate_statement(statement.then_branch, env)
        return evaluate_statement(statement.else_branch, env)
    if isinstance(statement, For):
        iterable = evaluate_expression(statement.iterable, env)
        if isinstance(iterable, Table):
            items: Sequence[Any] = tuple(iterable)
        elif isinstance(iterable, list):
            items = iterable
        else:
            raise InterpretationError(
                "Interpretation error: For loop iterator is not a table"
            )
        for item in items:
            with env.scope():
                env.add(Variable(statement.parameter.name, item))
                outcome = evaluate_statement(statement.body, env)
            if outcome is not None:
                return outcome
        return None
    if isinstance(statement, While):
        while True:
            condition = evaluate_expression(statement.condition, env)
            with env.scope():
                if not _condition(condition):
                    return None
                outcome = evaluate_statement(statement.body, env)
            if outcome is not None:
                return outcome
    raise InterpretationError(f"Interpretation error: Unknown statement {statement!r}")


def evaluate_declaration(declaration: Declaration, env: Environment) -> None:
    """Declare a variable, constant or function in the innermost scope."""
    if isinstance(declaration, (VariableDeclaration, ConstantDeclaration)):
        env.add(Variable(declaration.name, evaluate_expression(declaration.value, env)))
    elif isinstance(declaration, FunctionDeclaration):
        env.add(
            WrenchFunction(
                declaration.return_type,
                declaration.name,
                declaration.parameters,
                declaration.body,
                env.to_closure(),
            )
        )
    else:
        raise InterpretationError(
            f"Interpretation error: Unknown declaration {declaration!r}"
        )


def _row_cell(value: Any) -> Any:
    if isinstance(value, (bool, int, float, str)):
        return value
    raise InterpretationError("Interpretation error: Unsupported type in row assignment")


def evaluate_expression(expression: Expr, env: Environment) -> Any:
    """Compute the runtime value of an expression."""
    if isinstance(expression, Null):
        return None
    if isinstance(expression, (Number, Double, BoolLiteral, StringLiteral)):
        return expression.value
    if isinstance(expression, Operation):
        left = evaluate_expression(expression.left, env)
        right = evaluate_expression(expression.right, env)
        return evaluate_operation(left, expression.operator, right)
    if isinstance(expression, Identifier):
        cell = env.get(expression.name)
        if isinstance(cell, WrenchFunction):
            raise InterpretationError(
                "Interpretation error: Function identifier not allowed as expression"
            )
        return cell.value
    if isinstance(expression, FunctionCall):
        args = [evaluate_expression(arg, env) for arg in expression.args]
        return evaluate_function_call(expression.name, args, env)
    if isinstance(expression, RowExpr):
        return Row(
            [
                (assignment.name, _row_cell(evaluate_expression(assignment.value, env)))
                for assignment in expression.assignments
            ]
        )
    if isinstance(expression, TableExpr):
        try:
            structure = parameters_to_structure(expression.columns)
        except InterpretationError:
            raise InterpretationError(
                "Interpretation error: Unsupported type in table declaration"
            ) from None
        return Table(structure)
    if isinstance(expression, Pipe):
        from wrench.pipes import evaluate_pipes

        return evaluate_pipes(
            expression.source, expression.function_name, list(expression.args), env
        )
    if isinstance(expression, Not):
        value = evaluate_expression(expression.operand, env)
        if not isinstance(value, bool):
            raise InterpretationError(
                "Interpretation error: Not operator can only be applied to boolean values"
            )
        return not value
    if isinstance(expression, ColumnIndexing):
        target = evaluate_expression(expression.target, env)
        if isinstance(target, Row):
            return target.get(expression.column)
        if isinstance(target, Table):
            return target.get_column(expression.column)
        raise InterpretationError(
            "Interpretation error: Column indexing can only be applied to rows or tables"
        )
    if isinstance(expression, ArrayExpr):
        return [evaluate_expression(element, env) for element in expression.elements]
    if isinstance(expression, Indexing):
        target = evaluate_expression(expression.target, env)
        if isinstance(target, list):
            index = _integer_index(evaluate_expression(expression.index, env))
            if 0 <= index < len(target):
                return target[index]
            raise InterpretationError("Interpretation error: Index out of bounds")
        if isinstance(target, Table):
            index = _integer_index(evaluate_expression(expression.index, env))
            return target.get_row(index)
        raise InterpretationError(
            "Interpretation error: Indexing can only be applied to arrays"
        )
    raise InterpretationError(f"Interpretation error: Unknown expression {expression!r}")


def evaluate_function_call(name: str, args: Sequence[Any], env: Environment) -> Any:
    """Call a built-in or a user function by name with evaluated arguments."""
    builtin = _BUILTINS.get(name)
    if builtin is not None:
        return builtin(args)
    cell = env.get(name)
    if not isinstance(cell, WrenchFunction):
        raise InterpretationError(
            f"Interpretation error: Identifier '{name}' is not a function"
        )
    return call_function(cell, args)


def call_function(function: WrenchFunction, args: Sequence[Any]) -> Any:
    """Run a user function in its closure; returns null when nothing is returned."""
    fun_env = function.closure_as_env()
    for param, arg in zip(function.parameters, args):
        fun_env.add(Variable(param.name, arg))
    fun_env.add(function)
    outcome = evaluate_statement(function.body, fun_env)
    return None if outcome is None else outcome.value