"""Pipelines: rows streamed through map, filter and reduce functions."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Sequence

from wrench.ast import BoolType, Expr, FunctionCall, Pipe, RowType, TableType
from wrench.environment import Environment, WrenchFunction
from wrench.errors import InterpretationError
from wrench.evaluate import call_function, evaluate_expression
from wrench.library import import_csv, wrench_print
from wrench.table import Row, Table, TableCellType, parameters_to_structure


class PipeType(enum.Enum):
    """How a pipe stage treats the rows flowing through it."""

    MAP = "map"
    FILTER = "filter"
    REDUCE = "reduce"


@dataclass
class SimplePipe:
    """One stage of a pipeline; a function of None stands for the built-in print."""

    function: WrenchFunction | None
    args: list[Any] = field(default_factory=list)

    def _custom(self) -> WrenchFunction:
        if self.function is None:
            raise InterpretationError("Expected a custom function for the pipe")
        return self.function

    def call_structure(self) -> dict[str, TableCellType]:
        """The table structure the stage's function takes as its first argument."""
        function = self._custom()
        if not function.parameters:
            raise InterpretationError(
                "Expected a table for the first parameter of the function"
            )
        first = function.parameters[0].type
        if isinstance(first, TableType):
            return parameters_to_structure(first.columns)
        raise InterpretationError("Expected a table for the first parameter of the function")

    def return_structure(self) -> dict[str, TableCellType]:
        """The table structure of the rows the stage's function produces."""
        returned = self._custom().return_type
        if isinstance(returned, (TableType, RowType)):
            return parameters_to_structure(returned.columns)
        raise InterpretationError("Expected a table for the first parameter of the function")

    def pipe_type(self) -> PipeType:
        """Reduce for table results, filter for boolean results, map otherwise."""
        returned = self._custom().return_type
        if isinstance(returned, TableType):
            return PipeType.REDUCE
        if isinstance(returned, BoolType):
            return PipeType.FILTER
        return PipeType.MAP


def to_pipe_value(value: Any) -> Any:
    """Detach a runtime value for passing along a pipe; tables are copied."""
    if isinstance(value, Table):
        return value.copy()
    if isinstance(value, list):
        return [to_pipe_value(item) for item in value]
    return value


def from_pipe_value(value: Any) -> Any:
    """Turn a pipe value back into a runtime value; tables are copied."""
    if isinstance(value, Table):
        return value.copy()
    if isinstance(value, list):
        return [from_pipe_value(item) for item in value]
    return value


def pipe_rollout(
    expr: Expr, function_name: str, args: Sequence[Expr], env: Environment
) -> tuple[list[SimplePipe], Expr]:
    """Flatten nested pipes into stages, innermost first, plus the source expression."""
    evaluated = [to_pipe_value(evaluate_expression(arg, env)) for arg in args]
    if function_name == "print":
        function: WrenchFunction | None = None
    else:
        cell = env.get(function_name)
        if not isinstance(cell, WrenchFunction):
            raise InterpretationError("Expected a function for the pipe")
        function = cell
    pipe = SimplePipe(function, evaluated)
    if isinstance(expr, Pipe):
        rest, initial = pipe_rollout(expr.source, expr.function_name, list(expr.args), env)
        rest.append(pipe)
        return rest, initial
    return [pipe], expr


def _import_rows(args: Sequence[Any]) -> Iterator[Row]:
    name = args[0] if args else None
    if not isinstance(name, str):
        raise InterpretationError(
            "Expected a string literal for the first argument of pipe_import"
        )
    table = args[1] if len(args) > 1 else None
    if not isinstance(table, Table):
        raise InterpretationError(
            "Expected a table for the second argument of pipe_import"
        )
    yield from import_csv(name, dict(table.structure))


def _source(initial: Expr, env: Environment) -> Iterator[Row]:
    if isinstance(initial, FunctionCall) and initial.name == "async_import":
        args = [to_pipe_value(evaluate_expression(arg, env)) for arg in initial.args]
        return _import_rows(args)
    value = evaluate_expression(initial, env)
    if not isinstance(value, Table):
        raise InterpretationError("Table expected for the pipe")
    return iter(value.copy())


def _call_with(function: WrenchFunction, first: Any, args: Sequence[Any]) -> Any:
    full_args = [from_pipe_value(arg) for arg in [first, *args]]
    return to_pipe_value(call_function(function, full_args))


def _print_stage(rows: Iterable[Row]) -> Iterator[Row]:
    for row in rows:
        wrench_print([row])
    yield from ()


def _stage(pipe: SimplePipe, rows: Iterable[Row]) -> Iterator[Row]:
    if pipe.function is None:
        yield from _print_stage(rows)
        return
    function = pipe.function
    kind = pipe.pipe_type()
    if kind is PipeType.MAP:
        for row in rows:
            result = _call_with(function, row, pipe.args)
            if not isinstance(result, Row):
                raise InterpretationError("Expected a row or table for the map")
            yield result
    elif kind is PipeType.FILTER:
        for row in rows:
            result = _call_with(function, row, pipe.args)
            if not isinstance(result, bool):
                raise InterpretationError("Expected a boolean for the filter")
            if result:
                yield row
    else:
        table = Table(pipe.call_structure())
        for row in rows:
            table.add_row(row)
        result = _call_with(function, table, pipe.args)
        if not isinstance(result, Table):
            raise InterpretationError("Expected a table for the reduce")
        yield from result


def evaluate_pipes(
    expr: Expr, function_name: str, args: Sequence[Expr], env: Environment
) -> Table:
    """Run a pipeline and collect the rows of its last stage into a table."""
    pipes, initial = pipe_rollout(expr, function_name, args, env)
    rows: Iterable[Row] = _source(initial, env)
    for pipe in pipes:
        rows = _stage(pipe, rows)
    last = pipes[-1]
    if last.function is None:
        for _ in rows:
            pass
        return Table({})
    table = Table(last.return_structure())
    for row in rows:
        table.add_row(row)
    return table