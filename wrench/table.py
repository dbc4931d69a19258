"""Tables and rows: the data values that Wrench programs operate on."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Iterator, Sequence

from wrench.ast import BoolType, DoubleType, IntType, Parameter, StringType
from wrench.errors import InterpretationError


class TableCellType(enum.Enum):
    """The kinds of value a table column can hold."""

    INT = "int"
    DOUBLE = "double"
    STRING = "string"
    BOOL = "bool"


_CELL_TYPES = {
    BoolType(): TableCellType.BOOL,
    IntType(): TableCellType.INT,
    StringType(): TableCellType.STRING,
    DoubleType(): TableCellType.DOUBLE,
}


def _display(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        if value.is_integer():
            text = str(int(value))
            return "-0" if value == 0 and math.copysign(1.0, value) < 0 else text
        return format(Decimal(repr(value)), "f")
    return str(value)


def parameters_to_structure(parameters: Iterable[Parameter]) -> dict[str, TableCellType]:
    """Map typed parameters to a column-name to cell-type structure."""
    structure: dict[str, TableCellType] = {}
    for param in parameters:
        cell_type = _CELL_TYPES.get(param.type)
        if cell_type is None:
            raise InterpretationError(
                f"Unsupported type in table declaration for {param.name}"
            )
        structure[param.name] = cell_type
    return structure


@dataclass(frozen=True)
class Row:
    """An ordered sequence of named cells."""

    cells: Sequence[tuple[str, Any]] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "cells", tuple((name, value) for name, value in self.cells))

    def get(self, column_name: str) -> Any:
        """Return the value of a column; the first matching name wins."""
        for name, value in self.cells:
            if name == column_name:
                return value
        raise InterpretationError(f"Column name not found in row for {column_name}")

    def render(self) -> str:
        """Return the printable form of the row."""
        return "".join(f"{name}: {_display(value)}, " for name, value in self.cells)

    def print(self) -> None:
        print(self.render())


@dataclass
class Table:
    """A mutable collection of rows sharing a column structure."""

    structure: dict[str, TableCellType]
    rows: list[Row] = field(default_factory=list)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def add_row(self, row: Row) -> None:
        self.rows.append(row)

    def get_row(self, index: int) -> Row:
        if 0 <= index < len(self.rows):
            return self.rows[index]
        raise InterpretationError("Index out of bounds for table")

    def get_column(self, column_name: str) -> list[Any]:
        """Return the values of one column, in row order."""
        return [row.get(column_name) for row in self.rows]

    def copy(self) -> Table:
        """Return an independent table with the same structure and rows."""
        return Table(dict(self.structure), list(self.rows))

    def print(self) -> None:
        for row in self.rows:
            row.print()