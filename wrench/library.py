"""Built-in functions available to every Wrench program."""

from __future__ import annotations

import csv
import re
from typing import Any, Iterator, Mapping, Sequence

from wrench.errors import InterpretationError
from wrench.table import Row, Table, TableCellType, _display

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_FLOAT_PATTERN = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)",
    re.IGNORECASE,
)


def _lines(value: Any) -> Iterator[str]:
    if isinstance(value, Row):
        yield value.render()
    elif isinstance(value, Table):
        for row in value:
            yield row.render()
    elif isinstance(value, list):
        for item in value:
            yield from _lines(item)
    elif value is None:
        yield "Null"
    else:
        yield _display(value)


def format_value(value: Any) -> str:
    """Return the text that printing the value writes, without the final newline."""
    return "\n".join(_lines(value))


def wrench_print(args: Sequence[Any]) -> None:
    """Print every argument, arrays one element per line. Returns null."""
    for arg in args:
        for line in _lines(arg):
            print(line)
    return None


def _argument(args: Sequence[Any], index: int) -> Any:
    try:
        return args[index]
    except IndexError:
        raise InterpretationError(
            f"Interpretation error: missing argument {index + 1}"
        ) from None


def _parse_cell(text: str, cell_type: TableCellType) -> Any:
    if cell_type is TableCellType.STRING:
        return text
    if cell_type is TableCellType.INT:
        if _INT_PATTERN.fullmatch(text):
            number = int(text)
            if _I32_MIN <= number <= _I32_MAX:
                return number
        raise InterpretationError(f"Cannot parse '{text}' as int")
    if cell_type is TableCellType.BOOL:
        if text == "true":
            return True
        if text == "false":
            return False
        raise InterpretationError(f"Cannot parse '{text}' as bool")
    if _FLOAT_PATTERN.fullmatch(text):
        return float(text)
    raise InterpretationError(f"Cannot parse '{text}' as double")


def import_csv(name: str, structure: Mapping[str, TableCellType]) -> Iterator[Row]:
    """Yield the records of a CSV file as rows shaped by the structure."""
    try:
        handle = open(name, newline="", encoding="utf-8")
    except OSError as exc:
        raise InterpretationError(f"Failed to open file: {exc}") from exc
    with handle:
        reader = csv.reader(handle)
        try:
            headers = next((record for record in reader if record), [])
            positions = {header: index for index, header in enumerate(headers)}
            for record in reader:
                if not record:
                    continue
                if len(record) != len(headers):
                    raise InterpretationError(
                        f"Error reading record: found record with {len(record)} fields, "
                        f"but the previous record has {len(headers)} fields"
                    )
                cells = []
                for column, cell_type in structure.items():
                    index = positions.get(column)
                    if index is None:
                        raise InterpretationError(
                            f"CSV file is missing column '{column}'"
                        )
                    cells.append((column, _parse_cell(record[index], cell_type)))
                yield Row(cells)
        except csv.Error as exc:
            raise InterpretationError(f"Error reading record: {exc}") from exc


def wrench_import(args: Sequence[Any]) -> Table:
    """Fill the table given second with the rows of the CSV file named first."""
    file_name = _argument(args, 0)
    if not isinstance(file_name, str):
        raise InterpretationError("First argument must be a string")
    table = _argument(args, 1)
    if not isinstance(table, Table):
        raise InterpretationError("Second argument must be a table")
    for row in import_csv(file_name, dict(table.structure)):
        table.add_row(row)
    return table


def wrench_table_add_row(args: Sequence[Any]) -> None:
    """Append the row given second to the table given first. Returns null."""
    table = _argument(args, 0)
    if not isinstance(table, Table):
        raise InterpretationError("Interpretation error: Expected a table")
    row = _argument(args, 1)
    if not isinstance(row, Row):
        raise InterpretationError("Interpretation error: Expected a row")
    table.add_row(row)
    return None