"""Runtime environment: nested scopes of variables and functions."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence, Union

from wrench.ast import Parameter, Statement, TypeConstruct
from wrench.errors import InterpretationError


@dataclass
class Variable:
    """A named runtime value."""

    name: str
    value: Any


@dataclass
class WrenchFunction:
    """A user function with the functions visible where it was declared."""

    return_type: TypeConstruct
    name: str
    parameters: Sequence[Parameter]
    body: Statement
    closure: list[WrenchFunction] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.parameters = tuple(self.parameters)

    def closure_as_env(self) -> Environment:
        """Build a fresh environment holding the closure's functions."""
        env = Environment()
        env.push_scope()
        for function in self.closure:
            env.add(function)
        return env


Cell = Union[Variable, WrenchFunction]


class Environment:
    """A stack of scopes; names must be unique across the whole stack."""

    def __init__(self) -> None:
        self._scopes: list[list[Cell]] = []

    def __len__(self) -> int:
        return len(self._scopes)

    def push_scope(self) -> None:
        self._scopes.append([])

    def pop_scope(self) -> None:
        self._scopes.pop()

    @contextmanager
    def scope(self) -> Iterator[Environment]:
        """Push a scope for the duration of a with-block."""
        self.push_scope()
        try:
            yield self
        finally:
            self.pop_scope()

    def find(self, name: str) -> Cell | None:
        """Return the innermost cell with this name, or None."""
        for scope in reversed(self._scopes):
            for cell in scope:
                if cell.name == name:
                    return cell
        return None

    def get(self, name: str) -> Cell:
        cell = self.find(name)
        if cell is None:
            raise InterpretationError(
                f"Interpretation error. The identifier '{name}' not found"
            )
        return cell

    def add(self, cell: Cell) -> None:
        """Declare a cell in the innermost scope."""
        if self.find(cell.name) is not None:
            raise InterpretationError(
                f"Interpretation error. The identifier '{cell.name}' is already declared"
            )
        if not self._scopes:
            raise InterpretationError("Interpretation error. No scope to declare in")
        self._scopes[-1].append(cell)

    def update(self, name: str, value: Any) -> None:
        """Reassign an existing variable."""
        cell = self.find(name)
        if cell is None:
            raise InterpretationError(
                f"Interpretation error. The identifier '{name}' not found in the environment"
            )
        if not isinstance(cell, Variable):
            raise InterpretationError("Interpretation error. Only variables can be reassigned")
        cell.value = value

    def to_closure(self) -> list[WrenchFunction]:
        """Collect every function declared in any scope, outermost first."""
        return [
            cell
            for scope in self._scopes
            for cell in scope
            if isinstance(cell, WrenchFunction)
        ]