# wrench

`wrench` is the runtime of a small, statically typed language for working with
tables of data. A program declares typed variables, constants and functions.
It builds tables and rows, loops over them, and chains functions together
with pipes. A pipe streams rows through map, filter and reduce stages.

Programs are given to the package as syntax trees built from the classes in
`wrench.ast`. The package then checks them statically and runs them.

## Modules

- `wrench.ast`: the syntax tree.
  - Types: `IntType`, `DoubleType`, `BoolType`, `StringType`, `NullType`,
    `AnyType`, `ArrayType`, `FunctionType`, `TableType` and `RowType`.
  - Expressions: `Number`, `Double`, `StringLiteral`, `BoolLiteral`, `Null`,
    `Identifier`, `Operation`, `Not`, `ArrayExpr`, `Indexing`, `TableExpr`,
    `RowExpr`, `ColumnIndexing`, `FunctionCall` and `Pipe`.
  - Statements: `VariableDeclaration`, `ConstantDeclaration`,
    `FunctionDeclaration`, `VariableAssignment`, `ExprStatement`, `Return`,
    `If`, `For`, `While`, `Compound` and `Skip`.
  - The `Operator` enum.
  - Builders:
    - `make_compound` chains a list of statements into nested compounds.
    - `ast_and`, `ast_greater_than` and `ast_greater_than_or_equal` express
      the sugared forms through `or`, `<`, `<=` and `!`.
- `wrench.typecheck`: `type_check(statement, scopes)` checks a statement
  against a list of scope dicts and records declarations in it. It enforces
  these rules:
  - Ints widen implicitly to doubles, but doubles never narrow to ints.
  - A constant cannot be reassigned.
  - A function body sees only the functions declared so far and its own
    parameters.
- `wrench.inference`: `infer_type`, `check_and_cast_type`,
  `lookup_variable` and `VariableInfo`.
- `wrench.evaluate`: the tree-walking interpreter. It provides `interpret`,
  `evaluate_statement`, `evaluate_expression`, `evaluate_function_call` and
  `call_function`. `interpret` returns the final `Environment`.
- `wrench.operations`: `evaluate_operation` applies a binary operator to two
  values of the same kind. Int arithmetic is 32-bit and raises on overflow.
  Int division truncates toward zero.
- `wrench.table`: `Table`, `Row`, `TableCellType` and
  `parameters_to_structure`.
- `wrench.environment`: `Environment`, `Variable` and `WrenchFunction`. A
  function carries a closure of the functions visible where it was
  declared. At run time a name may not be declared again while an earlier
  declaration of it is visible.
- `wrench.library`: the built-ins.
  - `print` writes one line per value and one line per element of an array
    or row of a table.
  - `import(file, table)` fills `table` from a CSV file, using the table's
    columns and types.
  - `table_add_row(table, row)` appends a row to a table.
- `wrench.pipes`: pipelines.
  - A stage's kind follows from its function's return type. A function that
    returns a row is a map, one that returns `bool` is a filter, and one
    that returns a table is a reduce.
  - The built-in `print` ends a pipeline.
  - A pipeline starts from a table, or from `async_import(file, table)`,
    which reads the CSV file lazily, record by record.
  - Stages are chained generators, so rows flow through them one at a time.
  - `evaluate_pipes` collects the last stage's rows into a `Table`.
- `wrench.errors`: `WrenchError`, with the subclasses `TypeCheckError`
  (raised by the checker) and `InterpretationError` (raised at run time).

## Example

```python
from wrench.ast import (
    AnyType, ExprStatement, FunctionCall, FunctionType, Identifier, IntType,
    NullType, Number, Operation, Operator, VariableDeclaration, make_compound,
)
from wrench.evaluate import interpret
from wrench.inference import VariableInfo
from wrench.typecheck import type_check

program = make_compound([
    VariableDeclaration(IntType(), "x", Number(40)),
    ExprStatement(FunctionCall("print", [
        Operation(Identifier("x"), Operator.ADDITION, Number(2)),
    ])),
])

# Built-ins are not known to the checker unless declared in the outer scope.
scopes = [{"print": VariableInfo(FunctionType(NullType(), [AnyType()]), is_constant=True)}]
type_check(program, scopes)   # raises TypeCheckError if the program is ill-typed

interpret(program)            # prints 42
```

Printed values use the language's own spelling:

- Booleans print as `true` and `false`.
- Null prints as `Null`.
- A whole-valued double prints without a fraction, so `4.0` prints as `4`.
- A row prints as `name: value, ` for each of its cells.

## What the package does not do

The package has no parser for program text and no command-line program.
Programs must be built as syntax trees in Python. The type checker starts
from whatever scopes it is given, so the built-ins must be declared there
before it can accept calls to them.