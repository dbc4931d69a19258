import pytest

from wrench.ast import (
    BoolType,
    ColumnAssignment,
    ColumnIndexing,
    Compound,
    ExprStatement,
    FunctionCall,
    Identifier,
    Indexing,
    IntType,
    Number,
    Operation,
    Operator,
    Parameter,
    Pipe,
    Return,
    RowExpr,
    RowType,
    Skip,
    StringLiteral,
    TableExpr,
    TableType,
    VariableDeclaration,
)
from wrench.environment import Environment, Variable, WrenchFunction
from wrench.errors import InterpretationError
from wrench.evaluate import evaluate_expression
from wrench.pipes import (
    PipeType,
    SimplePipe,
    evaluate_pipes,
    from_pipe_value,
    pipe_rollout,
    to_pipe_value,
)
from wrench.table import Row, Table, TableCellType

COLUMNS = (Parameter(IntType(), "v"),)
ROW_T = RowType(COLUMNS)
TABLE_T = TableType(COLUMNS)


def dummy_function(return_type):
    return WrenchFunction(
        return_type,
        "dummy",
        [Parameter(TableType([Parameter(IntType(), "col")]), "input")],
        Skip(),
    )


def doubler():
    body = Return(
        RowExpr(
            [
                ColumnAssignment(
                    IntType(),
                    "v",
                    Operation(ColumnIndexing(Identifier("r"), "v"), Operator.MULTIPLICATION, Number(2)),
                )
            ]
        )
    )
    return WrenchFunction(ROW_T, "double", [Parameter(ROW_T, "r")], body)


def scaler():
    body = Return(
        RowExpr(
            [
                ColumnAssignment(
                    IntType(),
                    "v",
                    Operation(ColumnIndexing(Identifier("r"), "v"), Operator.MULTIPLICATION, Identifier("k")),
                )
            ]
        )
    )
    return WrenchFunction(
        ROW_T, "scale", [Parameter(ROW_T, "r"), Parameter(IntType(), "k")], body
    )


def keeper():
    body = Return(Operation(Number(1), Operator.LESS_THAN, ColumnIndexing(Identifier("r"), "v")))
    return WrenchFunction(BoolType(), "keep", [Parameter(ROW_T, "r")], body)


def first_row():
    body = Compound(
        VariableDeclaration(TABLE_T, "out", TableExpr(COLUMNS)),
        Compound(
            ExprStatement(
                FunctionCall(
                    "table_add_row",
                    [Identifier("out"), Indexing(Identifier("input"), Number(0))],
                )
            ),
            Return(Identifier("out")),
        ),
    )
    return WrenchFunction(TABLE_T, "first", [Parameter(TABLE_T, "input")], body)


def make_table(*values):
    table = Table({"v": TableCellType.INT})
    for value in values:
        table.add_row(Row([("v", value)]))
    return table


@pytest.fixture
def env():
    environment = Environment()
    environment.push_scope()
    environment.add(Variable("t", make_table(1, 2, 3)))
    for function in (doubler(), scaler(), keeper(), first_row()):
        environment.add(function)
    return environment


def values(table):
    return [row.get("v") for row in table]


def test_pipe_value_round_trip():
    for value in [42, 3.14, "hello", True, None, [1, 2]]:
        assert from_pipe_value(to_pipe_value(value)) == value


def test_pipe_value_copies_tables():
    original = make_table(1)
    converted = to_pipe_value(original)
    converted.add_row(Row([("v", 2)]))
    assert len(original) == 1
    back = from_pipe_value(converted)
    back.add_row(Row([("v", 3)]))
    assert len(converted) == 2


def test_pipe_rollout_single():
    env = Environment()
    env.push_scope()
    env.add(dummy_function(TableType([Parameter(IntType(), "col")])))
    pipes, initial = pipe_rollout(Number(1), "dummy", [], env)
    assert len(pipes) == 1
    assert initial == Number(1)


def test_pipe_rollout_chain_order(env):
    source = Pipe(Identifier("t"), "keep", ())
    pipes, initial = pipe_rollout(source, "scale", [Number(3)], env)
    assert [p.function.name for p in pipes] == ["keep", "scale"]
    assert pipes[1].args == [3]
    assert initial == Identifier("t")


def test_pipe_rollout_print_and_non_function(env):
    pipes, _ = pipe_rollout(Identifier("t"), "print", [], env)
    assert pipes[0].function is None
    with pytest.raises(InterpretationError, match="Expected a function for the pipe"):
        pipe_rollout(Identifier("t"), "t", [], env)


@pytest.mark.parametrize(
    "return_type, expected",
    [
        (IntType(), PipeType.MAP),
        (BoolType(), PipeType.FILTER),
        (TableType([Parameter(IntType(), "col")]), PipeType.REDUCE),
    ],
)
def test_pipe_type(return_type, expected):
    assert SimplePipe(dummy_function(return_type)).pipe_type() is expected


def test_structures():
    pipe = SimplePipe(first_row())
    assert pipe.call_structure() == {"v": TableCellType.INT}
    assert pipe.return_structure() == {"v": TableCellType.INT}
    with pytest.raises(InterpretationError, match="Expected a table"):
        SimplePipe(keeper()).return_structure()
    with pytest.raises(InterpretationError, match="custom function"):
        SimplePipe(None).pipe_type()


def test_map(env):
    result = evaluate_pipes(Identifier("t"), "double", [], env)
    assert values(result) == [2, 4, 6]
    assert result.structure == {"v": TableCellType.INT}


def test_map_with_extra_argument(env):
    result = evaluate_pipes(Identifier("t"), "scale", [Number(10)], env)
    assert values(result) == [10, 20, 30]


def test_filter_then_map(env):
    result = evaluate_pipes(Pipe(Identifier("t"), "keep", ()), "double", [], env)
    assert values(result) == [4, 6]


def test_filter_last_has_no_return_structure(env):
    with pytest.raises(InterpretationError):
        evaluate_pipes(Identifier("t"), "keep", [], env)


def test_reduce(env):
    result = evaluate_pipes(Pipe(Identifier("t"), "keep", ()), "first", [], env)
    assert values(result) == [2]


def test_source_table_is_untouched(env):
    evaluate_pipes(Identifier("t"), "double", [], env)
    assert values(env.get("t").value) == [1, 2, 3]


def test_print_last(env, capsys):
    result = evaluate_pipes(Pipe(Identifier("t"), "keep", ()), "print", [], env)
    assert len(result) == 0
    assert result.structure == {}
    assert capsys.readouterr().out == "v: 2, \nv: 3, \n"


def test_pipe_expression(env):
    result = evaluate_expression(Pipe(Identifier("t"), "double", ()), env)
    assert values(result) == [2, 4, 6]


def test_source_must_be_table(env):
    with pytest.raises(InterpretationError, match="Table expected for the pipe"):
        evaluate_pipes(Number(1), "double", [], env)


def test_async_import(env, tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("v,name\n1,a\n5,b\n", encoding="utf-8")
    source = FunctionCall("async_import", [StringLiteral(str(path)), TableExpr(COLUMNS)])
    result = evaluate_pipes(source, "double", [], env)
    assert values(result) == [2, 10]


def test_async_import_bad_arguments(env):
    source = FunctionCall("async_import", [Number(1), TableExpr(COLUMNS)])
    with pytest.raises(InterpretationError, match="string literal"):
        evaluate_pipes(source, "double", [], env)
    source = FunctionCall("async_import", [StringLiteral("x.csv"), Number(1)])
    with pytest.raises(InterpretationError, match="Expected a table for the second"):
        evaluate_pipes(source, "double", [], env)