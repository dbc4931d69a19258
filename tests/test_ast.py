import pytest

from wrench.ast import (
    ArrayExpr,
    BoolLiteral,
    Compound,
    ExprStatement,
    FunctionCall,
    FunctionType,
    Identifier,
    IntType,
    Not,
    Number,
    Operation,
    Operator,
    Parameter,
    Pipe,
    Return,
    Skip,
    TableType,
    RowType,
    ast_and,
    ast_greater_than,
    ast_greater_than_or_equal,
    ast_less_than,
    ast_less_than_or_equal,
    ast_not,
    ast_or,
    make_compound,
)


def test_make_compound_empty_is_skip():
    assert make_compound([]) == Skip()


def test_make_compound_nests_right():
    s1 = ExprStatement(Number(1))
    s2 = Return(Number(2))
    result = make_compound([s1, s2])
    assert result == Compound(s1, Compound(s2, Skip()))


def test_make_compound_preserves_order():
    stmts = [ExprStatement(Number(i)) for i in range(4)]
    node = make_compound(stmts)
    seen = []
    while isinstance(node, Compound):
        seen.append(node.first)
        node = node.second
    assert seen == stmts
    assert node == Skip()


def test_comparison_builders():
    a, b = Identifier("a"), Identifier("b")
    assert ast_less_than(a, b) == Operation(a, Operator.LESS_THAN, b)
    assert ast_less_than_or_equal(a, b) == Operation(a, Operator.LESS_THAN_OR_EQUAL, b)
    assert ast_or(a, b) == Operation(a, Operator.OR, b)
    assert ast_not(a) == Not(a)


def test_and_is_de_morgan():
    a, b = BoolLiteral(True), BoolLiteral(False)
    assert ast_and(a, b) == Not(Operation(Not(a), Operator.OR, Not(b)))


def test_greater_than_builders():
    a, b = Number(1), Number(2)
    assert ast_greater_than_or_equal(a, b) == Not(Operation(a, Operator.LESS_THAN, b))
    assert ast_greater_than(a, b) == Not(Operation(a, Operator.LESS_THAN_OR_EQUAL, b))


def test_sequences_are_normalised_to_tuples():
    list_call = FunctionCall("f", [Number(1), Number(2)])
    tuple_call = FunctionCall("f", (Number(1), Number(2)))
    assert list_call == tuple_call
    assert isinstance(list_call.args, tuple)


@pytest.mark.parametrize(
    "left, right",
    [
        (TableType([Parameter(IntType(), "id")]), TableType((Parameter(IntType(), "id"),))),
        (RowType([Parameter(IntType(), "id")]), RowType((Parameter(IntType(), "id"),))),
        (FunctionType(IntType(), [IntType()]), FunctionType(IntType(), (IntType(),))),
    ],
)
def test_types_compare_structurally(left, right):
    assert left == right
    assert hash(left) == hash(right)


def test_table_and_row_types_differ():
    cols = [Parameter(IntType(), "id")]
    assert TableType(cols) != RowType(cols)


def test_pipe_and_array_args():
    pipe = Pipe(Identifier("t"), "f", [Number(3)])
    assert pipe.args == (Number(3),)
    assert ArrayExpr([Number(1)]).elements == (Number(1),)