"""Smoke tests for value types (enums, Parameter, ResultSet)."""

from notfound_data.models import (
    Column,
    Command,
    CommandType,
    DbType,
    Parameter,
    ParameterDirection,
    ProductTypeEnum,
    ResultSet,
    ResultTable,
)


def test_enums() -> None:
    assert ProductTypeEnum.POSTGRES.value == "postgres"
    assert DbType.INT32.value == "int32"
    assert ParameterDirection.RETURN_VALUE.value == "return_value"
    assert CommandType.STORED_PROCEDURE.value == "stored_procedure"


def test_parameter_defaults_and_value_assignment() -> None:
    p = Parameter(name="@id")
    assert p.db_type == DbType.STRING
    assert p.direction == ParameterDirection.INPUT
    assert p.size == 0
    p.value = 5
    assert p.value == 5
    assert p.bind_name == "id"


def test_command_defaults_to_text() -> None:
    c = Command(text="SELECT 1")
    assert c.command_type == CommandType.TEXT
    assert c.parameters == ()


def test_empty_result_set() -> None:
    rs = ResultSet()
    assert rs.tables == []
    assert rs.is_empty()
    assert not rs
    assert len(rs) == 0
    assert rs.rows == []
    assert rs.columns == []
    assert rs.to_dicts() == []


def test_result_set_reads_first_table() -> None:
    t1 = ResultTable(columns=[Column(name="id"), Column(name="url")], rows=[(1, "/a"), (2, "/b")])
    t2 = ResultTable(columns=[Column(name="n")], rows=[(9,)])
    rs = ResultSet(tables=[t1, t2])

    assert rs
    assert len(rs) == 3
    assert rs.rows == [(1, "/a"), (2, "/b")]
    assert rs.table.column_names == ["id", "url"]
    assert rs.to_dicts()[1] == {"id": 2, "url": "/b"}


def test_result_set_with_only_empty_tables_is_empty() -> None:
    rs = ResultSet(tables=[ResultTable(columns=[Column(name="id")])])
    assert rs.is_empty()
    assert rs.columns[0].name == "id"


def test_result_set_len_and_truth_count_every_table() -> None:
    # a batch whose first statement matched nothing
    rs = ResultSet(tables=[ResultTable(columns=[Column(name="id")]), ResultTable(rows=[(1,)])])
    assert rs.rows == []
    assert len(rs) == 1
    assert rs
    assert not rs.is_empty()


def test_result_set_behaves_as_a_model() -> None:
    rs = ResultSet(tables=[ResultTable(rows=[(1,)])])
    assert dict(rs) == {"tables": rs.tables}
