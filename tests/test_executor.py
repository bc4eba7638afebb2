import pytest

from marketsql.driver import Summary, Transaction
from marketsql.errors import DatabaseError, StatementError
from marketsql.executor import execute, is_query
from marketsql.results import MutationSummary, RowSet
from tests.conftest import Done, FakeConnection, Rows, db_error


class ScriptedTx:
    """Transaction double working at the query/execute level."""

    def __init__(self, queries=None, commands=None, failing=()):
        self.queries = queries or {}
        self.commands = commands or {}
        self.failing = set(failing)
        self.calls = []

    def query(self, sql):
        self.calls.append(sql)
        if sql in self.failing:
            raise DatabaseError(f"boom: {sql}")
        columns, rows = self.queries.get(sql, ([], []))
        return columns, iter(rows)

    def execute(self, sql):
        self.calls.append(sql)
        if sql in self.failing:
            raise DatabaseError(f"boom: {sql}")
        return self.commands.get(sql, Summary())


@pytest.mark.parametrize(
    "stmt", ["SELECT 1", "select * from t", "  \n\tSeLeCt x FROM y"]
)
def test_select_is_query(stmt):
    assert is_query(stmt)


@pytest.mark.parametrize(
    "stmt",
    ["update t set x=1", "WITH c AS (SELECT 1) SELECT * FROM c", "VALUES (1)", "CALL p()", "-- x\nSELECT 1"],
)
def test_other_statements_are_commands(stmt):
    assert not is_query(stmt)


def test_rows_are_collected_in_order():
    tx = ScriptedTx(queries={"SELECT id, name FROM t": (["id", "name"], [(2, "b"), (1, "a")])})
    outcome = execute(tx, ["SELECT id, name FROM t"])
    assert outcome.ok
    [qr] = outcome.results
    assert qr.statement == "SELECT id, name FROM t"
    assert qr.outcome == RowSet(({"id": 2, "name": "b"}, {"id": 1, "name": "a"}))
    assert list(qr.outcome.rows[0]) == ["id", "name"]


def test_zero_rows_give_empty_rowset():
    tx = ScriptedTx(queries={"SELECT x FROM empty": (["x"], [])})
    [qr] = execute(tx, ["SELECT x FROM empty"]).results
    assert isinstance(qr.outcome, RowSet)
    assert len(qr.outcome) == 0
    assert qr.to_data() == []


def test_command_summary_priority():
    tx = ScriptedTx(
        commands={
            "INSERT INTO t VALUES (1)": Summary(last_insert_id=9, rows_affected=1),
            "UPDATE t SET x=1": Summary(rows_affected=4),
            "CREATE TABLE u (id int)": Summary(),
        }
    )
    outcome = execute(tx, ["INSERT INTO t VALUES (1)", "UPDATE t SET x=1", "CREATE TABLE u (id int)"])
    assert [qr.to_data() for qr in outcome.results] == [
        {"lastInsertId": 9},
        {"rowsAffected": 4},
        "executed",
    ]


def test_first_failure_stops_script():
    tx = ScriptedTx(failing={"UPDATE bad"})
    outcome = execute(tx, ["UPDATE ok1", "UPDATE bad", "UPDATE ok2"])
    assert [qr.statement for qr in outcome.results] == ["UPDATE ok1"]
    assert isinstance(outcome.error, StatementError)
    assert outcome.error.statement == "UPDATE bad"
    assert "boom" in str(outcome.error)
    assert tx.calls == ["UPDATE ok1", "UPDATE bad"]


def test_failing_query_stops_script():
    tx = ScriptedTx(failing={"SELECT nope"})
    outcome = execute(tx, ["SELECT nope", "UPDATE t SET x=1"])
    assert outcome.results == ()
    assert outcome.error.statement == "SELECT nope"


def test_blank_statements_are_skipped():
    tx = ScriptedTx()
    outcome = execute(tx, ["  ", "UPDATE t SET x=1 "])
    assert tx.calls == ["UPDATE t SET x=1"]
    assert outcome.results[0].statement == "UPDATE t SET x=1"


def test_undecodable_value_is_a_warning(caplog):
    tx = ScriptedTx(queries={"SELECT a, b FROM t": (["a", "b"], [(1, object()), (2, "ok")])})
    outcome = execute(tx, ["SELECT a, b FROM t", "UPDATE t SET a=0"])
    assert outcome.ok
    first, second = outcome.results
    assert first.outcome.rows == ({"a": 1, "b": None}, {"a": 2, "b": "ok"})
    assert len(first.warnings) == 1
    assert "row 1" in first.warnings[0]
    assert second.statement == "UPDATE t SET a=0"
    assert "rows scan error" in caplog.text


def test_short_row_is_padded_with_nulls():
    tx = ScriptedTx(queries={"SELECT a, b FROM t": (["a", "b"], [(1,)])})
    [qr] = execute(tx, ["SELECT a, b FROM t"]).results
    assert qr.outcome.rows == ({"a": 1, "b": None},)
    assert qr.warnings


def test_runs_against_driver_transaction():
    conn = FakeConnection(
        {
            "SELECT n FROM t": Rows(["n"], [(1,), (2,)]),
            "INSERT INTO t VALUES (3)": Done(lastrowid=3, rowcount=1),
            "DELETE FROM t": Done(lastrowid=0, rowcount=3),
            "SELECT broken": db_error("syntax error"),
        }
    )
    tx = Transaction(conn)
    outcome = execute(
        tx, ["SELECT n FROM t", "INSERT INTO t VALUES (3)", "DELETE FROM t", "SELECT broken", "DROP TABLE t"]
    )
    assert [qr.to_data() for qr in outcome.results] == [
        [{"n": 1}, {"n": 2}],
        {"lastInsertId": 3},
        {"rowsAffected": 3},
    ]
    assert outcome.error.statement == "SELECT broken"
    assert "syntax error" in str(outcome.error)
    assert "DROP TABLE t" not in conn.executed
    assert outcome.results[1].outcome == MutationSummary(last_insert_id=3)


def test_results_are_a_tuple():
    outcome = execute(ScriptedTx(), ["UPDATE t SET x=1"])
    assert isinstance(outcome.results, tuple)


def test_undecodable_row_from_driver_is_skipped():
    bad = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
    conn = FakeConnection({"SELECT name FROM t": Rows(["name"], [("a",), bad, ("c",)])})
    outcome = execute(Transaction(conn), ["SELECT name FROM t", "UPDATE t SET x=1"])
    assert outcome.ok
    first, second = outcome.results
    assert first.outcome.rows == ({"name": "a"}, {"name": "c"})
    assert len(first.warnings) == 1
    assert first.warnings[0].startswith("row 2: ")
    assert second.statement == "UPDATE t SET x=1"
