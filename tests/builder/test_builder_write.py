"""Tests for chainsql.builder: INSERT / REPLACE / UPDATE / DELETE / LOCK rendering."""

import pytest

from chainsql.errors import (
    ColumnNotSpecifiedError,
    DataTypeMismatchError,
    InvalidArgumentError,
    TableNotSpecifiedError,
    UnbegunTransactionError,
)
from tests.helpers import RecordingExecutor


class TestInsert:

    def test_insert(self, render):
        render.table("Users").insert({"Username": "A", "Password": "B"})
        assert render.query == "INSERT INTO Users (Username, Password) VALUES (?, ?)"
        assert render.params == ("A", "B")

    def test_insert_column_order_is_reproducible(self, render):
        data = {"Username": "A", "Password": "B", "Age": 3}
        render.table("Users").insert(data)
        first = (render.query, render.params)
        render.table("Users").insert(dict(data))
        assert (render.query, render.params) == first

    def test_insert_multi(self, render):
        render.table("Users").insert_multi([
            {"Username": "A", "Password": "B"},
            {"Username": "C", "Password": "D"},
        ])
        assert render.query == "INSERT INTO Users (Username, Password) VALUES (?, ?), (?, ?)"
        assert render.params == ("A", "B", "C", "D")

    def test_insert_multi_with_different_columns(self, render):
        with pytest.raises(DataTypeMismatchError):
            render.table("Users").insert_multi([{"Username": "A"}, {"Password": "B"}])

    def test_insert_multi_empty(self, render):
        with pytest.raises(ColumnNotSpecifiedError):
            render.table("Users").insert_multi([])

    def test_replace(self, render):
        render.table("Users").replace({"Username": "A", "Password": "B"})
        assert render.query == "REPLACE INTO Users (Username, Password) VALUES (?, ?)"

    def test_functions_and_now(self, render):
        render.table("Users").insert({
            "CreatedAt": render.now(),
            "Expires": render.now("+1Y"),
            "Password": render.func("SHA1(?)", "secretpassword+salt"),
            "Username": "admin",
        })
        assert render.query == (
            "INSERT INTO Users (CreatedAt, Expires, Password, Username) "
            "VALUES (NOW(), NOW() + INTERVAL 1 YEAR, SHA1(?), ?)"
        )
        assert render.params == ("secretpassword+salt", "admin")

    def test_null_value(self, render):
        render.table("Users").insert({"Username": "A", "Age": None})
        assert render.query == "INSERT INTO Users (Username, Age) VALUES (?, NULL)"
        assert render.params == ("A",)

    def test_sub_query_value(self, render):
        name = render.sub_query().table("Users").where("ID", 6).get("Name")
        render.table("Posts").insert({"Title": "x", "Author": name, "Views": 0})
        assert render.query == "INSERT INTO Posts (Title, Author, Views) VALUES (?, (SELECT Name FROM Users WHERE ID = ?), ?)"
        assert render.params == ("x", 6, 0)

    def test_on_duplicate(self, render):
        render.table("Users").on_duplicate(["UpdatedAt"], "ID").insert({"Username": "A", "UpdatedAt": render.now()})
        assert render.query == (
            "INSERT INTO Users (Username, UpdatedAt) VALUES (?, NOW()) "
            "ON DUPLICATE KEY UPDATE ID = LAST_INSERT_ID(ID), UpdatedAt = VALUES(UpdatedAt)"
        )
        assert render.params == ("A",)
        render.table("Users").insert({"Username": "A"})
        assert "ON DUPLICATE" not in render.query

    def test_insert_options(self, render):
        render.table("Users").set_query_option("IGNORE").insert({"Username": "A"})
        assert render.query == "INSERT IGNORE INTO Users (Username) VALUES (?)"

    @pytest.mark.parametrize("data", [["Username", "A"], "Username=A", 3])
    def test_payload_must_be_a_mapping(self, render, data):
        with pytest.raises(DataTypeMismatchError):
            render.table("Users").insert(data)

    def test_payload_needs_columns(self, render):
        with pytest.raises(ColumnNotSpecifiedError):
            render.table("Users").insert({})
        with pytest.raises(ColumnNotSpecifiedError):
            render.table("Users").insert({"": 1})

    def test_table_required(self, render):
        with pytest.raises(TableNotSpecifiedError):
            render.insert({"Username": "A"})


class TestUpdateDelete:

    def test_update(self, render):
        render.table("Users").where("Username", "YamiOdymel").update({"Password": "123456", "Username": "Yami"})
        assert render.query == "UPDATE Users SET Password = ?, Username = ? WHERE Username = ?"
        assert render.params == ("123456", "Yami", "YamiOdymel")

    def test_update_with_order_and_limit(self, render):
        render.table("Users").where("Age", "<", 18).order_by("ID", "DESC").limit(10).update({"Minor": 1})
        assert render.query == "UPDATE Users SET Minor = ? WHERE Age < ? ORDER BY ID DESC LIMIT 10"
        assert render.params == (1, 18)

    def test_update_with_sub_query(self, render):
        average = render.sub_query().table("Scores").where("Game", "chess").get("AVG(Score)")
        render.table("Users").where("ID", 3).update({"Score": average})
        assert render.query == "UPDATE Users SET Score = (SELECT AVG(Score) FROM Scores WHERE Game = ?) WHERE ID = ?"
        assert render.params == ("chess", 3)

    def test_delete(self, render):
        render.table("Users").where("ID", 1).delete()
        assert render.query == "DELETE FROM Users WHERE ID = ?"
        assert render.params == (1,)

    def test_delete_with_limit(self, render):
        render.table("Users").order_by("ID").limit(1).delete()
        assert render.query == "DELETE FROM Users ORDER BY ID LIMIT 1"

    def test_delete_several_tables(self, render):
        render.table("Users", "Posts").where("Users.ID = Posts.UserID").where("Users.ID", 3).delete()
        assert render.query == "DELETE Users, Posts FROM Users, Posts WHERE Users.ID = Posts.UserID AND Users.ID = ?"
        assert render.params == (3,)

    def test_delete_with_join(self, render):
        render.table("Users").left_join("Posts", "Posts.UserID = Users.ID").where("Posts.ID", "IS", None).delete()
        assert render.query == "DELETE Users FROM Users LEFT JOIN Posts ON (Posts.UserID = Users.ID) WHERE Posts.ID IS NULL"


class TestNowAndLocks:

    def test_now_intervals(self, render):
        assert render.now().sql == "NOW()"
        assert render.now("+1Y", "-2M").sql == "NOW() + INTERVAL 1 YEAR - INTERVAL 2 MONTH"
        assert render.now("-30m").sql == "NOW() - INTERVAL 30 MINUTE"

    @pytest.mark.parametrize("interval", ["1Y", "+1y", "+Y", "+1 Y", "+1.5D", ""])
    def test_invalid_interval(self, render, interval):
        with pytest.raises(InvalidArgumentError):
            render.now(interval)

    def test_lock_and_unlock(self, db, monkeypatch):
        transaction = db.begin()
        executor = RecordingExecutor()
        monkeypatch.setattr(transaction._executor, "execute", executor.execute)
        transaction.lock("Users", "Posts")
        assert transaction.query == "LOCK TABLES Users WRITE, Posts WRITE"
        transaction.set_lock_method("read local").lock("Users")
        assert transaction.query == "LOCK TABLES Users READ LOCAL"
        transaction.unlock()
        assert transaction.query == "UNLOCK TABLES"
        assert [sql for sql, _ in executor.statements] == [
            "LOCK TABLES Users WRITE, Posts WRITE",
            "LOCK TABLES Users READ LOCAL",
            "UNLOCK TABLES",
        ]
        with pytest.raises(TableNotSpecifiedError):
            transaction.lock()
        transaction.rollback()

    def test_locks_need_a_transaction(self, db, render):
        for builder in (db, render):
            with pytest.raises(UnbegunTransactionError):
                builder.lock("Users")
            with pytest.raises(UnbegunTransactionError):
                builder.unlock()
        transaction = db.begin()
        transaction.commit()
        with pytest.raises(UnbegunTransactionError):
            transaction.lock("Users")

    def test_invalid_lock_method(self, render):
        with pytest.raises(InvalidArgumentError):
            render.set_lock_method("EXCLUSIVE")
