from datetime import time, timedelta

from timekeeping.database.mysql_base import load_json, lock_keys, to_clock_time


class RecordingCursor:
    def __init__(self):
        self.executed = []

    def execute(self, sql, params=None):
        self.executed.append((sql, params))


def test_lock_keys_takes_each_lock_with_a_single_upsert_in_sorted_order():
    cur = RecordingCursor()

    lock_keys(cur, ["timer:7", "timer:3", "timer:7"])

    assert [params for _, params in cur.executed] == [("timer:3",), ("timer:7",)]
    for sql, _ in cur.executed:
        assert sql.startswith("INSERT INTO row_locks")
        assert "ON DUPLICATE KEY UPDATE" in sql
        assert "IGNORE" not in sql
        assert "FOR UPDATE" not in sql


def test_to_clock_time_accepts_connector_shapes():
    assert to_clock_time(timedelta(hours=9, minutes=30)) == time(9, 30)
    assert to_clock_time("18:00:00") == time(18, 0)
    assert to_clock_time(time(8, 15)) == time(8, 15)
    assert to_clock_time(None) is None


def test_load_json_decodes_bytes_and_passes_through_decoded_values():
    assert load_json(b'{"ip": "10.0.0.1"}') == {"ip": "10.0.0.1"}
    assert load_json([6, 7]) == [6, 7]
    assert load_json("") is None
