from timekeeping.database.bootstrap import SCHEMA_PATH, _strip_create_db_and_use, iter_sql_statements


def test_splits_statements_and_skips_comments():
    sql = """
    -- header comment
    CREATE TABLE a (id INT);
    INSERT INTO a VALUES (1); -- trailing
    INSERT INTO b(note) VALUES ('x;y');
    """

    statements = list(iter_sql_statements(sql))

    assert statements[0] == "CREATE TABLE a (id INT)"
    assert statements[1] == "INSERT INTO a VALUES (1)"
    assert "'x;y'" in statements[-1]


def test_schema_ships_with_package_and_defines_core_tables():
    sql = _strip_create_db_and_use(SCHEMA_PATH.read_text(encoding="utf-8"))
    statements = list(iter_sql_statements(sql))
    created = {s.split("EXISTS", 1)[1].split("(", 1)[0].strip() for s in statements if s.startswith("CREATE TABLE")}

    assert not any(s.upper().startswith(("USE ", "CREATE DATABASE")) for s in statements)
    assert {
        "row_locks",
        "attendance_settings",
        "geofence_settings",
        "attendance_records",
        "timesheets",
        "activity_logs",
    } <= created
