from datetime import date, datetime

from timekeeping.attendance.conflicts import detect_ip_conflicts
from timekeeping.attendance.model import AttendanceDayRecord
from timekeeping.capture.model import Capture
from timekeeping.core.enums import AttendanceStatus

DAY = date(2025, 3, 3)


def _record(attendance_id: int, user_id: int, ip: str | None) -> AttendanceDayRecord:
    clock_in = None
    if ip is not None:
        clock_in = Capture(
            timestamp=datetime(2025, 3, 3, 9, 0),
            ip=ip,
            device="Unknown",
            user_agent="",
            within_geofence=None,
            face_detected=True,
        )
    return AttendanceDayRecord(
        attendance_id=attendance_id,
        user_id=user_id,
        organization_id=1,
        work_date=DAY,
        status=AttendanceStatus.PRESENT,
        clock_in=clock_in,
    )


def test_groups_ips_shared_by_several_users():
    records = [
        _record(1, 10, "1.1.1.1"),
        _record(2, 11, "1.1.1.1"),
        _record(3, 12, "2.2.2.2"),
        _record(4, 13, "1.1.1.1"),
    ]

    conflicts = detect_ip_conflicts(records)

    assert len(conflicts) == 1
    assert conflicts[0].ip == "1.1.1.1"
    assert [(e.user_id, e.attendance_id) for e in conflicts[0].entries] == [(10, 1), (11, 2), (13, 4)]


def test_same_user_twice_is_not_a_conflict():
    assert detect_ip_conflicts([_record(1, 10, "1.1.1.1"), _record(2, 10, "1.1.1.1")]) == []


def test_empty_ip_and_missing_clock_in_are_ignored():
    records = [_record(1, 10, ""), _record(2, 11, ""), _record(3, 12, None), _record(4, 13, None)]

    assert detect_ip_conflicts(records) == []


def test_conflict_serializes_users():
    conflict = detect_ip_conflicts([_record(1, 10, "9.9.9.9"), _record(2, 11, "9.9.9.9")])[0]

    assert conflict.to_dict() == {
        "ip": "9.9.9.9",
        "users": [{"user_id": 10, "attendance_id": 1}, {"user_id": 11, "attendance_id": 2}],
    }
