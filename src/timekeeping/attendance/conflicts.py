from __future__ import annotations

from typing import Iterable

from .model import AttendanceDayRecord, ConflictEntry, IpConflict


def detect_ip_conflicts(records: Iterable[AttendanceDayRecord]) -> list[IpConflict]:
    """Group clock-ins by IP and report every IP used by more than one person.

    Records without a clock-in or with an empty IP are ignored. Groups keep
    the order in which each IP was first seen.
    """
    groups: dict[str, list[ConflictEntry]] = {}
    for record in records:
        ip = (record.clock_in.ip if record.clock_in else "").strip()
        if not ip:
            continue
        groups.setdefault(ip, []).append(ConflictEntry(user_id=record.user_id, attendance_id=record.attendance_id))

    conflicts = []
    for ip, entries in groups.items():
        if len({e.user_id for e in entries}) > 1:
            conflicts.append(IpConflict(ip=ip, entries=tuple(entries)))
    return conflicts
