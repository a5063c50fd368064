"""Ví dụ: dùng service layer (không qua Flask) với bộ lưu trữ in-memory.

Two tasks, one employee: starting the second timer stops the first one.
"""

from datetime import datetime, timedelta

from timekeeping.container import build_container


def main():
    container = build_container(backend="memory", media_root="media")
    timesheets = container.timesheet_service

    t0 = datetime(2025, 3, 3, 9, 0)
    report = timesheets.create(actor_id=1, organization_id=1, task="Write report", now=t0)
    review = timesheets.create(actor_id=1, organization_id=1, task="Code review", now=t0)

    timesheets.start(actor_id=1, timesheet_id=report.timesheet_id, now=t0)
    timesheets.start(actor_id=1, timesheet_id=review.timesheet_id, now=t0 + timedelta(minutes=10))
    timesheets.stop(actor_id=1, timesheet_id=review.timesheet_id, now=t0 + timedelta(minutes=15))

    for record in timesheets.list_for_actor(1):
        print(record.task, record.status.value, record.total_milliseconds // 60_000, "min")

    total = container.timesheet_aggregator.daily_total(1, t0.date(), now=t0 + timedelta(hours=1))
    print("daily total:", total // 60_000, "min")


if __name__ == "__main__":
    main()
