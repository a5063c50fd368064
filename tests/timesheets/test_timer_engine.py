import threading
from datetime import date, datetime, timedelta

import pytest

from timekeeping.core.enums import AuditAction, Role, TimerAction, TimesheetStatus
from timekeeping.core.exceptions import (
    AuthorizationError,
    InvalidTransition,
    NotFoundError,
    TimerAlreadyRunning,
    TimerNotRunning,
    ValidationError,
)

MINUTE_MS = 60_000


def _create(service, owner, now, task="Task", collaborators=None):
    return service.create(actor_id=owner, organization_id=1, task=task, collaborators=collaborators, now=now)


def _running(repo, actor_id):
    return [r.timesheet_id for r in repo.list_running_for(actor_id)]


def test_starting_second_task_stops_the_first(timesheet_service, timesheets_repo, aggregator, fixed_now):
    a = _create(timesheet_service, 1, fixed_now, "A")
    b = _create(timesheet_service, 1, fixed_now, "B")

    timesheet_service.start(actor_id=1, timesheet_id=a.timesheet_id, now=fixed_now)
    timesheet_service.start(actor_id=1, timesheet_id=b.timesheet_id, now=fixed_now + timedelta(minutes=10))

    a_now = timesheets_repo.get(a.timesheet_id)
    assert a_now.is_running is False
    assert a_now.start_time is None
    assert a_now.total_milliseconds == 10 * MINUTE_MS
    assert a_now.logs[-1].action == TimerAction.AUTO_STOPPED
    assert _running(timesheets_repo, 1) == [b.timesheet_id]

    timesheet_service.stop(actor_id=1, timesheet_id=b.timesheet_id, now=fixed_now + timedelta(minutes=15))

    assert timesheets_repo.get(b.timesheet_id).total_milliseconds == 5 * MINUTE_MS
    assert aggregator.daily_total(1, fixed_now.date(), now=fixed_now + timedelta(hours=2)) == 15 * MINUTE_MS


def test_start_sets_running_state_and_log(timesheet_service, fixed_now):
    record = _create(timesheet_service, 1, fixed_now)

    started = timesheet_service.start(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now)

    assert started.is_running is True
    assert started.start_time == fixed_now
    assert started.status == TimesheetStatus.IN_PROGRESS
    assert [e.action for e in started.logs] == [TimerAction.CREATED, TimerAction.STARTED]


def test_starting_a_running_timer_is_rejected_without_changes(timesheet_service, timesheets_repo, fixed_now):
    record = _create(timesheet_service, 1, fixed_now)
    timesheet_service.start(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now)
    before = timesheets_repo.get(record.timesheet_id)

    with pytest.raises(TimerAlreadyRunning):
        timesheet_service.start(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now + timedelta(minutes=3))

    assert timesheets_repo.get(record.timesheet_id) == before


def test_stopping_a_stopped_timer_is_rejected_without_changes(timesheet_service, timesheets_repo, fixed_now):
    record = _create(timesheet_service, 1, fixed_now)

    with pytest.raises(TimerNotRunning):
        timesheet_service.stop(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now)

    assert timesheets_repo.get(record.timesheet_id) == record


def test_elapsed_time_accumulates_across_cycles_and_midnight(timesheet_service, timesheets_repo):
    late = datetime(2025, 3, 3, 23, 50)
    record = _create(timesheet_service, 1, late)

    timesheet_service.start(actor_id=1, timesheet_id=record.timesheet_id, now=late)
    timesheet_service.stop(actor_id=1, timesheet_id=record.timesheet_id, now=late + timedelta(minutes=20))
    timesheet_service.start(actor_id=1, timesheet_id=record.timesheet_id, now=late + timedelta(minutes=30))
    timesheet_service.stop(actor_id=1, timesheet_id=record.timesheet_id, now=late + timedelta(minutes=31, milliseconds=250))

    saved = timesheets_repo.get(record.timesheet_id)
    assert saved.total_milliseconds == 21 * MINUTE_MS + 250
    assert saved.work_date == date(2025, 3, 3)


def test_clock_skew_never_decreases_total(timesheet_service, timesheets_repo, fixed_now):
    record = _create(timesheet_service, 1, fixed_now)
    timesheet_service.start(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now)

    stopped = timesheet_service.stop(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now - timedelta(seconds=5))

    assert stopped.total_milliseconds == 0


def test_standing_checks(timesheet_service, fixed_now):
    record = _create(timesheet_service, 1, fixed_now)

    with pytest.raises(NotFoundError):
        timesheet_service.start(actor_id=1, timesheet_id=999, now=fixed_now)
    with pytest.raises(AuthorizationError):
        timesheet_service.start(actor_id=2, timesheet_id=record.timesheet_id, now=fixed_now)
    with pytest.raises(AuthorizationError):
        timesheet_service.stop(actor_id=2, timesheet_id=record.timesheet_id, now=fixed_now)


def test_collaborator_start_stops_owner_timer_elsewhere(timesheet_service, timesheets_repo, fixed_now):
    own = _create(timesheet_service, 1, fixed_now, "Solo")
    shared = _create(timesheet_service, 2, fixed_now, "Pairing", collaborators=[1])
    timesheet_service.start(actor_id=1, timesheet_id=own.timesheet_id, now=fixed_now)

    timesheet_service.start(actor_id=2, timesheet_id=shared.timesheet_id, now=fixed_now + timedelta(minutes=7))

    stopped = timesheets_repo.get(own.timesheet_id)
    assert stopped.is_running is False
    assert stopped.total_milliseconds == 7 * MINUTE_MS
    assert stopped.logs[-1].actor_id == 2
    assert _running(timesheets_repo, 1) == [shared.timesheet_id]
    assert _running(timesheets_repo, 2) == [shared.timesheet_id]


def test_starting_own_task_stops_shared_task(timesheet_service, timesheets_repo, audit, fixed_now):
    shared = _create(timesheet_service, 1, fixed_now, "Pairing", collaborators=[2])
    other = _create(timesheet_service, 2, fixed_now, "Docs")
    timesheet_service.start(actor_id=1, timesheet_id=shared.timesheet_id, now=fixed_now)

    timesheet_service.start(actor_id=2, timesheet_id=other.timesheet_id, now=fixed_now + timedelta(minutes=4))

    assert timesheets_repo.get(shared.timesheet_id).is_running is False
    assert _running(timesheets_repo, 1) == []
    assert _running(timesheets_repo, 2) == [other.timesheet_id]
    assert [e.action for e in audit.events][-2:] == [AuditAction.AUTO_STOP_TIMER, AuditAction.START_TIMER]


def test_concurrent_starts_leave_one_running_timer(timesheet_service, timesheets_repo, fixed_now):
    records = [_create(timesheet_service, 1, fixed_now, f"T{i}") for i in range(10)]
    barrier = threading.Barrier(len(records))
    errors = []

    def worker(timesheet_id):
        barrier.wait()
        try:
            timesheet_service.start(actor_id=1, timesheet_id=timesheet_id, now=fixed_now)
        except Exception as exc:  # pragma: no cover - surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(r.timesheet_id,)) for r in records]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(_running(timesheets_repo, 1)) == 1


def test_concurrent_starts_on_shared_records_keep_every_actor_exclusive(timesheet_service, timesheets_repo, fixed_now):
    layouts = [(1, [2]), (2, [3]), (3, [1]), (1, []), (2, []), (3, [1, 2]), (4, [1])]
    records = [_create(timesheet_service, owner, fixed_now, collaborators=collabs) for owner, collabs in layouts]
    jobs = [(r.owner_id, r.timesheet_id) for r in records] * 3
    barrier = threading.Barrier(len(jobs))
    unexpected = []

    def worker(actor_id, timesheet_id):
        barrier.wait()
        try:
            timesheet_service.start(actor_id=actor_id, timesheet_id=timesheet_id, now=fixed_now)
        except TimerAlreadyRunning:
            pass
        except Exception as exc:  # pragma: no cover - surfaced by the assertion below
            unexpected.append(exc)

    threads = [threading.Thread(target=worker, args=job) for job in jobs]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert unexpected == []
    for actor_id in (1, 2, 3, 4):
        assert len(_running(timesheets_repo, actor_id)) <= 1


def test_create_validates_and_dedupes_collaborators(timesheet_service, fixed_now):
    record = _create(timesheet_service, 1, fixed_now, collaborators=[2, "3", 2, 1])

    assert record.collaborators == (2, 3)
    assert record.status == TimesheetStatus.DRAFT
    assert record.work_date == fixed_now.date()
    assert record.logs[0].action == TimerAction.CREATED

    with pytest.raises(ValidationError):
        _create(timesheet_service, 1, fixed_now, task="  ")
    with pytest.raises(ValidationError):
        timesheet_service.create(actor_id=1, organization_id=1, task="x", status=TimesheetStatus.SUBMITTED)


def test_submit_and_review_workflow(timesheet_service, fixed_now):
    record = _create(timesheet_service, 1, fixed_now)
    timesheet_service.start(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now)

    with pytest.raises(InvalidTransition):
        timesheet_service.submit(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now)

    timesheet_service.stop(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now + timedelta(minutes=30))
    submitted = timesheet_service.submit(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now)
    assert submitted.status == TimesheetStatus.SUBMITTED

    with pytest.raises(InvalidTransition):
        timesheet_service.start(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now)
    with pytest.raises(AuthorizationError):
        timesheet_service.review(
            current_role=Role.EMPLOYEE, actor_id=1, organization_id=1, timesheet_id=record.timesheet_id
        )

    reviewed = timesheet_service.review(
        current_role=Role.ADMIN, actor_id=9, organization_id=1, timesheet_id=record.timesheet_id, note="ok"
    )
    assert reviewed.status == TimesheetStatus.REVIEWED
    assert reviewed.reviewed_by == 9
    assert reviewed.review_note == "ok"
    assert reviewed.logs[-1].action == TimerAction.REVIEWED
    assert reviewed.total_milliseconds == 30 * MINUTE_MS

    with pytest.raises(InvalidTransition):
        timesheet_service.review(current_role=Role.ADMIN, actor_id=9, organization_id=1, timesheet_id=record.timesheet_id)


def test_only_owner_submits(timesheet_service, fixed_now):
    record = _create(timesheet_service, 1, fixed_now, collaborators=[2])

    with pytest.raises(AuthorizationError):
        timesheet_service.submit(actor_id=2, timesheet_id=record.timesheet_id, now=fixed_now)


def test_review_is_scoped_to_organization(timesheet_service, fixed_now):
    record = _create(timesheet_service, 1, fixed_now)
    timesheet_service.submit(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now)

    with pytest.raises(NotFoundError):
        timesheet_service.review(current_role=Role.ADMIN, actor_id=9, organization_id=2, timesheet_id=record.timesheet_id)


def test_update_and_delete_only_while_draft(timesheet_service, timesheets_repo, fixed_now):
    record = _create(timesheet_service, 1, fixed_now, collaborators=[2])

    updated = timesheet_service.update(
        actor_id=1,
        timesheet_id=record.timesheet_id,
        changes={"task": "Renamed", "collaborators": [3, 1, 3], "billable": False},
        now=fixed_now,
    )
    assert updated.task == "Renamed"
    assert updated.collaborators == (3,)
    assert updated.billable is False

    with pytest.raises(AuthorizationError):
        timesheet_service.delete(actor_id=3, timesheet_id=record.timesheet_id, now=fixed_now)

    timesheet_service.start(actor_id=1, timesheet_id=record.timesheet_id, now=fixed_now)
    with pytest.raises(InvalidTransition):
        timesheet_service.update(actor_id=1, timesheet_id=record.timesheet_id, changes={"task": "x"})
    with pytest.raises(InvalidTransition):
        timesheet_service.delete(actor_id=1, timesheet_id=record.timesheet_id)

    draft = _create(timesheet_service, 1, fixed_now)
    timesheet_service.delete(actor_id=1, timesheet_id=draft.timesheet_id, now=fixed_now)
    assert timesheets_repo.get(draft.timesheet_id) is None


def test_list_and_get_include_collaborated_records(timesheet_service, fixed_now):
    own = _create(timesheet_service, 1, fixed_now)
    shared = _create(timesheet_service, 2, fixed_now, collaborators=[1])
    _create(timesheet_service, 3, fixed_now)

    listed = timesheet_service.list_for_actor(1, work_date=fixed_now.date())
    assert {r.timesheet_id for r in listed} == {own.timesheet_id, shared.timesheet_id}
    assert timesheet_service.list_for_actor(1, status=TimesheetStatus.SUBMITTED) == []

    assert timesheet_service.get(actor_id=1, current_role=Role.EMPLOYEE, organization_id=1, timesheet_id=shared.timesheet_id) == shared
    assert timesheet_service.get(actor_id=9, current_role=Role.ADMIN, organization_id=1, timesheet_id=own.timesheet_id) == own
    with pytest.raises(AuthorizationError):
        timesheet_service.get(actor_id=3, current_role=Role.EMPLOYEE, organization_id=1, timesheet_id=own.timesheet_id)
