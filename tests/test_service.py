from datetime import date

import pytest

from portal.core.errors import PolicyViolation, StoreError, ValidationError
from portal.modules.attendance.service import AttendanceService

from conftest import CLASS, NOW, STUDENT


def test_month_view_cells(service, client):
    client.seed_attendance(date(2026, 10, 19), "present")
    client.seed_attendance(date(2026, 10, 20), "late")

    view = service.get_month_view(STUDENT, CLASS, 2026, 10, NOW)

    assert len(view.days) == 31
    cells = {cell.date: cell for cell in view.days}
    assert cells[date(2026, 10, 19)].status == "present"
    assert cells[date(2026, 10, 20)].status == "late"
    assert cells[date(2026, 10, 21)].status is None
    assert cells[date(2026, 10, 21)].is_today
    assert [c.date for c in view.days if c.is_today] == [date(2026, 10, 21)]
    assert cells[date(2026, 10, 24)].is_weekend
    assert not cells[date(2026, 10, 24)].editable
    assert not cells[date(2026, 10, 16)].editable
    assert cells[date(2026, 10, 22)].editable


def test_month_view_percentages_use_both_formulas(service, client):
    client.seed_attendance(date(2026, 10, 19), "present")
    client.seed_attendance(date(2026, 10, 20), "late")
    client.seed_attendance(date(2026, 9, 30), "absent")

    view = service.get_month_view(STUDENT, CLASS, 2026, 10, NOW)

    # 2 of 22 weekdays this month; 2 of 3 recorded days overall
    assert view.monthly_percentage == 9
    assert view.overall_percentage == 67
    assert view.monthly_band == "red"
    assert view.overall_band == "orange"
    assert view.counts.present == 1
    assert view.counts.late == 1


def test_future_month_view_is_empty_and_editable(service):
    view = service.get_month_view(STUDENT, CLASS, 2027, 3, NOW)

    assert view.monthly_percentage == 0
    for cell in view.days:
        assert cell.status is None
        assert cell.editable == (not cell.is_weekend)
        assert not cell.is_today


def test_invalid_month_is_rejected(service, client):
    with pytest.raises(ValidationError):
        service.get_month_view(STUDENT, CLASS, 2026, 13, NOW)
    assert client.calls == []


def test_set_day_status_on_saturday_is_rejected_without_write(service, client):
    with pytest.raises(PolicyViolation):
        service.set_day_status(STUDENT, CLASS, date(2026, 10, 24), "present", NOW)
    assert client.calls == []


def test_set_day_status_outside_window_is_rejected_without_write(service, client):
    with pytest.raises(PolicyViolation):
        service.set_day_status(STUDENT, CLASS, date(2026, 10, 16), "present", NOW)
    assert client.writes == []


def test_set_day_status_invalid_status_is_rejected_without_write(service, client):
    with pytest.raises(ValidationError):
        service.set_day_status(STUDENT, CLASS, date(2026, 10, 19), "here", NOW)
    assert client.calls == []


def test_set_day_status_twice_is_idempotent(service, client):
    service.set_day_status(STUDENT, CLASS, date(2026, 10, 19), "present", NOW)
    service.set_day_status(STUDENT, CLASS, date(2026, 10, 19), "present", NOW)

    rows = client.tables["daily_attendance"]
    assert len(rows) == 1
    assert rows[0]["status"] == "present"


def test_set_day_status_recomputes_from_fresh_read(service, client):
    client.seed_attendance(date(2026, 10, 19), "absent")
    client.seed_attendance(date(2026, 10, 20), "present")

    result = service.set_day_status(
        STUDENT, CLASS, date(2026, 10, 19), "present", NOW, teacher_id="teacher-1", quarter_id="q1"
    )

    assert result.record.status == "present"
    assert result.record.teacher_id == "teacher-1"
    assert result.overall_percentage == 100
    assert result.monthly_percentage == 9
    # write, then both reads happen after it
    assert [c[0] for c in client.calls] == ["upsert", "select", "select"]


def test_edit_over_duplicate_day_shows_in_month_view(racy_store, client):
    client.seed_attendance(date(2026, 10, 20), "absent", recorded_at="2020-01-01T08:00:00+00:00")
    client.seed_attendance(date(2026, 10, 20), "absent", recorded_at="2020-01-01T08:00:01+00:00")
    racy_service = AttendanceService(racy_store)

    result = racy_service.set_day_status(STUDENT, CLASS, date(2026, 10, 20), "present", NOW)
    view = racy_service.get_month_view(STUDENT, CLASS, 2026, 10, NOW)

    cell = next(c for c in view.days if c.date == date(2026, 10, 20))
    assert result.record.status == "present"
    assert cell.status == "present"
    assert view.monthly_percentage == result.monthly_percentage == 5
    assert view.overall_percentage == 100


def test_set_day_status_future_date(service, client):
    result = service.set_day_status(STUDENT, CLASS, date(2027, 3, 15), "excused", NOW)
    assert result.record.date == date(2027, 3, 15)
    assert result.overall_percentage == 0


def test_store_failure_propagates(service, client):
    client.fail = True
    with pytest.raises(StoreError):
        service.set_day_status(STUDENT, CLASS, date(2026, 10, 19), "present", NOW)
    with pytest.raises(StoreError):
        service.get_month_view(STUDENT, CLASS, 2026, 10, NOW)
