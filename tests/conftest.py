import copy
from collections import defaultdict
from datetime import date, datetime

import pytest

from portal.core.errors import StoreError
from portal.db.client import QueryClient
from portal.modules.attendance.service import AttendanceService
from portal.modules.attendance.store import AttendanceStore

# Wednesday; the current week runs Monday 2026-10-19 to Sunday 2026-10-25
NOW = datetime(2026, 10, 21, 10, 0)

STUDENT = "student-1"
CLASS = "class-1"


class FakeQueryClient(QueryClient):
    """In-memory tables with the same filter semantics as the Supabase client."""

    def __init__(self):
        self.tables = defaultdict(list)
        self.calls = []
        self.fail = False
        self._next_id = 1

    def _call(self, action, table):
        self.calls.append((action, table))
        if self.fail:
            raise StoreError(f"{action} on {table} failed: connection refused")

    @property
    def writes(self):
        return [c for c in self.calls if c[0] in ("insert", "update", "upsert")]

    @staticmethod
    def _matches(row, f):
        value = row.get(f.column)
        if f.op == "eq":
            return value == f.value
        if f.op == "gte":
            return value is not None and value >= f.value
        if f.op == "lte":
            return value is not None and value <= f.value
        if f.op == "in":
            return value in f.value
        raise AssertionError(f"unexpected operator {f.op}")

    def query(self, table, filters=(), order_by=None):
        self._call("select", table)
        rows = [r for r in self.tables[table] if all(self._matches(r, f) for f in filters)]
        if order_by:
            rows = sorted(rows, key=lambda r: r.get(order_by) or "")
        return copy.deepcopy(rows)

    def insert(self, table, row):
        self._call("insert", table)
        stored = dict(row, id=str(self._next_id))
        self._next_id += 1
        self.tables[table].append(stored)
        return copy.deepcopy(stored)

    def update(self, table, id, patch):
        self._call("update", table)
        for row in self.tables[table]:
            if row["id"] == id:
                row.update(patch)
                return copy.deepcopy(row)
        raise StoreError(f"update on {table}: row {id} not found")

    def upsert(self, table, row, on_conflict):
        self._call("upsert", table)
        keys = on_conflict.split(",")
        for existing in self.tables[table]:
            if all(existing.get(k) == row.get(k) for k in keys):
                existing.update(row)
                return copy.deepcopy(existing)
        stored = dict(row, id=str(self._next_id))
        self._next_id += 1
        self.tables[table].append(stored)
        return copy.deepcopy(stored)

    # test helpers, not part of QueryClient

    def seed_attendance(self, day: date, status: str, student_id=STUDENT, class_id=CLASS, recorded_at=None):
        row = {
            "id": str(self._next_id),
            "student_id": student_id,
            "class_id": class_id,
            "date": day.isoformat(),
            "status": status,
            "teacher_id": None,
            "quarter_id": None,
            "recorded_at": recorded_at or f"{day.isoformat()}T08:00:00+00:00",
        }
        self._next_id += 1
        self.tables["daily_attendance"].append(row)
        return row

    def seed_class(self, class_id, students):
        for student_id, full_name in students:
            self.tables["class_students"].append({"class_id": class_id, "student_id": student_id})
            self.tables["profiles"].append({"id": student_id, "full_name": full_name})


@pytest.fixture
def client():
    return FakeQueryClient()


@pytest.fixture
def store(client):
    return AttendanceStore(client, table="daily_attendance", atomic_upsert=True)


@pytest.fixture
def racy_store(client):
    return AttendanceStore(client, table="daily_attendance", atomic_upsert=False)


@pytest.fixture
def service(store):
    return AttendanceService(store)
