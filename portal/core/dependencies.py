from datetime import datetime

from fastapi import Depends

from portal.db.client import QueryClient, SupabaseQueryClient
from portal.db.supabase import get_supabase
from portal.modules.attendance.service import AttendanceService
from portal.modules.attendance.store import AttendanceStore
from portal.modules.classes.roster import get_class_roster
from portal.modules.reports.aggregator import ReportAggregator


def get_query_client() -> QueryClient:
    """Query client bound to the shared Supabase connection."""
    return SupabaseQueryClient(get_supabase())


def get_now() -> datetime:
    """Request time; overridden in tests to pin the calendar."""
    return datetime.now()


def get_attendance_store(client: QueryClient = Depends(get_query_client)) -> AttendanceStore:
    return AttendanceStore(client)


def get_attendance_service(store: AttendanceStore = Depends(get_attendance_store)) -> AttendanceService:
    return AttendanceService(store)


def get_report_aggregator(
    client: QueryClient = Depends(get_query_client),
    store: AttendanceStore = Depends(get_attendance_store),
) -> ReportAggregator:
    return ReportAggregator(store, lambda class_id: get_class_roster(client, class_id))
