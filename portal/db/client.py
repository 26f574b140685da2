"""
Generic predicate access to the relational store.

The attendance core never touches supabase-py directly. It builds simple
filters (equality, range, membership) and hands them to a QueryClient, so
tests can swap in an in-memory client and the store can be moved to any
backend that supports the four operations below.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from supabase import Client

from portal.core.errors import StoreError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class Filter(NamedTuple):
    column: str
    op: str  # 'eq', 'gte', 'lte' or 'in'
    value: Any


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def in_(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column, "in", list(values))


class QueryClient(ABC):
    """Operations the attendance core needs from the store."""

    @abstractmethod
    def query(self, table: str, filters: Sequence[Filter] = (), order_by: Optional[str] = None) -> List[Row]:
        raise NotImplementedError

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        raise NotImplementedError

    @abstractmethod
    def update(self, table: str, id: Any, patch: Row) -> Row:
        raise NotImplementedError

    @abstractmethod
    def upsert(self, table: str, row: Row, on_conflict: str) -> Row:
        raise NotImplementedError


def _extract_data(resp) -> Optional[List[Row]]:
    # supabase-py may return a dict-like or object with .data
    if resp is None:
        return None
    data = getattr(resp, "data", None)
    if data is None and isinstance(resp, dict):
        data = resp.get("data")
    return data


class SupabaseQueryClient(QueryClient):
    """QueryClient backed by a supabase-py Client (PostgREST)."""

    def __init__(self, client: Client):
        self.client = client

    def _execute(self, action: str, table: str, builder) -> List[Row]:
        try:
            resp = builder.execute()
        except Exception as e:
            logger.error("Supabase %s on %s failed: %s", action, table, str(e))
            raise StoreError(f"{action} on {table} failed: {str(e)}") from e

        data = _extract_data(resp)
        if data is None:
            raise StoreError(f"{action} on {table} returned no data")
        return data

    def query(self, table: str, filters: Sequence[Filter] = (), order_by: Optional[str] = None) -> List[Row]:
        builder = self.client.table(table).select("*")
        for f in filters:
            if f.op == "eq":
                builder = builder.eq(f.column, f.value)
            elif f.op == "gte":
                builder = builder.gte(f.column, f.value)
            elif f.op == "lte":
                builder = builder.lte(f.column, f.value)
            elif f.op == "in":
                builder = builder.in_(f.column, f.value)
            else:
                raise StoreError(f"Unsupported filter operator: {f.op}")
        if order_by:
            builder = builder.order(order_by)
        return self._execute("select", table, builder)

    def insert(self, table: str, row: Row) -> Row:
        data = self._execute("insert", table, self.client.table(table).insert(row))
        if not data:
            raise StoreError(f"insert on {table} returned no rows")
        return data[0]

    def update(self, table: str, id: Any, patch: Row) -> Row:
        data = self._execute("update", table, self.client.table(table).update(patch).eq("id", id))
        if not data:
            raise StoreError(f"update on {table}: row {id} not found")
        return data[0]

    def upsert(self, table: str, row: Row, on_conflict: str) -> Row:
        data = self._execute("upsert", table, self.client.table(table).upsert(row, on_conflict=on_conflict))
        if not data:
            raise StoreError(f"upsert on {table} returned no rows")
        return data[0]
