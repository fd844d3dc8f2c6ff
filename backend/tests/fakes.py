# backend/tests/fakes.py

from __future__ import annotations

import copy
from collections import defaultdict
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError

# Unique keys per table; each key is a tuple of columns.
UNIQUE_KEYS: Dict[str, tuple] = {
    "tf_auth": (("user_id",), ("username",)),
    "tf_sessions": (("token",),),
    "tf_tasks": (("user_id", "id"),),
    "tf_task_history": (("id",),),
    "tf_settings": (("user_id",),),
}


class FakeQuery:
    """
    Just enough of the PostgREST query builder for TaskFlowDB.

    Filters, ordering and limits are applied in memory; writes return the
    affected rows like `Prefer: return=representation` does.
    """

    def __init__(self, client: "FakeSupabaseClient", table: str) -> None:
        self._client = client
        self._table = table
        self._op = "select"
        self._columns: Optional[List[str]] = None
        self._payload: Any = None
        self._on_conflict: Optional[str] = None
        self._filters: List[tuple] = []
        self._order: List[tuple] = []
        self._limit: Optional[int] = None

    # -- builder -------------------------------------------------------- #
    def select(self, columns: str = "*") -> "FakeQuery":
        self._op = "select"
        if columns.strip() != "*":
            self._columns = [c.strip() for c in columns.split(",") if c.strip()]
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self._op, self._payload = "insert", payload
        return self

    def upsert(self, payload: Any, on_conflict: str = "") -> "FakeQuery":
        self._op, self._payload, self._on_conflict = "upsert", payload, on_conflict
        return self

    def update(self, payload: Dict[str, Any]) -> "FakeQuery":
        self._op, self._payload = "update", payload
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(("eq", column, value))
        return self

    def neq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(("neq", column, value))
        return self

    def lt(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(("lt", column, value))
        return self

    def gte(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(("gte", column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order.append((column, desc))
        return self

    def limit(self, size: int) -> "FakeQuery":
        self._limit = size
        return self

    # -- evaluation ----------------------------------------------------- #
    def _matches(self, row: Dict[str, Any]) -> bool:
        for op, column, value in self._filters:
            current = row.get(column)
            if op == "eq" and current != value:
                return False
            if op == "neq" and current == value:
                return False
            if op == "lt" and not (current is not None and current < value):
                return False
            if op == "gte" and not (current is not None and current >= value):
                return False
        return True

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self._columns is None:
            return copy.deepcopy(row)
        return {c: copy.deepcopy(row.get(c)) for c in self._columns}

    def _check_unique(self, rows: List[Dict[str, Any]], candidate: Dict[str, Any], skip=None) -> None:
        for key in UNIQUE_KEYS.get(self._table, ()):
            if not all(column in candidate for column in key):
                continue
            for row in rows:
                if row is skip:
                    continue
                if all(row.get(column) == candidate[column] for column in key):
                    columns = ", ".join(key)
                    raise APIError({
                        "message": f'duplicate key value violates unique constraint "{self._table}_pkey"',
                        "code": "23505",
                        "hint": None,
                        "details": f"Key ({columns}) already exists.",
                    })

    def execute(self) -> SimpleNamespace:
        self._client.executed.append((self._table, self._op))
        if self._client.fail_with is not None:
            raise self._client.fail_with

        rows = self._client.tables[self._table]

        if self._op == "select":
            selected = [r for r in rows if self._matches(r)]
            for column, desc in reversed(self._order):
                selected.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
            if self._limit is not None:
                selected = selected[: self._limit]
            return SimpleNamespace(data=[self._project(r) for r in selected])

        if self._op == "insert":
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for payload in payloads:
                self._check_unique(rows, payload)
                rows.append(copy.deepcopy(payload))
                inserted.append(copy.deepcopy(payload))
            return SimpleNamespace(data=inserted)

        if self._op == "upsert":
            payload = self._payload
            existing = next((r for r in rows if r.get(self._on_conflict) == payload.get(self._on_conflict)), None)
            if existing is None:
                self._check_unique(rows, payload)
                rows.append(copy.deepcopy(payload))
            else:
                existing.update(copy.deepcopy(payload))
            return SimpleNamespace(data=[copy.deepcopy(payload)])

        if self._op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    self._check_unique(rows, {**row, **self._payload}, skip=row)
                    row.update(copy.deepcopy(self._payload))
                    updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated)

        if self._op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self._client.tables[self._table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=removed)

        raise AssertionError(f"unsupported operation {self._op}")


class FakeSupabaseClient:
    """
    In-memory stand-in for `supabase.Client`.

    - `tables` holds the rows per table name
    - `executed` records (table, operation) for assertions
    - set `fail_with` to an APIError to make every query fail
    """

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.executed: List[tuple] = []
        self.fail_with: Optional[Exception] = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


class FakeCompletionClient:
    """
    Deterministic completion client for unit tests.

    - Captures calls for assertions
    - Returns the queued responses in order (the last one repeats)
    - Raises `error` instead when it is set
    """

    def __init__(self, *responses: str, model: str = "fake-model") -> None:
        self.model = model
        self.responses: List[str] = list(responses) or ["ok"]
        self.calls: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def queue(self, *responses: str) -> None:
        self.responses = list(responses)

    def complete(self, messages, temperature=0.3, max_tokens=600, json_mode=False) -> str:
        self.calls.append({
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "json_mode": json_mode,
        })
        if self.error is not None:
            raise self.error
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


class FakeCompletionFactory:
    """Hands out one FakeCompletionClient and records the API keys asked for."""

    def __init__(self, client: FakeCompletionClient) -> None:
        self.client = client
        self.keys: List[str] = []

    def __call__(self, api_key: str) -> FakeCompletionClient:
        self.keys.append(api_key)
        return self.client
