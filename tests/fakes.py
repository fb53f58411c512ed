"""
In-memory stand-in for the async Supabase client.

Emulates the slice of the PostgREST builder the repositories use
(``select/insert/update/upsert/delete``, ``eq/in_/is_``, ``order``,
``maybe_single``, ``execute``) and the database functions they call
through ``rpc``.  Failures are injected per ``(table, operation)`` or per
RPC name.
"""

from __future__ import annotations

import copy
import uuid
from collections.abc import Callable
from typing import Any, Optional

from postgrest.exceptions import APIError

from homebase.utils.string_helpers import slugify

# Column defaults the real tables declare.
TABLE_DEFAULTS: dict[str, dict[str, Any]] = {
    "households": {"is_active": True, "settings": {}},
    "members": {"is_active": True, "role": "member", "metadata": {}},
    "wishlists": {"visibility": "private", "is_public": False},
    "wishlist_items": {"is_reserved": False},
    "packing_items": {"is_packed": False},
}


class FakeResponse:
    def __init__(self, data: Any) -> None:
        self.data = data


class FakeQuery:
    """One chained PostgREST request against a :class:`FakeSupabaseClient`."""

    def __init__(self, client: "FakeSupabaseClient", table: str) -> None:
        self._client = client
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._predicates: list[Callable[[dict[str, Any]], bool]] = []
        self._order: Optional[tuple[str, bool]] = None
        self._single = False

    # -- operations --------------------------------------------------------

    def select(self, columns: str = "*") -> "FakeQuery":
        self._op = "select"
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self._op, self._payload = "insert", payload
        return self

    def update(self, payload: dict[str, Any]) -> "FakeQuery":
        self._op, self._payload = "update", payload
        return self

    def upsert(self, payload: Any) -> "FakeQuery":
        self._op, self._payload = "upsert", payload
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    # -- filters -----------------------------------------------------------

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._predicates.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column: str, values: list[Any]) -> "FakeQuery":
        self._predicates.append(lambda row: row.get(column) in values)
        return self

    def is_(self, column: str, value: str) -> "FakeQuery":
        assert value == "null"
        self._predicates.append(lambda row: row.get(column) is None)
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def maybe_single(self) -> "FakeQuery":
        self._single = True
        return self

    # -- execution ---------------------------------------------------------

    def _matching(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return [row for row in rows if all(p(row) for p in self._predicates)]

    async def execute(self) -> Optional[FakeResponse]:
        self._client.calls.append((self._table, self._op))
        failure = self._client.failures.get((self._table, self._op))
        if failure is not None:
            raise failure

        rows = self._client.tables.setdefault(self._table, [])
        if self._op == "select":
            found = self._matching(rows)
            if self._order is not None:
                column, desc = self._order
                found.sort(
                    key=lambda row: (row.get(column) is None, row.get(column) or ""),
                    reverse=desc,
                )
            if self._single:
                return FakeResponse(copy.deepcopy(found[0])) if found else None
            return FakeResponse(copy.deepcopy(found))

        if self._op in ("insert", "upsert"):
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            written = []
            for payload in payloads:
                existing = next(
                    (row for row in rows if payload.get("id") and row["id"] == payload["id"]),
                    None,
                )
                if existing is not None and self._op == "upsert":
                    existing.update(payload)
                    written.append(existing)
                    continue
                if existing is not None:
                    raise self._client.api_error("duplicate key value", "23505")
                written.append(self._client.insert_row(self._table, payload))
            return FakeResponse(copy.deepcopy(written))

        matched = self._matching(rows)
        if self._op == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload))
        else:
            self._client.tables[self._table] = [row for row in rows if row not in matched]
        return FakeResponse(copy.deepcopy(matched))


class FakeRpc:
    def __init__(self, client: "FakeSupabaseClient", function: str, params: dict[str, Any]) -> None:
        self._client = client
        self._function = function
        self._params = params

    async def execute(self) -> FakeResponse:
        self._client.rpc_calls.append((self._function, dict(self._params)))
        handler = self._client.rpc_overrides.get(self._function)
        if handler is None:
            handler = getattr(self._client, f"_rpc_{self._function}")
        return FakeResponse(handler(self._params))


class FakeSupabaseClient:
    """Tables are plain lists of JSON rows, keyed by table name.

    ``auth_user_id`` plays the role of ``auth.uid()`` inside the database
    functions; ``users`` maps emails to user ids for the lookup functions.
    """

    def __init__(self, clock: Callable[[], Any]) -> None:
        self._clock = clock
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.failures: dict[tuple[str, str], Exception] = {}
        self.rpc_overrides: dict[str, Callable[[dict[str, Any]], Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self.rpc_calls: list[tuple[str, dict[str, Any]]] = []
        self.users: dict[str, str] = {}
        self.auth_user_id: Optional[str] = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, function: str, params: dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, function, params)

    @staticmethod
    def api_error(message: str, code: Optional[str] = None) -> Exception:
        return APIError({"message": message, "code": code, "details": None, "hint": None})

    def fail(self, table: str, op: str, error: Optional[Exception] = None) -> None:
        self.failures[(table, op)] = error or self.api_error("boom", "XX000")

    def insert_row(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        now = self._clock().isoformat()
        row = {
            **copy.deepcopy(TABLE_DEFAULTS.get(table, {})),
            "id": str(uuid.uuid4()),
            "created_at": now,
            "updated_at": now,
        }
        if table == "members":
            row["joined_at"] = now
        row.update(copy.deepcopy(payload))
        self.tables.setdefault(table, []).append(row)
        return row

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables.get(table, [])

    # -- database functions ------------------------------------------------

    def _rpc_create_household_with_owner(self, params: dict[str, Any]) -> Any:
        household = self.insert_row("households", {
            "name": params["p_name"],
            "slug": slugify(params["p_name"]),
            "created_by": self.auth_user_id,
        })
        self.insert_row("members", {
            "household_id": household["id"],
            "user_id": self.auth_user_id,
            "role": "owner",
            "display_name": params.get("p_creator_display_name") or "Owner",
        })
        return [{"household_id": household["id"]}]

    def _rpc_get_user_id_by_email(self, params: dict[str, Any]) -> Any:
        return self.users.get(params["lookup_email"])

    def _rpc_get_email_by_user_id(self, params: dict[str, Any]) -> Any:
        for email, user_id in self.users.items():
            if user_id == params["lookup_user_id"]:
                return email
        return None

    def _rpc_create_child_member(self, params: dict[str, Any]) -> Any:
        member = self.insert_row("members", {
            "household_id": params["p_household_id"],
            "user_id": None,
            "role": "child",
            "display_name": params["p_name"],
            "date_of_birth": params.get("p_date_of_birth"),
            "avatar_url": params.get("p_avatar_url"),
        })
        return member["id"]

    def _rpc_reserve_wishlist_item(self, params: dict[str, Any]) -> Any:
        for row in self.rows("wishlist_items"):
            if row["id"] != params["p_item_id"]:
                continue
            if params["p_reserved"]:
                row.update({
                    "is_reserved": True,
                    "reserved_by_email": params["p_email"],
                    "reserved_by_name": params.get("p_name"),
                    "reserved_at": self._clock().isoformat(),
                })
            else:
                row.update({
                    "is_reserved": False,
                    "reserved_by_email": None,
                    "reserved_by_name": None,
                    "reserved_at": None,
                })
            return None
        raise self.api_error("Item not found", "P0002")
