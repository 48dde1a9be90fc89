"""In-memory stand-in for the slice of the Supabase client the FAQ store uses.

Supports table().select()/insert()/update()/delete() with eq/ilike/order/limit
filters (ilike treats ``*`` as ``%`` the way PostgREST does),
plus rpc("increment_faq_ask_count"). Every executed call is recorded in
``calls`` so tests can assert on store traffic.
"""
import copy
import re
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient


class FakeStoreError(Exception):
    pass


def like_to_regex(pattern: str) -> re.Pattern:
    out = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            out.append(re.escape(next(chars, "\\")))
        elif ch in ("%", "*"):
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.compile("".join(out), re.IGNORECASE | re.DOTALL)


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table_name = table
        self.op = None
        self.columns = "*"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.limit_n = None

    def select(self, columns="*"):
        self.op, self.columns = "select", columns
        return self

    def insert(self, row):
        self.op, self.payload = "insert", row
        return self

    def update(self, values):
        self.op, self.payload = "update", values
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def ilike(self, column, pattern):
        regex = like_to_regex(pattern)
        self.filters.append(lambda row: regex.fullmatch(row.get(column) or "") is not None)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def _matching(self):
        return [row for row in self.db.tables[self.table_name] if all(f(row) for f in self.filters)]

    def execute(self):
        self.db.calls.append((self.table_name, self.op))
        if (self.table_name, self.op) in self.db.fail_on:
            raise FakeStoreError(f"{self.op} on {self.table_name} failed")

        if self.op == "insert":
            if self.table_name in self.db.empty_inserts:
                return FakeResponse([])
            return FakeResponse([copy.deepcopy(self.db.add_row(self.table_name, self.payload))])

        if self.op == "update":
            rows = self._matching()
            for row in rows:
                row.update(self.payload)
            return FakeResponse(copy.deepcopy(rows))

        if self.op == "delete":
            rows = self._matching()
            self.db.tables[self.table_name] = [row for row in self.db.tables[self.table_name] if row not in rows]
            return FakeResponse(copy.deepcopy(rows))

        rows = self._matching()
        if self.order_by:
            column, desc = self.order_by
            rows = sorted(rows, key=lambda row: row.get(column), reverse=desc)
        if self.limit_n is not None:
            rows = rows[:self.limit_n]
        if self.columns != "*":
            wanted = [c.strip() for c in self.columns.split(",")]
            rows = [{c: row.get(c) for c in wanted} for row in rows]
        return FakeResponse(copy.deepcopy(rows))


class FakeRpc:
    def __init__(self, db, fn, params):
        self.db, self.fn, self.params = db, fn, params

    def execute(self):
        self.db.calls.append((self.fn, "rpc"))
        if (self.fn, "rpc") in self.db.fail_on:
            raise FakeStoreError(f"rpc {self.fn} failed")
        if self.fn == "increment_faq_ask_count":
            for row in self.db.tables["faqs"]:
                if row["id"] == self.params["faq_id"]:
                    row["ask_count"] += 1
        return FakeResponse(None)


class FakeSupabase:
    def __init__(self):
        self.tables = {"faqs": [], "doubt_similarity_log": []}
        self.calls = []
        self.fail_on = set()
        self.empty_inserts = set()
        self._next_id = 0

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, fn, params):
        return FakeRpc(self, fn, params)

    def add_row(self, table, values):
        self._next_id += 1
        now = datetime.now(timezone.utc).isoformat()
        row = {"id": f"{table}-{self._next_id}", "created_at": now, **values}
        if table == "faqs":
            row.setdefault("ask_count", 0)
            row.setdefault("updated_at", now)
        self.tables[table].append(row)
        return row

    def add_faq(self, question, answer="An answer.", ask_count=0):
        return self.add_row("faqs", {"question": question, "answer": answer, "ask_count": ask_count})

    def add_log(self, question, matched_faq_id=None):
        return self.add_row("doubt_similarity_log", {"doubt_question": question, "matched_faq_id": matched_faq_id})

    @property
    def faqs(self):
        return self.tables["faqs"]

    @property
    def logs(self):
        return self.tables["doubt_similarity_log"]


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def client(fake_supabase):
    from main import app, get_supabase
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    yield TestClient(app)
    app.dependency_overrides.clear()
