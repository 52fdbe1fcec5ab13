from datetime import datetime, timedelta

import pytest
import pytz

from core.db import DatabaseManager
from core.feeds import FEEDS


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeTableQuery:
    """Imita o builder `client.table(...)` do supabase-py (só o que o projeto usa)."""

    def __init__(self, db, table_name):
        self.db = db
        self.table_name = table_name
        self._rows_to_insert = None
        self._limit = None

    def insert(self, rows):
        self._rows_to_insert = rows
        return self

    def select(self, columns="*"):
        return self

    def order(self, column, desc=False):
        return self

    def limit(self, size):
        self._limit = size
        return self

    def execute(self):
        if self.table_name in self.db.fail_tables:
            raise RuntimeError(f'relation "public.{self.table_name}" does not exist')

        table = self.db.tables.setdefault(self.table_name, [])
        if self._rows_to_insert is not None:
            inserted = []
            for row in self._rows_to_insert:
                self.db.next_id += 1
                stored = dict(row, id=self.db.next_id)
                table.append(stored)
                inserted.append(stored)
            return FakeResponse(inserted)

        rows = sorted(table, key=lambda r: r["scraped_at"], reverse=True)
        return FakeResponse(rows[: self._limit] if self._limit else rows)


class FakeRpc:
    def __init__(self, db, function_name, params):
        self.db = db
        self.function_name = function_name
        self.params = params or {}

    def execute(self):
        self.db.rpc_calls.append((self.function_name, self.params))
        if self.function_name in self.db.fail_rpcs:
            raise RuntimeError(f"function {self.function_name} failed")

        kind, table_name = self.db.rpc_index[self.function_name]
        rows = sorted(self.db.tables.get(table_name, []), key=lambda r: r["scraped_at"], reverse=True)

        if kind == "latest":
            latest = {}
            for row in rows:
                latest.setdefault(row["name"], row)
            return FakeResponse(list(latest.values()))

        if kind == "history":
            matching = [r for r in rows if r["name"] == self.params["p_name"]]
            return FakeResponse(matching[: self.params.get("p_limit", 100)])

        if kind == "range":
            start, end = self.params["p_start_date"], self.params["p_end_date"]
            return FakeResponse([r for r in rows if start <= r["scraped_at"][:10] <= end])

        # cleanup: apaga de verdade e devolve a contagem, como o procedimento SQL
        if table_name in self.db.cleanup_counts:
            return FakeResponse(self.db.cleanup_counts[table_name])
        cutoff = datetime.now(pytz.utc) - timedelta(days=self.params["p_days_to_keep"])
        kept = [r for r in rows if datetime.fromisoformat(r["scraped_at"]) >= cutoff]
        self.db.tables[table_name] = kept
        return FakeResponse(len(rows) - len(kept))


class FakeSupabase:
    """Client Supabase em memória: tabelas + funções RPC dos quatro feeds."""

    def __init__(self):
        self.tables = {}
        self.next_id = 0
        self.rpc_calls = []
        self.fail_tables = set()
        self.fail_rpcs = set()
        self.cleanup_counts = {}
        self.rpc_index = {}
        for feed in FEEDS.values():
            self.rpc_index[feed.rpc_latest] = ("latest", feed.table_name)
            self.rpc_index[feed.rpc_history] = ("history", feed.table_name)
            self.rpc_index[feed.rpc_date_range] = ("range", feed.table_name)
            self.rpc_index[feed.rpc_cleanup] = ("cleanup", feed.table_name)

    def table(self, name):
        return FakeTableQuery(self, name)

    def rpc(self, function_name, params=None):
        return FakeRpc(self, function_name, params)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def admin_db(fake_supabase):
    return DatabaseManager(use_service_role=True, client=fake_supabase)


@pytest.fixture
def public_db(fake_supabase):
    return DatabaseManager(use_service_role=False, client=fake_supabase)


US_INDICES_HTML = """
<html><body>
<table class="dynamic-table">
  <thead><tr><th></th><th>Nome</th><th>Último</th><th>Máx.</th><th>Mín.</th><th>Var.</th><th>Var.%</th><th>Hora</th></tr></thead>
  <tbody>
    <tr>
      <td></td>
      <td data-test="name"><a href="/indices/us-30">Dow Jones</a></td>
      <td data-test="last">35,000.50</td>
      <td data-test="high">35,120.00</td>
      <td data-test="low">34,870.25</td>
      <td data-test="change">+431.20</td>
      <td data-test="change-percent">+1.25%</td>
      <td data-test="time">16:00:00</td>
    </tr>
  </tbody>
</table>
</body></html>
"""


@pytest.fixture
def us_indices_html():
    return US_INDICES_HTML
