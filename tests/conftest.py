import copy
import uuid
from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from database import supabase_client
from modules.rota import locks
from services import realtime_service


UNIQUE_KEYS = {
    "idempotency_keys": ("key", "staff_id", "endpoint"),
}


class FakeQuery:
    """Just enough of the postgrest query builder for the services."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.action = "select"
        self.columns = None
        self.payload = None
        self.filters = []
        self.orders = []
        self.row_limit = None

    # ----- actions -----

    def select(self, columns="*"):
        self.action = "select"
        if columns.strip() != "*":
            self.columns = [c.strip() for c in columns.split(",")]
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    # ----- filters -----

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) <= value)
        return self

    def contains(self, column, values):
        self.filters.append(lambda row: set(values) <= set(row.get(column) or []))
        return self

    def ov(self, column, values):
        self.filters.append(lambda row: bool(set(values) & set(row.get(column) or [])))
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    # ----- execution -----

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        rows = self.db.tables.setdefault(self.table, [])

        if self.action == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            unique = UNIQUE_KEYS.get(self.table)
            inserted = []
            for item in items:
                if unique and any(all(r.get(c) == item.get(c) for c in unique) for r in rows):
                    raise Exception(f"duplicate key value violates unique constraint on {self.table}")
                row = copy.deepcopy(item)
                row.setdefault("id", str(uuid.uuid4()))
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return SimpleNamespace(data=inserted)

        matched = [row for row in rows if self._matches(row)]

        if self.action == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=copy.deepcopy(matched))

        if self.action == "delete":
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=copy.deepcopy(matched))

        result = list(matched)
        for column, desc in reversed(self.orders):
            result.sort(key=lambda row: (row.get(column) is None, row.get(column) or ""), reverse=desc)
        if self.row_limit is not None:
            result = result[:self.row_limit]
        if self.columns:
            result = [{c: row.get(c) for c in self.columns} for row in result]
        return SimpleNamespace(data=copy.deepcopy(result))


class FakeRpc:
    def __init__(self, db, name, params):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        if self.name != "approve_shift_swap":
            raise Exception(f"Unknown function {self.name}")
        return SimpleNamespace(data=self.db.approve_shift_swap(self.params))


class FakeSupabase:
    """In-memory stand-in for the Supabase client."""

    def __init__(self):
        self.tables = {}

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params):
        return FakeRpc(self, name, params)

    def rows(self, name):
        return self.tables.get(name, [])

    def approve_shift_swap(self, params):
        requests = [r for r in self.rows("swap_requests") if r["id"] == params["p_request_id"]]
        if not requests or requests[0]["status"] != "Pending":
            raise Exception("swap request is not pending")

        updates = [
            (params["p_current_shift_id"], params["p_current_version"], params["p_current_employees"], params["p_current_tasks"]),
            (params["p_target_shift_id"], params["p_target_version"], params["p_target_employees"], params["p_target_tasks"]),
        ]
        shifts = {s["id"]: s for s in self.rows("shifts")}
        for shift_id, version, _, _ in updates:
            if shift_id not in shifts or shifts[shift_id]["version"] != version:
                raise Exception(f"shift {shift_id} changed")

        for shift_id, _, employees, tasks in updates:
            shifts[shift_id]["employees"] = list(employees)
            shifts[shift_id]["tasks"] = copy.deepcopy(tasks)
            shifts[shift_id]["version"] += 1

        request = requests[0]
        request.update({
            "status": "Approved",
            "decided_by": params["p_decided_by"],
            "decided_at": datetime.utcnow().isoformat()
        })
        return [copy.deepcopy(request)]


@pytest.fixture()
def db(monkeypatch):
    fake = FakeSupabase()
    monkeypatch.setattr(supabase_client, "_supabase_client", fake)
    monkeypatch.setattr(realtime_service.notifier, "_sessions", {})
    monkeypatch.setattr(realtime_service.notifier, "_rooms", {})
    monkeypatch.setattr(locks.employee_locks, "_locks", {})
    return fake


@pytest.fixture()
def client(db):
    from app import app

    with TestClient(app) as client:
        yield client


def register(client, name, role="Employee", hourly_rate=None):
    email = f"{name.lower().replace(' ', '.')}@acme.io"
    response = client.post("/api/auth/register", json={
        "name": name,
        "email": email,
        "password": "secret123",
        "role": role,
        "hourlyRate": hourly_rate
    })
    assert response.status_code == 201, response.text
    body = response.json()
    return SimpleNamespace(
        id=body["user"]["id"],
        token=body["token"],
        headers={"Authorization": f"Bearer {body['token']}"}
    )


@pytest.fixture()
def manager(client):
    return register(client, "Maria Manager", role="Manager")


@pytest.fixture()
def alice(client):
    return register(client, "Alice Adams", hourly_rate=12.5)


@pytest.fixture()
def bob(client):
    return register(client, "Bob Brown", hourly_rate=11.0)


def shift_body(day, start, end, employees, **extra):
    body = {
        "date": day,
        "startTime": start,
        "endTime": end,
        "employees": employees,
        "tasks": [{"description": "Open the till", "assignedTo": employees[0]}]
    }
    body.update(extra)
    return body


def create_shift(client, manager, day, start, end, employees, publish=True):
    response = client.post("/api/schedules", json=shift_body(day, start, end, employees), headers=manager.headers)
    assert response.status_code == 201, response.text
    shift = response.json()
    if publish:
        response = client.put(f"/api/schedules/{shift['id']}/publish", headers=manager.headers)
        assert response.status_code == 200, response.text
        shift = response.json()
    return shift


def days_ahead(n):
    return (date.today() + timedelta(days=n)).isoformat()
