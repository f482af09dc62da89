"""Shared fakes: in-memory document store and auth provider that record every call."""

from datetime import datetime, timezone

import pytest

from dashboard.errors import AuthError
from dashboard.models.note_models import Note, NoteStatus, Vehicle, VehicleStatus
from dashboard.models.user_models import Principal, Role, UserProfile
from dashboard.services.permissions import permissions_for

SERVER_TIMESTAMP = object()


class FakeStore:
    server_timestamp = SERVER_TIMESTAMP

    def __init__(self):
        self.data: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.listeners: list[dict] = []
        self.fail_writes = False
        self.fail_reads = False
        self._clock = 1000
        self._keys = 0

    # ─── helpers ───

    def seed(self, collection, doc_id, value):
        self.data.setdefault(collection, {})[doc_id] = value

    def _split(self, path):
        collection, doc_id = path.split("/", 1)
        return collection, doc_id

    def _resolve(self, value):
        resolved = dict(value)
        for key, item in resolved.items():
            if item is SERVER_TIMESTAMP:
                self._clock += 1
                resolved[key] = self._clock
        return resolved

    def entries(self, collection, order_by=None):
        items = list(self.data.get(collection, {}).items())
        if order_by:
            items.sort(key=lambda kv: kv[1].get(order_by, 0) if isinstance(kv[1], dict) else 0)
        return items

    def emit(self, collection, include_detached=False):
        for listener in self.listeners:
            if listener["collection"] != collection:
                continue
            if listener["active"] or include_detached:
                listener["callback"](self.entries(collection, listener["order_by"]))

    def fail(self, collection, error):
        for listener in self.listeners:
            if listener["collection"] == collection and listener["active"]:
                listener["on_error"](error)

    def mutations(self):
        return [call for call in self.calls if call[0] in ("set", "update", "remove", "commit")]

    def _check_write(self):
        if self.fail_writes:
            raise RuntimeError("PERMISSION_DENIED")

    # ─── DocumentStore ───

    def subscribe(self, collection, callback, on_error, order_by=None):
        self.calls.append(("subscribe", collection, order_by))
        listener = {
            "collection": collection,
            "callback": callback,
            "on_error": on_error,
            "order_by": order_by,
            "active": True,
            "unsubscribed": 0,
        }
        self.listeners.append(listener)
        callback(self.entries(collection, order_by))

        def unsubscribe():
            listener["active"] = False
            listener["unsubscribed"] += 1

        return unsubscribe

    def get(self, path):
        self.calls.append(("get", path))
        if self.fail_reads:
            raise RuntimeError("UNAVAILABLE")
        collection, doc_id = self._split(path)
        value = self.data.get(collection, {}).get(doc_id)
        return dict(value) if isinstance(value, dict) else value

    def set(self, path, value):
        self.calls.append(("set", path, value))
        self._check_write()
        collection, doc_id = self._split(path)
        self.seed(collection, doc_id, self._resolve(value))
        self.emit(collection)

    def update(self, path, fields):
        self.calls.append(("update", path, fields))
        self._check_write()
        collection, doc_id = self._split(path)
        current = self.data.setdefault(collection, {}).get(doc_id) or {}
        self.seed(collection, doc_id, {**current, **self._resolve(fields)})
        self.emit(collection)

    def remove(self, path):
        self.calls.append(("remove", path))
        self._check_write()
        collection, doc_id = self._split(path)
        self.data.get(collection, {}).pop(doc_id, None)
        self.emit(collection)

    def push(self, collection):
        self.calls.append(("push", collection))
        self._keys += 1
        return f"key{self._keys:03d}"

    def commit(self, writes):
        self.calls.append(("commit", dict(writes)))
        self._check_write()
        touched = set()
        for path, value in writes.items():
            collection, doc_id = self._split(path)
            self.seed(collection, doc_id, self._resolve(value))
            touched.add(collection)
        for collection in touched:
            self.emit(collection)

    def close(self):
        self.calls.append(("close",))


class FakeAuth:
    def __init__(self):
        self.accounts: dict[str, tuple[str, str]] = {}  # email → (password, uid)
        self.current_principal = None
        self.calls: list[tuple] = []
        self._listeners = []

    def add_account(self, email, password, uid):
        self.accounts[email] = (password, uid)

    def sign_in(self, email, password):
        self.calls.append(("sign_in", email))
        password_ok, uid = self.accounts.get(email, (None, None))
        if uid is None or password_ok != password:
            raise AuthError("E-mail ou senha inválidos.", code="INVALID_LOGIN_CREDENTIALS")
        principal = Principal(uid=uid, email=email, id_token="token")
        self._set(principal)
        return principal

    def sign_out(self):
        self.calls.append(("sign_out",))
        self._set(None)

    def create_user(self, email, password):
        self.calls.append(("create_user", email))
        if email in self.accounts:
            raise AuthError("Este e-mail já está em uso.", code="EMAIL_EXISTS")
        uid = f"uid-{len(self.accounts) + 1}"
        self.accounts[email] = (password, uid)
        return Principal(uid=uid, email=email)

    def on_auth_state_changed(self, callback):
        self._listeners.append(callback)
        callback(self.current_principal)
        return lambda: self._listeners.remove(callback)

    def _set(self, principal):
        self.current_principal = principal
        for listener in list(self._listeners):
            listener(principal)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def auth():
    return FakeAuth()


@pytest.fixture
def make_profile():
    def _make(uid="u-admin", role=Role.ADMIN, email=None):
        return UserProfile(
            uid=uid,
            email=email or f"{uid}@empresa.com",
            role=role,
            permissions=permissions_for(role),
        )
    return _make


@pytest.fixture
def make_note():
    counter = {"n": 0}

    def _make(amount=100.0, day=(2024, 3, 5), category="Combustível", status=NoteStatus.UNPAID,
              plate=None, client="Posto Central"):
        counter["n"] += 1
        return Note(
            id=f"n{counter['n']}",
            client=client,
            category=category,
            amount=amount,
            issue_date=datetime(*day, tzinfo=timezone.utc),
            status=status,
            created_at=float(counter["n"]),
            vehicle_plate=plate,
        )
    return _make


@pytest.fixture
def make_vehicle():
    def _make(plate="ABC1234", status=VehicleStatus.ACTIVE, vehicle_id=1):
        return Vehicle(id=vehicle_id, plate=plate, brand="Volvo", model="FH 540", year=2022, status=status)
    return _make
