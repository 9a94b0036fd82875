from copy import deepcopy
import os
import sys
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from atelier.api.main import create_app
from atelier.context import AppContext
from atelier.errors import AuthRequired, EmailDeliveryError, UploadError
from atelier.models.painting import ImageUpload
from atelier.models.session import Session
from atelier.storage.supabase_client import PaintingStore

CDN = "https://cdn.test"


# ---------------------------------------------------------------------------
# Supabase table double
# ---------------------------------------------------------------------------

class _Response:
    def __init__(self, data=None):
        self.data = data


class FakeSupabase:
    def __init__(self, initial_tables: Optional[Dict[str, Iterable[Dict[str, Any]]]] = None) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_operations: set[str] = set()
        if initial_tables:
            for name, rows in initial_tables.items():
                self.tables[name] = [deepcopy(row) for row in rows]

    def table(self, name: str):
        if name not in self.tables:
            self.tables[name] = []
        return _Table(self, name)

    def rows(self, name: str = "paintings") -> Dict[str, Dict[str, Any]]:
        return {row["id"]: row for row in self.tables.get(name, [])}


class _Table:
    def __init__(self, client: FakeSupabase, name: str) -> None:
        self.client = client
        self.name = name
        self._filters: List[tuple[str, str, Any]] = []
        self._order_field: Optional[str] = None
        self._order_desc: bool = False
        self._operation: str = "select"
        self._payload: Any = None

    @property
    def _table(self) -> List[Dict[str, Any]]:
        return self.client.tables[self.name]

    def _matching_rows(self) -> List[Dict[str, Any]]:
        matches = []
        for row in self._table:
            matched = True
            for op, field, value in self._filters:
                current = row.get(field)
                if op == "eq" and current != value:
                    matched = False
                    break
            if matched:
                matches.append(row)
        return matches

    def select(self, *_: Any):
        self._operation = "select"
        return self

    def eq(self, field: str, value: Any):
        self._filters.append(("eq", field, value))
        return self

    def order(self, field: str, desc: bool = False):
        self._order_field = field
        self._order_desc = desc
        return self

    def insert(self, payload: Dict[str, Any]):
        self._operation = "insert"
        self._payload = payload
        return self

    def update(self, payload: Dict[str, Any]):
        self._operation = "update"
        self._payload = payload
        return self

    def delete(self):
        self._operation = "delete"
        return self

    def execute(self):
        if self._operation in self.client.fail_operations:
            raise RuntimeError(f"{self._operation} rejected by database")

        if self._operation == "insert":
            record = deepcopy(self._payload)
            record.setdefault("id", str(uuid4()))
            record.setdefault("created_at", "2024-01-01T00:00:00Z")
            record.setdefault("updated_at", "2024-01-01T00:00:00Z")
            self._table.append(record)
            return _Response(data=[deepcopy(record)])

        if self._operation == "update":
            updated: List[Dict[str, Any]] = []
            for row in self._matching_rows():
                row.update(self._payload)
                updated.append(deepcopy(row))
            return _Response(data=updated)

        if self._operation == "delete":
            targets = set(id(row) for row in self._matching_rows())
            self.client.tables[self.name] = [row for row in self._table if id(row) not in targets]
            return _Response(data=[])

        rows = [deepcopy(row) for row in self._matching_rows()]

        if self._order_field:
            rows.sort(key=lambda item: item.get(self._order_field) or "", reverse=self._order_desc)

        return _Response(data=rows)


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------

class FakeImageStorage:
    def __init__(self) -> None:
        self.uploaded: List[str] = []
        self.deleted: List[str] = []
        self.fail_upload_at: Optional[int] = None
        self.fail_delete = False

    def upload(self, image: ImageUpload) -> str:
        if self.fail_upload_at is not None and len(self.uploaded) == self.fail_upload_at:
            raise UploadError("Failed to upload image: bucket unavailable")
        stem = image.filename.rsplit(".", 1)[0]
        url = f"{CDN}/paintings/{len(self.uploaded)}_{stem}.webp"
        self.uploaded.append(url)
        return url

    def delete(self, url: str) -> None:
        if self.fail_delete:
            raise UploadError("Failed to delete image: bucket unavailable")
        self.deleted.append(url)


class FakeAuth:
    PASSWORD = "secret"

    def __init__(self) -> None:
        self.sessions: Dict[str, Session] = {
            "token-1": Session(access_token="token-1", user_id="admin-1", email="admin@example.com"),
        }
        self.signed_out: List[Optional[str]] = []

    def sign_in(self, email: str, password: str) -> Session:
        if password != self.PASSWORD:
            raise AuthRequired("Invalid email or password.")
        session = Session(access_token=f"token-{uuid4().hex[:6]}", user_id="admin-1", email=email)
        self.sessions[session.access_token] = session
        return session

    def sign_out(self, access_token: Optional[str] = None) -> None:
        self.signed_out.append(access_token)
        self.sessions.pop(access_token, None)

    def get_current_session(self, access_token: Optional[str]) -> Optional[Session]:
        return self.sessions.get(access_token)


class FakeMailer:
    def __init__(self) -> None:
        self.sent = []
        self.fail = False

    def send(self, message) -> None:
        if self.fail:
            raise EmailDeliveryError()
        self.sent.append(message)


class FakeDescriber:
    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []

    async def describe(self, image_bytes, medium="", dimensions="", notes="") -> str:
        self.calls.append(
            {"image_bytes": image_bytes, "medium": medium, "dimensions": dimensions, "notes": notes}
        )
        return f"A {medium or 'mixed media'} painting."


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------

def painting_row(**overrides: Any) -> Dict[str, Any]:
    row = {
        "id": "painting-1",
        "title": "Untitled",
        "description": "A finished work.",
        "image_url": f"{CDN}/paintings/seed.webp",
        "image_versions": [],
        "dimensions": "12 x 16 inches",
        "medium": "Oil on canvas",
        "genre": "Landscape",
        "year": 2023,
        "price": 300,
        "sold": False,
        "featured": False,
        "in_progress": False,
        "reference_credit": None,
        "rate_per_square_inch": None,
        "material_costs": None,
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
    }
    row.update(overrides)
    return row


SEED_ROWS = [
    painting_row(
        id="sunset-over-hills",
        title="Sunset over Hills",
        description="Warm evening light across rolling fields.",
        image_url=f"{CDN}/paintings/sunset.webp",
        image_versions=[f"{CDN}/paintings/sunset-detail.webp"],
        dimensions="24 x 36 inches",
        price=550,
        featured=True,
        updated_at="2024-03-01T00:00:00Z",
    ),
    painting_row(
        id="blue-study",
        title="Blue Study",
        description="Layered blues and a single red line.",
        image_url=f"{CDN}/paintings/blue.webp",
        dimensions="12 x 12 inches",
        medium="Acrylic",
        genre="Abstract",
        year=2022,
        price="Enquire",
        updated_at="2024-02-01T00:00:00Z",
    ),
    painting_row(
        id="old-portrait",
        title="Old Portrait",
        description="A seated figure in a dark coat.",
        image_url=f"{CDN}/paintings/portrait.webp",
        dimensions="20 x 16 inches",
        genre="Portrait",
        year=2021,
        price=800,
        sold=True,
        updated_at="2024-01-01T00:00:00Z",
    ),
    painting_row(
        id="harbour-wip",
        title="Harbour",
        description="",
        image_url="/placeholder.svg",
        dimensions="30 x 40 inches",
        genre=None,
        price=None,
        in_progress=True,
        updated_at="2024-04-01T00:00:00Z",
    ),
]


def image(name: str = "painting.jpg", size: int = 1024) -> ImageUpload:
    return ImageUpload(filename=name, content_type="image/jpeg", data=b"\xff" * size)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_supabase():
    return FakeSupabase({"paintings": SEED_ROWS})


@pytest.fixture
def ctx(fake_supabase):
    return AppContext(
        store=PaintingStore(fake_supabase),
        images=FakeImageStorage(),
        auth=FakeAuth(),
        mailer=FakeMailer(),
        describer=FakeDescriber(),
    )


@pytest.fixture
def session(ctx):
    return ctx.auth.sessions["token-1"]


@pytest.fixture
def make_image():
    return image


@pytest.fixture
def make_row():
    return painting_row


@pytest.fixture
def app_client(ctx):
    return TestClient(create_app(ctx))


@pytest.fixture
def admin_headers():
    return {"Authorization": "Bearer token-1"}
