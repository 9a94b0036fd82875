import io
from types import SimpleNamespace

import httpx
import pytest
from PIL import Image

from atelier.errors import AuthRequired, EmailDeliveryError, PersistenceError, UploadError
from atelier.models.forms import EmailMessage
from atelier.models.painting import ImageUpload, PaintingRecord
from atelier.services.describer import PaintingDescriber, fallback_description
from atelier.storage.auth_client import AuthClient
from atelier.storage.r2_client import ImageStorage
from atelier.storage.sendgrid_client import SendGridMailer
from atelier.storage.supabase_client import PaintingStore


def _png(width=40, height=30) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), (200, 120, 40)).save(buf, format="PNG")
    return buf.getvalue()


# ---------------------------------------------------------------------------
# PaintingStore
# ---------------------------------------------------------------------------

def test_store_skips_unreadable_rows(fake_supabase, make_row):
    fake_supabase.tables["paintings"].append(make_row(id="broken", year=-3, updated_at="2025-01-01T00:00:00Z"))

    ids = [p.id for p in PaintingStore(fake_supabase).get_all()]

    assert "broken" not in ids
    assert ids[0] == "harbour-wip"


def test_store_update_never_touches_id_or_created_at(fake_supabase):
    store = PaintingStore(fake_supabase)

    store.update("blue-study", {"id": "other", "created_at": "2030-01-01T00:00:00Z", "title": "Blue"})

    row = fake_supabase.rows()["blue-study"]
    assert row["title"] == "Blue"
    assert row["created_at"] == "2024-01-01T00:00:00Z"
    assert row["updated_at"] != "2024-02-01T00:00:00Z"


def test_store_create_and_get(fake_supabase, make_row):
    store = PaintingStore(fake_supabase)
    record = PaintingRecord.model_validate(make_row(id="new-one", price="Enquire"))

    assert store.create(record) == "new-one"
    assert store.get_by_id("new-one").price.display() == "Enquire"
    assert store.exists("new-one")
    assert store.get_by_id("missing") is None


def test_store_unreadable_single_row_is_persistence_error(fake_supabase, make_row):
    fake_supabase.tables["paintings"].append(make_row(id="broken", year=-3))

    with pytest.raises(PersistenceError):
        PaintingStore(fake_supabase).get_by_id("broken")


def test_unreadable_detail_row_is_bad_gateway(app_client, fake_supabase, make_row):
    fake_supabase.tables["paintings"].append(make_row(id="broken", year=-3))

    response = app_client.get("/api/paintings/broken")

    assert response.status_code == 502
    assert response.json()["error"] == "PersistenceError"


def test_store_wraps_provider_errors(fake_supabase):
    fake_supabase.fail_operations.add("delete")

    with pytest.raises(PersistenceError):
        PaintingStore(fake_supabase).delete("blue-study")


# ---------------------------------------------------------------------------
# ImageStorage
# ---------------------------------------------------------------------------

class _FakeS3:
    def __init__(self):
        self.objects = {}
        self.deleted = []

    def put_object(self, Bucket, Key, Body, ContentType):
        self.objects[Key] = (Body, ContentType)

    def delete_object(self, Bucket, Key):
        self.deleted.append(Key)


def test_upload_converts_to_webp():
    s3 = _FakeS3()
    storage = ImageStorage(s3, bucket="paintings-bucket", public_url="https://cdn.test/")

    url = storage.upload(ImageUpload(filename="My Sunset.png", content_type="image/png", data=_png()))

    key = storage.key_from_url(url)
    body, content_type = s3.objects[key]
    assert url.startswith("https://cdn.test/paintings/")
    assert key.endswith("_My_Sunset.webp")
    assert content_type == "image/webp"
    assert Image.open(io.BytesIO(body)).format == "WEBP"


def test_upload_rejects_unreadable_image():
    storage = ImageStorage(_FakeS3(), bucket="b", public_url="https://cdn.test")

    with pytest.raises(UploadError):
        storage.upload(ImageUpload(filename="x.jpg", data=b"not an image"))


def test_delete_ignores_placeholders_and_foreign_urls():
    s3 = _FakeS3()
    storage = ImageStorage(s3, bucket="b", public_url="https://cdn.test")

    storage.delete("/placeholder.svg")
    storage.delete("https://elsewhere.example/a.webp")
    storage.delete("https://cdn.test/paintings/a.webp")

    assert s3.deleted == ["paintings/a.webp"]


# ---------------------------------------------------------------------------
# SendGridMailer
# ---------------------------------------------------------------------------

MESSAGE = EmailMessage(to="studio@example.com", subject="Hello", text="Hi", html="<p>Hi</p>")


def test_mailer_posts_to_sendgrid():
    captured = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(202)

    mailer = SendGridMailer(
        api_key="key",
        from_email="noreply@example.com",
        api_url="https://sendgrid.test/v3/mail/send",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    mailer.send(MESSAGE)

    assert captured[0].headers["authorization"] == "Bearer key"
    body = captured[0].read().decode()
    assert '"subject":"Hello"' in body.replace(" ", "")


def test_mailer_failure_raises_delivery_error():
    mailer = SendGridMailer(
        api_key="key",
        http_client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(500, text="down"))),
    )

    with pytest.raises(EmailDeliveryError):
        mailer.send(MESSAGE)


def test_mailer_without_key_refuses_to_send():
    with pytest.raises(EmailDeliveryError):
        SendGridMailer(api_key="", http_client=httpx.Client()).send(MESSAGE)


# ---------------------------------------------------------------------------
# AuthClient
# ---------------------------------------------------------------------------

def test_sign_in_failure_is_auth_required():
    def reject(_credentials):
        raise RuntimeError("Invalid login credentials")

    client = SimpleNamespace(auth=SimpleNamespace(sign_in_with_password=reject))

    with pytest.raises(AuthRequired):
        AuthClient(client).sign_in("a@example.com", "wrong")


def test_sign_in_returns_session():
    response = SimpleNamespace(
        session=SimpleNamespace(access_token="tok", expires_at=123),
        user=SimpleNamespace(id="u1", email="a@example.com"),
    )
    client = SimpleNamespace(auth=SimpleNamespace(sign_in_with_password=lambda _c: response))

    session = AuthClient(client).sign_in("a@example.com", "secret")

    assert (session.access_token, session.user_id, session.expires_at) == ("tok", "u1", 123)


def test_rejected_token_has_no_session():
    def get_user(_token):
        raise RuntimeError("jwt expired")

    client = SimpleNamespace(auth=SimpleNamespace(get_user=get_user))

    assert AuthClient(client).get_current_session("expired") is None
    assert AuthClient(client).get_current_session(None) is None


# ---------------------------------------------------------------------------
# PaintingDescriber
# ---------------------------------------------------------------------------

def test_fallback_description_uses_form_fields():
    text = fallback_description("Oil", "24 x 36 inches", "This piece captures the first light.")

    assert text.startswith("This piece captures the first light.")
    assert "Created using oil," in text
    assert "this 24 x 36 inch work" in text


@pytest.mark.asyncio
async def test_describer_without_key_uses_template():
    describer = PaintingDescriber(api_key="")

    text = await describer.describe(_png(), medium="Oil")

    assert text.startswith("This piece showcases")


@pytest.mark.asyncio
async def test_describer_falls_back_when_model_errors():
    async def generate_content(**_kwargs):
        raise RuntimeError("quota exceeded")

    client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))

    text = await PaintingDescriber(client=client).describe(_png(), medium="Ink")

    assert "Created using ink," in text


@pytest.mark.asyncio
async def test_describer_returns_model_text():
    async def generate_content(**kwargs):
        assert "Medium: Ink" in kwargs["contents"][0]["parts"][1]["text"]
        return SimpleNamespace(text="  A quiet study in ink.  ")

    client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))

    assert await PaintingDescriber(client=client).describe(_png(), medium="Ink") == "A quiet study in ink."


# ---------------------------------------------------------------------------
# AppContext
# ---------------------------------------------------------------------------

def test_context_lifecycle_closes_mailer(ctx):
    closed = []
    ctx.mailer.close = lambda: closed.append(True)
    ctx.cache.set("/", {"cached": True})

    ctx.init()
    assert ctx.started is True
    assert "/" not in ctx.cache

    ctx.notify("Saved", level="success")
    ctx.teardown()

    assert ctx.started is False
    assert list(ctx.notices) == []
    assert closed == [True]


def test_notice_queue_is_bounded(ctx):
    for i in range(60):
        ctx.notify(f"n{i}")

    notices = ctx.drain_notices()
    assert len(notices) == 50
    assert notices[0].title == "n10"
