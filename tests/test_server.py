from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from transdoc.config import Settings
from transdoc.models import SourceDocument
from transdoc.pipeline import TranslationPipeline
from transdoc.server import SessionStore, create_app
from transdoc.translators import ModelCache, OnDeviceTranslator

from .conftest import EchoTranslator, FailingTranslator, UpperTranslator


class FakeClock:

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def make_client(translator=None, **settings):
    app = create_app(settings=Settings(**settings), translator=translator or UpperTranslator())
    return TestClient(app)


@pytest.fixture
def client():
    return make_client()


def upload(client, name="notes.txt", content=b"hello $x$ world", mime="text/plain", **form):
    return client.post(
        "/api/translate",
        files={"file": (name, content, mime)},
        data=form,
    )


def test_root_and_health(client):
    assert client.get("/").json()["message"] == "transdoc API"
    assert client.get("/api/health").json()["status"] == "ok"


def test_languages(client):
    languages = client.get("/api/languages").json()

    assert languages[:3] == [
        {"code": "en", "name": "English"},
        {"code": "es", "name": "Spanish"},
        {"code": "ar", "name": "Arabic"},
    ]


def test_full_job_lifecycle(client):
    response = upload(client, sourceLanguage="English", targetLanguage="Spanish")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "awaiting_gate"
    job_id = body["jobId"]

    status = client.get(f"/api/job/{job_id}").json()
    assert status["status"] == "awaiting_gate"
    assert status["progress"] == 0

    status = client.post(f"/api/job/{job_id}/start").json()
    assert status["status"] == "completed"
    assert status["progress"] == 100
    assert status["outputFile"] == "notes_translated.txt"
    assert status["error"] is None

    download = client.get(f"/api/download/{job_id}")
    assert download.status_code == 200
    assert download.content == b"HELLO $x$ WORLD"
    assert download.headers["content-type"].startswith("text/plain")
    assert "notes_translated.txt" in download.headers["content-disposition"]

    assert client.post(f"/api/job/{job_id}/reset").json()["status"] == "idle"
    assert client.get(f"/api/job/{job_id}").status_code == 404


def test_unsupported_upload(client):
    response = upload(client, name="photo.png", content=b"\x89PNG", mime="image/png")

    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported file type: image/png"


def test_unknown_language(client):
    response = upload(client, targetLanguage="Klingon")

    assert response.status_code == 400


def test_upload_too_large():
    client = make_client(max_upload_mb=0)

    response = upload(client)

    assert response.status_code == 413


def test_failed_job_reports_error():
    client = make_client(translator=FailingTranslator())
    job_id = upload(client).json()["jobId"]

    status = client.post(f"/api/job/{job_id}/start")

    assert status.status_code == 200
    assert status.json()["status"] == "error"
    assert status.json()["error"] == "Processing failed: Translation failed: quota exceeded"
    assert client.get(f"/api/download/{job_id}").status_code == 404


def test_job_cannot_start_twice(client):
    job_id = upload(client).json()["jobId"]
    client.post(f"/api/job/{job_id}/start")

    assert client.post(f"/api/job/{job_id}/start").status_code == 409


def test_download_before_completion(client):
    job_id = upload(client).json()["jobId"]

    assert client.get(f"/api/download/{job_id}").status_code == 404


def test_unknown_job(client):
    assert client.get("/api/job/nope").status_code == 404
    assert client.post("/api/job/nope/start").status_code == 404
    assert client.get("/api/download/nope").status_code == 404


def test_websocket_reports_finished_job(client):
    job_id = upload(client).json()["jobId"]
    client.post(f"/api/job/{job_id}/start")

    with client.websocket_connect(f"/ws/{job_id}") as websocket:
        message = websocket.receive_json()

    assert message["jobId"] == job_id
    assert message["status"] == "completed"
    assert message["outputFile"] == "notes_translated.txt"


def test_websocket_unknown_job(client):
    with client.websocket_connect("/ws/nope") as websocket:
        message = websocket.receive_json()

    assert message["status"] == "unknown"


def test_upload_at_the_limit_is_accepted():
    client = make_client(max_upload_mb=1)

    assert upload(client, content=b"a" * (1024 * 1024)).status_code == 200
    assert upload(client, content=b"a" * (1024 * 1024 + 1)).status_code == 413


class TestSessionExpiry:

    def test_finished_jobs_expire(self):
        client = make_client(job_ttl_seconds=60)
        clock = FakeClock()
        client.app.state.sessions.clock = clock
        job_ids = [upload(client).json()["jobId"] for _ in range(5)]
        for job_id in job_ids:
            client.post(f"/api/job/{job_id}/start")
        assert len(client.app.state.sessions) == 5

        clock.now += 60

        assert client.get(f"/api/job/{job_ids[0]}").status_code == 404
        assert len(client.app.state.sessions) == 0

    def test_recent_jobs_are_kept(self):
        client = make_client(job_ttl_seconds=60)
        clock = FakeClock()
        client.app.state.sessions.clock = clock
        job_id = upload(client).json()["jobId"]
        client.post(f"/api/job/{job_id}/start")

        clock.now += 59

        assert client.get(f"/api/download/{job_id}").status_code == 200

    def test_state_changes_extend_the_lifetime(self):
        clock = FakeClock()
        store = SessionStore(ttl=60, clock=clock)
        pipeline = TranslationPipeline(EchoTranslator())
        pipeline.select_file(SourceDocument("notes.txt", b"hi", "text/plain"))
        job_id = store.add(pipeline)

        clock.now += 50
        pipeline.begin()
        clock.now += 20

        assert store.find(job_id) is pipeline
        clock.now += 40
        assert store.find(job_id) is None

    def test_running_jobs_are_never_evicted(self):
        clock = FakeClock()
        store = SessionStore(ttl=60, clock=clock)
        running = SimpleNamespace(is_running=True, add_listener=lambda listener: None)
        job_id = store.add(running)

        clock.now += 3600

        assert store.sweep() == 0
        assert store.find(job_id) is running


def test_ondevice_model_is_loaded_at_startup():
    loaded = []
    translator = OnDeviceTranslator(ModelCache(loader=lambda spec: loaded.append(spec) or object()))
    app = create_app(settings=Settings(), translator=translator)

    with TestClient(app):
        pass

    assert "en_to_es" in translator.cache
    assert len(loaded) == 1


def test_placeholder_engine_loads_nothing_at_startup():
    translator = OnDeviceTranslator(ModelCache(loader=pytest.fail), placeholder=True)
    app = create_app(settings=Settings(), translator=translator)

    with TestClient(app):
        pass

    assert len(translator.cache) == 0
