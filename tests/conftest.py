import json
from datetime import timedelta

import pytest
from werkzeug.security import generate_password_hash

import config
from app import app as flask_app
from session_store import MemorySessionStore, ServerSessionInterface

FAST_HASH = "pbkdf2:sha256:1000"


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DATA_DIR", tmp_path)
    monkeypatch.setattr(config, "PASSWORD_HASH_METHOD", FAST_HASH)
    return tmp_path


@pytest.fixture()
def session_store():
    return MemorySessionStore(timedelta(hours=8))


@pytest.fixture()
def client(monkeypatch, session_store):
    monkeypatch.setattr(flask_app, "session_interface", ServerSessionInterface(session_store))
    flask_app.config["TESTING"] = True
    return flask_app.test_client()


@pytest.fixture()
def admin(data_dir):
    record = {
        "email": "root@blog.test",
        "name": "Root",
        "password_hash": generate_password_hash("rootpw", method=FAST_HASH),
    }
    (data_dir / config.ADMINS_FILE).write_text(json.dumps([record]), encoding="utf-8")
    return record


@pytest.fixture()
def sign_in(client):
    def _sign_in(email, password, name="", signup=True):
        if signup:
            client.post("/signup", data={"name": name, "email": email, "password": password})
        return client.post("/login", data={"email": email, "password": password})

    return _sign_in
