from datetime import timedelta

from session_store import MemorySessionStore, ServerSessionInterface


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_store_expires_idle_sessions():
    clock = FakeClock()
    store = MemorySessionStore(timedelta(minutes=10), clock=clock)
    store.set("abc", {"user": {"email": "a@x.com"}})

    clock.now += 9 * 60
    assert store.get("abc") == {"user": {"email": "a@x.com"}}

    clock.now += 11 * 60
    assert store.get("abc") is None


def test_store_set_restarts_window():
    clock = FakeClock()
    store = MemorySessionStore(timedelta(minutes=10), clock=clock)
    store.set("abc", {"n": 1})
    clock.now += 8 * 60
    store.set("abc", {"n": 2})
    clock.now += 8 * 60

    assert store.get("abc") == {"n": 2}


def test_store_delete():
    store = MemorySessionStore(timedelta(minutes=10))
    store.set("abc", {"n": 1})
    store.delete("abc")
    store.delete("never-existed")
    assert store.get("abc") is None


def test_store_returns_copies():
    store = MemorySessionStore(timedelta(minutes=10))
    store.set("abc", {"n": 1})
    store.get("abc")["n"] = 2
    assert store.get("abc") == {"n": 1}


def test_session_expires_after_inactivity(client, sign_in, monkeypatch):
    clock = FakeClock()
    store = MemorySessionStore(timedelta(hours=8), clock=clock)
    monkeypatch.setattr(client.application, "session_interface", ServerSessionInterface(store))

    sign_in("a@x.com", "pw1", name="Alice")
    clock.now += 7 * 3600
    assert client.get("/me").get_json()["email"] == "a@x.com"

    clock.now += 7 * 3600
    assert client.get("/me").get_json()["email"] == "a@x.com"

    clock.now += 9 * 3600
    assert client.get("/me").get_json() is None


def test_cookie_holds_only_signed_id(client, sign_in, session_store):
    sign_in("a@x.com", "pw1", name="Alice")

    cookie = client.get_cookie("session")
    assert cookie is not None
    assert "a@x.com" not in cookie.value
    sid = cookie.value.rsplit(".", 1)[0]
    assert session_store.get(sid)["user"]["email"] == "a@x.com"


def test_tampered_cookie_is_anonymous(client, sign_in):
    sign_in("a@x.com", "pw1", name="Alice")
    value = client.get_cookie("session").value
    sid, signature = value.rsplit(".", 1)

    client.set_cookie("session", sid + "." + signature[::-1])
    assert client.get("/me").get_json() is None


def test_logout_destroys_server_side_session(client, sign_in, session_store):
    sign_in("a@x.com", "pw1", name="Alice")
    value = client.get_cookie("session").value
    sid = value.rsplit(".", 1)[0]

    client.post("/logout")
    assert session_store.get(sid) is None
    assert client.get_cookie("session") is None

    # replaying the old cookie does not revive the session
    client.set_cookie("session", value)
    assert client.get("/me").get_json() is None


def test_anonymous_requests_store_nothing(client, session_store):
    client.get("/")
    client.get("/me")
    assert session_store._sessions == {}
    assert client.get_cookie("session") is None


def test_login_moves_session_to_new_id(client, session_store):
    client.post("/signup", data={"name": "Alice", "email": "a@x.com", "password": "pw1"})
    before = client.get_cookie("session").value
    old_sid = before.rsplit(".", 1)[0]

    client.post("/login", data={"email": "a@x.com", "password": "pw1"})
    after = client.get_cookie("session").value

    assert after != before
    assert session_store.get(old_sid) is None
    assert session_store.get(after.rsplit(".", 1)[0])["user"]["email"] == "a@x.com"

    # the pre-login id no longer carries the login
    client.set_cookie("session", before)
    assert client.get("/me").get_json() is None


def test_abandoned_sessions_are_pruned(client, sign_in, monkeypatch):
    clock = FakeClock()
    store = MemorySessionStore(timedelta(hours=8), clock=clock)
    monkeypatch.setattr(client.application, "session_interface", ServerSessionInterface(store))

    sign_in("a@x.com", "pw1", name="Alice")
    for i in range(5):
        client.delete_cookie("session")
        sign_in("a@x.com", "pw1", signup=False)
    assert len(store._sessions) == 6

    client.delete_cookie("session")
    clock.now += 100 * 3600
    client.get("/")
    assert store._sessions == {}


def test_store_set_prunes_expired_entries():
    clock = FakeClock()
    store = MemorySessionStore(timedelta(minutes=10), clock=clock)
    store.set("old", {"n": 1})
    clock.now += 11 * 60
    store.set("new", {"n": 2})
    assert list(store._sessions) == ["new"]
