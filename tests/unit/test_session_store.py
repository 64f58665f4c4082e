"""Unit tests for the in-memory call session store."""
from app.services.call_session.store import SessionStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_store(ttl=60, max_sessions=100):
    clock = FakeClock()
    return SessionStore(ttl_seconds=ttl, max_sessions=max_sessions, clock=clock), clock


class TestSessionStore:
    """Test session lifecycle in the store."""

    def test_get_or_create_creates_once(self):
        store, _ = make_store()

        session, created = store.get_or_create("CA1")
        again, created_again = store.get_or_create("CA1")

        assert created is True
        assert created_again is False
        assert again is session
        assert len(store) == 1

    def test_sessions_are_independent(self):
        store, _ = make_store()

        first, _ = store.get_or_create("CA1")
        second, _ = store.get_or_create("CA2")
        first.caller_name = "Jane Doe"

        assert second.caller_name is None
        assert store.get("CA1").caller_name == "Jane Doe"

    def test_remove(self):
        store, _ = make_store()
        store.get_or_create("CA1")

        removed = store.remove("CA1")

        assert removed.call_sid == "CA1"
        assert store.get("CA1") is None
        assert store.remove("CA1") is None

    def test_idle_sessions_expire(self):
        store, clock = make_store(ttl=60)
        store.get_or_create("CA1")

        clock.advance(59)
        assert "CA1" in store

        clock.advance(1)
        assert store.get("CA1") is None
        assert len(store) == 0

    def test_touch_extends_lifetime(self):
        store, clock = make_store(ttl=60)
        store.get_or_create("CA1")
        store.get_or_create("CA2")

        clock.advance(40)
        store.get_or_create("CA1")
        clock.advance(30)

        assert "CA1" in store
        assert "CA2" not in store

    def test_expired_call_is_recreated_empty(self):
        store, clock = make_store(ttl=60)
        session, _ = store.get_or_create("CA1")
        session.caller_name = "Jane Doe"

        clock.advance(120)
        fresh, created = store.get_or_create("CA1")

        assert created is True
        assert fresh.caller_name is None

    def test_capacity_evicts_least_recently_used(self):
        store, clock = make_store(max_sessions=2)
        store.get_or_create("CA1")
        clock.advance(1)
        store.get_or_create("CA2")
        clock.advance(1)
        store.get_or_create("CA1")
        clock.advance(1)

        store.get_or_create("CA3")

        assert "CA1" in store
        assert "CA2" not in store
        assert "CA3" in store

    def test_zero_ttl_never_expires(self):
        store, clock = make_store(ttl=0)
        store.get_or_create("CA1")
        clock.advance(10**6)
        assert "CA1" in store

    def test_zero_capacity_means_no_cap(self):
        store, _ = make_store(max_sessions=0)

        for index in range(5):
            store.get_or_create(f"CA{index}")

        assert len(store) == 5
