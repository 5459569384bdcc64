import unittest

from cardadmin.errors import AuthenticationError, ConfigurationError
from cardadmin.sessions import (
    InMemorySessionStore,
    SessionSigner,
    SessionState,
    check_password,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class InMemorySessionStoreTests(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.store = InMemorySessionStore(ttl_seconds=60, clock=self.clock)

    def test_create_and_get(self):
        state = self.store.create()
        self.assertTrue(state.authenticated)
        self.assertEqual(state.expires_at, 1060.0)
        fetched = self.store.get(state.session_id)
        self.assertEqual(fetched, state)

    def test_session_ids_are_unique(self):
        ids = {self.store.create().session_id for _ in range(100)}
        self.assertEqual(len(ids), 100)

    def test_expired_session_is_gone(self):
        state = self.store.create()
        self.clock.now += 60
        self.assertIsNone(self.store.get(state.session_id))
        self.assertEqual(len(self.store), 0)

    def test_destroy(self):
        state = self.store.create()
        self.store.destroy(state.session_id)
        self.assertIsNone(self.store.get(state.session_id))
        # Destroying twice is harmless.
        self.store.destroy(state.session_id)

    def test_prune_expired(self):
        old = self.store.create()
        self.clock.now += 30
        fresh = self.store.create()
        self.clock.now += 40
        self.assertEqual(self.store.prune_expired(), 1)
        self.assertIsNone(self.store.get(old.session_id))
        self.assertIsNotNone(self.store.get(fresh.session_id))

    def test_snapshot_is_immutable(self):
        state = self.store.create()
        with self.assertRaises(AttributeError):
            state.authenticated = False

    def test_anonymous(self):
        state = SessionState.anonymous()
        self.assertFalse(state.authenticated)
        self.assertIsNone(state.session_id)


class SessionSignerTests(unittest.TestCase):
    def test_round_trip(self):
        signer = SessionSigner("secret")
        token = signer.sign("abc-123_x")
        self.assertEqual(signer.unsign(token), "abc-123_x")

    def test_rejects_tampered_or_foreign_tokens(self):
        signer = SessionSigner("secret")
        token = signer.sign("abc")
        self.assertIsNone(signer.unsign("abd" + token[3:]))
        self.assertIsNone(signer.unsign("abc"))
        self.assertIsNone(signer.unsign(""))
        self.assertIsNone(SessionSigner("other").unsign(token))

    def test_requires_secret(self):
        with self.assertRaises(ConfigurationError):
            SessionSigner("")


class CheckPasswordTests(unittest.TestCase):
    def test_correct_password(self):
        check_password("hunter2", "hunter2")

    def test_wrong_password(self):
        with self.assertRaises(AuthenticationError):
            check_password("hunter2", "hunter3")
        with self.assertRaises(AuthenticationError):
            check_password("hunter2", None)

    def test_missing_configuration_fails_closed(self):
        with self.assertRaises(ConfigurationError):
            check_password(None, "anything")
        with self.assertRaises(ConfigurationError):
            check_password("", "")


if __name__ == "__main__":
    unittest.main()
