import pytest

from use_cases.auth_errors import ProviderError
from use_cases.credential_policy import AuthSettings
from use_cases.session_models import Identity
from use_cases.session_store import SessionStore

COMPLETE_FIELDS = {
    "full_name": "Asha Verma",
    "roll_number": "2K21/CO/101",
    "branch": "Computer Engineering",
    "year": "3rd Year",
    "hostel": "GH-1",
}


class FakeBackend:
    """In-memory stand-in for the hosted provider.

    `authenticate` pushes the auth-change event synchronously, the way the
    Supabase client does, unless `push_on_sign_in` is False.
    """

    def __init__(self):
        self.calls = []
        self.accounts = {}
        self.profiles = {}
        self.errors = {}
        self.callbacks = []
        self.resumable = None
        self.push_on_sign_in = True
        # refresh token -> Identity, what a browser cookie can bring back
        self.refresh_tokens = {}
        self.token = None

    def _maybe_fail(self, op):
        self.calls.append(op)
        error = self.errors.get(op)
        if error is not None:
            raise error

    def create_account(self, email, password):
        self._maybe_fail("create_account")
        self.accounts[email] = password

    def authenticate(self, email, password):
        self._maybe_fail("authenticate")
        if self.accounts.get(email) != password:
            raise ProviderError("Invalid login credentials", code="invalid_credentials")
        identity = Identity(id=f"uid-{email}", email=email, email_verified=True)
        self.token = f"rt-{email}"
        self.refresh_tokens[self.token] = identity
        if self.push_on_sign_in:
            self.push(identity)

    def terminate_session(self):
        self._maybe_fail("terminate_session")
        self.refresh_tokens.pop(self.token, None)
        self.token = None
        self.push(None)

    def resume_identity(self, refresh_token=None):
        self._maybe_fail("resume_identity")
        if self.resumable is not None or not refresh_token:
            return self.resumable
        if refresh_token not in self.refresh_tokens:
            raise ProviderError("Invalid Refresh Token: Refresh Token Not Found", code="refresh_token_not_found")
        identity = self.refresh_tokens.pop(refresh_token)
        # Supabase rotates the token on every refresh.
        self.token = f"{refresh_token}+"
        self.refresh_tokens[self.token] = identity
        self.push(identity)
        return identity

    def session_token(self):
        self._maybe_fail("session_token")
        return self.token

    def subscribe_auth_changes(self, callback):
        self.calls.append("subscribe_auth_changes")
        self.callbacks.append(callback)

        def _unsubscribe():
            self.callbacks.remove(callback)

        return _unsubscribe

    def fetch_profile(self, identity_id):
        self._maybe_fail("fetch_profile")
        return self.profiles.get(identity_id)

    def upsert_profile(self, identity_id, fields):
        self._maybe_fail("upsert_profile")
        row = dict(self.profiles.get(identity_id) or {})
        row.update(fields)
        row["user_id"] = identity_id
        self.profiles[identity_id] = row
        return row

    def push(self, identity):
        for callback in list(self.callbacks):
            callback(identity)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def settings():
    return AuthSettings(session_wait_seconds=0.05)


@pytest.fixture
def store(backend, settings):
    session_store = SessionStore(backend, settings)
    session_store.start()
    yield session_store
    session_store.close()


@pytest.fixture
def signed_in_store(store, backend):
    backend.accounts["student@dtu.ac.in"] = "secret1"
    result = store.sign_in("student@dtu.ac.in", "secret1")
    assert result.ok
    return store
