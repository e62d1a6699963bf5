import threading

from conftest import COMPLETE_FIELDS
from use_cases.auth_errors import AuthErrorKind, ProviderError
from use_cases.route_guard import evaluate_access
from use_cases.session_models import Identity
from use_cases.session_store import SessionStore


def test_store_is_loading_until_started(backend, settings):
    store = SessionStore(backend, settings)
    assert store.current_session().is_loading is True
    store.start()
    snapshot = store.current_session()
    assert snapshot.is_loading is False
    assert snapshot.identity is None


def test_start_resumes_prior_session_with_profile(backend, settings):
    backend.resumable = Identity(id="u1", email="student@dtu.ac.in", email_verified=True)
    backend.profiles["u1"] = dict(COMPLETE_FIELDS, user_id="u1")
    store = SessionStore(backend, settings)
    store.start()

    snapshot = store.current_session()
    assert snapshot.identity.id == "u1"
    assert snapshot.profile.full_name == COMPLETE_FIELDS["full_name"]
    assert store.is_profile_complete() is True


def test_start_is_idempotent(backend, settings):
    store = SessionStore(backend, settings)
    store.start()
    store.start()
    assert backend.calls.count("subscribe_auth_changes") == 1


def test_resume_failure_leaves_user_signed_out(backend, settings):
    backend.errors["resume_identity"] = ProviderError("network down")
    store = SessionStore(backend, settings)
    store.start()
    snapshot = store.current_session()
    assert snapshot.is_loading is False
    assert snapshot.identity is None


def test_sign_up_blocks_foreign_domain_without_calling_backend(store, backend):
    result = store.sign_up("student@gmail.com", "secret1")
    assert result.ok is False
    assert result.error.kind == AuthErrorKind.INVALID_EMAIL_DOMAIN
    assert "create_account" not in backend.calls


def test_sign_up_success_does_not_change_session(store, backend):
    result = store.sign_up("student@dtu.ac.in", "secret1")
    assert result.ok is True
    assert backend.accounts["student@dtu.ac.in"] == "secret1"
    assert store.current_session().identity is None


def test_sign_in_identity_arrives_via_auth_event(store, backend):
    backend.accounts["student@dtu.ac.in"] = "secret1"
    backend.push_on_sign_in = False

    result = store.sign_in("student@dtu.ac.in", "secret1")
    assert result.ok is True
    # Resolved call, but no event yet: the session is not updated.
    assert store.current_session().identity is None

    backend.push(Identity(id="u9", email="student@dtu.ac.in"))
    assert store.current_session().identity.id == "u9"


def test_sign_in_translates_provider_errors(store, backend):
    backend.errors["authenticate"] = ProviderError("Email not confirmed", code="email_not_confirmed")
    result = store.sign_in("student@dtu.ac.in", "secret1")
    assert result.error.kind == AuthErrorKind.EMAIL_NOT_VERIFIED
    assert result.error.message == "Please verify your email before signing in."


def test_sign_in_wrong_password(store, backend):
    backend.accounts["student@dtu.ac.in"] = "secret1"
    result = store.sign_in("student@dtu.ac.in", "wrong-password")
    assert result.error.kind == AuthErrorKind.INVALID_CREDENTIALS


def test_sign_out_clears_session(signed_in_store):
    assert signed_in_store.current_session().identity is not None
    result = signed_in_store.sign_out()
    assert result.ok is True
    assert signed_in_store.current_session().identity is None


def test_sign_out_fails_open(signed_in_store, backend):
    backend.errors["terminate_session"] = ProviderError("gateway timeout")
    result = signed_in_store.sign_out()

    assert result.ok is False
    snapshot = signed_in_store.current_session()
    assert snapshot.identity is None
    assert snapshot.profile is None


def test_update_profile_requires_identity(store, backend):
    result = store.update_profile(COMPLETE_FIELDS)
    assert result.error.kind == AuthErrorKind.NOT_AUTHENTICATED
    assert "upsert_profile" not in backend.calls


def test_update_profile_is_reflected_synchronously(signed_in_store, backend):
    assert signed_in_store.is_profile_complete() is False
    callbacks_before = list(backend.calls)

    result = signed_in_store.update_profile(COMPLETE_FIELDS)

    assert result.ok is True
    assert signed_in_store.is_profile_complete() is True
    # No extra auth event was needed.
    assert backend.calls[len(callbacks_before):] == ["upsert_profile"]


def test_update_profile_drops_protected_columns(signed_in_store, backend):
    signed_in_store.update_profile(dict(COMPLETE_FIELDS, seller_verified=True, is_active=False))
    identity = signed_in_store.current_session().identity
    row = backend.profiles[identity.id]
    assert "seller_verified" not in row
    assert "is_active" not in row
    assert row["email"] == identity.email


def test_update_profile_provider_failure_keeps_previous_profile(signed_in_store, backend):
    backend.errors["upsert_profile"] = ProviderError("permission denied for table profiles")
    result = signed_in_store.update_profile(COMPLETE_FIELDS)
    assert result.error.kind == AuthErrorKind.UNKNOWN
    assert result.error.message == "permission denied for table profiles"
    assert signed_in_store.is_profile_complete() is False


def test_same_identity_event_keeps_profile(signed_in_store, backend):
    signed_in_store.update_profile(COMPLETE_FIELDS)
    identity = signed_in_store.current_session().identity
    backend.errors["fetch_profile"] = ProviderError("should not be called")

    # Token refresh re-announces the same identity.
    backend.push(identity)
    assert signed_in_store.is_profile_complete() is True


def test_profile_fetch_failure_still_signs_in(store, backend):
    backend.errors["fetch_profile"] = ProviderError("timeout")
    backend.push(Identity(id="u1", email="student@dtu.ac.in"))
    snapshot = store.current_session()
    assert snapshot.identity.id == "u1"
    assert snapshot.profile is None


def test_same_identity_event_retries_failed_profile_fetch(store, backend):
    identity = Identity(id="u1", email="student@dtu.ac.in")
    backend.errors["fetch_profile"] = ProviderError("timeout")
    backend.push(identity)
    assert store.current_session().profile is None

    del backend.errors["fetch_profile"]
    backend.profiles["u1"] = dict(COMPLETE_FIELDS, user_id="u1")
    backend.push(identity)

    assert store.is_profile_complete() is True
    snapshot = store.current_session()
    assert evaluate_access(snapshot, require_complete_profile=True).status == "ALLOW"


def test_refresh_profile_reads_provider_again(signed_in_store, backend):
    identity = signed_in_store.current_session().identity
    backend.profiles[identity.id] = dict(COMPLETE_FIELDS, user_id=identity.id)

    profile = signed_in_store.refresh_profile()

    assert profile.full_name == COMPLETE_FIELDS["full_name"]
    assert signed_in_store.is_profile_complete() is True


def test_refresh_profile_when_signed_out(store, backend):
    assert store.refresh_profile() is None
    assert "fetch_profile" not in backend.calls


def test_sign_out_during_profile_save_is_not_overwritten(signed_in_store, backend):
    upsert = backend.upsert_profile

    def _upsert_then_sign_out(identity_id, fields):
        row = upsert(identity_id, fields)
        backend.push(None)
        return row

    backend.upsert_profile = _upsert_then_sign_out
    result = signed_in_store.update_profile(COMPLETE_FIELDS)

    assert result.error.kind == AuthErrorKind.NOT_AUTHENTICATED
    snapshot = signed_in_store.current_session()
    assert snapshot.identity is None
    assert snapshot.profile is None


def test_start_resumes_from_stored_refresh_token(signed_in_store, backend, settings):
    token = signed_in_store.session_token()
    assert token == "rt-student@dtu.ac.in"

    # A reload gets a brand new store with nothing in memory.
    reloaded = SessionStore(backend, settings)
    reloaded.start(refresh_token=token)

    assert reloaded.current_session().identity.email == "student@dtu.ac.in"
    assert reloaded.session_token() != token
    reloaded.close()


def test_start_with_revoked_refresh_token_stays_signed_out(backend, settings):
    store = SessionStore(backend, settings)
    store.start(refresh_token="rt-gone")

    snapshot = store.current_session()
    assert snapshot.is_loading is False
    assert snapshot.identity is None
    assert store.session_token() is None


def test_session_token_is_none_when_signed_out(store, backend):
    backend.token = "rt-stale"
    assert store.session_token() is None
    assert "session_token" not in backend.calls


def test_wait_for_identity_times_out(store):
    assert store.wait_for_identity(timeout=0.01) is False


def test_wait_for_identity_sees_event_from_another_thread(store, backend):
    timer = threading.Timer(0.05, backend.push, args=(Identity(id="u2", email="x@dtu.ac.in"),))
    timer.start()
    try:
        assert store.wait_for_identity(identity_id="u2", timeout=2.0) is True
    finally:
        timer.cancel()


def test_close_unsubscribes(backend, settings):
    store = SessionStore(backend, settings)
    store.start()
    store.close()
    assert backend.callbacks == []
