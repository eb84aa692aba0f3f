# tests/test_credentials.py
import pytest

from sessapi.services import credentials, session_manager
from sessapi.services.authenticator import authenticate

pytestmark = pytest.mark.asyncio


async def test_authenticate_success(db, make_user):
    user, password = await make_user()
    found = await authenticate(db, user.email, password)
    assert found is not None
    assert found.id == user.id
    # 密碼雜湊不會離開 store
    assert set(found.model_dump()) == {"id", "email"}


async def test_authenticate_failures_look_the_same(db, make_user):
    user, _ = await make_user()
    wrong_pass = await authenticate(db, user.email, "WrongPass")
    no_user = await authenticate(db, "ghost@example.com", "WrongPass")
    assert wrong_pass is None and no_user is None


@pytest.mark.parametrize("email,password", [("", "x"), ("a@example.com", ""), (None, None)])
async def test_authenticate_empty_input(db, email, password):
    assert await authenticate(db, email, password) is None


async def test_create_user_duplicate(db, make_user):
    user, _ = await make_user()
    assert await credentials.create_user(db, user.email, "whatever") is None


async def test_change_email_conflict(db, make_user):
    user, password = await make_user()
    other, _ = await make_user()

    assert await credentials.change_email(db, user, other.email) is False
    assert await authenticate(db, user.email, password) is not None


async def test_change_email_success(db, make_user):
    user, password = await make_user()
    new_email = "moved-" + user.email

    assert await credentials.change_email(db, user, new_email) is True
    found = await authenticate(db, new_email, password)
    assert found is not None and found.id == user.id
    assert await authenticate(db, user.email, password) is None


async def test_change_password_keeps_sessions(db, make_user):
    user, password = await make_user()
    sid, token = await session_manager.create(db, user)

    await credentials.change_password(db, user, "AnotherPass")

    assert await authenticate(db, user.email, password) is None
    assert await authenticate(db, user.email, "AnotherPass") is not None
    # 既有 session 仍然可用（不會自動撤銷）
    assert await session_manager.resolve(db, sid, token) is not None


async def test_both_failure_paths_do_hash_work(db, make_user, monkeypatch):
    from sessapi.core import security
    from sessapi.services import authenticator

    user, _ = await make_user()
    calls = []
    real_dummy = security.get_password_context().dummy_verify

    def _counting_verify(plain, password_hash):
        calls.append(password_hash)
        return security.verify_password(plain, password_hash)

    dummy_calls = []

    def _counting_dummy(*args, **kwargs):
        dummy_calls.append(1)
        return real_dummy(*args, **kwargs)

    monkeypatch.setattr(authenticator, "verify_password", _counting_verify)
    monkeypatch.setattr(security.get_password_context(), "dummy_verify", _counting_dummy)

    assert await authenticate(db, user.email, "WrongPass") is None
    assert await authenticate(db, "ghost@example.com", "WrongPass") is None

    # 兩種失敗都各跑一次雜湊比對；無此帳號時走 dummy_verify
    assert len(calls) == 2
    assert calls[1] is None
    assert dummy_calls == [1]


async def test_hashing_runs_off_the_event_loop(db, make_user, monkeypatch):
    import threading

    from sessapi.core import security
    from sessapi.services import authenticator

    user, password = await make_user()
    loop_thread = threading.get_ident()
    threads = []

    def _recording_verify(plain, password_hash):
        threads.append(threading.get_ident())
        return security.verify_password(plain, password_hash)

    monkeypatch.setattr(authenticator, "verify_password", _recording_verify)

    assert await authenticate(db, user.email, password) is not None
    assert threads and threads[0] != loop_thread
