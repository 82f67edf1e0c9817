import pytest

from workshop.db import crud
from workshop.errors import Unauthenticated
from workshop.services import auth


async def test_login_and_resolve_token(db, users, password):
    user = await auth.authenticate_user("e2", password, db)
    token = await auth.issue_credential(user, db)

    ctx = await auth.verify_credential(token, db)
    assert ctx.user_id == users["e2"].id
    assert ctx.role == "engineer"
    assert ctx.preferred_language == "ar"


async def test_bad_password_and_inactive_user(db, users, password):
    with pytest.raises(Unauthenticated):
        await auth.authenticate_user("e1", "wrong", db)
    with pytest.raises(Unauthenticated):
        await auth.authenticate_user("nobody", password, db)

    await crud.deactivate_user(db, users["e1"])
    with pytest.raises(Unauthenticated):
        await auth.authenticate_user("e1", password, db)


async def test_token_stored_as_hash_only(db, users):
    token = await auth.issue_credential(users["u1"], db)
    assert await crud.get_live_session_by_token_hash(db, token) is None
    assert await crud.get_live_session_by_token_hash(db, auth._hash_token(token)) is not None


async def test_revoked_and_unknown_tokens_fail(db, users):
    token = await auth.issue_credential(users["u1"], db)
    await auth.revoke_credential(token, db)
    with pytest.raises(Unauthenticated):
        await auth.verify_credential(token, db)
    with pytest.raises(Unauthenticated):
        await auth.verify_credential("", db)
    with pytest.raises(Unauthenticated):
        await auth.verify_credential("garbage", db)


async def test_deactivated_user_token_stops_working(db, users):
    token = await auth.issue_credential(users["sales"], db)
    await crud.deactivate_user(db, users["sales"])
    with pytest.raises(Unauthenticated):
        await auth.verify_credential(token, db)


def test_bearer_token_parsing():
    assert auth.bearer_token("Bearer abc") == "abc"
    assert auth.bearer_token("bearer  abc ") == "abc"
    assert auth.bearer_token("Basic abc") == ""
    assert auth.bearer_token(None) == ""
