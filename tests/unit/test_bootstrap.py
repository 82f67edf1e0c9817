from workshop.db import crud
from workshop.services import bootstrap
from workshop.services.auth import authenticate_user


async def test_seed_is_idempotent(db):
    created = await bootstrap.seed_defaults(db, "s3cret-admin")
    assert created[0] == "admin user"
    assert len(created) == 4

    admin = await authenticate_user("admin", "s3cret-admin", db)
    assert admin.role == "admin"
    assert [c.type for c in await crud.list_channels(db)] == ["general", "tech", "sales"]
    assert len(await crud.list_parts(db, active_only=True)) == len(bootstrap.SAMPLE_PARTS)

    assert await bootstrap.seed_defaults(db, "other") == []


async def test_create_user_hashes_password(db):
    user = await bootstrap.create_user(
        db, "eng7", "eng7@example.com", "hunter22",
        role="engineer", preferred_language="ar", specialization="battery",
    )
    assert user.password_hash != "hunter22"
    assert user.full_name == "eng7"
    assert (await authenticate_user("eng7", "hunter22", db)).specialization == "battery"
