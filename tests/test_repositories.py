import pytest
import uuid
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import IntegrityError

from identity.models.users import User, UserRole, Verification


async def test_user_save_and_find(db_session, users_repo):
    user = await users_repo.save(
        users_repo.create(email="repo@example.com", password_hash="hashed", role=UserRole.OWNER)
    )
    await users_repo.commit()

    assert user.id is not None
    assert user.verified is False

    found = await users_repo.find_by_email("repo@example.com")
    assert found is user
    assert await users_repo.find_by_id(user.id) is user
    assert await users_repo.find_by_id(str(user.id)) is user
    assert await users_repo.find_by_email("missing@example.com") is None
    assert await users_repo.find_by_id(uuid.uuid4()) is None


async def test_find_by_email_loads_only_requested_fields(db_session, users_repo, test_user):
    db_session.expunge_all()

    user = await users_repo.find_by_email(test_user["email"], fields=("id", "password_hash"))

    assert user.id == test_user["id"]
    assert user.password_hash
    unloaded = inspect(user).unloaded
    assert "email" in unloaded
    assert "role" in unloaded
    assert "verified" in unloaded


async def test_email_is_unique(db_session, users_repo, test_user):
    with pytest.raises(IntegrityError):
        await users_repo.save(users_repo.create(email=test_user["email"], password_hash="hashed"))
    await users_repo.rollback()


async def test_verification_create_and_find(db_session, users_repo, verifications_repo, test_user):
    verification = await verifications_repo.save(verifications_repo.create(test_user["user"]))
    await users_repo.commit()

    assert verification.code
    assert verification.user_id == test_user["id"]

    db_session.expunge_all()
    found = await verifications_repo.find_by_code(verification.code)
    assert found.id == verification.id
    assert found.user.email == test_user["email"]

    assert await verifications_repo.find_by_code("no-such-code") is None


async def test_one_verification_per_user(db_session, verifications_repo, test_user):
    await verifications_repo.save(verifications_repo.create(test_user["user"]))
    with pytest.raises(IntegrityError):
        await verifications_repo.save(verifications_repo.create(test_user["user"]))
    await db_session.rollback()


async def test_delete_by_user_and_by_id(db_session, users_repo, verifications_repo, test_user):
    first = await verifications_repo.save(verifications_repo.create(test_user["user"]))
    first_code = first.code
    await verifications_repo.delete_by_user(test_user["id"])
    second = await verifications_repo.save(verifications_repo.create(test_user["user"]))
    await users_repo.commit()

    assert await verifications_repo.find_by_code(first_code) is None
    assert (await verifications_repo.find_by_code(second.code)).id == second.id

    assert await verifications_repo.delete_by_id(second.id) == 1
    await users_repo.commit()

    assert await verifications_repo.delete_by_id(second.id) == 0
    count = await db_session.scalar(select(func.count()).select_from(Verification))
    assert count == 0
