from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from chc_rental.db import crud
from chc_rental.models import Base
from chc_rental.services.auth import (
    create_session,
    normalize_phone,
    remove_session,
    start_phone_verification,
    validate_session,
    verify_phone_code,
)
from chc_rental.services.errors import PhoneVerificationError


class CapturingSender:
    def __init__(self):
        self.sent = []

    async def send(self, phone_number, text):
        self.sent.append((phone_number, text))

    @property
    def last_code(self):
        return self.sent[-1][1].rsplit(" ", 1)[-1]


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


def test_normalize_phone():
    assert normalize_phone(" 98765 43210 ") == "+919876543210"
    assert normalize_phone("+14155550123") == "+14155550123"
    assert normalize_phone("9876543210", default_country_code="+1") == "+19876543210"


@pytest.mark.parametrize("raw", ["", "   ", "12", "+91abc4567890"])
def test_normalize_phone_rejects(raw):
    with pytest.raises(PhoneVerificationError):
        normalize_phone(raw)


async def test_signup_code_roundtrip(db):
    center = await crud.create_center(db, "A")
    sender = CapturingSender()

    await start_phone_verification(db, "+919876543210", "signup", center.id, sender=sender)
    code = sender.last_code
    assert len(code) == 6

    challenge = await verify_phone_code(db, "+919876543210", "signup", code)
    assert challenge.center_id == center.id

    with pytest.raises(PhoneVerificationError):
        await verify_phone_code(db, "+919876543210", "signup", code)


async def test_wrong_code_rejected(db):
    center = await crud.create_center(db, "A")
    sender = CapturingSender()
    await start_phone_verification(db, "+919876543210", "signup", center.id, sender=sender)

    wrong = str((int(sender.last_code) + 1) % 1_000_000).zfill(6)
    with pytest.raises(PhoneVerificationError):
        await verify_phone_code(db, "+919876543210", "signup", wrong)


async def test_expired_code_rejected(db):
    center = await crud.create_center(db, "A")
    sender = CapturingSender()
    challenge = await start_phone_verification(db, "+919876543210", "signup", center.id, sender=sender)
    challenge.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    await db.commit()

    with pytest.raises(PhoneVerificationError):
        await verify_phone_code(db, "+919876543210", "signup", sender.last_code)


async def test_signup_rejects_existing_phone_in_center(db):
    center = await crud.create_center(db, "A")
    await crud.create_user(db, center.id, "Ravi", "+919876543210")

    with pytest.raises(PhoneVerificationError, match="already exists"):
        await start_phone_verification(db, "+919876543210", "signup", center.id, sender=CapturingSender())


async def test_signup_requires_center(db):
    with pytest.raises(PhoneVerificationError, match="select a CHC Center"):
        await start_phone_verification(db, "+919876543210", "signup", None, sender=CapturingSender())


async def test_login_requires_existing_account(db):
    with pytest.raises(PhoneVerificationError, match="sign up"):
        await start_phone_verification(db, "+919876543210", "login", sender=CapturingSender())


async def test_session_lifecycle(db):
    center = await crud.create_center(db, "A")
    user = await crud.create_user(db, center.id, "Ravi", "+919876543210")

    token = await create_session(user, db)
    assert (await validate_session(token, db)).id == user.id

    await remove_session(token, db)
    assert await validate_session(token, db) is None


async def test_inactive_user_session_invalid(db):
    center = await crud.create_center(db, "A")
    user = await crud.create_user(db, center.id, "Ravi", "+919876543210")
    token = await create_session(user, db)

    user.is_active = False
    await db.commit()

    assert await validate_session(token, db) is None
