"""Authentication service: phone verification codes and DB-backed sessions."""

from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Protocol

from fastapi import Request, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.config import get_settings
from chc_rental.db import crud
from chc_rental.models import User, UserSession, PhoneChallenge
from chc_rental.services.errors import PhoneVerificationError

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "session_token"


@dataclass
class AuthContext:
    user_id: str
    center_id: str
    role: str  # 'member' | 'staff'
    display_name: str
    phone_number: str
    center_name: str = ""
    address: str = ""
    image_url: str = ""


def _hash_token(token: str) -> str:
    """SHA-256 hash of a session token or verification code for DB storage."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _aware(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def normalize_phone(raw: str, default_country_code: str | None = None) -> str:
    """Strip whitespace and prefix the default country code when '+' is missing."""
    code = default_country_code or get_settings().booking.default_country_code
    number = "".join((raw or "").split())
    if not number:
        raise PhoneVerificationError("Please enter a phone number.")
    full = number if number.startswith("+") else code + number
    if len(full) < 10 or not full[1:].isdigit():
        raise PhoneVerificationError(
            "Please enter a valid phone number in E.164 format (e.g., +918754672089)."
        )
    return full


# ── Phone verification ────────────────────────────────────

class SmsSender(Protocol):
    async def send(self, phone_number: str, text: str) -> None: ...


class LoggingSmsSender:
    """Default sender: SMS delivery is external, so the code is only logged."""

    async def send(self, phone_number: str, text: str) -> None:
        logger.info("SMS to %s: %s", phone_number, text)


sms_sender: SmsSender = LoggingSmsSender()


def _generate_code(length: int) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


async def start_phone_verification(
    db: AsyncSession, phone_number: str, purpose: str, center_id: str | None = None,
    sender: SmsSender | None = None,
) -> PhoneChallenge:
    """Check the phone against existing accounts and send a one-time login code."""
    if purpose == "signup":
        if not center_id or not await crud.get_center(db, center_id):
            raise PhoneVerificationError("Please select a CHC Center.")
        if await crud.get_user_by_phone(db, phone_number, center_id):
            raise PhoneVerificationError(
                "A user with this phone number already exists in this center. Please login."
            )
    elif purpose == "login":
        if not await crud.get_user_by_phone(db, phone_number):
            raise PhoneVerificationError(
                "No existing account found with this phone number. Please sign up."
            )
    else:
        raise PhoneVerificationError(f"Unknown verification purpose: {purpose}")

    cfg = get_settings().auth
    code = _generate_code(cfg.phone_code_length)
    challenge = PhoneChallenge(
        phone_number=phone_number,
        purpose=purpose,
        center_id=center_id,
        code_hash=_hash_token(code),
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=cfg.phone_code_ttl_minutes),
    )
    db.add(challenge)
    await db.commit()
    await (sender or sms_sender).send(phone_number, f"Your CHC verification code is {code}")
    return challenge


async def verify_phone_code(db: AsyncSession, phone_number: str, purpose: str, code: str) -> PhoneChallenge:
    """Consume the newest matching, unexpired challenge or raise."""
    result = await db.execute(
        select(PhoneChallenge)
        .where(
            PhoneChallenge.phone_number == phone_number,
            PhoneChallenge.purpose == purpose,
            PhoneChallenge.consumed == False,
        )
        .order_by(PhoneChallenge.created_at.desc())
    )
    challenge = result.scalars().first()
    now = datetime.now(timezone.utc)
    if (
        not challenge
        or _aware(challenge.expires_at) <= now
        or not secrets.compare_digest(challenge.code_hash, _hash_token(code or ""))
    ):
        raise PhoneVerificationError("The verification code is invalid or has expired.")
    challenge.consumed = True
    await db.commit()
    return challenge


# ── Sessions ──────────────────────────────────────────────

async def create_session(user: User, db: AsyncSession) -> str:
    """Create a DB-backed session. Returns the raw token (not the hash)."""
    token = secrets.token_urlsafe(48)
    expires_at = datetime.now(timezone.utc) + timedelta(days=get_settings().auth.session_max_age_days)
    db.add(UserSession(user_id=user.id, token_hash=_hash_token(token), expires_at=expires_at))
    await db.commit()
    return token


async def validate_session(token: str, db: AsyncSession) -> User | None:
    """Look up session by token hash, return User if valid."""
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == _hash_token(token),
            UserSession.expires_at > datetime.now(timezone.utc),
        )
    )
    session = result.scalars().first()
    if not session:
        return None

    user = await db.get(User, session.user_id)
    if not user or not user.is_active:
        return None
    return user


async def remove_session(token: str, db: AsyncSession) -> None:
    result = await db.execute(
        select(UserSession).where(UserSession.token_hash == _hash_token(token))
    )
    session = result.scalars().first()
    if session:
        await db.delete(session)
        await db.commit()


def auth_context_for(user: User, center_name: str | None = None) -> AuthContext:
    if center_name is None:
        center_name = user.center.name if user.center else f"Center ID: {user.center_id}"
    return AuthContext(
        user_id=user.id,
        center_id=user.center_id,
        role=user.role,
        display_name=user.name,
        phone_number=user.phone_number,
        center_name=center_name,
        address=user.address,
        image_url=user.image_url,
    )


def token_from_request(request: Request) -> str:
    """Bearer token from the Authorization header, falling back to the cookie."""
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip()
    return request.cookies.get(SESSION_COOKIE_NAME, "")


async def get_current_user(request: Request, db: AsyncSession) -> AuthContext:
    """Validate the request's session token, return AuthContext or raise 401."""
    token = token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = await validate_session(token, db)
    if not user:
        raise HTTPException(status_code=401, detail="Session expired")

    return auth_context_for(user)
