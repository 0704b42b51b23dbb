"""Auth API: phone verification, signup, login, logout, session profile."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.db import crud
from chc_rental.db.engine import get_db
from chc_rental.dependencies import require_auth
from chc_rental.schemas import (
    AuthResponse, LoginRequest, PhoneCodeRequest, SessionUser, SignupRequest,
)
from chc_rental.services.auth import (
    AuthContext, SESSION_COOKIE_NAME, auth_context_for, create_session,
    normalize_phone, remove_session, start_phone_verification, token_from_request,
    verify_phone_code,
)
from chc_rental.services.errors import PhoneVerificationError

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_user(auth: AuthContext) -> SessionUser:
    return SessionUser(
        uid=auth.user_id,
        name=auth.display_name,
        phone_number=auth.phone_number,
        center_id=auth.center_id,
        center_name=auth.center_name,
        address=auth.address,
        image_url=auth.image_url,
        role=auth.role,
    )


def _auth_response(token: str, auth: AuthContext) -> JSONResponse:
    body = AuthResponse(token=token, user=_session_user(auth))
    response = JSONResponse(content=body.model_dump())
    response.set_cookie(SESSION_COOKIE_NAME, token, httponly=True, samesite="lax")
    return response


@router.post("/otp", status_code=202)
async def request_code(body: PhoneCodeRequest, db: AsyncSession = Depends(get_db)):
    try:
        phone = normalize_phone(body.phone_number)
        await start_phone_verification(db, phone, body.purpose, body.center_id)
    except PhoneVerificationError as e:
        raise HTTPException(400, str(e))
    return {"ok": True, "phone_number": phone, "message": f"OTP sent to {phone}"}


@router.post("/signup", status_code=201)
async def signup(body: SignupRequest, db: AsyncSession = Depends(get_db)):
    if not body.name.strip() or not body.address.strip():
        raise HTTPException(400, "Please fill in all required fields (Name, Phone Number, Address).")
    center = await crud.get_center(db, body.center_id)
    if not center:
        raise HTTPException(404, "Center not found")
    try:
        phone = normalize_phone(body.phone_number)
        challenge = await verify_phone_code(db, phone, "signup", body.code)
    except PhoneVerificationError as e:
        raise HTTPException(400, str(e))
    if challenge.center_id != center.id:
        raise HTTPException(400, "The verification code was issued for a different center.")

    try:
        user = await crud.create_user(
            db, center.id, body.name.strip(), phone,
            address=body.address.strip(), image_url=body.image_url,
        )
    except IntegrityError:
        await db.rollback()
        raise HTTPException(409, "A user with this phone number already exists in this center. Please login.")

    token = await create_session(user, db)
    response = _auth_response(token, auth_context_for(user, center_name=center.name))
    response.status_code = 201
    return response


@router.post("/login")
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    try:
        phone = normalize_phone(body.phone_number)
        await verify_phone_code(db, phone, "login", body.code)
    except PhoneVerificationError as e:
        raise HTTPException(401, str(e))

    user = await crud.get_user_by_phone(db, phone)
    if not user:
        raise HTTPException(401, "No existing account found with this phone number. Please sign up.")

    token = await create_session(user, db)
    return _auth_response(token, auth_context_for(user))


@router.post("/logout")
async def logout(request: Request, db: AsyncSession = Depends(get_db)):
    token = token_from_request(request)
    if token:
        await remove_session(token, db)
    response = JSONResponse(content={"ok": True})
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@router.get("/me", response_model=SessionUser)
async def me(auth: AuthContext = Depends(require_auth)):
    return _session_user(auth)
