from __future__ import annotations
from pydantic import BaseModel


class CenterRead(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class PhoneCodeRequest(BaseModel):
    phone_number: str
    purpose: str  # login | signup
    center_id: str | None = None


class LoginRequest(BaseModel):
    phone_number: str
    code: str


class SignupRequest(BaseModel):
    phone_number: str
    code: str
    name: str
    address: str
    center_id: str
    image_url: str = ""


class SessionUser(BaseModel):
    uid: str
    name: str
    phone_number: str
    center_id: str
    center_name: str
    address: str = ""
    image_url: str = ""
    role: str = "member"


class AuthResponse(BaseModel):
    token: str
    user: SessionUser
