"""Pydantic schemas for authentication"""
from typing import Optional

from pydantic import EmailStr

from app.schemas.base import CamelModel


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str
    display_name: Optional[str] = None


class RefreshRequest(CamelModel):
    refresh_token: str


class GoogleLoginRequest(CamelModel):
    id_token: str
