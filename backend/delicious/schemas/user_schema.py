# 요청/응답 스키마 정의 (Pydantic 모델)

from typing import List
from pydantic import BaseModel, EmailStr

class RegisterRequest(BaseModel):
    name: str
    email: EmailStr
    password: str
    password_confirm: str

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class UserPublic(BaseModel):
    id: str
    email: EmailStr
    name: str
    gravatar: str
    hearts: List[str] = []

class AccountUpdate(BaseModel):
    name: str
    email: EmailStr

class ForgotRequest(BaseModel):
    email: EmailStr

class PasswordReset(BaseModel):
    password: str
    password_confirm: str

class Message(BaseModel):
    status: int = 200
    message: str
