# 계정/인증 라우터
# - POST /register, /login            : JWT Access/Refresh 토큰 발급
# - GET/POST /account                 : 내 정보 조회/수정
# - POST /account/forgot              : 비밀번호 재설정 메일 요청
# - GET/POST /account/reset/{token}   : 토큰 확인 / 새 비밀번호 설정 후 자동 로그인

from fastapi import APIRouter, Depends, Request

from ...core.config import settings
from ...core.security import get_current_user
from ...models.user import User
from ...schemas.user_schema import (
    AccountUpdate, ForgotRequest, LoginRequest, Message, PasswordReset, RegisterRequest, TokenPair, UserPublic,
)
from ...services.auth_service import AuthService, ResetOutcome, get_auth_service

router = APIRouter(tags=["accounts"])


def to_public(user: User) -> UserPublic:
    return UserPublic(
        id=str(user.id),
        email=user.email,
        name=user.name,
        gravatar=user.gravatar,
        hearts=[str(h) for h in user.hearts],
    )


@router.post("/register", response_model=TokenPair, summary="회원가입 후 바로 로그인")
async def register(payload: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    return await service.register(payload.name, payload.email, payload.password, payload.password_confirm)


@router.post("/login", response_model=TokenPair, summary="로그인 (JWT Access/Refresh 토큰 발급)")
async def login(payload: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return await service.login(payload.email, payload.password)


@router.get("/account", response_model=UserPublic, summary="내 계정 정보")
async def account(user: User = Depends(get_current_user)):
    return to_public(user)


@router.post("/account", response_model=UserPublic, summary="계정 정보 수정")
async def update_account(payload: AccountUpdate, user: User = Depends(get_current_user), service: AuthService = Depends(get_auth_service)):
    updated = await service.update_account(user, payload.name, payload.email)
    return to_public(updated)


@router.post("/account/forgot", response_model=Message, summary="비밀번호 재설정 메일 요청")
async def forgot(payload: ForgotRequest, request: Request, service: AuthService = Depends(get_auth_service)):
    outcome = await service.request_reset(payload.email, str(request.base_url))
    # 응답 상태 코드는 항상 200. RESET_REVEAL_UNKNOWN_EMAIL=False 면 메시지도 동일
    if not settings.RESET_REVEAL_UNKNOWN_EMAIL:
        return Message(message="If an account exists for that email, a password reset link has been sent.")
    if outcome is ResetOutcome.UNKNOWN_EMAIL:
        return Message(message="Could not find an account with that email.")
    return Message(message="You have been emailed a password reset link.")


@router.get("/account/reset/{token}", response_model=Message, summary="재설정 토큰 확인")
async def check_reset(token: str, service: AuthService = Depends(get_auth_service)):
    await service.check_reset(token)
    return Message(message="Reset your password")


@router.post("/account/reset/{token}", response_model=TokenPair, summary="새 비밀번호 설정 (자동 로그인)")
async def reset(token: str, payload: PasswordReset, service: AuthService = Depends(get_auth_service)):
    return await service.consume_reset(token, payload.password, payload.password_confirm)
