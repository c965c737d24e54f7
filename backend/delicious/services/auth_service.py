# 인증 서비스 레이어
# - 회원가입 (이메일 중복 체크, 비밀번호 확인), 로그인 (JWT 토큰 발급)
# - 계정 정보 수정
# - 비밀번호 재설정 토큰 발급/검증/사용

import enum
import logging
import secrets
from datetime import datetime, timedelta

from fastapi import Depends
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import DuplicateKeyError

from ..core.config import settings
from ..core.exceptions import AuthenticationError, ExpiredOrInvalidToken, ValidationError
from ..core.security import get_password_hash, verify_password, create_access_token, create_refresh_token
from ..models.user import User
from ..repositories.user_repository import UserRepository
from ..schemas.user_schema import TokenPair
from .mail_service import MailService, get_mail_service

logger = logging.getLogger(__name__)


class ResetOutcome(str, enum.Enum):
    SENT = "sent"
    UNKNOWN_EMAIL = "unknown_email"


def issue_tokens(user: User) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(str(user.id)),
        refresh_token=create_refresh_token(str(user.id)),
    )


def _check_confirmation(password: str, password_confirm: str) -> None:
    if not password:
        raise ValidationError(message="Password cannot be blank", field="password")
    if password != password_confirm:
        raise ValidationError(message="Passwords do not match", field="password_confirm")


class AuthService:
    def __init__(self, repo: UserRepository, mail: MailService):
        self.repo = repo
        self.mail = mail

    async def register(self, name: str, email: str, password: str, password_confirm: str) -> TokenPair:
        if not name or not name.strip():
            raise ValidationError(message="Please enter a name!", field="name")
        _check_confirmation(password, password_confirm)
        existing = await self.repo.get_by_email(email)
        if existing:
            raise ValidationError(message="Email already registered", field="email")
        hashed = get_password_hash(password)
        try:
            user = await self.repo.create(name, email, hashed)
        except DuplicateKeyError:
            raise ValidationError(message="Email already registered", field="email")
        logger.info(f"[AuthService] 회원가입: user={user.id}")
        return issue_tokens(user)

    async def login(self, email: str, password: str) -> TokenPair:
        user = await self.repo.get_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            raise AuthenticationError("Login failed!")
        return issue_tokens(user)

    async def update_account(self, user: User, name: str, email: str) -> User:
        user.name = name
        user.email = email
        try:
            # validate_on_save 로 이메일 형식/이름 재검증
            return await self.repo.save(user)
        except PydanticValidationError as exc:
            raise ValidationError(message=exc.errors()[0].get("msg", "Invalid account data"))
        except DuplicateKeyError:
            raise ValidationError(message="Email already registered", field="email")

    # ---- 비밀번호 재설정 ----

    async def request_reset(self, email: str, reset_base_url: str) -> ResetOutcome:
        user = await self.repo.get_by_email(email)
        if not user:
            logger.info("[AuthService] 비밀번호 재설정 요청: 등록되지 않은 이메일")
            return ResetOutcome.UNKNOWN_EMAIL

        user.reset_password_token = secrets.token_hex(20)
        user.reset_password_expiry = datetime.utcnow() + timedelta(minutes=settings.RESET_TOKEN_TTL_MINUTES)
        await self.repo.save(user)

        reset_url = f"{reset_base_url.rstrip('/')}/account/reset/{user.reset_password_token}"
        await self.mail.send(
            recipient=user.email,
            template_name="password-reset",
            template_data={
                "name": user.name,
                "reset_url": reset_url,
                "ttl_minutes": settings.RESET_TOKEN_TTL_MINUTES,
            },
        )
        logger.info(f"[AuthService] 비밀번호 재설정 메일 발송: user={user.id}")
        return ResetOutcome.SENT

    async def check_reset(self, token: str) -> User:
        user = await self.repo.get_by_valid_reset_token(token, datetime.utcnow())
        if not user:
            raise ExpiredOrInvalidToken()
        return user

    async def consume_reset(self, token: str, password: str, password_confirm: str) -> TokenPair:
        _check_confirmation(password, password_confirm)
        user = await self.check_reset(token)
        user.hashed_password = get_password_hash(password)
        user.reset_password_token = None
        user.reset_password_expiry = None
        user = await self.repo.save(user)
        logger.info(f"[AuthService] 비밀번호 재설정 완료: user={user.id}")
        # 재설정 후 바로 로그인 상태로
        return issue_tokens(user)


def get_auth_service(
    repo: UserRepository = Depends(UserRepository),
    mail: MailService = Depends(get_mail_service),
) -> AuthService:
    return AuthService(repo, mail)
