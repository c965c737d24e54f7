# User 도메인 모델 (Beanie Document)
# - 이메일(unique 인덱스, 소문자), 이름, 비밀번호 해시
# - 비밀번호 재설정 토큰/만료 시각 (항상 함께 설정되고 함께 지워짐)
# - hearts: 즐겨찾기한 가게 id 목록 (집합으로 취급)

import hashlib
from datetime import datetime
from typing import List, Optional
from beanie import Document, Indexed, PydanticObjectId
from pydantic import EmailStr, Field, field_validator

class User(Document):
    email: Indexed(EmailStr, unique=True)  # 중복 방지 인덱스
    name: str = Field(min_length=1)
    hashed_password: str = Field(repr=False)
    reset_password_token: Optional[str] = Field(default=None, repr=False)
    reset_password_expiry: Optional[datetime] = None
    hearts: List[PydanticObjectId] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @property
    def gravatar(self) -> str:
        email_hash = hashlib.md5(self.email.encode("utf-8")).hexdigest()
        return f"https://gravatar.com/avatar/{email_hash}?s=200"

    class Settings:
        name = "users"  # 컬렉션명
        validate_on_save = True
