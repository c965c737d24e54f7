# 설정 모듈
# - .env 값들을 한 곳에서 관리
# - 기본값을 제공하여 로컬 실행 편의성 확보

from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from pydantic import Field

# 프로젝트 루트 디렉토리 경로 찾기
# 이 파일은 backend/delicious/core/config.py에 있으므로 4단계 상위가 프로젝트 루트입니다.
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
ENV_FILE_PATH = PROJECT_ROOT / ".env"

class Settings(BaseSettings):
    APP_NAME: str = "delicious"
    ENV: str = "dev"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    MONGODB_URI: str = "mongodb://localhost:27017/delicious"

    JWT_SECRET_KEY: str = Field(..., description="JWT 토큰 서명에 사용되는 비밀키. 반드시 강력한 랜덤 문자열로 설정하세요.")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    CORS_ALLOW_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    SMTP_HOST: str = "smtp.mailtrap.io"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "Delicious <noreply@example.com>"
    SMTP_TLS: bool = True
    # 메일 발송 재시도 횟수 (1이면 재시도 없음)
    MAIL_SEND_ATTEMPTS: int = 3

    # 업로드된 사진이 저장되는 디렉토리와 공개 경로
    UPLOAD_DIR: str = str(PROJECT_ROOT / "public" / "uploads")
    UPLOAD_URL_PATH: str = "/uploads"
    PHOTO_MAX_WIDTH: int = 800
    # 디코딩 전에 거부할 최대 픽셀 수 (가로 x 세로)
    PHOTO_MAX_PIXELS: int = 40_000_000

    STORES_PAGE_SIZE: int = 4
    TOP_STORES_LIMIT: int = 10
    NEAR_MAX_DISTANCE_METERS: int = 10000
    NEAR_LIMIT: int = 10
    # slug unique 인덱스 충돌 시 최대 시도 횟수
    SLUG_MAX_ATTEMPTS: int = 5

    RESET_TOKEN_TTL_MINUTES: int = 60
    # False로 두면 "등록되지 않은 이메일"과 "메일 발송 완료" 메시지가 동일해집니다.
    RESET_REVEAL_UNKNOWN_EMAIL: bool = True

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH) if ENV_FILE_PATH.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
