# FastAPI 진입점
# - Beanie ODM 초기화 (MongoDB)
# - 라우터 라우팅
# - CORS 설정, 업로드 사진 정적 서빙
# - 예외 → {status, message} 응답 변환

import logging
from datetime import datetime
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from pymongo.errors import PyMongoError
from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie

from .core.config import settings
from .core.exceptions import DeliciousError
from .models.user import User
from .models.store import Store
from .models.review import Review
from .api.v1.accounts import router as accounts_router
from .api.v1.stores import router as stores_router
from .api.v1.search import router as api_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# FastAPI 애플리케이션 인스턴스 생성
app = FastAPI(
    title="Delicious API",
    description="동네 가게 검색/리뷰 서비스",
    version="1.0.0"
)

# CORS 허용 도메인 세팅
origins = [o.strip() for o in settings.CORS_ALLOW_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Beanie 초기화 (앱 시작 시 1회)
# 인덱스(slug unique, text, 2dsphere)도 이 시점에 생성됩니다.
@app.on_event("startup")
async def app_init():
    client = AsyncIOMotorClient(settings.MONGODB_URI, serverSelectionTimeoutMS=5000)
    await client.admin.command('ping')
    db = client.get_default_database()
    await init_beanie(database=db, document_models=[User, Store, Review])
    logger.info(f"MongoDB 연결 성공: {settings.MONGODB_URI}")


# ---- 예외 핸들러 ----

def envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": status_code, "message": message})

@app.exception_handler(DeliciousError)
async def delicious_error_handler(request: Request, exc: DeliciousError):
    log = logger.error if exc.status_code >= 500 else logger.info
    log(f"{request.method} {request.url.path} → {exc.status_code} {type(exc).__name__}: {exc.message} {exc.context}")
    return envelope(exc.status_code, exc.message)

# 저장소에서 변환되지 않은 읽기 경로의 DB 오류 (연결 실패, 잘못된 쿼리 등)
@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.error(f"{request.method} {request.url.path} → 502 {type(exc).__name__}: {exc}")
    return envelope(502, "[mongodb] The database is unavailable. Please try again later.")

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    response = envelope(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid request")
    return envelope(400, f"{field}: {message}" if field else message)


# 간단한 헬스체크
@app.get("/health")
async def health_check():
    return {"status": "ok", "app": settings.APP_NAME, "version": "1.0.0", "time": datetime.utcnow().isoformat()}

# 라우터 등록 (화면 라우트는 루트, JSON API는 /api/v1)
app.include_router(accounts_router)
app.include_router(stores_router)
app.include_router(api_router, prefix="/api/v1")

# 업로드된 사진 서빙
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount(settings.UPLOAD_URL_PATH, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")
