# 업로드 사진 저장소 (로컬 디렉토리)
# - write(filename, bytes): 비동기 파일 쓰기 (aiofiles)
# - 저장된 파일은 main.py에서 UPLOAD_URL_PATH 경로로 정적 서빙

import logging
import os
from pathlib import Path
from typing import Optional

import aiofiles

from ..core.config import settings
from ..core.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)


class LocalAssetStore:
    def __init__(self, root: Optional[str] = None, url_path: Optional[str] = None):
        self.root = Path(root or settings.UPLOAD_DIR).resolve()
        self.url_path = (url_path or settings.UPLOAD_URL_PATH).rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, filename: str) -> Path:
        # 파일명은 PhotoService가 만든 uuid 이름만 허용 (디렉토리 구분자 금지)
        if not filename or Path(filename).name != filename:
            raise ValueError(f"invalid asset filename: {filename!r}")
        return self.root / filename

    def public_url(self, filename: str) -> str:
        return f"{self.url_path}/{filename}"

    async def write(self, filename: str, data: bytes) -> Path:
        path = self.path_for(filename)
        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error(f"[assets] 파일 저장 실패: {path} ({e})")
            raise UpstreamFailure("assets", "Failed to save uploaded photo.", {"path": str(path)}) from e
        logger.info(f"[assets] 파일 저장: {filename} ({len(data)} bytes)")
        return path

    async def delete(self, filename: str) -> None:
        # 저장 실패 후 정리용. 이미 없는 파일은 무시
        path = self.path_for(filename)
        try:
            os.remove(path)
            logger.info(f"[assets] 파일 삭제: {filename}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"[assets] 파일 삭제 실패: {path} ({e})")


def get_asset_store() -> LocalAssetStore:
    return LocalAssetStore()
