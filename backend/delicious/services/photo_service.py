# 사진 업로드 파이프라인
# - content-type이 image/ 로 시작하지 않으면 거부
# - 확장자는 선언된 mime 타입에서 결정 (클라이언트 파일명은 믿지 않음)
# - uuid 파일명으로 저장, 최대 가로 800px로 축소 (비율 유지, 확대 없음)

import io
import logging
import uuid
from typing import Optional, Tuple

from fastapi import Depends, UploadFile
from PIL import Image, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from ..core.config import settings
from ..core.exceptions import UnsupportedMediaType
from .storage_service import LocalAssetStore, get_asset_store

logger = logging.getLogger(__name__)

# mime 하위 타입 → Pillow 저장 포맷
PIL_FORMATS = {
    "jpeg": "JPEG",
    "jpg": "JPEG",
    "pjpeg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
    "webp": "WEBP",
    "bmp": "BMP",
    "tiff": "TIFF",
}


def extension_for(content_type: str) -> str:
    # "image/svg+xml" → "svg", "image/jpeg" → "jpeg"
    subtype = content_type.split(";")[0].strip().split("/", 1)[1]
    return subtype.split("+")[0].lower()


def target_size(width: int, height: int, max_width: int) -> Tuple[int, int]:
    if width <= max_width:
        return width, height
    return max_width, max(1, round(height * max_width / width))


def resize_image(data: bytes, extension: str, max_width: int, max_pixels: Optional[int] = None) -> bytes:
    """이미지를 디코딩해서 가로 max_width 이하로 줄이고 다시 인코딩합니다.

    헤더에 선언된 크기가 max_pixels 를 넘으면 픽셀을 읽기 전에 거부합니다.
    """
    try:
        image = Image.open(io.BytesIO(data))
        if max_pixels and image.width * image.height > max_pixels:
            raise UnsupportedMediaType(f"image/{extension}", "Uploaded image is too large.")
        image.load()
    except Image.DecompressionBombError as e:
        raise UnsupportedMediaType(f"image/{extension}", "Uploaded image is too large.") from e
    except (UnidentifiedImageError, OSError) as e:
        raise UnsupportedMediaType(f"image/{extension}", "Uploaded file could not be read as an image.") from e

    fmt = PIL_FORMATS.get(extension) or image.format
    if fmt is None:
        raise UnsupportedMediaType(f"image/{extension}")

    size = target_size(image.width, image.height, max_width)
    if size != image.size:
        image = image.resize(size, Image.LANCZOS)
    if fmt == "JPEG" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")

    out = io.BytesIO()
    image.save(out, format=fmt)
    return out.getvalue()


class PhotoService:
    def __init__(self, assets: LocalAssetStore, max_width: Optional[int] = None, max_pixels: Optional[int] = None):
        self.assets = assets
        self.max_width = max_width or settings.PHOTO_MAX_WIDTH
        self.max_pixels = max_pixels or settings.PHOTO_MAX_PIXELS

    async def ingest(self, upload: Optional[UploadFile]) -> Optional[str]:
        """업로드 파일을 처리하고 저장된 파일명을 돌려줍니다. 파일이 없으면 None."""
        if upload is None or not upload.filename:
            return None
        data = await upload.read()
        if not data:
            return None
        return await self.ingest_bytes(upload.content_type, data)

    async def ingest_bytes(self, content_type: Optional[str], data: bytes) -> str:
        if not content_type or not content_type.startswith("image/"):
            raise UnsupportedMediaType(content_type)

        extension = extension_for(content_type)
        filename = f"{uuid.uuid4()}.{extension}"
        resized = await run_in_threadpool(resize_image, data, extension, self.max_width, self.max_pixels)
        await self.assets.write(filename, resized)
        logger.info(f"[PhotoService] 사진 저장 완료: {filename} ({content_type})")
        return filename

    async def discard(self, filename: Optional[str]) -> None:
        if filename:
            await self.assets.delete(filename)


def get_photo_service(assets: LocalAssetStore = Depends(get_asset_store)) -> PhotoService:
    return PhotoService(assets)
