# slug 생성기
# - 가게 이름 → 소문자, 하이픈으로 연결된 URL-safe 문자열
# - 같은 base를 쓰는 slug가 이미 있으면 "base-N" (N = 일치 개수 + 1)
# - 동시성에 약한 count 방식이므로 최종 판단은 unique 인덱스가 합니다 (StoreRepository 참고)

import re
import unicodedata
from typing import Awaitable, Callable

# 이름이 전부 구두점/비라틴 문자여서 아무것도 남지 않을 때 쓰는 기본값
FALLBACK_SLUG = "store"

SlugCounter = Callable[[str], Awaitable[int]]


def slugify(name: str) -> str:
    normalized = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    normalized = re.sub(r"['’]", "", normalized)
    slug = re.sub(r"[^A-Za-z0-9]+", "-", normalized).strip("-").lower()
    return slug or FALLBACK_SLUG


def slug_pattern(base: str) -> str:
    """base 자체 또는 base-숫자 와 일치하는 정규식 (대소문자 무시로 사용)"""
    return rf"^({re.escape(base)})(-[0-9]+)?$"


async def generate_slug(name: str, existing_slug_checker: SlugCounter, bump: int = 0) -> str:
    """
    이름으로부터 slug를 만듭니다.

    Args:
        name: 가게 이름
        existing_slug_checker: 정규식을 받아 일치하는 slug 개수를 돌려주는 async 함수
        bump: unique 인덱스 충돌 후 재시도할 때 접미사에 더할 값 (첫 시도는 0)
    """
    base = slugify(name)
    count = await existing_slug_checker(slug_pattern(base))
    if count == 0 and bump == 0:
        return base
    return f"{base}-{count + 1 + bump}"
