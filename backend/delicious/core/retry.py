# 재시도 로직 유틸리티
# - SMTP 발송처럼 일시적으로 실패할 수 있는 외부 호출용 데코레이터
# - slug unique 인덱스 충돌(DuplicateKeyError) 시 저장 재시도

from tenacity import (
    AsyncRetrying,
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
    after_log,
)
import logging
from typing import Type, Tuple

from pymongo.errors import DuplicateKeyError

# 로거 설정
logger = logging.getLogger(__name__)


def create_retry_decorator(
    max_attempts: int = 3,
    initial_wait: float = 1.0,
    max_wait: float = 10.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,)
):
    """
    외부 호출용 재시도 데코레이터를 생성하는 팩토리 함수입니다.

    1. max_attempts: 최대 시도 횟수 (3이면 처음 1번 + 재시도 2번)
    2. initial_wait / max_wait: 지수 백오프 대기 시간 범위 (초)
    3. exceptions: 재시도할 예외 타입

    모든 시도가 실패하면 마지막 예외가 그대로 다시 발생합니다 (reraise=True).

    사용 예시:
        @create_retry_decorator(max_attempts=3, exceptions=(smtplib.SMTPException,))
        def deliver(message):
            ...
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=2,
            min=initial_wait,
            max=max_wait
        ),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.ERROR),
        reraise=True,
    )


def slug_retrying(max_attempts: int) -> AsyncRetrying:
    """slug 충돌 재시도 루프

    대기 없이 바로 재시도합니다. 경쟁하던 문서가 이미 저장되었으므로
    다음 시도에서는 다른 접미사가 계산됩니다.

    사용 예시:
        async for attempt in slug_retrying(5):
            with attempt:
                bump = attempt.retry_state.attempt_number - 1
                ...
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        retry=retry_if_exception_type(DuplicateKeyError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
