"""
PipelineError → HTTPException 변환.

- 입력 문제 (템플릿/데이터/전송 지시) → 400
- 전 건 렌더 실패 → 422
- 전송 설정 누락 → 500
- 스토리지/메일 전송 실패 → 502
"""

import logging

from fastapi import HTTPException

from src.domain.errors import (
    BatchRenderError,
    DeliveryConfigError,
    DeliveryTransportError,
    InvalidDataset,
    InvalidDirective,
    InvalidTemplate,
    PipelineError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: list[tuple[type[PipelineError], int]] = [
    (InvalidTemplate, 400),
    (InvalidDataset, 400),
    (InvalidDirective, 400),
    (BatchRenderError, 422),
    (DeliveryConfigError, 500),
    (DeliveryTransportError, 502),
]


def http_error(error: PipelineError) -> HTTPException:
    """에러 종류에 맞는 상태 코드의 HTTPException (detail = error.to_dict())."""
    status_code = 500
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            status_code = status
            break

    if status_code >= 500:
        logger.error(f"Request failed: {error}")
    else:
        logger.info(f"Request rejected: {error}")

    return HTTPException(status_code=status_code, detail=error.to_dict())
