"""
ID/이름 생성: run_id, object key, 출력 파일명

규칙:
- run_id는 매 생성 실행마다 새로 발급
- object key는 업로드마다 고유 (덮어쓰기 금지)
- 출력 파일명은 파일시스템 안전 문자만 사용
"""

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from src.domain.constants import (
    DEFAULT_NAME_FIELDS,
    DEFAULT_OBJECT_PREFIX,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_OUTPUT_PREFIX,
    OUTPUT_NAME_MAX_LENGTH,
    RUN_ID_PREFIX,
)


def generate_run_id() -> str:
    """
    Run ID 생성.

    고유성 보장: UUID v4
    포맷: RUN-{timestamp}-{uuid[:8]}

    Returns:
        run_id 문자열
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]

    return f"{RUN_ID_PREFIX}{timestamp}-{unique}"


def generate_object_key(prefix: str = DEFAULT_OBJECT_PREFIX, extension: str = "zip") -> str:
    """
    스토리지 object key 생성.

    포맷: {prefix}{YYYYMMDD}/{uuid}.{extension}

    Args:
        prefix: key 접두어 (예: "certificates/")
        extension: 확장자 (점 제외)

    Returns:
        object key 문자열
    """
    day = datetime.now(UTC).strftime("%Y%m%d")
    return f"{prefix}{day}/{uuid.uuid4().hex}.{extension}"


def sanitize_filename(value: Any) -> str | None:
    """
    파일명에 사용할 수 있도록 문자열 정리.

    - 문자/숫자/하이픈/밑줄 유지 (한글 포함)
    - 그 외 문자 → 밑줄
    - 최대 OUTPUT_NAME_MAX_LENGTH자

    Returns:
        정리된 이름, 쓸 수 있는 문자가 없으면 None
    """
    if value is None:
        return None

    text = str(value).strip()
    sanitized = "".join(c if c.isalnum() or c in "-_" else "_" for c in text)

    if not sanitized.strip("_"):
        return None
    return sanitized[:OUTPUT_NAME_MAX_LENGTH]


def build_output_name(
    context: dict[str, Any],
    index: int,
    name_fields: Sequence[str] = DEFAULT_NAME_FIELDS,
    prefix: str = DEFAULT_OUTPUT_PREFIX,
    extension: str = DEFAULT_OUTPUT_FORMAT,
) -> str:
    """
    컨텍스트에서 출력 파일명 결정.

    name_fields 순서대로 첫 번째 유효 값을 사용, 없으면 1-based 순번.

    Args:
        context: 렌더 컨텍스트
        index: 0-based 입력 순서
        name_fields: 이름 후보 필드 (예: ("full_name", "name"))
        prefix: 순번 fallback 접두어
        extension: 확장자 (점 제외)

    Returns:
        파일명 (예: "Ada_Lovelace.pdf", "certificate_3.pdf")
    """
    for key in name_fields:
        candidate = context.get(key)
        if isinstance(candidate, (list, dict)):
            continue
        stem = sanitize_filename(candidate)
        if stem:
            return f"{stem}.{extension}"

    return f"{prefix}_{index + 1}.{extension}"
