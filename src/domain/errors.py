"""
Error definitions for the generation pipeline.

규칙:
- 조용한 실패 금지 → PipelineError 하위 클래스로 명시적 실패
- 템플릿/데이터셋 에러 → 요청 전체 중단
- 건별 렌더 에러 → 해당 건만 실패 기록 (GenerationReport), 나머지는 계속
- 전송 설정 누락 → 업로드 시도 전에 실패
"""

from typing import Any


class PipelineError(Exception):
    """
    파이프라인 에러 기본 클래스.

    Usage:
        raise InvalidTemplate(ErrorCodes.TEMPLATE_UNREADABLE, error=str(e))
    """

    def __init__(self, code: str, **context: Any) -> None:
        self.code = code
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.code}] {ctx_str}" if ctx_str else f"[{self.code}]"

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": str(self),
            **self.context,
        }


class InvalidTemplate(PipelineError):
    """DOCX 컨테이너로 읽을 수 없는 템플릿."""


class InvalidDataset(PipelineError):
    """표 데이터 파싱/구조 에러."""


class RenderError(PipelineError):
    """
    건별 렌더 에러.

    kind:
    - binding: 컨텍스트와 템플릿 구조 불일치 (loop 형태, 짝이 맞지 않는 marker 등)
    - conversion_failed: 외부 변환기 비정상 종료, 타임아웃, 출력 파일 없음
    """

    BINDING = "binding"
    CONVERSION_FAILED = "conversion_failed"

    def __init__(self, code: str, kind: str, **context: Any) -> None:
        self.kind = kind
        super().__init__(code, **context)

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "kind": self.kind}


class BatchRenderError(PipelineError):
    """모든 컨텍스트 렌더 실패 (아카이브 없음). context['report']에 건별 결과."""


class InvalidDirective(PipelineError):
    """잘못된 전송 지시 (알 수 없는 방식, 이메일 주소 형식 오류)."""


class DeliveryConfigError(PipelineError):
    """이메일 전송에 필요한 자격증명/엔드포인트 누락."""


class DeliveryTransportError(PipelineError):
    """스토리지 업로드 또는 메일 발송 실패."""


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Template ===
    TEMPLATE_UNREADABLE = "TEMPLATE_UNREADABLE"
    TEMPLATE_EMPTY = "TEMPLATE_EMPTY"

    # === Dataset ===
    DATASET_UNREADABLE = "DATASET_UNREADABLE"
    DATASET_NO_HEADER = "DATASET_NO_HEADER"
    DATASET_DUPLICATE_HEADER = "DATASET_DUPLICATE_HEADER"
    DATASET_EMPTY = "DATASET_EMPTY"
    DATASET_INVALID_ROW = "DATASET_INVALID_ROW"
    DATASET_MISSING = "DATASET_MISSING"
    GROUP_BY_UNKNOWN = "GROUP_BY_UNKNOWN"

    # === Render ===
    RENDER_BINDING_FAILED = "RENDER_BINDING_FAILED"
    LOOP_UNBALANCED = "LOOP_UNBALANCED"
    LOOP_SHAPE_MISMATCH = "LOOP_SHAPE_MISMATCH"
    CONVERTER_NOT_FOUND = "CONVERTER_NOT_FOUND"
    CONVERSION_FAILED = "CONVERSION_FAILED"
    CONVERSION_TIMEOUT = "CONVERSION_TIMEOUT"
    CONVERSION_NO_OUTPUT = "CONVERSION_NO_OUTPUT"
    NOTHING_RENDERED = "NOTHING_RENDERED"

    # === Delivery ===
    INVALID_RECIPIENT = "INVALID_RECIPIENT"
    INVALID_DELIVERY_MODE = "INVALID_DELIVERY_MODE"
    DELIVERY_CONFIG_MISSING = "DELIVERY_CONFIG_MISSING"
    STORAGE_UPLOAD_FAILED = "STORAGE_UPLOAD_FAILED"
    PRESIGN_FAILED = "PRESIGN_FAILED"
    EMAIL_SEND_FAILED = "EMAIL_SEND_FAILED"
