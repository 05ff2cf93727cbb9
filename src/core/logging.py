"""
Run logging: generation report, item results, warnings

규칙:
- 모든 컨텍스트는 성공/실패 결과를 남김 (조용한 skip 금지)
- 경고 필수 컨텍스트: code, field, message
- 실행 요약은 logger.info로 남김
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

from src.core.ids import generate_run_id
from src.domain.errors import PipelineError, RenderError
from src.domain.schemas import Artifact, GenerationReport, ItemResult, WarningLog

logger = logging.getLogger(__name__)

# =============================================================================
# Report Management
# =============================================================================


def create_generation_report(run_id: str | None = None) -> GenerationReport:
    """
    새 GenerationReport 생성.

    Args:
        run_id: 지정하지 않으면 새로 발급

    Returns:
        초기화된 GenerationReport
    """
    now = datetime.now(UTC).isoformat()

    return GenerationReport(
        run_id=run_id or generate_run_id(),
        started_at=now,
        result="pending",
    )


def record_success(report: GenerationReport, index: int, artifact: Artifact) -> ItemResult:
    """성공 건 기록."""
    item = ItemResult(index=index, success=True, artifact=artifact)
    report.items.append(item)
    return item


def record_failure(report: GenerationReport, index: int, error: Exception) -> ItemResult:
    """
    실패 건 기록.

    RenderError면 code/kind를 그대로, 그 외 예외는 RENDER_FAILED로 기록.

    Args:
        report: GenerationReport 인스턴스
        index: 0-based 입력 순서
        error: 발생한 예외
    """
    if isinstance(error, PipelineError):
        code = error.code
    else:
        code = "RENDER_FAILED"
    kind = error.kind if isinstance(error, RenderError) else None

    item = ItemResult(
        index=index,
        success=False,
        error_code=code,
        error_kind=kind,
        message=str(error),
    )
    report.items.append(item)

    logger.warning(f"[{report.run_id}] item #{index + 1} failed: {error}")
    return item


def emit_warning(
    report: GenerationReport,
    code: str,
    field: str,
    message: str,
    group_key: str | None = None,
    original_value: str | None = None,
    resolved_value: str | None = None,
) -> None:
    """
    경고 이벤트 기록.

    Args:
        report: GenerationReport 인스턴스
        code: 경고 코드
        field: 필드 이름
        message: 경고 메시지
        group_key: 그룹 키 (그룹 충돌 시)
        original_value: 무시된 값
        resolved_value: 채택된 값
    """
    warning = WarningLog(
        level="warning",
        code=code,
        field=field,
        group_key=group_key,
        original_value=original_value,
        resolved_value=resolved_value,
        message=message,
    )
    report.warnings.append(warning)
    logger.warning(f"[{report.run_id}] {code}: {message}")


def complete_generation_report(report: GenerationReport) -> GenerationReport:
    """
    GenerationReport 완료 처리.

    result:
    - success: 전 건 성공 (0건 포함)
    - partial: 일부 실패
    - failed: 전 건 실패
    """
    report.finished_at = datetime.now(UTC).isoformat()

    if report.failed == 0:
        report.result = "success"
    elif report.succeeded == 0:
        report.result = "failed"
    else:
        report.result = "partial"

    logger.info(
        f"[{report.run_id}] generation {report.result}: "
        f"{report.succeeded} succeeded, {report.failed} failed"
    )
    return report


def report_summary_headers(report: GenerationReport) -> dict[str, str]:
    """다운로드 응답 헤더용 요약."""
    return {
        "X-Run-Id": report.run_id,
        "X-Generated-Count": str(report.succeeded),
        "X-Failed-Count": str(report.failed),
    }


def dump_report(report: GenerationReport) -> str:
    """리포트 JSON 문자열 (CLI 출력용)."""
    data: dict[str, Any] = report.to_dict()
    return json.dumps(data, ensure_ascii=False, indent=2)
