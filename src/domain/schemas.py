"""
Data schemas for the generation pipeline.

규칙:
- 템플릿 분석 결과(fields/loops)는 생성 후 불변
- RenderContext는 dict (필드 → 문자열, loop 이름 → dict 리스트)
- 건별 결과는 ItemResult로 모두 기록 (조용한 skip 금지)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

# 출력 문서 1건에 바인딩되는 데이터 트리
RenderContext = dict[str, Any]


# =============================================================================
# Template / Dataset
# =============================================================================

@dataclass(frozen=True)
class TemplateAnalysis:
    """
    템플릿 정적 분석 결과.

    fields/loops는 문서 내 첫 등장 순서를 유지 (표시용).
    """
    fields: tuple[str, ...] = ()
    loops: tuple[str, ...] = ()

    @property
    def field_set(self) -> frozenset[str]:
        return frozenset(self.fields)

    @property
    def loop_set(self) -> frozenset[str]:
        return frozenset(self.loops)

    def to_dict(self) -> dict[str, Any]:
        """API 응답용 (placeholders / loops)."""
        return {
            "placeholders": list(self.fields),
            "loops": list(self.loops),
        }


@dataclass(frozen=True)
class DocumentTemplate:
    """업로드된 DOCX 템플릿 (원본 bytes + 분석 결과)."""
    content: bytes
    analysis: TemplateAnalysis

    @property
    def fields(self) -> tuple[str, ...]:
        return self.analysis.fields

    @property
    def loops(self) -> tuple[str, ...]:
        return self.analysis.loops


@dataclass
class Dataset:
    """
    표 데이터.

    headers: 헤더 행 (중복 없음, 파일 순서)
    rows: 헤더 → 값 dict (파일 순서)
    """
    headers: list[str]
    rows: list[dict[str, str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict[str, Any]:
        return {
            "headers": list(self.headers),
            "rows": [dict(r) for r in self.rows],
        }


@dataclass(frozen=True)
class GroupSpec:
    """그룹핑 설정. 존재하면 그룹핑 활성."""
    group_by: str


# =============================================================================
# Render Outputs
# =============================================================================

@dataclass(frozen=True)
class Artifact:
    """렌더+변환 완료된 출력 문서 1건."""
    name: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class ItemResult:
    """
    컨텍스트 1건의 처리 결과.

    성공 시 artifact 보유, 실패 시 error_code/kind/message 보유.
    """
    index: int  # 0-based 입력 순서
    success: bool
    artifact: Artifact | None = None
    error_code: str | None = None
    error_kind: str | None = None
    message: str | None = None

    @property
    def name(self) -> str | None:
        return self.artifact.name if self.artifact else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "success": self.success,
            "name": self.name,
            "error_code": self.error_code,
            "error_kind": self.error_kind,
            "message": self.message,
        }


# =============================================================================
# Logging Schemas
# =============================================================================

@dataclass
class WarningLog:
    """
    경고 로그.

    경고 필수 컨텍스트: code, field, message
    (그룹 충돌 시 group_key, original_value, resolved_value 포함)
    """
    level: str = "warning"
    code: str = ""
    field: str = ""
    group_key: str | None = None
    original_value: str | None = None
    resolved_value: str | None = None
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "field": self.field,
            "group_key": self.group_key,
            "original_value": self.original_value,
            "resolved_value": self.resolved_value,
            "message": self.message,
        }


@dataclass
class GenerationReport:
    """
    생성 실행 리포트 (건별 성공/실패 manifest).

    아카이브와 함께 호출자에게 반환되어 누락 건을 드러낸다.
    """
    run_id: str
    started_at: str  # ISO 8601
    finished_at: str | None = None
    result: str = "pending"  # pending, success, partial, failed

    items: list[ItemResult] = field(default_factory=list)
    warnings: list[WarningLog] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.success)

    @property
    def failed(self) -> int:
        return sum(1 for item in self.items if not item.success)

    @property
    def artifacts(self) -> list[Artifact]:
        """성공 건의 artifact (입력 순서 유지)."""
        return [item.artifact for item in self.items if item.artifact is not None]

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "total": len(self.items),
            "succeeded": self.succeeded,
            "failed": self.failed,
            "items": [i.to_dict() for i in self.items],
            "warnings": [w.to_dict() for w in self.warnings],
        }


# =============================================================================
# Delivery Schemas
# =============================================================================

class DeliveryMode(str, Enum):
    """전송 방식."""
    DOWNLOAD = "download"  # 응답 본문으로 ZIP 반환
    EMAIL = "email"        # 스토리지 업로드 + 링크 메일


@dataclass(frozen=True)
class DeliveryDirective:
    """전송 지시. EMAIL이면 recipient 필수."""
    mode: DeliveryMode
    recipient: str | None = None

    @classmethod
    def download(cls) -> "DeliveryDirective":
        return cls(DeliveryMode.DOWNLOAD)

    @classmethod
    def email(cls, recipient: str) -> "DeliveryDirective":
        return cls(DeliveryMode.EMAIL, recipient)


@dataclass(frozen=True)
class DeliveryResult:
    """
    전송 결과.

    download: content + filename + media_type
    email: url + expires_at (+ object_key)
    """
    mode: DeliveryMode
    content: bytes | None = None
    filename: str | None = None
    media_type: str | None = None
    url: str | None = None
    expires_at: datetime | None = None
    object_key: str | None = None
    recipient: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON 응답용 (content 제외)."""
        return {
            "mode": self.mode.value,
            "filename": self.filename,
            "url": self.url,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "recipient": self.recipient,
        }
