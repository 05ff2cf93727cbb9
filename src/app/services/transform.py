"""
DataTransformer: 표 데이터 행 → 렌더 컨텍스트.

규칙:
- map_row: 매핑된 필드만 출력, 헤더 값이 없으면 빈 문자열 (에러 아님)
- 매핑에 없는 필드는 컨텍스트에서 생략 (렌더 시 엔진이 빈 문자열 처리)
- 그룹핑: 그룹 키 첫 등장 순서, 그룹 내 행 순서 유지
- 그룹 루트 = 그룹 첫 행의 얕은 복사 ("first wins"), 값이 다르면 경고만
"""

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from src.core.logging import emit_warning
from src.domain.errors import ErrorCodes, InvalidDataset
from src.domain.schemas import GenerationReport, GroupSpec, RenderContext, WarningLog

logger = logging.getLogger(__name__)

GROUP_FIELD_CONFLICT = "GROUP_FIELD_CONFLICT"


# =============================================================================
# Mapping
# =============================================================================


def map_row(row: Mapping[str, Any], mapping: Mapping[str, str]) -> RenderContext:
    """
    행 1개를 매핑에 따라 컨텍스트로 변환.

    Args:
        row: 헤더 → 값
        mapping: 필드 → 헤더 (여러 필드가 같은 헤더를 가리킬 수 있음)

    Returns:
        {필드: 값} (매핑된 필드만)
    """
    context: RenderContext = {}
    for field_name, header in mapping.items():
        value = row.get(header)
        context[field_name] = "" if value is None else value
    return context


def map_rows(rows: Sequence[Mapping[str, Any]], mapping: Mapping[str, str]) -> list[RenderContext]:
    """행 목록 변환 (순서 유지)."""
    return [map_row(row, mapping) for row in rows]


def suggest_mapping(fields: Sequence[str], headers: Sequence[str]) -> dict[str, str]:
    """
    자동 매핑 제안: 대소문자 무시하고 이름이 같은 헤더.

    같은 이름의 헤더가 여럿이면 첫 번째 헤더.
    """
    by_lower: dict[str, str] = {}
    for header in headers:
        by_lower.setdefault(header.lower(), header)

    return {
        field_name: by_lower[field_name.lower()]
        for field_name in fields
        if field_name.lower() in by_lower
    }


# =============================================================================
# Grouping
# =============================================================================


def _group_key(value: Any) -> Any:
    """그룹 키 (dict/list 값은 JSON 문자열로)."""
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, ensure_ascii=False)
    return value


def _partition(
    rows: Sequence[Mapping[str, Any]],
    mapped_rows: Sequence[RenderContext],
    group_by: str,
) -> dict[Any, list[RenderContext]]:
    """원본 행의 group_by 값으로 mapped_rows 분할 (dict 삽입 순서 = 첫 등장 순서)."""
    if len(rows) != len(mapped_rows):
        raise ValueError(
            f"rows and mapped_rows differ in length: {len(rows)} != {len(mapped_rows)}"
        )

    groups: dict[Any, list[RenderContext]] = {}
    for raw, mapped in zip(rows, mapped_rows, strict=True):
        groups.setdefault(_group_key(raw.get(group_by)), []).append(mapped)
    return groups


def group_rows(
    rows: Sequence[Mapping[str, Any]],
    mapped_rows: Sequence[RenderContext],
    group_spec: GroupSpec,
    loop_names: Sequence[str],
) -> list[RenderContext]:
    """
    행을 그룹으로 묶어 그룹당 컨텍스트 1개 생성.

    Args:
        rows: 원본 행 (그룹 키 조회용)
        mapped_rows: map_row 결과 (rows와 같은 순서/길이)
        group_spec: 그룹 기준 헤더
        loop_names: 템플릿의 반복 그룹 이름

    Returns:
        그룹별 루트 컨텍스트. 각 loop 이름에 그룹 멤버 목록이 들어간다.
    """
    contexts: list[RenderContext] = []
    for members in _partition(rows, mapped_rows, group_spec.group_by).values():
        root = dict(members[0])
        for name in loop_names:
            root[name] = list(members)
        contexts.append(root)

    logger.info(
        f"Grouped {len(rows)} rows by '{group_spec.group_by}' into {len(contexts)} contexts"
    )
    return contexts


def find_group_conflicts(
    rows: Sequence[Mapping[str, Any]],
    mapped_rows: Sequence[RenderContext],
    group_spec: GroupSpec,
    loop_names: Sequence[str] = (),
) -> list[WarningLog]:
    """
    그룹 안에서 값이 다른 그룹 레벨 필드 찾기.

    루트에는 첫 행 값이 쓰이므로 나머지 값은 루프 밖에서 보이지 않는다.
    """
    loops = set(loop_names)
    conflicts: list[WarningLog] = []

    for key, members in _partition(rows, mapped_rows, group_spec.group_by).items():
        first = members[0]
        for field_name, resolved in first.items():
            if field_name in loops:
                continue
            for member in members[1:]:
                other = member.get(field_name, "")
                if other != resolved:
                    conflicts.append(
                        WarningLog(
                            code=GROUP_FIELD_CONFLICT,
                            field=field_name,
                            group_key=str(key),
                            original_value=str(other),
                            resolved_value=str(resolved),
                            message=(
                                f"group '{key}': field '{field_name}' differs across rows; "
                                f"using first row value"
                            ),
                        )
                    )
                    break
    return conflicts


# =============================================================================
# Transformer
# =============================================================================


class DataTransformer:
    """
    레코드 → 렌더 컨텍스트 목록.

    Usage:
        transformer = DataTransformer(mapping, group_spec, loop_names)
        contexts = transformer.build_contexts(dataset.rows, headers=dataset.headers)
    """

    def __init__(
        self,
        mapping: Mapping[str, str] | None = None,
        group_spec: GroupSpec | None = None,
        loop_names: Sequence[str] = (),
    ) -> None:
        self.mapping = dict(mapping or {})
        self.group_spec = group_spec
        self.loop_names = tuple(loop_names)

    @property
    def grouping_enabled(self) -> bool:
        return self.group_spec is not None and bool(self.loop_names)

    def build_contexts(
        self,
        rows: Sequence[Mapping[str, Any]],
        headers: Sequence[str] | None = None,
        report: GenerationReport | None = None,
    ) -> list[RenderContext]:
        """
        컨텍스트 목록 생성.

        - 매핑이 비어 있으면 행을 그대로 컨텍스트로 사용 (상류에서 이미 변환됨)
        - 그룹핑은 group_spec과 loop 이름이 모두 있을 때만

        Raises:
            InvalidDataset: 행 없음, group_by 헤더가 데이터에 없음
        """
        if not rows:
            raise InvalidDataset(ErrorCodes.DATASET_EMPTY)

        if self.mapping:
            mapped = map_rows(rows, self.mapping)
        else:
            mapped = [dict(row) for row in rows]

        group_spec = self.group_spec
        if group_spec is None or not self.loop_names:
            return mapped

        group_by = group_spec.group_by
        known = headers if headers is not None else {k for row in rows for k in row}
        if group_by not in known:
            raise InvalidDataset(
                ErrorCodes.GROUP_BY_UNKNOWN,
                group_by=group_by,
                headers=sorted(known),
            )

        if report is not None:
            for conflict in find_group_conflicts(rows, mapped, group_spec, self.loop_names):
                emit_warning(
                    report,
                    code=conflict.code,
                    field=conflict.field,
                    message=conflict.message,
                    group_key=conflict.group_key,
                    original_value=conflict.original_value,
                    resolved_value=conflict.resolved_value,
                )

        return group_rows(rows, mapped, group_spec, self.loop_names)
