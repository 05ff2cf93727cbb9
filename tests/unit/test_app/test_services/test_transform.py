"""
test_transform.py - DataTransformer 테스트

테스트 대상:
- map_row: 매핑된 필드만, 없는 헤더는 빈 문자열
- suggest_mapping: 대소문자 무시 자동 매핑
- group_rows: 첫 등장 순서, 그룹 내 순서, 루트 = 첫 행
- find_group_conflicts: 그룹 레벨 값 충돌 경고
- DataTransformer.build_contexts
"""

import pytest

from src.app.services.transform import (
    GROUP_FIELD_CONFLICT,
    DataTransformer,
    find_group_conflicts,
    group_rows,
    map_row,
    map_rows,
    suggest_mapping,
)
from src.core.logging import create_generation_report
from src.domain.errors import ErrorCodes, InvalidDataset
from src.domain.schemas import GroupSpec

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def order_rows() -> list[dict[str, str]]:
    """주문 번호 기준으로 묶을 행."""
    return [
        {"order_id": "1", "customer": "Ada", "item": "Pen"},
        {"order_id": "2", "customer": "Grace", "item": "Ink"},
        {"order_id": "1", "customer": "Ada", "item": "Pad"},
    ]


@pytest.fixture
def order_mapping() -> dict[str, str]:
    return {"customer": "customer", "label": "item"}


# =============================================================================
# map_row 테스트
# =============================================================================


class TestMapRow:
    """map_row 함수 테스트."""

    def test_mapped_fields_only(self):
        """매핑에 있는 필드만 출력."""
        context = map_row({"Full Name": "Ada", "Email": "a@x"}, {"name": "Full Name"})

        assert context == {"name": "Ada"}

    def test_missing_header_gives_empty_string(self):
        """매핑된 헤더가 행에 없음 → 빈 문자열 (에러 아님)."""
        context = map_row({"A": "1"}, {"x": "A", "y": "B"})

        assert context == {"x": "1", "y": ""}

    def test_none_value_gives_empty_string(self):
        """None 값 → 빈 문자열."""
        assert map_row({"A": None}, {"x": "A"}) == {"x": ""}

    def test_two_fields_same_header(self):
        """여러 필드가 같은 헤더를 가리킬 수 있음."""
        context = map_row({"Name": "Ada"}, {"name": "Name", "signature": "Name"})

        assert context == {"name": "Ada", "signature": "Ada"}

    def test_empty_mapping(self):
        """빈 매핑 → 빈 컨텍스트."""
        assert map_row({"A": "1"}, {}) == {}

    def test_map_rows_keeps_order(self):
        """행 순서 유지."""
        rows = [{"n": "a"}, {"n": "b"}, {"n": "c"}]

        assert [c["x"] for c in map_rows(rows, {"x": "n"})] == ["a", "b", "c"]


class TestSuggestMapping:
    """suggest_mapping 함수 테스트."""

    def test_case_insensitive(self):
        """대소문자 무시 매칭."""
        mapping = suggest_mapping(["name", "course"], ["Name", "COURSE", "Email"])

        assert mapping == {"name": "Name", "course": "COURSE"}

    def test_unmatched_field_omitted(self):
        """매칭 없는 필드는 제외."""
        assert suggest_mapping(["name", "date"], ["name"]) == {"name": "name"}

    def test_first_header_wins(self):
        """같은 이름 헤더가 여럿이면 첫 번째."""
        assert suggest_mapping(["name"], ["NAME", "name"]) == {"name": "NAME"}


# =============================================================================
# 그룹핑 테스트
# =============================================================================


class TestGroupRows:
    """group_rows 함수 테스트."""

    def test_groups_in_first_appearance_order(self, order_rows, order_mapping):
        """그룹 키 첫 등장 순서 + 그룹 내 행 순서."""
        mapped = map_rows(order_rows, order_mapping)

        contexts = group_rows(order_rows, mapped, GroupSpec("order_id"), ["items"])

        assert len(contexts) == 2
        assert contexts[0]["customer"] == "Ada"
        assert [i["label"] for i in contexts[0]["items"]] == ["Pen", "Pad"]
        assert [i["label"] for i in contexts[1]["items"]] == ["Ink"]

    def test_root_is_copy_of_first_member(self, order_rows, order_mapping):
        """루트 = 첫 행 복사 (멤버 자체를 바꾸지 않음)."""
        mapped = map_rows(order_rows, order_mapping)

        contexts = group_rows(order_rows, mapped, GroupSpec("order_id"), ["items"])

        assert contexts[0]["label"] == "Pen"
        assert "items" not in contexts[0]["items"][0]

    def test_every_loop_receives_members(self, order_rows, order_mapping):
        """반복 그룹이 여럿이면 모두 같은 멤버 목록."""
        mapped = map_rows(order_rows, order_mapping)

        contexts = group_rows(order_rows, mapped, GroupSpec("order_id"), ["items", "summary"])

        assert contexts[0]["items"] == contexts[0]["summary"]

    def test_missing_group_value_groups_together(self):
        """group_by 값이 없는 행끼리 한 그룹."""
        rows = [{"k": "", "v": "a"}, {"v": "b"}, {"k": "x", "v": "c"}]
        mapped = map_rows(rows, {"v": "v"})

        contexts = group_rows(rows, mapped, GroupSpec("k"), ["items"])

        assert [len(c["items"]) for c in contexts] == [2, 1]


class TestFindGroupConflicts:
    """find_group_conflicts 함수 테스트."""

    def test_conflict_reported(self):
        """그룹 안에서 값이 다르면 경고 1건 (첫 값 사용)."""
        rows = [
            {"order_id": "1", "customer": "Ada"},
            {"order_id": "1", "customer": "Ada L."},
        ]
        mapped = map_rows(rows, {"customer": "customer"})

        conflicts = find_group_conflicts(rows, mapped, GroupSpec("order_id"), ["items"])

        assert len(conflicts) == 1
        assert conflicts[0].code == GROUP_FIELD_CONFLICT
        assert conflicts[0].field == "customer"
        assert conflicts[0].resolved_value == "Ada"
        assert conflicts[0].original_value == "Ada L."

    def test_no_conflict(self, order_rows):
        """그룹 레벨 값이 같으면 경고 없음."""
        mapped = map_rows(order_rows, {"customer": "customer"})

        assert find_group_conflicts(order_rows, mapped, GroupSpec("order_id")) == []


# =============================================================================
# DataTransformer 테스트
# =============================================================================


class TestDataTransformer:
    """DataTransformer.build_contexts 테스트."""

    def test_one_context_per_row_without_grouping(self, certificate_rows):
        """그룹핑 없음 → 행마다 컨텍스트 1개."""
        transformer = DataTransformer({"name": "Name", "course": "Course"})

        contexts = transformer.build_contexts(certificate_rows)

        assert contexts == [
            {"name": "Ada", "course": "Math"},
            {"name": "Grace", "course": "Compilers"},
            {"name": "Linus", "course": "Kernels"},
        ]

    def test_empty_mapping_uses_rows_as_is(self):
        """매핑이 비어 있으면 행 그대로."""
        rows = [{"name": "Ada", "items": [{"x": "1"}]}]

        contexts = DataTransformer().build_contexts(rows)

        assert contexts == rows
        assert contexts[0] is not rows[0]

    def test_group_spec_without_loops_is_ignored(self, order_rows, order_mapping):
        """템플릿에 반복 그룹이 없으면 그룹핑하지 않음."""
        transformer = DataTransformer(order_mapping, GroupSpec("order_id"), loop_names=())

        contexts = transformer.build_contexts(order_rows)

        assert len(contexts) == 3
        assert transformer.grouping_enabled is False

    def test_grouping(self, order_rows, order_mapping):
        """그룹 기준 + 반복 그룹 → 그룹당 컨텍스트 1개."""
        transformer = DataTransformer(order_mapping, GroupSpec("order_id"), ["items"])

        contexts = transformer.build_contexts(order_rows, headers=["order_id", "customer", "item"])

        assert len(contexts) == 2
        assert len(contexts[0]["items"]) == 2

    def test_conflicts_recorded_as_warnings(self):
        """충돌 경고가 리포트에 기록됨."""
        rows = [
            {"order_id": "1", "customer": "Ada", "item": "Pen"},
            {"order_id": "1", "customer": "Grace", "item": "Pad"},
        ]
        report = create_generation_report()
        transformer = DataTransformer(
            {"customer": "customer", "label": "item"}, GroupSpec("order_id"), ["items"]
        )

        transformer.build_contexts(rows, report=report)

        codes = [w.code for w in report.warnings]
        fields = [w.field for w in report.warnings]
        assert codes.count(GROUP_FIELD_CONFLICT) == 2
        assert set(fields) == {"customer", "label"}

    def test_no_rows(self):
        """행 없음 → DATASET_EMPTY."""
        with pytest.raises(InvalidDataset) as exc_info:
            DataTransformer({"x": "A"}).build_contexts([])

        assert exc_info.value.code == ErrorCodes.DATASET_EMPTY

    def test_unknown_group_by(self, order_rows, order_mapping):
        """데이터에 없는 group_by → GROUP_BY_UNKNOWN."""
        transformer = DataTransformer(order_mapping, GroupSpec("invoice"), ["items"])

        with pytest.raises(InvalidDataset) as exc_info:
            transformer.build_contexts(order_rows, headers=["order_id", "customer", "item"])

        assert exc_info.value.code == ErrorCodes.GROUP_BY_UNKNOWN
