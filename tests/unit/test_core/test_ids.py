"""
test_ids.py - ID/파일명 생성 테스트

DoD:
- run_id 고유성: 매 호출 시 다른 값
- object key: 접두어 + 날짜 + uuid, 매번 새 key
- 출력 파일명: full_name > name > 순번, 파일명 안전 문자만
"""

import re

from src.core.ids import (
    build_output_name,
    generate_object_key,
    generate_run_id,
    sanitize_filename,
)

# =============================================================================
# generate_run_id / generate_object_key 테스트
# =============================================================================


class TestGenerateRunId:
    """generate_run_id 함수 테스트."""

    def test_format(self):
        """RUN-{timestamp}-{uuid8}."""
        assert re.fullmatch(r"RUN-\d{14}-[0-9a-f]{8}", generate_run_id())

    def test_unique(self):
        """매 호출 시 다른 값."""
        assert len({generate_run_id() for _ in range(50)}) == 50


class TestGenerateObjectKey:
    """generate_object_key 함수 테스트."""

    def test_format(self):
        """{prefix}{YYYYMMDD}/{uuid}.zip."""
        key = generate_object_key("certificates/")

        assert re.fullmatch(r"certificates/\d{8}/[0-9a-f]{32}\.zip", key)

    def test_never_reused(self):
        """업로드마다 새 key."""
        assert generate_object_key() != generate_object_key()


# =============================================================================
# 파일명 테스트
# =============================================================================


class TestSanitizeFilename:
    """sanitize_filename 함수 테스트."""

    def test_unsafe_chars_replaced(self):
        """경로/공백 문자 → 밑줄."""
        assert sanitize_filename("Ada Lovelace/../x") == "Ada_Lovelace____x"

    def test_unicode_letters_kept(self):
        """한글 유지."""
        assert sanitize_filename("홍길동") == "홍길동"

    def test_nothing_usable(self):
        """쓸 수 있는 문자가 없으면 None."""
        assert sanitize_filename("  ") is None
        assert sanitize_filename("///") is None
        assert sanitize_filename(None) is None

    def test_truncated(self):
        """최대 100자."""
        assert len(sanitize_filename("a" * 300)) == 100


class TestBuildOutputName:
    """build_output_name 함수 테스트."""

    def test_full_name_first(self):
        """full_name 우선."""
        assert build_output_name({"full_name": "Ada L", "name": "Ada"}, 0) == "Ada_L.pdf"

    def test_name_fallback(self):
        """full_name 없거나 비면 name."""
        assert build_output_name({"full_name": "", "name": "Grace"}, 0) == "Grace.pdf"

    def test_index_fallback(self):
        """이름 없음 → certificate_{1-based}."""
        assert build_output_name({}, 4) == "certificate_5.pdf"

    def test_list_value_ignored(self):
        """리스트 값은 이름으로 쓰지 않음."""
        assert build_output_name({"name": ["a"]}, 0, extension="docx") == "certificate_1.docx"

    def test_custom_fields_and_prefix(self):
        """이름 후보/접두어 지정."""
        name = build_output_name({"id": "X1"}, 0, name_fields=("id",), prefix="doc")

        assert name == "X1.pdf"
        assert build_output_name({}, 1, name_fields=("id",), prefix="doc") == "doc_2.pdf"
