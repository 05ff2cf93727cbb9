"""
Pytest fixtures for the pipeline tests.

테스트 구성:
- DOCX 템플릿은 python-docx로 tmp_path에 직접 생성
- 외부 변환기(LibreOffice)는 PassthroughConverter 또는 가짜 변환기로 대체
- 스토리지/메일은 가짜 객체로 대체 (네트워크 호출 없음)
"""

import io
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest
import yaml
from docx import Document

# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


# =============================================================================
# DOCX Fixtures
# =============================================================================

@pytest.fixture
def make_docx() -> Callable[..., bytes]:
    """
    DOCX bytes 생성 함수.

    Args (호출 시):
        paragraphs: 문단 텍스트 목록 (문자열 목록이면 run 분할)
        table: 표 행 목록 (셀 텍스트 목록)
        header: 머리글 텍스트
    """

    def _make(
        paragraphs: Sequence[str | Sequence[str]] = (),
        table: Sequence[Sequence[str]] | None = None,
        header: str | None = None,
    ) -> bytes:
        doc = Document()

        for paragraph in paragraphs:
            if isinstance(paragraph, str):
                doc.add_paragraph(paragraph)
            else:
                p = doc.add_paragraph()
                for run in paragraph:
                    p.add_run(run)

        if table:
            docx_table = doc.add_table(rows=len(table), cols=len(table[0]))
            for row_cells, values in zip(docx_table.rows, table, strict=True):
                for cell, value in zip(row_cells.cells, values, strict=True):
                    cell.text = value

        if header is not None:
            doc.sections[0].header.paragraphs[0].text = header

        buffer = io.BytesIO()
        doc.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def read_docx() -> Callable[[bytes], list[str]]:
    """DOCX bytes → 본문 문단 텍스트 목록."""

    def _read(content: bytes) -> list[str]:
        return [p.text for p in Document(io.BytesIO(content)).paragraphs]

    return _read


@pytest.fixture
def certificate_template(make_docx: Callable[..., bytes]) -> bytes:
    """
    인증서 템플릿.

    필드: %name%, %course%
    """
    return make_docx([
        "Certificate of Completion",
        "This certifies that %name%",
        "has completed %course%.",
    ])


@pytest.fixture
def certificate_rows() -> list[dict[str, str]]:
    """CSV 헤더 기준 3행."""
    return [
        {"Name": "Ada", "Course": "Math"},
        {"Name": "Grace", "Course": "Compilers"},
        {"Name": "Linus", "Course": "Kernels"},
    ]


@pytest.fixture
def certificate_csv() -> bytes:
    """certificate_rows와 같은 내용의 CSV."""
    return b"Name,Course\nAda,Math\nGrace,Compilers\nLinus,Kernels\n"


# =============================================================================
# Delivery Fixtures
# =============================================================================

@pytest.fixture
def delivery_env() -> dict[str, str]:
    """이메일 모드 필수 환경 변수 (가짜 값)."""
    return {
        "R2_ACCOUNT_ID": "acct123",
        "R2_ACCESS_KEY_ID": "AKIAEXAMPLE",
        "R2_SECRET_ACCESS_KEY": "secret",
        "R2_BUCKET_NAME": "certs",
        "RESEND_API_KEY": "re_test",
        "EMAIL_FROM": "Certifier <noreply@example.com>",
    }
