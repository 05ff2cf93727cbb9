"""
템플릿 분석기: DOCX 템플릿에서 필드/반복 그룹 이름 추출.

구문:
- 필드: %name% (구분자 안쪽 공백 허용, 식별자 = 문자/숫자/_/-)
- 반복 그룹 시작: %#items% 또는 {#items}
- 반복 그룹 끝: %/items% 또는 {/items}

두 가지 스캔(필드, 반복 그룹)은 같은 텍스트에 대해 독립적으로 수행.
결과는 첫 등장 순서를 유지한 채 중복 제거.
"""

import io
import re
from typing import NamedTuple

from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml.ns import qn
from docxtpl import DocxTemplate

from src.domain.constants import FIELD_DELIMITER, IDENTIFIER_CHARS, LOOP_CLOSE_PREFIX, LOOP_OPEN_PREFIX
from src.domain.errors import ErrorCodes, InvalidTemplate
from src.domain.schemas import DocumentTemplate, TemplateAnalysis

# =============================================================================
# Marker Grammar
# =============================================================================

# %...% 쌍 (줄바꿈/구분자 없이). 짝짓기는 왼쪽부터 겹치지 않게.
PERCENT_TOKEN = re.compile(rf"{FIELD_DELIMITER}([^{FIELD_DELIMITER}\n]*){FIELD_DELIMITER}")

# {#items} / {/items}
BRACE_LOOP_TOKEN = re.compile(rf"\{{[^\S\n]*([#/])({IDENTIFIER_CHARS})[^\S\n]*\}}")

_MARKER_BODY = re.compile(rf"^\s*([#/]?)({IDENTIFIER_CHARS})\s*$")


class Marker(NamedTuple):
    """구분자 안쪽 텍스트를 해석한 결과."""
    kind: str  # field, open, close
    name: str


def parse_marker(inner: str) -> Marker | None:
    """
    %...% 안쪽 텍스트 해석.

    Returns:
        Marker, 식별자 형태가 아니면 None (일반 텍스트로 취급)
    """
    match = _MARKER_BODY.match(inner)
    if not match:
        return None

    prefix, name = match.groups()
    if prefix == LOOP_OPEN_PREFIX:
        return Marker("open", name)
    if prefix == LOOP_CLOSE_PREFIX:
        return Marker("close", name)
    return Marker("field", name)


def _unique(names: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(names))


# =============================================================================
# Analyzer
# =============================================================================


class TemplateAnalyzer:
    """
    템플릿 분석기.

    Usage:
        analysis = TemplateAnalyzer().analyze(template_bytes)
        analysis.fields  # ("name", "course")
        analysis.loops   # ("items",)
    """

    def extract_text(self, content: bytes) -> str:
        """
        문서 전체 텍스트 추출 (본문 + 머리글/바닥글).

        문단마다 한 줄. run으로 쪼개진 marker도 한 문단 안에서는 이어 붙는다.

        Raises:
            InvalidTemplate: DOCX로 읽을 수 없음
        """
        if not content:
            raise InvalidTemplate(ErrorCodes.TEMPLATE_EMPTY)

        try:
            document = DocxTemplate(io.BytesIO(content)).get_docx()

            roots = [document.element.body]
            for rel in document.part.rels.values():
                if rel.reltype in (RT.HEADER, RT.FOOTER):
                    roots.append(rel.target_part.element)

            lines = []
            for root in roots:
                for paragraph in root.iter(qn("w:p")):
                    lines.append("".join(t.text or "" for t in paragraph.iter(qn("w:t"))))
        except Exception as e:
            raise InvalidTemplate(
                ErrorCodes.TEMPLATE_UNREADABLE,
                error=str(e),
            ) from e

        return "\n".join(lines)

    def find_fields(self, text: str) -> tuple[str, ...]:
        """필드 스캔: %name% 형태 (#, / 로 시작하는 marker 제외)."""
        names = []
        for match in PERCENT_TOKEN.finditer(text):
            marker = parse_marker(match.group(1))
            if marker and marker.kind == "field":
                names.append(marker.name)
        return _unique(names)

    def find_loops(self, text: str) -> tuple[str, ...]:
        """반복 그룹 스캔: %#items% 또는 {#items} (시작 marker만, 괄호 종류 무관)."""
        found: list[tuple[int, str]] = []

        for match in PERCENT_TOKEN.finditer(text):
            marker = parse_marker(match.group(1))
            if marker and marker.kind == "open":
                found.append((match.start(), marker.name))

        for match in BRACE_LOOP_TOKEN.finditer(text):
            if match.group(1) == LOOP_OPEN_PREFIX:
                found.append((match.start(), match.group(2)))

        found.sort(key=lambda item: item[0])
        return _unique([name for _, name in found])

    def analyze(self, content: bytes) -> TemplateAnalysis:
        """
        템플릿 bytes 분석.

        Raises:
            InvalidTemplate: DOCX로 읽을 수 없음
        """
        text = self.extract_text(content)
        return TemplateAnalysis(
            fields=self.find_fields(text),
            loops=self.find_loops(text),
        )


def analyze_template(content: bytes) -> TemplateAnalysis:
    """템플릿 분석 (간편 함수)."""
    return TemplateAnalyzer().analyze(content)


def load_template(content: bytes) -> DocumentTemplate:
    """템플릿 bytes + 분석 결과 묶음 생성."""
    return DocumentTemplate(content=content, analysis=analyze_template(content))
