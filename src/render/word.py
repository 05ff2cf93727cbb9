"""
Word (DOCX) 렌더러: docxtpl 기반.

- 템플릿 구문: %field%, %#loop% ... %/loop% (markers.py에서 Jinja로 변환)
- 컨텍스트 1건마다 템플릿 bytes에서 새 DocxTemplate 생성 (상태 공유 없음)
- 값은 XML 이스케이프 (autoescape)
- 결과는 메모리 상의 DOCX bytes
"""

import io
from collections.abc import Mapping
from typing import Any

from docxtpl import DocxTemplate

from src.domain.errors import ErrorCodes, RenderError
from src.domain.schemas import DocumentTemplate
from src.render.markers import MarkerTranslator, build_render_context


class PercentDocxTemplate(DocxTemplate):
    """%-구분자 marker를 docxtpl 태그로 바꾼 뒤 처리하는 DocxTemplate."""

    def patch_xml(self, src_xml: str) -> str:
        return super().patch_xml(MarkerTranslator().translate(src_xml))


class DocxRenderer:
    """
    Word 문서 렌더러.

    Usage:
        renderer = DocxRenderer(template_bytes)
        docx_bytes = renderer.render({"name": "Ada"})
    """

    def __init__(self, template: bytes | DocumentTemplate):
        """
        Args:
            template: DOCX 템플릿 bytes 또는 DocumentTemplate
        """
        self.content = template.content if isinstance(template, DocumentTemplate) else template

    def _load_template(self) -> PercentDocxTemplate:
        """렌더마다 새 인스턴스 (docxtpl은 render 후 재사용 불가)."""
        return PercentDocxTemplate(io.BytesIO(self.content))

    def render(self, context: Mapping[str, Any]) -> bytes:
        """
        컨텍스트를 바인딩한 DOCX bytes 생성.

        Args:
            context: 렌더 컨텍스트 (필드 → 값, loop 이름 → 객체 리스트)

        Returns:
            DOCX bytes

        Raises:
            RenderError: binding (구조 불일치, 잘못된 marker, 템플릿 구문 에러)
        """
        try:
            doc = self._load_template()
            doc.render(build_render_context(context), autoescape=True)

            buffer = io.BytesIO()
            doc.save(buffer)
            return buffer.getvalue()

        except RenderError:
            raise
        except Exception as e:
            raise RenderError(
                ErrorCodes.RENDER_BINDING_FAILED,
                RenderError.BINDING,
                error=str(e),
            ) from e


def render_docx(template: bytes | DocumentTemplate, context: Mapping[str, Any]) -> bytes:
    """
    Word 문서 생성 (간편 함수).

    Args:
        template: DOCX 템플릿
        context: 렌더 컨텍스트

    Returns:
        DOCX bytes
    """
    return DocxRenderer(template).render(context)
