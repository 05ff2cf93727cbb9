"""
Render layer: DOCX 바인딩 + PDF 변환.

역할:
- 템플릿 + 컨텍스트 → DOCX (docxtpl, %필드% 마커 변환)
- DOCX → PDF (LibreOffice headless)
- 일괄 처리 + 건별 결과 기록
"""

from .convert import LibreOfficeConverter, PassthroughConverter, create_converter
from .markers import MarkerTranslator
from .pipeline import RenderPipeline, generate_archive
from .word import DocxRenderer, render_docx

__all__ = [
    "render_docx",
    "DocxRenderer",
    "MarkerTranslator",
    "LibreOfficeConverter",
    "PassthroughConverter",
    "create_converter",
    "RenderPipeline",
    "generate_archive",
]
