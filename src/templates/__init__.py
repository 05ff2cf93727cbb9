"""
Templates layer: 템플릿 분석.

역할:
- DOCX 텍스트 추출 → %필드% / 반복 그룹 목록 (analyzer.py)
"""

from .analyzer import TemplateAnalyzer, analyze_template, load_template

__all__ = [
    "TemplateAnalyzer",
    "analyze_template",
    "load_template",
]
