"""
FastAPI Routes.

API 라우트 (REST): 템플릿 분석, 데이터셋 미리보기, 문서 생성
"""

from . import analyze, generate

__all__ = ["analyze", "generate"]
