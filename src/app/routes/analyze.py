"""
Analyze Routes: 템플릿 분석 / 데이터셋 미리보기.

- POST /api/analyze → {placeholders, loops}
- POST /api/dataset → {headers, rows, mapping}
"""

from typing import Any

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from src.app.errors import http_error
from src.app.services.dataset import parse_csv
from src.app.services.transform import suggest_mapping
from src.domain.errors import PipelineError
from src.templates.analyzer import analyze_template

api_router = APIRouter()


@api_router.post("/analyze")
async def analyze(file: UploadFile = File(...)) -> dict[str, Any]:
    """
    템플릿 필드/반복 그룹 추출.

    Returns:
        {"placeholders": [...], "loops": [...]} (첫 등장 순서)
    """
    content = await file.read()
    try:
        analysis = await run_in_threadpool(analyze_template, content)
    except PipelineError as e:
        raise http_error(e) from e

    return analysis.to_dict()


@api_router.post("/dataset")
async def preview_dataset(
    file: UploadFile = File(...),
    placeholders: str | None = Form(None),  # 콤마 구분 필드 목록
) -> dict[str, Any]:
    """
    CSV 파싱 + 자동 매핑 제안.

    Returns:
        {"headers": [...], "rows": [...], "mapping": {필드: 헤더}}
    """
    content = await file.read()
    try:
        dataset = parse_csv(content)
    except PipelineError as e:
        raise http_error(e) from e

    fields = [p.strip() for p in (placeholders or "").split(",") if p.strip()]
    return {
        **dataset.to_dict(),
        "mapping": suggest_mapping(fields, dataset.headers),
    }
