"""
Generate Routes: 일괄 문서 생성 + 전송.

- POST /api/generate
  - template: DOCX 파일
  - data: 레코드 JSON 배열 또는 dataset: CSV 파일
  - mapping: 필드 → 헤더 JSON (비어 있으면 레코드를 그대로 사용)
  - group_by: 그룹 기준 헤더 (템플릿에 반복 그룹이 있을 때만 적용)
  - delivery: download | email (+ email 주소)

흐름: 전송 지시 검증 → 템플릿 로드 → 컨텍스트 생성 → 렌더 (스레드풀) → 패키징 → 전송
"""

import logging
from typing import Any

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from src.app.errors import http_error
from src.app.services.dataset import parse_csv, parse_mapping_json, parse_records_json
from src.app.services.transform import DataTransformer
from src.core.logging import create_generation_report, report_summary_headers
from src.delivery.dispatcher import DeliveryDispatcher, parse_directive
from src.domain.errors import ErrorCodes, InvalidDataset, PipelineError
from src.domain.schemas import DeliveryMode, GroupSpec
from src.render.pipeline import RenderPipeline, generate_archive
from src.templates.analyzer import load_template

logger = logging.getLogger(__name__)

api_router = APIRouter()


async def _load_records(
    data: str | None,
    dataset: UploadFile | None,
) -> tuple[list[dict[str, Any]], list[str] | None]:
    """CSV 업로드 우선, 없으면 JSON 배열. 둘 다 없으면 InvalidDataset."""
    if dataset is not None:
        parsed = parse_csv(await dataset.read())
        return parsed.rows, parsed.headers
    if data is not None and data.strip():
        return parse_records_json(data), None
    raise InvalidDataset(ErrorCodes.DATASET_MISSING, fields=["data", "dataset"])


@api_router.post("")
async def generate_documents(
    request: Request,
    template: UploadFile = File(...),
    data: str | None = Form(None),
    dataset: UploadFile | None = File(None),
    mapping: str | None = Form(None),
    group_by: str | None = Form(None),
    delivery: str = Form("download"),
    email: str | None = Form(None),
) -> Any:
    """
    문서 일괄 생성.

    Returns:
        - download: ZIP (Content-Disposition attachment, X-Run-Id 등 요약 헤더)
        - email: {"success": True, "message", "report", "delivery"}
    """
    pipeline: RenderPipeline = request.app.state.pipeline
    dispatcher: DeliveryDispatcher = request.app.state.dispatcher

    try:
        directive = parse_directive(delivery, email)
        if directive.mode is DeliveryMode.EMAIL:
            # 렌더 전에 자격증명 확인
            dispatcher.credentials_loader()

        doc_template = await run_in_threadpool(load_template, await template.read())
        rows, headers = await _load_records(data, dataset)

        group_spec = GroupSpec(group_by.strip()) if group_by and group_by.strip() else None
        transformer = DataTransformer(
            parse_mapping_json(mapping),
            group_spec,
            doc_template.loops,
        )

        report = create_generation_report()
        contexts = transformer.build_contexts(rows, headers=headers, report=report)
        logger.info(
            f"[{report.run_id}] generate: {len(contexts)} contexts, "
            f"delivery={directive.mode.value}"
        )

        archive, report = await run_in_threadpool(
            generate_archive, pipeline, doc_template, contexts, report
        )
        result = await dispatcher.deliver(archive, directive, report.succeeded)
    except PipelineError as e:
        raise http_error(e) from e

    if result.mode is DeliveryMode.DOWNLOAD:
        return Response(
            content=result.content,
            media_type=result.media_type,
            headers={
                "Content-Disposition": f'attachment; filename="{result.filename}"',
                **report_summary_headers(report),
            },
        )

    return {
        "success": True,
        "message": f"Email sent to {result.recipient}",
        "report": report.to_dict(),
        "delivery": result.to_dict(),
    }
