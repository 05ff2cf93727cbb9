"""
RenderPipeline: 컨텍스트 목록 → 산출물 목록 (건별 결과 포함).

규칙:
- 순차 처리 (변환기는 동시 호출 금지, 한 번에 한 건)
- 실행당 임시 작업 디렉터리 1개, 종료 시 무조건 재귀 삭제
- 건별 임시 파일은 성공/실패와 무관하게 삭제
- 건별 실패는 GenerationReport에 기록하고 다음 건 계속
- 출력 순서 = 입력 순서
"""

import logging
import tempfile
import uuid
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from src.core.archive import Archive
from src.core.config import RenderSettings
from src.core.ids import build_output_name
from src.core.logging import (
    complete_generation_report,
    create_generation_report,
    record_failure,
    record_success,
)
from src.domain.constants import WORKDIR_PREFIX
from src.domain.errors import BatchRenderError, ErrorCodes, InvalidDataset
from src.domain.schemas import (
    Artifact,
    DocumentTemplate,
    GenerationReport,
    RenderContext,
)
from src.render.convert import DocumentConverter
from src.render.word import DocxRenderer

logger = logging.getLogger(__name__)


class RenderPipeline:
    """
    렌더 파이프라인.

    Usage:
        pipeline = RenderPipeline(LibreOfficeConverter())
        report = pipeline.render(template, contexts)
        report.artifacts  # 성공 건 (입력 순서)
    """

    def __init__(
        self,
        converter: DocumentConverter,
        settings: RenderSettings | None = None,
        temp_root: Path | None = None,
    ) -> None:
        """
        Args:
            converter: 문서 변환기
            settings: 파일명 정책 등 (기본값: RenderSettings())
            temp_root: 작업 디렉터리 상위 경로 (None이면 시스템 임시 경로)
        """
        self.converter = converter
        self.settings = settings or RenderSettings()
        self.temp_root = temp_root

    def render_one(
        self,
        renderer: DocxRenderer,
        context: RenderContext,
        index: int,
        workdir: Path,
    ) -> Artifact:
        """
        컨텍스트 1건 처리: 바인딩 → 임시 파일 → 변환 → 읽기 → 임시 파일 삭제.

        Raises:
            RenderError: binding / conversion_failed
        """
        docx_bytes = renderer.render(context)

        source = workdir / f"{uuid.uuid4().hex}.docx"
        output: Path | None = None
        try:
            source.write_bytes(docx_bytes)
            output = self.converter.convert(source, workdir)
            content = output.read_bytes()
        finally:
            source.unlink(missing_ok=True)
            if output is not None:
                output.unlink(missing_ok=True)

        name = build_output_name(
            context,
            index,
            name_fields=self.settings.name_fields,
            prefix=self.settings.output_prefix,
            extension=self.converter.output_extension,
        )
        return Artifact(name=name, content=content)

    def render(
        self,
        template: DocumentTemplate | bytes,
        contexts: Sequence[RenderContext],
        report: GenerationReport | None = None,
    ) -> GenerationReport:
        """
        전체 컨텍스트 순차 처리.

        Args:
            template: DOCX 템플릿
            contexts: 렌더 컨텍스트 (출력 문서 1건당 1개)
            report: 이어서 기록할 리포트 (None이면 새로 생성)

        Returns:
            완료된 GenerationReport (건별 성공/실패)
        """
        report = report or create_generation_report()
        renderer = DocxRenderer(template)

        with tempfile.TemporaryDirectory(prefix=WORKDIR_PREFIX, dir=self.temp_root) as tmp:
            workdir = Path(tmp)
            logger.info(f"[{report.run_id}] rendering {len(contexts)} contexts in {workdir}")

            for index, context in enumerate(contexts):
                try:
                    artifact = self.render_one(renderer, context, index, workdir)
                except Exception as e:
                    record_failure(report, index, e)
                    continue
                record_success(report, index, artifact)

        return complete_generation_report(report)


def generate_archive(
    pipeline: RenderPipeline,
    template: DocumentTemplate | bytes,
    contexts: Sequence[RenderContext],
    report: GenerationReport | None = None,
) -> tuple[Archive, GenerationReport]:
    """
    렌더 + 패키징.

    Raises:
        InvalidDataset: 컨텍스트 없음
        BatchRenderError: 모든 건 실패 (아카이브 없음)
    """
    if not contexts:
        raise InvalidDataset(ErrorCodes.DATASET_EMPTY)

    report = pipeline.render(template, contexts, report=report)
    if report.succeeded == 0:
        raise BatchRenderError(
            ErrorCodes.NOTHING_RENDERED,
            report=report.to_dict(),
        )

    # 리포트의 이름 = 실제 엔트리 이름 (충돌 접미사 반영)
    archive = Archive()
    for item in report.items:
        if item.artifact is None:
            continue
        stored = archive.add(item.artifact)
        if stored != item.artifact.name:
            item.artifact = replace(item.artifact, name=stored)
    archive.seal()

    return archive, report
