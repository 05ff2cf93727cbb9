#!/usr/bin/env python3
"""
generate_batch.py - DOCX 템플릿 + CSV → 문서 ZIP (로컬 실행)

흐름: 템플릿 분석 → CSV 파싱 → 매핑/그룹 → 렌더 (+ PDF 변환) → ZIP 저장

매핑:
- auto: 템플릿 필드와 CSV 헤더를 대소문자 무시로 자동 매칭
- JSON 문자열 또는 JSON 파일 경로: {"필드": "헤더"}
- 생략: CSV 행을 그대로 컨텍스트로 사용

사용법:
    # PDF (LibreOffice 필요)
    uv run python scripts/generate_batch.py template.docx people.csv --mapping auto

    # DOCX만 (변환 없음)
    uv run python scripts/generate_batch.py template.docx people.csv --mapping auto --format docx

    # 그룹핑 (반복 그룹이 있는 템플릿)
    uv run python scripts/generate_batch.py invoice.docx lines.csv --mapping auto --group-by order_id

종료 코드: 0 전 건 성공, 1 일부 실패, 2 입력 오류 또는 전 건 실패
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.app.services.dataset import parse_csv, parse_mapping_json
from src.app.services.transform import DataTransformer, suggest_mapping
from src.core.config import RenderSettings, load_config
from src.core.logging import create_generation_report, dump_report
from src.domain.errors import PipelineError
from src.domain.schemas import GroupSpec
from src.render.convert import create_converter
from src.render.pipeline import RenderPipeline, generate_archive
from src.templates.analyzer import load_template

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def resolve_mapping(raw: str | None, fields: tuple[str, ...], headers: list[str]) -> dict[str, str]:
    """--mapping 값 해석 (auto / JSON 파일 경로 / JSON 문자열)."""
    if not raw:
        return {}
    if raw.strip().lower() == "auto":
        mapping = suggest_mapping(fields, headers)
        unmatched = [f for f in fields if f not in mapping]
        if unmatched:
            logger.warning(f"No matching column for fields: {', '.join(unmatched)}")
        return mapping

    path = Path(raw)
    if path.suffix.lower() == ".json" and path.exists():
        raw = path.read_text(encoding="utf-8")
    return parse_mapping_json(raw)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="DOCX 템플릿 + CSV → 문서 ZIP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("template", type=Path, help="DOCX 템플릿 경로")
    parser.add_argument("csv", type=Path, help="CSV 데이터 경로")
    parser.add_argument(
        "--mapping",
        type=str,
        default=None,
        help="auto | JSON 문자열 | JSON 파일 경로",
    )
    parser.add_argument(
        "--group-by",
        type=str,
        default=None,
        help="그룹 기준 헤더 (반복 그룹이 있는 템플릿)",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="출력 ZIP 경로 (기본: default.yaml delivery.archive_filename)",
    )
    parser.add_argument(
        "--format",
        choices=["pdf", "docx"],
        default=None,
        help="출력 형식 (기본: default.yaml render.output_format)",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="생성 리포트 JSON 저장 경로",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    for path in (args.template, args.csv):
        if not path.exists():
            logger.error(f"File not found: {path}")
            return 2

    config = load_config()
    settings = RenderSettings.from_config(config)
    output_format = args.format or settings.output_format
    out_path = args.out or Path(
        (config.get("delivery") or {}).get("archive_filename", "certificates.zip")
    )

    report = create_generation_report()
    try:
        template = load_template(args.template.read_bytes())
        dataset = parse_csv(args.csv.read_bytes())
        logger.info(
            f"Template fields: {list(template.fields)}, loops: {list(template.loops)}"
        )

        mapping = resolve_mapping(args.mapping, template.fields, dataset.headers)
        group_spec = GroupSpec(args.group_by) if args.group_by else None
        transformer = DataTransformer(mapping, group_spec, template.loops)
        contexts = transformer.build_contexts(dataset.rows, headers=dataset.headers, report=report)

        pipeline = RenderPipeline(
            create_converter(
                output_format,
                binary=settings.converter_binary,
                timeout=settings.converter_timeout_seconds,
            ),
            settings,
        )
        archive, report = generate_archive(pipeline, template, contexts, report)
    except PipelineError as e:
        logger.error(str(e))
        if args.report:
            args.report.write_text(json.dumps(e.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        return 2

    out_path.write_bytes(archive.seal())
    logger.info(f"Wrote {len(archive)} documents to {out_path}")

    if args.report:
        args.report.write_text(dump_report(report), encoding="utf-8")

    for item in report.items:
        if not item.success:
            logger.warning(f"Item {item.index + 1} failed: [{item.error_code}] {item.message}")

    return 0 if report.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
