"""
Core layer: 파이프라인 공통 모듈.

역할:
- 설정 로드, ID/파일명 생성, 생성 리포트, ZIP 패키징
"""

from .archive import Archive, pack, unpack
from .config import DeliveryCredentials, DeliveryOptions, RenderSettings, load_config
from .ids import build_output_name, generate_object_key, generate_run_id, sanitize_filename
from .logging import (
    complete_generation_report,
    create_generation_report,
    emit_warning,
    record_failure,
    record_success,
)

__all__ = [
    # archive
    "Archive",
    "pack",
    "unpack",
    # config
    "load_config",
    "RenderSettings",
    "DeliveryOptions",
    "DeliveryCredentials",
    # ids
    "generate_run_id",
    "generate_object_key",
    "sanitize_filename",
    "build_output_name",
    # logging
    "create_generation_report",
    "record_success",
    "record_failure",
    "emit_warning",
    "complete_generation_report",
]
