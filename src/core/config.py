"""
설정 로드: default.yaml (비밀 아님) + 환경 변수 (자격증명)

규칙:
- 자격증명은 환경 변수에서만 읽음 (yaml 금지)
- 이메일 모드 필수 변수가 하나라도 없으면 DeliveryConfigError (업로드 전 검사)
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from src.domain.constants import (
    DEFAULT_ARCHIVE_FILENAME,
    DEFAULT_CONVERTER_BINARY,
    DEFAULT_CONVERTER_TIMEOUT_SECONDS,
    DEFAULT_DELIVERY_MAX_RETRIES,
    DEFAULT_EMAIL_SUBJECT,
    DEFAULT_LINK_EXPIRY_DAYS,
    DEFAULT_NAME_FIELDS,
    DEFAULT_OBJECT_PREFIX,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_OUTPUT_PREFIX,
    REQUIRED_DELIVERY_ENV,
)
from src.domain.errors import DeliveryConfigError, ErrorCodes

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "default.yaml"


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드. 파일이 없으면 빈 dict."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


# =============================================================================
# Render Settings
# =============================================================================


@dataclass(frozen=True)
class RenderSettings:
    """렌더/변환 설정 (default.yaml `render:` 섹션)."""
    converter_binary: str = DEFAULT_CONVERTER_BINARY
    converter_timeout_seconds: float = DEFAULT_CONVERTER_TIMEOUT_SECONDS
    output_format: str = DEFAULT_OUTPUT_FORMAT
    output_prefix: str = DEFAULT_OUTPUT_PREFIX
    name_fields: tuple[str, ...] = DEFAULT_NAME_FIELDS

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "RenderSettings":
        section = config.get("render") or {}
        return cls(
            converter_binary=section.get("converter_binary", DEFAULT_CONVERTER_BINARY),
            converter_timeout_seconds=float(
                section.get("converter_timeout_seconds", DEFAULT_CONVERTER_TIMEOUT_SECONDS)
            ),
            output_format=section.get("output_format", DEFAULT_OUTPUT_FORMAT),
            output_prefix=section.get("output_prefix", DEFAULT_OUTPUT_PREFIX),
            name_fields=tuple(section.get("name_fields", DEFAULT_NAME_FIELDS)),
        )


# =============================================================================
# Delivery Settings
# =============================================================================


@dataclass(frozen=True)
class DeliveryOptions:
    """전송 옵션 (default.yaml `delivery:` 섹션)."""
    archive_filename: str = DEFAULT_ARCHIVE_FILENAME
    link_expiry_days: int = DEFAULT_LINK_EXPIRY_DAYS
    object_prefix: str = DEFAULT_OBJECT_PREFIX
    email_subject: str = DEFAULT_EMAIL_SUBJECT
    max_retries: int = DEFAULT_DELIVERY_MAX_RETRIES

    @property
    def link_expiry_seconds(self) -> int:
        return self.link_expiry_days * 24 * 60 * 60

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "DeliveryOptions":
        section = config.get("delivery") or {}
        return cls(
            archive_filename=section.get("archive_filename", DEFAULT_ARCHIVE_FILENAME),
            link_expiry_days=int(section.get("link_expiry_days", DEFAULT_LINK_EXPIRY_DAYS)),
            object_prefix=section.get("object_prefix", DEFAULT_OBJECT_PREFIX),
            email_subject=section.get("email_subject", DEFAULT_EMAIL_SUBJECT),
            max_retries=int(section.get("max_retries", DEFAULT_DELIVERY_MAX_RETRIES)),
        )


@dataclass(frozen=True)
class DeliveryCredentials:
    """
    이메일 모드 자격증명 (환경 변수).

    R2_* → S3 호환 스토리지, RESEND_API_KEY/EMAIL_FROM → 메일 발송.
    """
    account_id: str
    access_key_id: str
    secret_access_key: str
    bucket: str
    resend_api_key: str
    sender: str
    endpoint_url: str | None = None

    @property
    def storage_endpoint(self) -> str:
        """R2_ENDPOINT_URL 우선, 없으면 account id로 구성."""
        if self.endpoint_url:
            return self.endpoint_url
        return f"https://{self.account_id}.r2.cloudflarestorage.com"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "DeliveryCredentials":
        """
        환경 변수에서 자격증명 로드.

        Raises:
            DeliveryConfigError: 필수 변수 누락 (누락된 이름 전부 보고)
        """
        env = os.environ if environ is None else environ
        missing = [name for name in REQUIRED_DELIVERY_ENV if not env.get(name)]
        if missing:
            raise DeliveryConfigError(
                ErrorCodes.DELIVERY_CONFIG_MISSING,
                missing=missing,
            )

        return cls(
            account_id=env["R2_ACCOUNT_ID"],
            access_key_id=env["R2_ACCESS_KEY_ID"],
            secret_access_key=env["R2_SECRET_ACCESS_KEY"],
            bucket=env["R2_BUCKET_NAME"],
            resend_api_key=env["RESEND_API_KEY"],
            sender=env["EMAIL_FROM"],
            endpoint_url=env.get("R2_ENDPOINT_URL") or None,
        )
