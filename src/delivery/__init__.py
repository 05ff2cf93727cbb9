"""
Delivery layer: 아카이브 전송.

역할:
- download: 응답 본문으로 반환
- email: S3 호환 스토리지 업로드 → presigned URL → 링크 메일
"""

from .dispatcher import DeliveryDispatcher, parse_directive, validate_recipient
from .mail import ResendMailer, build_link_email
from .storage import S3ObjectStorage

__all__ = [
    "DeliveryDispatcher",
    "parse_directive",
    "validate_recipient",
    "ResendMailer",
    "build_link_email",
    "S3ObjectStorage",
]
