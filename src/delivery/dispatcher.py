"""
DeliveryDispatcher: 아카이브 전송 (직접 다운로드 / 스토리지 + 링크 메일).

이메일 모드 순서:
1. 수신 주소 검증 (네트워크 호출 전)
2. 자격증명 검증 (업로드 전, 누락 시 DeliveryConfigError)
3. 새 object key로 업로드 (재시도)
4. 읽기 전용 presigned URL (기본 7일)
5. 링크 메일 발송 (재시도)

3 성공 후 5 실패 시 객체는 남는다 (만료 링크만 존재, 허용된 상태).
"""

import asyncio
import logging
import re
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from src.core.archive import Archive
from src.core.config import DeliveryCredentials, DeliveryOptions
from src.core.ids import generate_object_key
from src.delivery.mail import Mailer, ResendMailer, build_link_email
from src.delivery.storage import ObjectStorage, S3ObjectStorage
from src.domain.constants import get_mime_type
from src.domain.errors import (
    DeliveryTransportError,
    ErrorCodes,
    InvalidDirective,
)
from src.domain.schemas import DeliveryDirective, DeliveryMode, DeliveryResult
from src.utils.retry import RetryableError, retry_with_exponential_backoff

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")


def validate_recipient(recipient: str | None) -> str:
    """
    이메일 주소 최소 검증 ('@' 포함, 공백 없음).

    Raises:
        InvalidDirective: INVALID_RECIPIENT
    """
    value = (recipient or "").strip()
    if not EMAIL_PATTERN.match(value):
        raise InvalidDirective(ErrorCodes.INVALID_RECIPIENT, recipient=recipient)
    return value


def parse_directive(mode: str, recipient: str | None = None) -> DeliveryDirective:
    """
    폼 입력 → DeliveryDirective.

    Raises:
        InvalidDirective: 알 수 없는 방식, 이메일 모드인데 주소 형식 오류
    """
    try:
        delivery_mode = DeliveryMode((mode or "").strip().lower())
    except ValueError:
        raise InvalidDirective(
            ErrorCodes.INVALID_DELIVERY_MODE,
            mode=mode,
            allowed=[m.value for m in DeliveryMode],
        ) from None

    if delivery_mode is DeliveryMode.EMAIL:
        return DeliveryDirective.email(validate_recipient(recipient))
    return DeliveryDirective.download()


class DeliveryDispatcher:
    """
    아카이브 전송기.

    Usage:
        dispatcher = DeliveryDispatcher(DeliveryOptions.from_config(config))
        result = await dispatcher.deliver(archive, DeliveryDirective.email("a@b.c"))
    """

    def __init__(
        self,
        options: DeliveryOptions | None = None,
        credentials_loader: Callable[[], DeliveryCredentials] = DeliveryCredentials.from_env,
        storage_factory: Callable[[DeliveryCredentials], ObjectStorage] = S3ObjectStorage,
        mailer_factory: Callable[[DeliveryCredentials], Mailer] | None = None,
    ) -> None:
        self.options = options or DeliveryOptions()
        self.credentials_loader = credentials_loader
        self.storage_factory = storage_factory
        self.mailer_factory = mailer_factory or (
            lambda creds: ResendMailer(creds.resend_api_key, creds.sender)
        )

    async def deliver(
        self,
        archive: Archive | bytes,
        directive: DeliveryDirective,
        document_count: int | None = None,
    ) -> DeliveryResult:
        """
        Args:
            archive: sealed Archive 또는 ZIP bytes
            directive: 전송 지시
            document_count: 메일 본문용 문서 수 (None이면 아카이브 엔트리 수)

        Raises:
            InvalidDirective: 수신 주소 형식 오류
            DeliveryConfigError: 자격증명 누락 (업로드 전)
            DeliveryTransportError: 업로드/서명/발송 실패
        """
        if isinstance(archive, Archive):
            data = archive.seal()
            count = len(archive) if document_count is None else document_count
        else:
            data = archive
            count = document_count or 0

        if directive.mode is DeliveryMode.DOWNLOAD:
            return self._download(data)
        return await self._email(data, directive, count)

    def _download(self, data: bytes) -> DeliveryResult:
        filename = self.options.archive_filename
        return DeliveryResult(
            mode=DeliveryMode.DOWNLOAD,
            content=data,
            filename=filename,
            media_type=get_mime_type(filename),
        )

    async def _email(self, data: bytes, directive: DeliveryDirective, count: int) -> DeliveryResult:
        recipient = validate_recipient(directive.recipient)
        credentials = self.credentials_loader()

        storage = self.storage_factory(credentials)
        mailer = self.mailer_factory(credentials)
        filename = self.options.archive_filename
        key = generate_object_key(self.options.object_prefix)

        async def upload() -> None:
            await asyncio.to_thread(storage.put, key, data, get_mime_type(filename))

        try:
            await retry_with_exponential_backoff(
                upload, "storage upload", max_retries=self.options.max_retries
            )
        except RetryableError as e:
            raise DeliveryTransportError(
                ErrorCodes.STORAGE_UPLOAD_FAILED,
                key=key,
                error=str(e),
            ) from e

        expires_at = datetime.now(UTC) + timedelta(days=self.options.link_expiry_days)
        url = storage.presign(key, self.options.link_expiry_seconds)

        html, text = build_link_email(url, expires_at, filename, count)

        async def send() -> str:
            return await mailer.send(recipient, self.options.email_subject, html, text)

        try:
            await retry_with_exponential_backoff(
                send, "email send", max_retries=self.options.max_retries
            )
        except RetryableError as e:
            logger.error(f"Email to {recipient} failed; object {key} left to expire")
            raise DeliveryTransportError(
                ErrorCodes.EMAIL_SEND_FAILED,
                key=key,
                error=str(e),
            ) from e

        return DeliveryResult(
            mode=DeliveryMode.EMAIL,
            filename=filename,
            url=url,
            expires_at=expires_at,
            object_key=key,
            recipient=recipient,
        )
