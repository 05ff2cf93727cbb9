"""
메일 발송: Resend HTTP API + 다운로드 링크 메일 템플릿.

- 본문은 Jinja2 템플릿 (HTML autoescape + 텍스트 버전)
- 429/5xx/네트워크 에러 → RetryableError, 그 외 4xx → DeliveryTransportError
"""

import logging
from datetime import datetime
from typing import Any, Protocol

import httpx
from jinja2 import Environment, select_autoescape

from src.domain.constants import RESEND_API_URL
from src.domain.errors import DeliveryTransportError, ErrorCodes
from src.utils.retry import RetryableError

logger = logging.getLogger(__name__)

# =============================================================================
# Email Templates
# =============================================================================

_env = Environment(autoescape=select_autoescape(default_for_string=True))

HTML_TEMPLATE = _env.from_string(
    """<!DOCTYPE html>
<html>
<body style="font-family: sans-serif;">
  <p>Your {{ count }} document{{ "s" if count != 1 else "" }} {{ "are" if count != 1 else "is" }} ready.</p>
  <p><a href="{{ url }}">Download {{ filename }}</a></p>
  <p style="color: #666;">This link expires on {{ expires_at.strftime("%Y-%m-%d %H:%M UTC") }}.</p>
</body>
</html>
"""
)

TEXT_TEMPLATE = Environment(autoescape=False).from_string(
    """Your {{ count }} document{{ "s" if count != 1 else "" }} {{ "are" if count != 1 else "is" }} ready.

Download {{ filename }}:
{{ url }}

This link expires on {{ expires_at.strftime("%Y-%m-%d %H:%M UTC") }}.
"""
)


def build_link_email(url: str, expires_at: datetime, filename: str, count: int) -> tuple[str, str]:
    """
    링크 메일 본문 생성.

    Returns:
        (html, text)
    """
    values: dict[str, Any] = {
        "url": url,
        "expires_at": expires_at,
        "filename": filename,
        "count": count,
    }
    return HTML_TEMPLATE.render(**values), TEXT_TEMPLATE.render(**values)


# =============================================================================
# Mailer
# =============================================================================


class Mailer(Protocol):
    """메일 발송 인터페이스."""

    async def send(self, to: str, subject: str, html: str, text: str) -> str: ...


class ResendMailer:
    """
    Resend API 발송기.

    Usage:
        mailer = ResendMailer(api_key, "Certifier <noreply@example.com>")
        message_id = await mailer.send(to, subject, html, text)
    """

    def __init__(
        self,
        api_key: str,
        sender: str,
        api_url: str = RESEND_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    async def send(self, to: str, subject: str, html: str, text: str) -> str:
        """
        메일 1통 발송.

        Returns:
            메일 서비스 message id (없으면 빈 문자열)

        Raises:
            RetryableError: 429/5xx/네트워크 에러
            DeliveryTransportError: 그 외 4xx
        """
        payload = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
            "text": text,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise RetryableError(f"email transport error: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise RetryableError(f"email service returned {response.status_code}")
        if response.status_code >= 400:
            raise DeliveryTransportError(
                ErrorCodes.EMAIL_SEND_FAILED,
                status=response.status_code,
                error=response.text[:500],
            )

        message_id = ""
        try:
            message_id = str(response.json().get("id", ""))
        except ValueError:
            logger.warning("Email service returned a non-JSON body")

        logger.info(f"Email sent to {to} (id={message_id or '-'})")
        return message_id
