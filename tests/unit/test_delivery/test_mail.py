"""
test_mail.py - 링크 메일 테스트

테스트 대상:
- build_link_email: HTML/텍스트 본문
- ResendMailer: 요청 형식, 상태 코드별 처리 (httpx.MockTransport)
"""

import json
from datetime import UTC, datetime

import httpx
import pytest

from src.delivery.mail import ResendMailer, build_link_email
from src.domain.errors import DeliveryTransportError, ErrorCodes
from src.utils.retry import RetryableError

EXPIRES_AT = datetime(2026, 1, 8, 9, 30, tzinfo=UTC)


def make_mailer(handler) -> ResendMailer:
    return ResendMailer(
        "re_test",
        "Certifier <noreply@example.com>",
        transport=httpx.MockTransport(handler),
    )


# =============================================================================
# build_link_email 테스트
# =============================================================================


class TestBuildLinkEmail:
    """build_link_email 함수 테스트."""

    def test_contains_link_and_expiry(self):
        """링크 + 만료 시각."""
        html, text = build_link_email("https://x.example/a.zip?sig=1", EXPIRES_AT, "certificates.zip", 3)

        assert 'href="https://x.example/a.zip?sig=1"' in html
        assert "https://x.example/a.zip?sig=1" in text
        assert "2026-01-08 09:30 UTC" in text
        assert "3 documents are ready" in text

    def test_singular(self):
        """1건 → 단수형."""
        _, text = build_link_email("https://x", EXPIRES_AT, "certificates.zip", 1)

        assert "1 document is ready" in text

    def test_html_escaped(self):
        """URL의 & → &amp; (HTML)."""
        html, _ = build_link_email("https://x/?a=1&b=2", EXPIRES_AT, "<b>.zip", 1)

        assert "a=1&amp;b=2" in html
        assert "&lt;b&gt;.zip" in html


# =============================================================================
# ResendMailer 테스트
# =============================================================================


class TestResendMailer:
    """ResendMailer.send 테스트."""

    @pytest.mark.asyncio
    async def test_request_format(self):
        """Bearer 토큰 + JSON 본문, message id 반환."""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"id": "email_123"})

        message_id = await make_mailer(handler).send("ada@example.com", "Hi", "<p>x</p>", "x")

        assert message_id == "email_123"
        request = captured[0]
        assert str(request.url) == "https://api.resend.com/emails"
        assert request.headers["Authorization"] == "Bearer re_test"
        payload = json.loads(request.content)
        assert payload["to"] == ["ada@example.com"]
        assert payload["from"] == "Certifier <noreply@example.com>"
        assert payload["subject"] == "Hi"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_transient_status_retryable(self, status: int):
        """429/5xx → RetryableError."""
        mailer = make_mailer(lambda request: httpx.Response(status))

        with pytest.raises(RetryableError):
            await mailer.send("ada@example.com", "Hi", "", "")

    @pytest.mark.asyncio
    async def test_client_error_permanent(self):
        """4xx → DeliveryTransportError (재시도 없음)."""
        mailer = make_mailer(lambda request: httpx.Response(422, json={"message": "invalid from"}))

        with pytest.raises(DeliveryTransportError) as exc_info:
            await mailer.send("ada@example.com", "Hi", "", "")

        assert exc_info.value.code == ErrorCodes.EMAIL_SEND_FAILED
        assert exc_info.value.context["status"] == 422

    @pytest.mark.asyncio
    async def test_network_error_retryable(self):
        """연결 실패 → RetryableError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RetryableError):
            await make_mailer(handler).send("ada@example.com", "Hi", "", "")
