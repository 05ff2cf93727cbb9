"""
test_storage.py - S3 호환 스토리지 테스트

테스트 대상:
- put: boto3 에러 분류 (5xx/네트워크 → 재시도, 그 외 → 실패)
- presign: 읽기 전용 GET URL (서명만, 네트워크 호출 없음)
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from src.core.config import DeliveryCredentials
from src.delivery.storage import S3ObjectStorage
from src.domain.errors import DeliveryTransportError, ErrorCodes
from src.utils.retry import RetryableError


@pytest.fixture
def credentials(delivery_env: dict) -> DeliveryCredentials:
    return DeliveryCredentials.from_env(delivery_env)


def client_error(status: int, code: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
        "PutObject",
    )


class TestPut:
    """S3ObjectStorage.put 테스트."""

    def test_put_object_called(self, credentials):
        """버킷/키/본문/Content-Type 전달."""
        client = MagicMock()
        storage = S3ObjectStorage(credentials, client=client)

        storage.put("certificates/x.zip", b"zip", "application/zip")

        client.put_object.assert_called_once_with(
            Bucket="certs",
            Key="certificates/x.zip",
            Body=b"zip",
            ContentType="application/zip",
        )

    def test_server_error_retryable(self, credentials):
        """5xx → RetryableError."""
        client = MagicMock()
        client.put_object.side_effect = client_error(503, "SlowDown")

        with pytest.raises(RetryableError):
            S3ObjectStorage(credentials, client=client).put("k", b"", "application/zip")

    def test_network_error_retryable(self, credentials):
        """연결 실패 → RetryableError."""
        client = MagicMock()
        client.put_object.side_effect = EndpointConnectionError(endpoint_url="https://r2")

        with pytest.raises(RetryableError):
            S3ObjectStorage(credentials, client=client).put("k", b"", "application/zip")

    def test_access_denied_permanent(self, credentials):
        """403 → STORAGE_UPLOAD_FAILED."""
        client = MagicMock()
        client.put_object.side_effect = client_error(403, "AccessDenied")

        with pytest.raises(DeliveryTransportError) as exc_info:
            S3ObjectStorage(credentials, client=client).put("k", b"", "application/zip")

        assert exc_info.value.code == ErrorCodes.STORAGE_UPLOAD_FAILED


class TestPresign:
    """S3ObjectStorage.presign 테스트."""

    def test_real_client_signs_offline(self, credentials):
        """boto3 클라이언트로 서명 (R2 엔드포인트, 만료 초)."""
        storage = S3ObjectStorage(credentials)

        url = storage.presign("certificates/20260101/abc.zip", 604800)

        assert url.startswith("https://")
        assert "r2.cloudflarestorage.com" in url
        assert "certs" in url
        assert "certificates/20260101/abc.zip" in url
        assert "X-Amz-Expires=604800" in url

    def test_presign_failure(self, credentials):
        """서명 실패 → PRESIGN_FAILED."""
        client = MagicMock()
        client.generate_presigned_url.side_effect = client_error(400, "Bad")

        with pytest.raises(DeliveryTransportError) as exc_info:
            S3ObjectStorage(credentials, client=client).presign("k", 60)

        assert exc_info.value.code == ErrorCodes.PRESIGN_FAILED
