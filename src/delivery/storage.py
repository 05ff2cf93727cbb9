"""
Object storage: S3 호환 (Cloudflare R2) 업로드 + presigned URL.

- 업로드마다 새 object key (덮어쓰기 없음)
- 링크는 읽기 전용 GET presigned URL, 만료 시간 지정
- boto3 에러 → RetryableError (재시도 대상) / DeliveryTransportError
"""

import logging
from typing import Any, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.core.config import DeliveryCredentials
from src.domain.errors import DeliveryTransportError, ErrorCodes
from src.utils.retry import RetryableError

logger = logging.getLogger(__name__)


class ObjectStorage(Protocol):
    """스토리지 인터페이스."""

    def put(self, key: str, data: bytes, content_type: str) -> None: ...

    def presign(self, key: str, expires_in: int) -> str: ...


class S3ObjectStorage:
    """
    S3 호환 스토리지.

    Usage:
        storage = S3ObjectStorage(credentials)
        storage.put(key, data, "application/zip")
        url = storage.presign(key, expires_in=604800)
    """

    def __init__(self, credentials: DeliveryCredentials, client: Any | None = None) -> None:
        self.bucket = credentials.bucket
        self._client = client or boto3.client(
            "s3",
            endpoint_url=credentials.storage_endpoint,
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key,
            region_name="auto",
            config=Config(signature_version="s3v4"),
        )

    def put(self, key: str, data: bytes, content_type: str) -> None:
        """
        업로드.

        Raises:
            RetryableError: 네트워크/5xx 에러
            DeliveryTransportError: 그 외 (권한, 버킷 없음 등)
        """
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except ClientError as e:
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
            if status >= 500:
                raise RetryableError(f"storage returned {status}: {e}") from e
            raise DeliveryTransportError(
                ErrorCodes.STORAGE_UPLOAD_FAILED,
                key=key,
                error=str(e),
            ) from e
        except BotoCoreError as e:
            raise RetryableError(f"storage transport error: {e}") from e

        logger.info(f"Uploaded {len(data)} bytes to {self.bucket}/{key}")

    def presign(self, key: str, expires_in: int) -> str:
        """
        읽기 전용 presigned URL 생성 (서명만, 네트워크 호출 없음).

        Raises:
            DeliveryTransportError: 서명 실패
        """
        try:
            url: str = self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise DeliveryTransportError(
                ErrorCodes.PRESIGN_FAILED,
                key=key,
                error=str(e),
            ) from e
        return url
