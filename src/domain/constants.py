"""
Domain Constants: 파이프라인 전역 상수.

파일명 정책, 템플릿 구문, 전송 기본값 등 시스템 전반에서 사용되는 값들.
default.yaml에서 오버라이드 가능한 값은 DEFAULT_ 접두어.
"""

import os

# =============================================================================
# Template Syntax (템플릿 구문)
# =============================================================================
# 필드: %name% 또는 % name %
# 반복 그룹: %#items% ... %/items%  (또는 {#items} ... {/items})

FIELD_DELIMITER = "%"
LOOP_OPEN_PREFIX = "#"
LOOP_CLOSE_PREFIX = "/"
IDENTIFIER_CHARS = r"[\w\-]+"

# =============================================================================
# Output Filenames (출력 파일명 정책)
# =============================================================================
# 이름 필드 우선순위: full_name → name → 순번 (certificate_1.pdf)

DEFAULT_NAME_FIELDS = ("full_name", "name")
DEFAULT_OUTPUT_PREFIX = "certificate"
DEFAULT_OUTPUT_FORMAT = "pdf"
OUTPUT_NAME_MAX_LENGTH = 100

DEFAULT_ARCHIVE_FILENAME = "certificates.zip"
WORKDIR_PREFIX = "certifier-"

# =============================================================================
# Converter (외부 변환기)
# =============================================================================

DEFAULT_CONVERTER_BINARY = "soffice"
DEFAULT_CONVERTER_TIMEOUT_SECONDS = 120

# =============================================================================
# Delivery (전송)
# =============================================================================

DEFAULT_LINK_EXPIRY_DAYS = 7
DEFAULT_OBJECT_PREFIX = "certificates/"
DEFAULT_EMAIL_SUBJECT = "Your certificates are ready"
DEFAULT_DELIVERY_MAX_RETRIES = 2
RESEND_API_URL = "https://api.resend.com/emails"

# 이메일 모드 필수 환경 변수 (하나라도 없으면 DeliveryConfigError)
REQUIRED_DELIVERY_ENV = (
    "R2_ACCOUNT_ID",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
    "R2_BUCKET_NAME",
    "RESEND_API_KEY",
    "EMAIL_FROM",
)

# =============================================================================
# Hash & ID Prefixes
# =============================================================================

RUN_ID_PREFIX = "RUN-"

# =============================================================================
# MIME Types
# =============================================================================

MIME_TYPES = {
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".pdf": "application/pdf",
    ".csv": "text/csv",
    ".json": "application/json",
    ".zip": "application/zip",
}


def get_mime_type(filename: str) -> str:
    """
    파일명에서 MIME 타입 추출.

    Args:
        filename: 파일명 (확장자 포함)

    Returns:
        MIME 타입 문자열 (알 수 없으면 octet-stream)
    """
    ext = os.path.splitext(filename)[1].lower()
    return MIME_TYPES.get(ext, "application/octet-stream")
