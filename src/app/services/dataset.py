"""
Dataset 파싱: CSV 업로드 / JSON 레코드 → 헤더 + 행.

규칙:
- UTF-8 (BOM 허용), 첫 행 = 헤더
- 빈 줄 skip
- 헤더 중복 → InvalidDataset
- 헤더보다 칸이 많은 행 → InvalidDataset (몇 번째 줄인지 보고)
- 칸이 부족한 행 → 빈 문자열로 채움
"""

import csv
import io
import json
import logging
from typing import Any

from src.domain.errors import ErrorCodes, InvalidDataset
from src.domain.schemas import Dataset

logger = logging.getLogger(__name__)

CANDIDATE_DELIMITERS = ",;\t|"


def _detect_delimiter(sample: str) -> str:
    """구분자 추정. 실패하면 콤마."""
    try:
        return csv.Sniffer().sniff(sample, delimiters=CANDIDATE_DELIMITERS).delimiter
    except csv.Error:
        return ","


def parse_csv(content: bytes | str, delimiter: str | None = None) -> Dataset:
    """
    CSV → Dataset.

    Args:
        content: CSV 원본 (bytes면 UTF-8로 디코드)
        delimiter: 구분자 (None이면 자동 추정)

    Returns:
        Dataset (headers, rows)

    Raises:
        InvalidDataset: 디코드 실패, 헤더 없음/중복, 칸 초과 행
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise InvalidDataset(
                ErrorCodes.DATASET_UNREADABLE,
                error=f"not valid UTF-8: {e}",
            ) from e
    else:
        text = content.lstrip("\ufeff")

    if delimiter is None:
        delimiter = _detect_delimiter(text[:4096])

    try:
        reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
        records = [
            (reader.line_num, record)
            for record in reader
            if any(cell.strip() for cell in record)
        ]
    except csv.Error as e:
        raise InvalidDataset(ErrorCodes.DATASET_UNREADABLE, error=str(e)) from e

    if not records:
        raise InvalidDataset(ErrorCodes.DATASET_NO_HEADER)

    _, headers = records[0]
    duplicates = sorted({h for h in headers if headers.count(h) > 1})
    if duplicates:
        raise InvalidDataset(
            ErrorCodes.DATASET_DUPLICATE_HEADER,
            duplicates=duplicates,
        )

    rows: list[dict[str, str]] = []
    for line_num, record in records[1:]:
        if len(record) > len(headers):
            raise InvalidDataset(
                ErrorCodes.DATASET_INVALID_ROW,
                line=line_num,
                expected=len(headers),
                found=len(record),
            )
        padded = record + [""] * (len(headers) - len(record))
        rows.append(dict(zip(headers, padded, strict=True)))

    logger.info(f"Parsed dataset: {len(headers)} columns, {len(rows)} rows")
    return Dataset(headers=list(headers), rows=rows)


def parse_records_json(raw: str, field_name: str = "data") -> list[dict[str, Any]]:
    """
    JSON 배열 (레코드/컨텍스트 목록) 파싱.

    Raises:
        InvalidDataset: JSON 아님, 배열 아님, 원소가 객체가 아님
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidDataset(
            ErrorCodes.DATASET_UNREADABLE,
            field=field_name,
            error=f"invalid JSON: {e.msg}",
        ) from e

    if not isinstance(data, list):
        raise InvalidDataset(
            ErrorCodes.DATASET_UNREADABLE,
            field=field_name,
            error="expected a JSON array",
        )

    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise InvalidDataset(
                ErrorCodes.DATASET_INVALID_ROW,
                field=field_name,
                index=index,
                error="expected a JSON object",
            )
    return data


def parse_mapping_json(raw: str | None) -> dict[str, str]:
    """
    매핑 JSON 객체 파싱 (필드 → 헤더). 비어 있으면 {}.

    Raises:
        InvalidDataset: JSON 객체가 아니거나 값이 문자열이 아님
    """
    if not raw or not raw.strip():
        return {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidDataset(
            ErrorCodes.DATASET_UNREADABLE,
            field="mapping",
            error=f"invalid JSON: {e.msg}",
        ) from e

    if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
        raise InvalidDataset(
            ErrorCodes.DATASET_UNREADABLE,
            field="mapping",
            error="expected an object of field -> header strings",
        )
    return data
