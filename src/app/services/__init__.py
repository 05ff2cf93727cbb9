"""
Application Services.

역할:
- dataset: CSV/JSON 입력 → 레코드
- transform: 레코드 + 매핑 (+ 그룹) → 렌더 컨텍스트
"""

from .dataset import parse_csv, parse_mapping_json, parse_records_json
from .transform import DataTransformer, group_rows, map_row, suggest_mapping

__all__ = [
    "parse_csv",
    "parse_records_json",
    "parse_mapping_json",
    "DataTransformer",
    "map_row",
    "group_rows",
    "suggest_mapping",
]
