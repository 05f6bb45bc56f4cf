"""
EduAsset - Import Mapping
Maps header-keyed rows from file/paste imports onto Device fields
"""
import logging
import re
from typing import Any, Dict, List, Sequence

from pydantic.alias_generators import to_camel

from eduasset.models.device import DEVICE_COLUMNS, DEVICE_HEADER

logger = logging.getLogger(__name__)


# Header spellings seen in school asset registers, normalized (lowercase, no spaces/punctuation)
_KOREAN_HEADERS = {
    "category": ["종류", "품목", "품명", "분류", "물품분류"],
    "model": ["모델", "모델명", "규격", "모델규격"],
    "ip": ["ip", "ip주소", "아이피"],
    "status": ["상태", "기기상태"],
    "purchase_date": ["구입일", "구입일자", "취득일", "취득일자", "구매일"],
    "group_id": ["운영부서", "부서", "관리부서", "사용부서"],
    "name": ["기기명", "별칭", "기기명별칭", "물품명"],
    "acquisition_division": ["취득구분", "취득방법"],
    "quantity": ["수량", "개수"],
    "unit_price": ["단가", "취득단가"],
    "total_amount": ["금액", "총액", "취득금액", "합계"],
    "service_life_change": ["내용연수변경", "내용연수"],
    "install_location": ["설치장소", "설치위치", "위치", "장소", "보관장소"],
    "os_version": ["os", "운영체제", "os버전"],
    "windows_password": ["비밀번호", "윈도우비밀번호"],
    "user_name": ["사용자", "사용자명", "담당자"],
    "pc_name": ["pc명", "컴퓨터이름", "pc이름"],
}


def normalize_header(header: Any) -> str:
    return re.sub(r"[\s_\-/().]+", "", str(header or "")).lower()


def _build_aliases() -> Dict[str, str]:
    aliases: Dict[str, str] = {}
    for field, header in zip(DEVICE_COLUMNS, DEVICE_HEADER):
        aliases[normalize_header(field)] = field
        aliases[normalize_header(to_camel(field))] = field
        aliases[normalize_header(header)] = field
    for field, headers in _KOREAN_HEADERS.items():
        for header in headers:
            aliases[normalize_header(header)] = field
    aliases["location"] = "install_location"
    return aliases


HEADER_ALIASES = _build_aliases()


def map_import_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Device field dict for one row; unknown headers and blank cells are dropped."""
    mapped: Dict[str, Any] = {}
    for header, value in row.items():
        field = HEADER_ALIASES.get(normalize_header(header))
        if field is None or value is None:
            continue
        text = str(value).strip()
        if text and field not in mapped:
            mapped[field] = text
    return mapped


def map_import_rows(rows: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Map every row; rows that map to no field at all are dropped."""
    mapped = [map_import_row(row) for row in rows]
    kept = [m for m in mapped if m]
    if len(kept) < len(rows):
        logger.info(f"Import mapping dropped {len(rows) - len(kept)} rows with no recognised columns")
    return kept
