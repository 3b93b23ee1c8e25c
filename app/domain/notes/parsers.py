"""스트리밍 중인 불완전 JSON에서 릴리스 노트 필드 추출.

LLM이 토큰 단위로 내보내는 `{"developer": "...", "marketing": "..."}` 의
임의 접두사를 받아 두 필드의 현재 값을 최선으로 추출한다.

우선순위:
1. 전체 문서 JSON 파싱
2. 첫 `{` 부터 마지막 `}` 까지의 구간 파싱
3. 필드별 정규식 - 닫힌 문자열 우선, 없으면 아직 스트리밍 중인 열린 문자열

정규식 단계는 휴리스틱이다. 값 안의 이스케이프된 따옴표나 중괄호는
스트림 도중 잘못 읽힐 수 있으며, 최종 값은 전체 파싱 결과로 수렴한다.
"""

import json
import re
from dataclasses import dataclass

from app.core.exceptions import NotesParseError
from app.core.logging import get_logger
from app.domain.notes.schemas import PartialNotes, ReleaseNotes

logger = get_logger(__name__)

NOTE_FIELDS = ("developer", "marketing")

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

_CLOSED_FIELD_PATTERNS = {
    field: re.compile(rf'"{field}"\s*:\s*"([^"]*)"', re.IGNORECASE) for field in NOTE_FIELDS
}
_OPEN_FIELD_PATTERNS = {
    field: re.compile(rf'"{field}"\s*:\s*"([^"]*)', re.IGNORECASE) for field in NOTE_FIELDS
}


def _load_object(text: str) -> dict | None:
    """JSON 객체로 파싱되면 dict, 아니면 None"""
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _fields_from_object(data: dict) -> PartialNotes:
    values = {}
    for field in NOTE_FIELDS:
        value = data.get(field)
        values[field] = value if isinstance(value, str) else ""
    return PartialNotes(**values)


def _decode_escapes(raw: str) -> str:
    """정규식으로 잘라낸 값의 JSON 이스케이프 복원, 실패하면 원문 유지"""
    if "\\" not in raw:
        return raw
    try:
        return json.loads(f'"{raw}"')
    except json.JSONDecodeError:
        return raw


def extract_field(text: str, field: str) -> str | None:
    """필드의 닫힌 문자열 값, 없으면 열린 문자열 값 반환"""
    for pattern in (_CLOSED_FIELD_PATTERNS[field], _OPEN_FIELD_PATTERNS[field]):
        match = pattern.search(text)
        if match and match.group(1):
            return _decode_escapes(match.group(1))
    return None


def extract_partial_notes(text: str) -> PartialNotes:
    """불완전한 JSON 텍스트에서 developer/marketing 값 추출

    Args:
        text: LLM 응답 누적 텍스트

    Returns:
        찾지 못한 필드는 빈 문자열
    """
    data = _load_object(text)
    if data is not None:
        return _fields_from_object(data)

    match = JSON_OBJECT_PATTERN.search(text)
    if match:
        data = _load_object(match.group(0))
        if data is not None:
            return _fields_from_object(data)

    return PartialNotes(
        developer=extract_field(text, "developer") or "",
        marketing=extract_field(text, "marketing") or "",
    )


def parse_final_notes(text: str) -> ReleaseNotes:
    """스트림 종료 후 누적 텍스트를 엄격하게 파싱

    Raises:
        NotesParseError: JSON 객체가 아니거나 필수 필드가 문자열이 아닌 경우
    """
    data = _load_object(text.strip())
    if data is None:
        match = JSON_OBJECT_PATTERN.search(text)
        data = _load_object(match.group(0)) if match else None

    if data is None:
        logger.warning("최종 응답 JSON 파싱 실패", length=len(text))
        raise NotesParseError(detail="응답이 올바른 JSON 객체가 아닙니다")

    missing = [field for field in NOTE_FIELDS if not isinstance(data.get(field), str)]
    if missing:
        logger.warning("최종 응답 필드 누락", missing=missing)
        raise NotesParseError(detail=f"필수 필드 누락: {', '.join(missing)}")

    return ReleaseNotes(developer=data["developer"], marketing=data["marketing"])


@dataclass(frozen=True)
class NotesAccumulator:
    """마지막으로 확인된 유효 값 - 비어 있는 추출 결과로 퇴행하지 않는다"""

    developer: str = ""
    marketing: str = ""

    def merge(self, partial: PartialNotes) -> "NotesAccumulator":
        return NotesAccumulator(
            developer=partial.developer or self.developer,
            marketing=partial.marketing or self.marketing,
        )

    def as_notes(self) -> PartialNotes:
        return PartialNotes(developer=self.developer, marketing=self.marketing)
