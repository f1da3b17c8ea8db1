"""담당자 페이로드 정규화와 이전/신규 담당자 집합 비교(diff) 유틸리티입니다."""

import json
from typing import Any, List, NamedTuple

from app.errors import ValidationError

ID_KEYS = ("user_id", "id", "_id")


class AssigneeDiff(NamedTuple):
    added: List[str]
    removed: List[str]


def _id_of(item: Any) -> str:
    if isinstance(item, bool):
        raise ValidationError("담당자 ID 형식이 올바르지 않습니다.")
    if isinstance(item, int):
        return str(item)
    if isinstance(item, str):
        text = item.strip()
        # 숫자 ID는 "03"과 "3"이 같은 사용자로 비교되도록 정규화
        return str(int(text)) if text.isdigit() else text
    if isinstance(item, dict):
        for key in ID_KEYS:
            if item.get(key) is not None:
                return _id_of(item[key])
        raise ValidationError("담당자 객체에 ID가 없습니다.")
    user_id = getattr(item, "user_id", None)
    if user_id is not None:
        return str(user_id)
    raise ValidationError("지원하지 않는 담당자 형식입니다.")


def _from_mapping(payload: dict) -> List[Any]:
    if any(key in payload for key in ID_KEYS):
        return [payload]
    try:
        keys = sorted(payload.keys(), key=lambda k: int(k))
    except (TypeError, ValueError):
        raise ValidationError("지원하지 않는 담당자 형식입니다.")
    return [payload[k] for k in keys]


def _expand(payload: Any) -> List[Any]:
    if payload is None:
        return []
    if isinstance(payload, (list, tuple)):
        return list(payload)
    if isinstance(payload, dict):
        return _from_mapping(payload)
    if isinstance(payload, str):
        text = payload.strip()
        if not text:
            return []
        try:
            decoded = json.loads(text)
        except ValueError:
            return [text]
        if isinstance(decoded, (list, dict)):
            return _expand(decoded)
        if decoded is None:
            return []
        return [decoded]
    return [payload]


def normalize_assignee_ids(payload: Any) -> List[str]:
    """list, 단일 ID, JSON 문자열, 숫자 인덱스 객체를 중복 없는 ID 문자열 목록으로 변환합니다.

    입력 순서는 유지합니다. None은 빈 목록이고, 그 외 해석할 수 없는 형식은 ValidationError입니다.
    """
    result: List[str] = []
    seen = set()
    for item in _expand(payload):
        if item is None:
            continue
        value = _id_of(item)
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def diff_assignees(old: Any, new: Any) -> AssigneeDiff:
    old_ids = normalize_assignee_ids(old)
    new_ids = normalize_assignee_ids(new)
    old_set, new_set = set(old_ids), set(new_ids)
    return AssigneeDiff(
        added=[uid for uid in new_ids if uid not in old_set],
        removed=[uid for uid in old_ids if uid not in new_set],
    )
