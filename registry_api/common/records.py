from enum import Enum


class RecordType(str, Enum):
    company = "company"
    business_name = "business_name"


class MatchMode(str, Enum):
    substring = "substring"  # Default; substring or fuzzy hit
    word = "word"
    sentence = "sentence"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


APPROVAL_FIELD = "approval_status"
APPROVED = "APPROVED"
RECORD_TYPE_FIELD = "record_type"
RECORD_ID_FIELD = "record_id"


def match_mode(whole_word: bool, whole_sentence: bool) -> MatchMode:
    """Whole-sentence wins when a client sets both flags."""
    if whole_sentence:
        return MatchMode.sentence
    if whole_word:
        return MatchMode.word
    return MatchMode.substring
