import re

MIN_CANDIDATE_LENGTH = 3
MAX_CANDIDATE_LENGTH = 49
MAX_CANDIDATES = 20

_LABEL_RE = re.compile(r"ingredients?:?", re.IGNORECASE)
_SEPARATOR_RE = re.compile(r"[,;:\n]")
_NUMERIC_RE = re.compile(r"[0-9]+")


def extract_candidates(text: str) -> list[str]:
    """Split recognized label text into at most 20 ingredient candidates.

    The first "ingredients:" label is dropped, the rest is split on commas,
    semicolons, colons and newlines. Segments outside 3..49 characters or made
    only of digits are discarded. Order is preserved; the first 20 win.
    """
    lowered = _LABEL_RE.sub("", text.lower(), count=1)
    candidates: list[str] = []
    for segment in _SEPARATOR_RE.split(lowered):
        item = segment.strip()
        if not MIN_CANDIDATE_LENGTH <= len(item) <= MAX_CANDIDATE_LENGTH:
            continue
        if _NUMERIC_RE.fullmatch(item):
            continue
        candidates.append(item)
        if len(candidates) == MAX_CANDIDATES:
            break
    return candidates
