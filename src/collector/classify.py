"""Child-friendliness classification for swim sessions.

Rules are evaluated in a fixed order and the first decisive rule wins:

1. label contains an exclude keyword          -> False
2. label contains an include keyword          -> True
3. age text says "all ages" / "all welcome"   -> True
4. age text has a minimum like "6 yrs +"      -> minimum <= 5
5. otherwise                                  -> the source's default

The fallback in rule 5 differs per platform, so it is carried on the rules
object rather than hardcoded here.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass

_MIN_AGE_RE = re.compile(r"(\d+)\s*(?:yrs?|years?)\s*\+")
_OPEN_AGE_PHRASES = ("all ages", "all welcome")
MAX_CHILD_MIN_AGE = 5


def is_child_friendly(
    label: str,
    age_restriction_text: str,
    include_keywords: Sequence[str],
    exclude_keywords: Sequence[str],
    default_when_unclassified: bool = False,
) -> bool:
    """Decide whether a session suits young children.

    Args:
        label: Source-provided activity name, e.g. "Family Swim".
        age_restriction_text: Free-text age rule, e.g. "6 yrs +" or "All ages".
        include_keywords: Label substrings that mark a session child-friendly.
        exclude_keywords: Label substrings that rule a session out. These
            always win over include keywords.
        default_when_unclassified: Result when no rule is decisive.

    Returns:
        True if the session is considered child-friendly.
    """
    name = (label or "").lower()
    restrictions = (age_restriction_text or "").lower()

    if any(keyword.lower() in name for keyword in exclude_keywords):
        return False

    if any(keyword.lower() in name for keyword in include_keywords):
        return True

    if any(phrase in restrictions for phrase in _OPEN_AGE_PHRASES):
        return True

    match = _MIN_AGE_RE.search(restrictions)
    if match:
        return int(match.group(1)) <= MAX_CHILD_MIN_AGE

    return default_when_unclassified


@dataclass(frozen=True)
class ClassificationRules:
    """Keyword lists plus the per-source fallback, bundled for adapters."""

    include_keywords: tuple[str, ...] = ()
    exclude_keywords: tuple[str, ...] = ()
    default_when_unclassified: bool = False

    def classify(self, label: str, age_restriction_text: str) -> bool:
        return is_child_friendly(
            label,
            age_restriction_text,
            self.include_keywords,
            self.exclude_keywords,
            self.default_when_unclassified,
        )
