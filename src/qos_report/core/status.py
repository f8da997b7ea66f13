"""
Status text resolution.

Status extracts carry a mix of coded source-system tokens ("NOCO",
"OSNO DLFL") and free text ("closed", "awaiting parts"). Resolution is
an ordered rule list evaluated first-match-wins. Coded tokens come
before substring heuristics and must stay there.
"""

import re
from dataclasses import dataclass

from .models import NotificationStatus


@dataclass(frozen=True)
class StatusRule:
    name: str
    pattern: re.Pattern
    status: NotificationStatus


STATUS_RULES = [
    StatusRule("coded_completed", re.compile(r"\bNOCO\b", re.IGNORECASE), NotificationStatus.COMPLETED),
    StatusRule("coded_in_progress", re.compile(r"\bOSNO\b", re.IGNORECASE), NotificationStatus.IN_PROGRESS),
    StatusRule("completed_words", re.compile(r"closed|complete|done", re.IGNORECASE), NotificationStatus.COMPLETED),
    StatusRule(
        "in_progress_words",
        re.compile(r"progress|ongoing|open|init|dlfl|osts|atco", re.IGNORECASE),
        NotificationStatus.IN_PROGRESS,
    ),
]


def resolve_status(
    status_text: str | None, rules: list[StatusRule] | None = None
) -> NotificationStatus | None:
    """
    Map raw status text to a status.

    Returns None only when there is no status text at all; present but
    unrecognized text resolves to PENDING.
    """
    if status_text is None:
        return None
    text = str(status_text).strip()
    if not text:
        return None

    for rule in rules if rules is not None else STATUS_RULES:
        if rule.pattern.search(text):
            return rule.status
    return NotificationStatus.PENDING
