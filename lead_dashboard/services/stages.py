"""
Pipeline stage classification.

Lead status is free text exported from the CRM ("Lost - Budget", "Docs
Received / Application Filed", ...). All substring rules live here; views ask
classify_stage() instead of matching status text themselves.

A status can match several stages at once. Funnel stages are cumulative
milestones, so "docs received, application filed" counts toward both.
"""
from enum import Enum
from typing import FrozenSet

from lead_dashboard.config import STAGE_KEYWORDS, CONVERTED_STAGES


class StageTag(str, Enum):
    FRESH = 'fresh'
    LOST = 'lost'
    DOCS_RECEIVED = 'docs_received'
    APPLICATION_FILED = 'application_filed'
    DEPOSIT = 'deposit'
    REGISTERED = 'registered'
    ENROLLED = 'enrolled'

    @property
    def keyword(self) -> str:
        return STAGE_KEYWORDS[self.value]

    @property
    def label(self) -> str:
        return self.keyword.title()


# Funnel display order
FUNNEL_STAGES = (
    StageTag.FRESH,
    StageTag.DOCS_RECEIVED,
    StageTag.APPLICATION_FILED,
    StageTag.DEPOSIT,
    StageTag.REGISTERED,
    StageTag.ENROLLED,
    StageTag.LOST,
)

CONVERTED = frozenset(StageTag(s) for s in CONVERTED_STAGES)


def classify_stage(status: str) -> FrozenSet[StageTag]:
    """Every stage whose keyword appears in the status text (case-insensitive)."""
    text = (status or '').lower()
    if not text:
        return frozenset()
    return frozenset(tag for tag in StageTag if tag.keyword in text)


def is_lost(status: str) -> bool:
    return StageTag.LOST in classify_stage(status)


def is_converted(status: str) -> bool:
    return bool(classify_stage(status) & CONVERTED)
