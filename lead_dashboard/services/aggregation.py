"""
Categorical aggregation: group, count, percentage, sort, top-N.

Every view's category chart comes from aggregate_by(); the named helpers
below only pick the key, the exclusions and the pre-filter. Percentages are
computed against the total of *all* groups before truncation, so a top-N list
need not sum to 100.
"""
import re
import string
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from lead_dashboard.config import (
    MISSING_VALUES,
    PREFERENCE_CATEGORIES,
    PREFERENCE_PLACEHOLDERS,
    UNASSIGNED,
    UNKNOWN_STATUS,
)
from lead_dashboard.models.lead import LeadRecord
from lead_dashboard.services.stages import FUNNEL_STAGES, classify_stage, is_converted, is_lost


class SortDirection(str, Enum):
    DESC = 'desc'   # largest first, keep the first N
    ASC = 'asc'     # smallest first, keep the last N


@dataclass(frozen=True)
class CategoryCount:
    name: str
    value: int
    percentage: int = 0

    def to_dict(self) -> Dict:
        return {'name': self.name, 'value': self.value, 'percentage': self.percentage}


@dataclass(frozen=True)
class AggregateOptions:
    exclude: Optional[Callable[[str], bool]] = None        # drop a key after extraction
    where: Optional[Callable[[LeadRecord], bool]] = None   # pre-filter records
    sort: SortDirection = SortDirection.DESC
    top_n: Optional[int] = None


def round_half_up(value: float, digits: int = 0):
    """Round .5 away from zero (Python's round() is banker's rounding)."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def percentage_of(count: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(count / total * 100)


def aggregate_by(records: Sequence[LeadRecord],
                 key_fn: Callable[[LeadRecord], Optional[str]],
                 options: Optional[AggregateOptions] = None) -> List[CategoryCount]:
    """
    Count records per key.

    key_fn may return None to skip a record. Ties keep first-seen order.
    DESC sorts largest first and keeps the first top_n; ASC sorts smallest
    first and keeps the last top_n. Without ties at the cutoff both keep the
    same entries; with ties DESC keeps the first-seen and ASC the last-seen.
    """
    options = options or AggregateOptions()

    counts: Dict[str, int] = {}
    for record in records:
        if options.where is not None and not options.where(record):
            continue
        key = key_fn(record)
        if key is None:
            continue
        if options.exclude is not None and options.exclude(key):
            continue
        counts[key] = counts.get(key, 0) + 1

    total = sum(counts.values())
    entries = [CategoryCount(name, value, percentage_of(value, total)) for name, value in counts.items()]

    if options.sort == SortDirection.ASC:
        entries.sort(key=lambda e: e.value)
        if options.top_n is not None:
            entries = entries[-options.top_n:] if options.top_n > 0 else []
    else:
        entries.sort(key=lambda e: e.value, reverse=True)
        if options.top_n is not None:
            entries = entries[:max(options.top_n, 0)]
    return entries


# ── Key normalization ────────────────────────────────────────────────────────

def is_missing(value: Optional[str]) -> bool:
    """Empty or a placeholder such as "NA" / "unknown"."""
    return (value or '').strip().casefold() in MISSING_VALUES


def normalize_assignee(name: str) -> str:
    return (name or '').strip() or UNASSIGNED


def normalize_status(status: str) -> str:
    return (status or '').strip() or UNKNOWN_STATUS


def normalize_city(city: str) -> Optional[str]:
    """Trim and case-fold so "DELHI " and "delhi" group together. Placeholders → None."""
    if is_missing(city):
        return None
    folded = ' '.join(city.strip().casefold().split())
    return string.capwords(folded)


_TOKEN_SPLIT = re.compile(r'[\s_/\-]+')


def normalize_preference(preference: str) -> Optional[str]:
    """
    Map a student preference onto a program category.

    "btech_engineering" → "Engineering Programs"; "it" as a word or anything
    containing "computer" → "Computer Science/IT"; everything else is
    title-cased word by word ("study_abroad" → "Study Abroad").
    """
    value = (preference or '').strip().lower()
    if value in PREFERENCE_PLACEHOLDERS:
        return None

    for needle, category in PREFERENCE_CATEGORIES:
        if needle in value:
            return category
    tokens = [t for t in _TOKEN_SPLIT.split(value) if t]
    if 'it' in tokens:
        return 'Computer Science/IT'
    return ' '.join(string.capwords(word) for word in value.split('_') if word.strip())


def _stripped(attr: str) -> Callable[[LeadRecord], str]:
    return lambda record: (getattr(record, attr) or '').strip()


# ── Named aggregations ───────────────────────────────────────────────────────

def by_status(records, top_n=None, sort=SortDirection.DESC) -> List[CategoryCount]:
    return aggregate_by(records, lambda r: normalize_status(r.status),
                        AggregateOptions(sort=sort, top_n=top_n))


def by_assignee(records, top_n=None, sort=SortDirection.DESC) -> List[CategoryCount]:
    return aggregate_by(records, lambda r: normalize_assignee(r.assignee_name),
                        AggregateOptions(sort=sort, top_n=top_n))


def by_city(records, top_n=None, sort=SortDirection.DESC) -> List[CategoryCount]:
    return aggregate_by(records, lambda r: normalize_city(r.city),
                        AggregateOptions(sort=sort, top_n=top_n))


def by_ad(records, top_n=None, sort=SortDirection.DESC) -> List[CategoryCount]:
    return aggregate_by(records, _stripped('facebook_ad'),
                        AggregateOptions(exclude=is_missing, sort=sort, top_n=top_n))


def by_campaign(records, top_n=None, sort=SortDirection.DESC) -> List[CategoryCount]:
    return aggregate_by(records, _stripped('facebook_campaign'),
                        AggregateOptions(exclude=is_missing, sort=sort, top_n=top_n))


def by_preference(records, top_n=None, sort=SortDirection.DESC) -> List[CategoryCount]:
    return aggregate_by(records, lambda r: normalize_preference(r.student_preference),
                        AggregateOptions(sort=sort, top_n=top_n))


def by_loss_reason(records, top_n=None, sort=SortDirection.DESC) -> List[CategoryCount]:
    """Loss reasons among lost leads; blank / NA / unknown reasons are left out."""
    return aggregate_by(records, _stripped('lost_reason'),
                        AggregateOptions(exclude=is_missing, where=lambda r: is_lost(r.status),
                                         sort=sort, top_n=top_n))


def lost_by_assignee(records, top_n=None, sort=SortDirection.DESC) -> List[CategoryCount]:
    return aggregate_by(records, lambda r: normalize_assignee(r.assignee_name),
                        AggregateOptions(where=lambda r: is_lost(r.status), sort=sort, top_n=top_n))


# ── Per-counselor funnel ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class AssigneeFunnel:
    assignee: str
    total: int
    converted: int
    conversion_rate: int
    stages: List[CategoryCount] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'assignee': self.assignee,
            'total': self.total,
            'converted': self.converted,
            'conversion_rate': self.conversion_rate,
            'stages': [s.to_dict() for s in self.stages],
        }


def assignee_funnel(records: Sequence[LeadRecord], assignee: str) -> AssigneeFunnel:
    """
    Stage counts for one counselor.

    Each stage is counted independently: a lead whose status names two
    stages counts toward both, so stage values can sum past the total.
    """
    wanted = normalize_assignee(assignee).casefold()
    own = [r for r in records if normalize_assignee(r.assignee_name).casefold() == wanted]
    total = len(own)

    stage_counts = {tag: 0 for tag in FUNNEL_STAGES}
    converted = 0
    for record in own:
        tags = classify_stage(record.status)
        for tag in tags:
            if tag in stage_counts:
                stage_counts[tag] += 1
        if is_converted(record.status):
            converted += 1

    stages = [CategoryCount(tag.label, count, percentage_of(count, total))
              for tag, count in stage_counts.items()]
    return AssigneeFunnel(
        assignee=normalize_assignee(assignee),
        total=total,
        converted=converted,
        conversion_rate=percentage_of(converted, total),
        stages=stages,
    )


@dataclass(frozen=True)
class CounselorRow:
    name: str
    total_leads: int
    converted: int
    conversion_rate: int

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'total_leads': self.total_leads,
            'converted': self.converted,
            'conversion_rate': self.conversion_rate,
        }


@dataclass(frozen=True)
class CounselorPerformance:
    rows: List[CounselorRow]
    top_performer: Optional[CounselorRow]
    average_conversion: float

    def to_dict(self) -> Dict:
        return {
            'rows': [row.to_dict() for row in self.rows],
            'top_performer': self.top_performer.to_dict() if self.top_performer else None,
            'average_conversion': self.average_conversion,
        }


def counselor_performance(records: Sequence[LeadRecord]) -> CounselorPerformance:
    """Per-counselor totals and conversion, busiest counselor first."""
    totals: Dict[str, int] = {}
    converted: Dict[str, int] = {}
    for record in records:
        name = normalize_assignee(record.assignee_name)
        totals[name] = totals.get(name, 0) + 1
        if is_converted(record.status):
            converted[name] = converted.get(name, 0) + 1

    rows = [
        CounselorRow(name, total, converted.get(name, 0), percentage_of(converted.get(name, 0), total))
        for name, total in totals.items()
    ]
    rows.sort(key=lambda row: row.total_leads, reverse=True)

    if not rows:
        return CounselorPerformance(rows=[], top_performer=None, average_conversion=0.0)

    top = max(rows, key=lambda row: row.conversion_rate)
    average = round_half_up(sum(row.conversion_rate for row in rows) / len(rows), 1)
    return CounselorPerformance(rows=rows, top_performer=top, average_conversion=average)
