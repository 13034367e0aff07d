"""
Analytics API: one JSON endpoint per dashboard tab.

Every endpoint reads the session's current snapshot, applies the requested
time window and returns plain {name, value, percentage} series and
{value, change_percent, status} scorecards. With no dataset each endpoint
returns its empty shape (has_data: false), never an error.
"""
from datetime import datetime

from flask import Blueprint, jsonify, request

from lead_dashboard.config import LEAD_LIST_LIMIT, TOP_N
from lead_dashboard.routes.dashboard import current_snapshot
from lead_dashboard.services import aggregation as agg
from lead_dashboard.services.filters import LeadFilter, apply_filter, newest_first
from lead_dashboard.services.scorecards import lost_scorecards, overview_scorecards
from lead_dashboard.services.stages import is_lost
from lead_dashboard.services.time_window import (
    InvalidQuery,
    filter_by_window,
    parse_date_param,
    parse_window,
)
from lead_dashboard.services.timeseries import bucket_by_time, parse_granularity

bp = Blueprint('analytics', __name__)


@bp.errorhandler(InvalidQuery)
def handle_invalid_query(e):
    return jsonify({'error': str(e)}), 400


def _window():
    return parse_window(request.args.get('window'), request.args.get('start'), request.args.get('end'))


def _sort():
    value = (request.args.get('sort') or agg.SortDirection.DESC.value).lower()
    try:
        return agg.SortDirection(value)
    except ValueError:
        raise InvalidQuery(f"Unknown sort {value!r}; expected 'asc' or 'desc'")


def _limit():
    value = request.args.get('limit')
    if value is None or not value.strip():
        return LEAD_LIST_LIMIT
    try:
        limit = int(value)
    except ValueError:
        limit = -1
    if limit < 0:
        raise InvalidQuery(f"limit must be a non-negative integer, got {value!r}")
    return limit


def _series(entries):
    return [entry.to_dict() for entry in entries]


def _view():
    """(snapshot, window, records inside the window, now) for the current request."""
    snapshot = current_snapshot()
    window = _window()
    now = datetime.now()
    return snapshot, window, filter_by_window(snapshot.records, window, now), now


# ── Overall Leads ────────────────────────────────────────────────────────────

@bp.route('/api/overview')
def overview():
    snapshot, window, records, now = _view()
    granularity = parse_granularity(request.args.get('granularity'))
    sort = _sort()
    return jsonify({
        'has_data': snapshot.has_data,
        'window': window.to_dict(),
        'record_count': len(records),
        'scorecards': {k: v.to_dict() for k, v in overview_scorecards(snapshot.records, window, now).items()},
        'status': _series(agg.by_status(records, TOP_N['status'], sort)),
        'preferences': _series(agg.by_preference(records, TOP_N['preference'], sort)),
        'cities': _series(agg.by_city(records, TOP_N['city'], sort)),
        'timeseries': {
            'granularity': granularity.value,
            'buckets': _series(bucket_by_time(records, granularity, now)),
        },
    })


@bp.route('/api/timeseries')
def timeseries():
    snapshot, window, records, now = _view()
    granularity = parse_granularity(request.args.get('granularity'))
    return jsonify({
        'has_data': snapshot.has_data,
        'window': window.to_dict(),
        'granularity': granularity.value,
        'buckets': _series(bucket_by_time(records, granularity, now)),
    })


# ── Counselor Performance ────────────────────────────────────────────────────

@bp.route('/api/counselors')
def counselors():
    snapshot, window, records, _ = _view()
    sort = _sort()
    assignee = request.args.get('assignee')
    performance = agg.counselor_performance(records)
    return jsonify({
        'has_data': snapshot.has_data,
        'window': window.to_dict(),
        'assignees': _series(agg.by_assignee(records, TOP_N['assignee'], sort)),
        'performance': performance.to_dict(),
        'funnel': agg.assignee_funnel(records, assignee).to_dict() if assignee is not None else None,
    })


# ── Facebook Ads ─────────────────────────────────────────────────────────────

@bp.route('/api/ads')
def ads():
    snapshot, window, records, _ = _view()
    sort = _sort()
    return jsonify({
        'has_data': snapshot.has_data,
        'window': window.to_dict(),
        'ads': _series(agg.by_ad(records, TOP_N['ad'], sort)),
        'campaigns': _series(agg.by_campaign(records, TOP_N['campaign'], sort)),
    })


# ── Lost Leads ───────────────────────────────────────────────────────────────

@bp.route('/api/lost')
def lost():
    snapshot, window, records, now = _view()
    sort = _sort()
    lost_records = [r for r in records if is_lost(r.status)]
    return jsonify({
        'has_data': snapshot.has_data,
        'window': window.to_dict(),
        'scorecards': {k: v.to_dict() for k, v in lost_scorecards(snapshot.records, window, now).items()},
        'loss_reasons': _series(agg.by_loss_reason(records, TOP_N['loss_reason'], sort)),
        'by_assignee': _series(agg.lost_by_assignee(records, TOP_N['lost_by_assignee'], sort)),
        'recent': [r.to_dict() for r in newest_first(lost_records, limit=10)],
    })


# ── Lead list ────────────────────────────────────────────────────────────────

@bp.route('/api/leads')
def leads():
    snapshot, window, records, _ = _view()
    lead_filter = LeadFilter(
        search=request.args.get('search', ''),
        status=request.args.get('status', ''),
        start=parse_date_param(request.args.get('from'), 'from'),
        end=parse_date_param(request.args.get('to'), 'to', end_of_day=True),
    )
    limit = _limit()
    matched = apply_filter(records, lead_filter)
    return jsonify({
        'has_data': snapshot.has_data,
        'window': window.to_dict(),
        'total': len(matched),
        'leads': [r.to_dict() for r in newest_first(matched, limit=limit)],
    })
