"""Tests for lead_dashboard.services.scorecards: change %, no-data and unavailable sentinels."""
from datetime import datetime

import pytest

from lead_dashboard.services.scorecards import (
    STATUS_NO_DATA,
    STATUS_UNAVAILABLE,
    ScorecardStat,
    change_percent,
    compute_stat,
    lost_scorecards,
    overview_scorecards,
)
from lead_dashboard.services.time_window import ALL_TIME, LAST_7_DAYS, THIS_MONTH

NOW = datetime(2025, 5, 20, 12, 0)


@pytest.fixture
def records(make_record):
    """Four leads this month, two last month."""
    return (
        make_record(parsed_date=datetime(2025, 5, 2), phone='9876543210', email='a@example.com'),
        make_record(parsed_date=datetime(2025, 5, 10), phone='', email='b@example.com', status='Lost - Budget'),
        make_record(parsed_date=datetime(2025, 5, 18), phone='NA', email=''),
        make_record(parsed_date=datetime(2025, 5, 19), phone='9000000000', status='Lost'),
        make_record(parsed_date=datetime(2025, 4, 5), phone='9111111111', status='Lost'),
        make_record(parsed_date=datetime(2025, 4, 25), email='c@example.com'),
    )


class TestChangePercent:

    def test_increase(self):
        assert change_percent(12, 10) == 20.0

    def test_decrease_keeps_sign(self):
        assert change_percent(5, 10) == -50.0

    def test_zero_prior_is_zero(self):
        assert change_percent(7, 0) == 0.0
        assert change_percent(0, 0) == 0.0

    def test_one_decimal(self):
        assert change_percent(4, 3) == 33.3
        assert change_percent(2, 3) == -33.3


class TestComputeStat:

    def test_counts_all_records(self, make_record):
        stat = compute_stat([make_record()] * 3, [make_record()] * 2)
        assert stat == ScorecardStat(value=3, change_percent=50.0)
        assert stat.has_value

    def test_predicate(self, make_record):
        current = [make_record(status='Lost'), make_record(status='Fresh')]
        prior = [make_record(status='Lost'), make_record(status='Lost')]
        stat = compute_stat(current, prior, lambda r: r.status == 'Lost')
        assert stat.value == 1
        assert stat.change_percent == -50.0


class TestOverviewScorecards:

    def test_empty_records_are_no_data(self):
        cards = overview_scorecards((), THIS_MONTH, NOW)
        assert set(cards) == {'total_leads', 'this_month', 'with_phone', 'with_email'}
        for stat in cards.values():
            assert stat.status == STATUS_NO_DATA
            assert stat.value is None
            assert not stat.has_value

    def test_this_month_window(self, records):
        cards = overview_scorecards(records, THIS_MONTH, NOW)
        assert cards['total_leads'].value == 4
        assert cards['total_leads'].change_percent == 100.0
        assert cards['this_month'].value == 4

    def test_phone_and_email_ignore_placeholders(self, records):
        cards = overview_scorecards(records, THIS_MONTH, NOW)
        assert cards['with_phone'].value == 2
        assert cards['with_phone'].change_percent == 100.0
        assert cards['with_email'].value == 2
        assert cards['with_email'].change_percent == 100.0

    def test_all_time_has_no_prior_period(self, records):
        cards = overview_scorecards(records, ALL_TIME, NOW)
        assert cards['total_leads'].value == 6
        assert cards['total_leads'].change_percent == 0.0

    def test_rolling_window(self, records):
        cards = overview_scorecards(records, LAST_7_DAYS, NOW)
        # May 18 and 19 in the last 7 days; May 10 in the 7 days before
        assert cards['total_leads'].value == 2
        assert cards['total_leads'].change_percent == 100.0

    def test_to_dict(self, records):
        data = overview_scorecards(records, THIS_MONTH, NOW)['total_leads'].to_dict()
        assert data == {'value': 4, 'change_percent': 100.0, 'status': 'ok'}


class TestLostScorecards:

    def test_counts_lost(self, records):
        cards = lost_scorecards(records, THIS_MONTH, NOW)
        assert cards['total_lost'].value == 2
        assert cards['total_lost'].change_percent == 100.0
        assert cards['lost_this_month'].value == 2

    def test_time_to_loss_unavailable(self, records):
        stat = lost_scorecards(records, THIS_MONTH, NOW)['avg_time_to_loss']
        assert stat.status == STATUS_UNAVAILABLE
        assert stat.value is None
        assert not stat.has_value

    def test_empty_records_are_no_data(self):
        cards = lost_scorecards((), ALL_TIME, NOW)
        assert all(stat.status == STATUS_NO_DATA for stat in cards.values())
