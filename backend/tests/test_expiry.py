from datetime import datetime, timedelta

import pytest

from app.services.listings.expiry import (
    DEFAULT_GRACE_PERIOD,
    expiry_instant,
    filter_active,
    is_active,
    parse_start,
    partition_listings,
)

START = datetime(2026, 3, 14, 18, 30)


def _listing(date='2026-03-14', time='18:30', **extra):
    row = {'id': extra.pop('id', 'x'), 'date': date, 'time': time}
    row.update(extra)
    return row


def test_parse_start_combines_date_and_time():
    assert parse_start('2026-03-14', '18:30') == START


@pytest.mark.parametrize('date_value,time_value', [
    ('2026-02-30', '10:00'),
    ('14/03/2026', '10:00'),
    ('2026-03-14', '25:00'),
    ('2026-03-14', ''),
    ('', '10:00'),
    (None, '10:00'),
    ('2026-03-14', None),
])
def test_parse_start_rejects_malformed_values(date_value, time_value):
    assert parse_start(date_value, time_value) is None


def test_zero_grace_expires_exactly_at_start():
    listing = _listing()
    assert is_active(listing, START - timedelta(seconds=1))
    assert not is_active(listing, START)
    assert not is_active(listing, START + timedelta(minutes=1))


def test_grace_period_extends_activity():
    listing = _listing()
    now = START + timedelta(hours=23, minutes=59)
    assert not is_active(listing, now)
    assert is_active(listing, now, DEFAULT_GRACE_PERIOD)
    assert not is_active(listing, START + DEFAULT_GRACE_PERIOD, DEFAULT_GRACE_PERIOD)


@pytest.mark.parametrize('offset_hours', [-48, -1, 0, 1, 12, 24, 30])
def test_more_grace_never_shortens_activity(offset_hours):
    listing = _listing()
    now = START + timedelta(hours=offset_hours)
    graces = [timedelta(0), timedelta(hours=1), timedelta(hours=12), timedelta(hours=24)]
    results = [is_active(listing, now, g) for g in graces]
    # Once active for some grace, every larger grace keeps it active
    for smaller, larger in zip(results, results[1:]):
        assert larger or not smaller


def test_malformed_listing_fails_closed():
    broken = _listing(date='not-a-date')
    assert expiry_instant(broken) is None
    assert not is_active(broken, datetime(2000, 1, 1))
    assert not is_active(broken, datetime(2000, 1, 1), DEFAULT_GRACE_PERIOD)


def test_accepts_objects_with_attributes():
    class Row:
        date = '2026-03-14'
        time = '18:30'

    assert is_active(Row(), START - timedelta(minutes=5))
    assert expiry_instant(Row(), timedelta(hours=1)) == START + timedelta(hours=1)


def test_partition_preserves_order():
    rows = [
        _listing(id='a', time='09:00'),
        _listing(id='b', time='20:00'),
        _listing(id='c', date='bad'),
        _listing(id='d', time='19:00'),
    ]
    active, expired = partition_listings(rows, datetime(2026, 3, 14, 12, 0))
    assert [r['id'] for r in active] == ['b', 'd']
    assert [r['id'] for r in expired] == ['a', 'c']
    assert filter_active(rows, datetime(2026, 3, 14, 12, 0)) == active
