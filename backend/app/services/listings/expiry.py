from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

DEFAULT_GRACE_PERIOD = timedelta(hours=24)
NO_GRACE = timedelta(0)


def _field(listing, name):
    if isinstance(listing, dict):
        return listing.get(name)
    return getattr(listing, name, None)


def parse_start(date_value, time_value) -> Optional[datetime]:
    """Combine ``YYYY-MM-DD`` and ``HH:MM`` into a naive local datetime.

    Returns None when either part is missing or does not parse.
    """
    if not isinstance(date_value, str) or not isinstance(time_value, str):
        return None
    try:
        return datetime.strptime(f'{date_value.strip()}T{time_value.strip()}', '%Y-%m-%dT%H:%M')
    except ValueError:
        return None


def expiry_instant(listing, grace_period: timedelta = NO_GRACE) -> Optional[datetime]:
    start = parse_start(_field(listing, 'date'), _field(listing, 'time'))
    if start is None:
        return None
    return start + grace_period


def is_active(listing, now: datetime, grace_period: timedelta = NO_GRACE) -> bool:
    """True while ``now`` is before the listing's start time plus ``grace_period``.

    Unparseable date/time fails closed: the listing counts as expired.
    """
    expiry = expiry_instant(listing, grace_period)
    if expiry is None:
        return False
    return now < expiry


def partition_listings(listings: Iterable, now: datetime, grace_period: timedelta = NO_GRACE) -> Tuple[List, List]:
    active, expired = [], []
    for listing in listings:
        (active if is_active(listing, now, grace_period) else expired).append(listing)
    return active, expired


def filter_active(listings: Iterable, now: datetime, grace_period: timedelta = NO_GRACE) -> List:
    return partition_listings(listings, now, grace_period)[0]
