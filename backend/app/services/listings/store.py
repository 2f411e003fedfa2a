from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence
from urllib.parse import urlparse

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from app import db, socketio
from app.models import Listing, LEVELS, TIME_SLOTS
from .expiry import parse_start

LISTINGS_ROOM = 'listings'
LISTINGS_NAMESPACE = '/ws'
DEFAULT_ORDER = ('date', 'time')
REQUIRED_FIELDS = ('name', 'email', 'location', 'date', 'time', 'level')
OPTIONAL_FIELDS = ('notes', 'event_link')

_ORDER_COLUMNS = {
    'date': Listing.date,
    'time': Listing.time,
    'created_at': Listing.created_at,
    'name': Listing.name,
    'level': Listing.level,
    'location': Listing.location,
}


class ListingValidationError(ValueError):
    def __init__(self, fields: Dict[str, str]):
        super().__init__('Invalid listing: ' + ', '.join(sorted(fields)))
        self.fields = fields


class ListingStoreError(RuntimeError):
    pass


def validate_listing_fields(data: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Return cleaned listing fields or raise ListingValidationError."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ListingValidationError({'body': 'Expected a JSON object'})
    errors: Dict[str, str] = {}
    cleaned: Dict[str, Optional[str]] = {}

    for name in REQUIRED_FIELDS:
        value = data.get(name)
        value = value.strip() if isinstance(value, str) else ''
        if not value:
            errors[name] = 'This field is required'
        cleaned[name] = value

    if cleaned['date'] and 'date' not in errors and parse_start(cleaned['date'], '00:00') is None:
        errors['date'] = 'Expected a date as YYYY-MM-DD'
    if cleaned['time'] and cleaned['time'] not in TIME_SLOTS:
        errors['time'] = f'Expected a start time between {TIME_SLOTS[0]} and {TIME_SLOTS[-1]} in 15 minute steps'
    if cleaned['level'] and cleaned['level'] not in LEVELS:
        errors['level'] = 'Expected one of: ' + ', '.join(LEVELS)

    for name in OPTIONAL_FIELDS:
        value = data.get(name)
        value = value.strip() if isinstance(value, str) else None
        cleaned[name] = value or None

    link = cleaned['event_link']
    if link:
        parsed = urlparse(link)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            errors['event_link'] = 'Expected an http(s) URL'

    if errors:
        raise ListingValidationError(errors)
    return cleaned


def _order_clauses(order_by: Sequence[str]):
    clauses = []
    for name in order_by:
        column = _ORDER_COLUMNS.get(name)
        if column is None:
            raise ValueError(f'Cannot order listings by {name!r}')
        clauses.append(column.asc())
    if 'created_at' not in order_by:
        clauses.append(Listing.created_at.asc())
    return clauses


def list_listings(order_by: Sequence[str] = DEFAULT_ORDER, level: Optional[str] = None,
                  search: Optional[str] = None) -> List[Listing]:
    """Full read of the store. Rows may already be expired; callers filter."""
    query = Listing.query
    if level:
        query = query.filter(Listing.level == level)
    if search:
        term = search.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
        pattern = f'%{term}%'
        query = query.filter(or_(
            Listing.name.ilike(pattern, escape='\\'),
            Listing.location.ilike(pattern, escape='\\'),
        ))
    try:
        return query.order_by(*_order_clauses(order_by)).all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise ListingStoreError(f'Failed to read listings: {exc}') from exc


def iter_listings(batch_size: Optional[int] = None) -> Iterator[Listing]:
    """Stream every row, fetching ``batch_size`` rows at a time when set."""
    query = Listing.query.order_by(Listing.created_at.asc())
    if batch_size:
        query = query.yield_per(batch_size)
    try:
        for listing in query:
            yield listing
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise ListingStoreError(f'Failed to read listings: {exc}') from exc


def get_listing(listing_id: str) -> Optional[Listing]:
    try:
        return db.session.get(Listing, listing_id)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise ListingStoreError(f'Failed to read listing {listing_id}: {exc}') from exc


def insert_listing(fields: Dict[str, Any]) -> Listing:
    cleaned = validate_listing_fields(fields)
    listing = Listing(**cleaned)
    try:
        db.session.add(listing)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise ListingStoreError(f'Failed to save listing: {exc}') from exc
    current_app.logger.info(f"[listing-insert] id={listing.id} date={listing.date} time={listing.time}")
    notify_listings_changed('INSERT', [listing.id])
    return listing


def _chunks(ids: List[str], size: Optional[int]) -> Iterable[List[str]]:
    if not size:
        yield ids
        return
    for start in range(0, len(ids), size):
        yield ids[start:start + size]


def delete_by_ids(ids: Iterable[str], batch_size: Optional[int] = None) -> int:
    """Delete the given ids in one transaction and return how many rows went away.

    Ids that no longer exist are ignored, so repeated calls are harmless.
    """
    ids = list(dict.fromkeys(ids))
    if not ids:
        return 0
    deleted = 0
    try:
        for chunk in _chunks(ids, batch_size):
            deleted += Listing.query.filter(Listing.id.in_(chunk)).delete(synchronize_session=False)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise ListingStoreError(f'Failed to delete listings: {exc}') from exc
    current_app.logger.info(f"[listing-delete] requested={len(ids)} deleted={deleted}")
    if deleted:
        notify_listings_changed('DELETE', ids)
    return deleted


def delete_listing(listing_id: str) -> bool:
    return delete_by_ids([listing_id]) > 0


def notify_listings_changed(event: str, ids: List[str]) -> None:
    """Tell subscribed clients to re-read; the payload is informational only."""
    socketio.emit(
        'listings_changed',
        {'event': event, 'ids': list(ids)},
        to=LISTINGS_ROOM,
        namespace=LISTINGS_NAMESPACE,
    )
