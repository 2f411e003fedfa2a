from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from flask import current_app

from app import db

from . import store
from .expiry import is_active


def _config_grace() -> timedelta:
    return timedelta(hours=int(current_app.config.get('CLEANUP_GRACE_HOURS', 24)))


def _config_batch_size() -> Optional[int]:
    size = int(current_app.config.get('CLEANUP_BATCH_SIZE', 0) or 0)
    return size if size > 0 else None


def run_cleanup(now: Optional[datetime] = None, grace_period: Optional[timedelta] = None,
                batch_size: Optional[int] = None) -> Dict[str, Any]:
    """Delete listings whose start time plus the grace period has passed.

    Must run inside an app context. Never raises: store failures are rolled
    back and reported as ``{'success': False, 'error': ...}`` so the caller
    (HTTP handler, CLI, scheduler) decides whether to retry. Overlapping runs
    only repeat work; deleting an id twice is a no-op.
    """
    log = current_app.logger
    now = now or datetime.now()
    grace_period = _config_grace() if grace_period is None else grace_period
    batch_size = _config_batch_size() if batch_size is None else batch_size

    log.info(f"[cleanup-start] now={now.isoformat()} grace={grace_period} cutoff={(now - grace_period).isoformat()}")
    try:
        # Only expired ids are kept; rows stream past in batch_size chunks
        total = 0
        expired_ids = []
        for listing in store.iter_listings(batch_size=batch_size):
            total += 1
            if not is_active(listing, now, grace_period):
                expired_ids.append(listing.id)
        log.info(f"[cleanup-scan] total={total}")
        log.info(f"[cleanup-scan] expired={len(expired_ids)}")

        deleted = store.delete_by_ids(expired_ids, batch_size=batch_size) if expired_ids else 0
    except store.ListingStoreError as exc:
        log.error(f"[cleanup-failed] {exc}")
        return {'success': False, 'error': str(exc)}
    except Exception as exc:
        db.session.rollback()
        log.exception(f"[cleanup-failed] unexpected error: {exc}")
        return {'success': False, 'error': str(exc) or exc.__class__.__name__}

    log.info(f"[cleanup-done] deleted={deleted}")
    return {
        'success': True,
        'deletedCount': deleted,
        'message': f'Cleaned up {deleted} expired listing(s)',
    }
