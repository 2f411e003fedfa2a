from datetime import datetime
from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required
from app.models import LEVELS, TIME_SLOTS, KNOWN_LOCATIONS
from app.services.listings import store
from app.services.listings.expiry import filter_active, is_active


listings = Blueprint('listings', __name__)


@listings.errorhandler(store.ListingValidationError)
def handle_validation_error(exc):
    return jsonify({'error': 'Please fill in all required fields', 'fields': exc.fields}), 400


@listings.errorhandler(store.ListingStoreError)
def handle_store_error(exc):
    current_app.logger.error(f"[listing-store] {exc}")
    return jsonify({'error': 'Listings are temporarily unavailable, please try again'}), 503


@listings.route('', methods=['GET'])
@login_required
def list_active_listings():
    level = request.args.get('level') or None
    search = (request.args.get('q') or '').strip() or None
    rows = store.list_listings(level=level, search=search)
    # Rows past their start time may still be in the store until cleanup runs
    active = filter_active(rows, datetime.now())
    return jsonify([listing.to_dict() for listing in active])


@listings.route('/options', methods=['GET'])
def listing_options():
    return jsonify({
        'levels': list(LEVELS),
        'time_slots': list(TIME_SLOTS),
        'locations': list(KNOWN_LOCATIONS),
    })


@listings.route('/<string:listing_id>', methods=['GET'])
@login_required
def get_listing(listing_id):
    listing = store.get_listing(listing_id)
    # Started listings linger until cleanup; treat them as gone
    if not listing or not is_active(listing, datetime.now()):
        return jsonify({'error': 'Listing not found'}), 404
    return jsonify(listing.to_dict())


@listings.route('', methods=['POST'])
@login_required
def create_listing():
    listing = store.insert_listing(request.get_json(silent=True))
    return jsonify(listing.to_dict()), 201


@listings.route('/<string:listing_id>', methods=['DELETE'])
@login_required
def delete_listing(listing_id):
    if not store.delete_listing(listing_id):
        return jsonify({'error': 'Listing not found'}), 404
    return jsonify({'success': True, 'id': listing_id})
