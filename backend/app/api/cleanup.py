from flask import Blueprint, jsonify, request
from app.services.listings.cleanup import run_cleanup


cleanup = Blueprint('cleanup', __name__)

_CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'authorization, x-client-info, apikey, content-type',
}


@cleanup.route('/cleanup-expired-listings', methods=['POST', 'OPTIONS'])
def cleanup_expired_listings():
    """Externally triggered purge (cron, uptime pinger, manual curl). No payload."""
    if request.method == 'OPTIONS':
        return '', 200, _CORS_HEADERS
    result = run_cleanup()
    status = 200 if result['success'] else 500
    return jsonify(result), status, _CORS_HEADERS
