from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, current_user
from app import bcrypt
from app.models import GateVisitor

main = Blueprint('main', __name__)

@main.route('/session', methods=['POST', 'OPTIONS'])
def open_session():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return jsonify({"success": False, "message": "Expected a JSON object"}), 400
    password = data.get('password')
    if password is not None and not isinstance(password, str):
        return jsonify({"success": False, "message": "Password must be a string"}), 400
    if password and bcrypt.check_password_hash(current_app.config['ACCESS_PASSWORD_HASH'], password):
        login_user(GateVisitor())
        return jsonify({"success": True, "granted": True})
    return jsonify({"success": False, "message": "Incorrect password"}), 401

@main.route('/session', methods=['GET'])
def check_session():
    return jsonify({
        "granted": current_user.is_authenticated,
        "refilter_interval_sec": current_app.config.get('LIVE_REFILTER_INTERVAL_SEC', 60),
    })

@main.route('/session', methods=['DELETE'])
def close_session():
    if current_user.is_authenticated:
        logout_user()
    return jsonify({"success": True, "granted": False})

@main.route('/health')
def health():
    return jsonify({'status': 'ok'})
