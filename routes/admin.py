from flask import Blueprint, jsonify, g, request

from security.errors import StoreUnavailable
from security.login_flow import MSG_EXPIRED
from security.rate_limit import check_and_increment_login_rate
from security.session import revoke_session
from utils.audit import log_event
from utils.auth_context import admin_required
from utils.client_ip import client_ip
from utils.collaborators import build_login_flow, get_store
from utils.kv_store import StoreError

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

SETTINGS_KEY = "site_settings"
SERVICES_KEY = "services"
THRESHOLDS_KEY = "flow_thresholds"


def _json_object():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data


def _bad_body():
    return jsonify(error="Invalid request body"), 400


@admin_bp.post("/api/login")
def login():
    data = _json_object()
    if data is None:
        return _bad_body()
    username = data.get("username")
    password = data.get("password")
    if not isinstance(username, str) or not isinstance(password, str):
        return _bad_body()

    allowed, retry_after = check_and_increment_login_rate()
    if not allowed:
        log_event("ADMIN_LOGIN_RATE_LIMIT", metadata={"retry_after": retry_after})
        return jsonify(error="Too many login requests. Slow down.", retry_after_seconds=retry_after), 429

    result = build_login_flow().submit_password(username, password)
    if not result.success:
        log_event("ADMIN_LOGIN_FAIL")
    else:
        log_event("ADMIN_PASSWORD_OK", actor=username)
    return jsonify(result.to_dict()), 200


@admin_bp.post("/api/verify-totp")
def verify_totp():
    data = _json_object()
    if data is None:
        return _bad_body()
    code = data.get("code")
    token = data.get("token")
    if not isinstance(code, str) or (token is not None and not isinstance(token, str)):
        return _bad_body()

    flow = build_login_flow()
    result = flow.submit_totp(token, code, ip_address=client_ip())
    if result.valid:
        log_event("ADMIN_LOGIN_SUCCESS", actor=flow.admin_username)
    elif result.message == MSG_EXPIRED:
        log_event("ADMIN_TOTP_EXPIRED")
    elif token:
        log_event("ADMIN_TOTP_FAIL", metadata={"reason": result.message})
    return jsonify(result.to_dict()), 200


@admin_bp.post("/api/logout")
@admin_required
def logout():
    try:
        revoke_session(get_store(), g.session_token)
    except StoreError as exc:
        raise StoreUnavailable("could not revoke session") from exc
    log_event("ADMIN_LOGOUT", actor=g.admin.username)
    return jsonify(success=True, message="Logged out"), 200


@admin_bp.get("/api/session")
@admin_required
def session_info():
    return jsonify(g.admin.to_dict()), 200


def _read(key):
    try:
        return get_store().get(key)
    except StoreError as exc:
        raise StoreUnavailable("settings storage unavailable") from exc


def _save(key, value, action):
    try:
        get_store().put(key, value, None)
    except StoreError as exc:
        raise StoreUnavailable("settings storage unavailable") from exc
    log_event(action, actor=g.admin.username, metadata={"key": key})
    return jsonify(success=True), 200


@admin_bp.get("/api/settings")
@admin_required
def get_settings():
    return jsonify(_read(SETTINGS_KEY) or {}), 200


@admin_bp.put("/api/settings")
@admin_required
def update_settings():
    data = _json_object()
    if data is None:
        return jsonify(error="Invalid settings data"), 400
    return _save(SETTINGS_KEY, data, "ADMIN_SETTINGS_UPDATE")


@admin_bp.put("/api/services")
@admin_required
def update_services():
    data = _json_object()
    if data is None:
        return jsonify(error="Invalid services data"), 400
    return _save(SERVICES_KEY, data, "ADMIN_SERVICES_UPDATE")


@admin_bp.put("/api/thresholds")
@admin_required
def update_thresholds():
    data = _json_object()
    if data is None:
        return jsonify(error="Invalid thresholds data"), 400
    return _save(THRESHOLDS_KEY, data, "ADMIN_THRESHOLDS_UPDATE")


@admin_bp.put("/api/content")
@admin_required
def update_content():
    data = _json_object() or {}
    page = data.get("page")
    section = data.get("section")
    content = data.get("content")
    if not isinstance(page, str) or not page.strip() or not isinstance(section, str) or not section.strip():
        return jsonify(error="Invalid content data"), 400
    if not isinstance(content, str):
        return jsonify(error="Invalid content data"), 400

    key = f"content:{page.strip()}:{section.strip()}"
    return _save(key, content, "ADMIN_CONTENT_UPDATE")


@admin_bp.get("/api/analytics")
@admin_required
def get_analytics():
    # Placeholder counters until an analytics source is wired in
    return jsonify(
        page_views={"today": 0, "week": 0, "month": 0, "total": 0},
        api_calls={"flow_api": 0, "weather_api": 0, "conditions_api": 0},
        popular_pages=[],
        conditions_checks=0,
        contact_submissions=0,
    ), 200
