from functools import wraps
from flask import g, jsonify, request
from security.guard import current_session, extract_bearer
from utils.collaborators import get_store

def load_current_admin():
    auth_header = request.headers.get("Authorization")
    sess = current_session(get_store(), auth_header)
    if not sess:
        g.admin = None
        g.session_token = None
        return
    g.admin = sess
    g.session_token = extract_bearer(auth_header)

def admin_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "admin", None) is None:
            return jsonify(error="Unauthorized"), 401
        return fn(*args, **kwargs)
    return wrapper
