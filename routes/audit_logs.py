import json

from flask import Blueprint, jsonify, request
from models.audit_log import AuditLog
from utils.auth_context import admin_required

audit_bp = Blueprint("audit", __name__, url_prefix="/admin")


@audit_bp.get("/api/audit-logs")
@admin_required
def list_audit_logs():

    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 500))

    action = request.args.get("action")

    q = AuditLog.query
    if action:
        q = q.filter(AuditLog.action == action)

    rows = q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()

    return jsonify([
        {
            "id": r.id,
            "created_at": r.timestamp.isoformat() if r.timestamp else None,
            "actor": r.actor,
            "action": r.action,
            "ip": r.ip,
            "user_agent": r.user_agent,
            "metadata": json.loads(r.metadata_json) if r.metadata_json else None,
        }
        for r in rows
    ]), 200
