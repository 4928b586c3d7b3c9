import json
from flask import request
from models import db
from models.audit_log import AuditLog
from utils.client_ip import client_ip

def log_event(action: str, actor=None, metadata=None):
    user_agent = request.headers.get("User-Agent", "")

    row = AuditLog(
        actor=actor,
        action=action,
        ip=client_ip()[:64],
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata) if metadata else None
    )
    db.session.add(row)
    db.session.commit()
