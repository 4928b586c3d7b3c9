from datetime import datetime
from models.db import db

class KvEntry(db.Model):
    __tablename__ = "kv_entries"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(255), unique=True, nullable=False, index=True)

    # JSON-encoded value
    value_json = db.Column(db.Text, nullable=False)

    # NULL = never expires
    expires_at = db.Column(db.DateTime, nullable=True, index=True)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
