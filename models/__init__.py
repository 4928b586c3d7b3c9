from .db import db
from .audit_log import AuditLog
from .kv_entry import KvEntry
