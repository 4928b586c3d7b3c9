import time

import click
from flask import Flask, jsonify, request
from config import Config
from routes import health_bp, admin_bp, audit_bp

from models import db
from flask_migrate import Migrate
from security.errors import ServiceNotConfigured, StoreUnavailable
from security.password import hash_password, legacy_digest
from security import totp
from utils.auth_context import load_current_admin
from utils.collaborators import EXT_CLOCK, EXT_SECRETS, EXT_STORE
from utils.kv_store import SqlKeyValueStore
from utils.secret_provider import ConfigSecrets


def create_app(config_object=Config, store=None, secrets=None, clock=None):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(audit_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    clock = clock or time.time
    app.extensions[EXT_CLOCK] = clock
    app.extensions[EXT_STORE] = store if store is not None else SqlKeyValueStore(clock)
    app.extensions[EXT_SECRETS] = secrets if secrets is not None else ConfigSecrets(app.config)

    @app.before_request
    def _load_admin():
        if request.path.startswith("/admin/api/"):
            load_current_admin()

    @app.errorhandler(ServiceNotConfigured)
    def _not_configured(exc):
        return jsonify(error=str(exc)), 503

    @app.errorhandler(StoreUnavailable)
    def _store_unavailable(exc):
        app.logger.error("Session store failure: %s", exc)
        return jsonify(error="Service temporarily unavailable"), 503

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        if request.path.startswith("/admin/api/"):
            resp.headers["Cache-Control"] = "no-store"
        return resp


    register_cli(app)


    return app

#-------------------------

def register_cli(app):
    @app.cli.command("hash-password")
    @click.argument("password")
    @click.option("--legacy", is_flag=True, help="Unsalted SHA-1 digest instead of bcrypt.")
    def hash_password_cmd(password, legacy):
        """Print a value for ADMIN_PASSWORD_HASH."""
        click.echo(legacy_digest(password) if legacy else hash_password(password))

    @app.cli.command("new-totp-secret")
    def new_totp_secret():
        """Generate a TOTP secret and its authenticator enrolment URI."""
        secret = totp.random_base32()
        click.echo(f"TOTP_SECRET={secret}")
        click.echo(totp.provisioning_uri(
            secret,
            name=app.config.get("ADMIN_USERNAME", "admin"),
            issuer=app.config.get("TOTP_ISSUER"),
        ))

    @app.cli.command("purge-kv")
    def purge_kv():
        """Delete expired rows from the key-value table."""
        store = app.extensions[EXT_STORE]
        if not isinstance(store, SqlKeyValueStore):
            click.echo("Configured store is not table-backed; nothing to purge")
            return
        click.echo(f"Purged {store.purge_expired()} expired entries")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
