import click
from flask import Flask, request, g, jsonify
from flask_migrate import Migrate

from config import Config
from models import db
from models.user import User, Role
from routes import health_bp, auth_bp, admin_bp, services_bp, booking_bp, reservations_bp, providers_bp
from security.csrf import csrf_applies, require_csrf
from services.errors import DomainError
from services.requester import ADMIN
from utils.audit import log_event
from utils.auth_context import load_current_user
from utils.seed import seed_roles


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(services_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(reservations_bp)
    app.register_blueprint(providers_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Seed default roles at startup (idempotent)
    with app.app_context():
        if app.config.get("CREATE_TABLES"):
            db.create_all()
        seed_roles()

    @app.before_request
    def _load_user():
        load_current_user()

    @app.before_request
    def _csrf_protect():
        if csrf_applies():
            require_csrf()

    @app.errorhandler(DomainError)
    def _domain_error(e):
        db.session.rollback()
        user = getattr(g, "user", None)
        log_event(
            "REQUEST_REJECTED",
            user_id=user.id if user else None,
            metadata={"error": type(e).__name__, "path": request.path, "message": e.message},
        )
        return jsonify(error=e.message), e.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app


def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("login")
    def make_admin(login):
        """Promote a user to ADMIN by username or email (bootstrap)."""
        login = login.strip()
        user = User.query.filter((User.username == login) | (User.email == login.lower())).first()
        if not user:
            click.echo("User not found")
            return

        admin_role = Role.query.filter_by(name=ADMIN).first()
        if not admin_role:
            admin_role = Role(name=ADMIN)
            db.session.add(admin_role)
            db.session.commit()

        if admin_role not in user.roles:
            user.roles.append(admin_role)
            db.session.commit()

        log_event("USER_PROMOTE", user_id=user.id, entity="user", entity_id=user.id, metadata={"role": ADMIN})
        click.echo(f"{user.username} promoted to ADMIN")


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
