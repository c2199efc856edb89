from flask import Flask, redirect, render_template, url_for
from flask_login import current_user
from .extensions import db, migrate, login_manager
from .config import Config

from .blueprints.auth.routes import auth_bp
from .blueprints.dashboard.routes import dashboard_bp
from .blueprints.transactions.routes import transactions_bp
from .blueprints.profile.routes import profile_bp
from .utils.formatting import format_currency, format_date
from .utils.cpf import format_cpf


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Module loggers (fintrack.services.*) propagate to app.logger
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Ensure tables exist for a smooth first run
    with app.app_context():
        from . import models  # noqa: F401  (register tables)
        db.create_all()

    app.jinja_env.filters["currency"] = format_currency
    app.jinja_env.filters["date"] = format_date
    app.jinja_env.filters["cpf"] = format_cpf

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(profile_bp)

    @app.route("/")
    def root():
        if current_user.is_authenticated:
            return redirect(url_for("dashboard.index"))
        return render_template("landing.html")

    app.logger.debug("FinTrack app created with %s", getattr(config_object, "__name__", config_object))
    return app
