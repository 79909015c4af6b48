import logging

from flask import Flask, redirect, render_template, url_for
from .extensions import db, migrate, login_manager, feed
from .config import Config
from .errors import TransientIO

from .blueprints.auth.routes import auth_bp
from .blueprints.profile.routes import profile_bp
from .blueprints.dashboard.routes import dashboard_bp
from .blueprints.expenses.routes import expenses_bp
from .blueprints.share.routes import share_bp
from .services.expenses import snapshot


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    feed.init_app(app, loader=snapshot)

    # Ensure tables exist for a smooth first run
    with app.app_context():
        db.create_all()

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(share_bp)

    @app.errorhandler(TransientIO)
    def storage_unavailable(error):
        return render_template("errors/unavailable.html", message=error.message), 503

    @app.route("/")
    def root():
        return redirect(url_for("dashboard.index"))

    return app
