"""
LocalLibrary - a library catalog built with Flask and SQLAlchemy.

Features:
- Authors, genres, books and book copies with list and detail pages
- Create / update forms with server-side validation
- Delete confirmation that lists whatever still references a record
- Book search and sorting
- Optional summary lookup from Open Library by ISBN
"""
import logging
import os

from flask import Flask, redirect, render_template, url_for
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import NotFound

import computed_fields
from catalog import bp as catalog_bp
from catalog_errors import NotFoundError, StoreError
from data_models import db

logger = logging.getLogger(__name__)

basedir = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


def create_app(test_config=None):
    """
    Application factory.

    Args:
        test_config: mapping that overrides the default configuration.
    """
    app = Flask(__name__)

    app.config.from_mapping(
        SQLALCHEMY_DATABASE_URI=os.environ.get(
            "CATALOG_DATABASE_URI",
            f"sqlite:///{os.path.join(basedir, 'data', 'library.sqlite')}",
        ),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        SECRET_KEY=os.environ.get("CATALOG_SECRET_KEY", "dev-secret-key"),   # For flash messages (dev only).
        LOG_LEVEL=os.environ.get("CATALOG_LOG_LEVEL", "INFO"),
        OPENLIBRARY_LOOKUP=_env_flag("CATALOG_OPENLIBRARY_LOOKUP"),
        OPENLIBRARY_TIMEOUT=float(os.environ.get("CATALOG_OPENLIBRARY_TIMEOUT", "8")),
    )
    if test_config is not None:
        app.config.from_mapping(test_config)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith(f"sqlite:///{basedir}"):
        os.makedirs(os.path.join(basedir, "data"), exist_ok=True)

    db.init_app(app)
    app.register_blueprint(catalog_bp)

    for name in ("author_name", "author_lifespan", "date_formatted",
                 "due_back_formatted", "url", "date_input"):
        app.add_template_filter(getattr(computed_fields, name), name)

    _register_error_handlers(app)

    @app.route("/")
    def home():
        return redirect(url_for("catalog.index"))

    with app.app_context():
        db.create_all()

    return app


def _register_error_handlers(app):

    @app.errorhandler(NotFoundError)
    def not_found(exc):
        logger.info("%s (id=%s)", exc, exc.ident)
        return render_template("error.html", title="Not Found", message=str(exc)), 404

    @app.errorhandler(NotFound)
    def page_not_found(exc):
        return render_template("error.html", title="Not Found", message="Page not found"), 404

    @app.errorhandler(StoreError)
    @app.errorhandler(SQLAlchemyError)
    def store_error(exc):
        db.session.rollback()
        logger.error("Database error: %s", exc, exc_info=exc)
        return render_template(
            "error.html",
            title="Error",
            message="The catalog could not be read or updated. Please try again later.",
        ), 500


if __name__ == "__main__":
    create_app().run(debug=True)
