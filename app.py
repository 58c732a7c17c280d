import locale
import logging

from flask import Flask, jsonify
from dotenv import load_dotenv

load_dotenv()

from config import Config  # noqa: E402  (load_dotenv needs to run first)
from extensions import db, login_manager  # noqa: E402  (load_dotenv needs to run first)


def create_app(test_config=None) -> Flask:
    """Application factory for the task manager."""

    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))

    # title/status sorting collates with the host locale when one is configured
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        app.logger.warning("Host locale unavailable; sorting falls back to case-folded order")

    # init extensions
    db.init_app(app)
    login_manager.init_app(app)

    # blueprints
    from modules.accounts import bp as accounts_bp
    from modules.tasks import bp as tasks_bp

    app.register_blueprint(accounts_bp)
    app.register_blueprint(tasks_bp)

    # services: one store per app, shared by auth and tasks
    from auth import Auth
    from modules.tasks.service import TaskService
    from store import Store, StoreError

    store = Store(db)
    auth = Auth(store)
    app.extensions["store"] = store
    app.extensions["auth"] = auth
    app.extensions["task_service"] = TaskService(store, auth)

    @app.errorhandler(StoreError)
    def store_unavailable(exc):
        app.logger.error("Request failed on the store: %s", exc)
        return jsonify(error="The task store is unavailable."), 503

    # DB
    with app.app_context():
        # models must be imported before create_all()
        import models  # noqa: F401
        from modules.tasks import models as task_models  # noqa: F401

        db.create_all()
        if app.config.get("SEED_ON_STARTUP"):
            store.initialize()

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
