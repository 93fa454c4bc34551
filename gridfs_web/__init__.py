from flask import Flask

from .config import ServiceConfig
from .db import StoreContext
from .blueprints.files_bp import create_files_bp


def create_app(config: ServiceConfig, store: StoreContext) -> Flask:
    """
    Builds the Flask app around an already connected store (see db.init_mongo).
    """
    app = Flask(__name__)

    # Routes
    app.register_blueprint(create_files_bp(store, config), url_prefix=config.handle_path)

    return app
