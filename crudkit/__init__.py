import os

from flask import Flask

from .config import config, Config
from .extensions import db, ma
from .utils.logging_utils import get_logger, init_logger


def create_app(config_name=None):
    # Determine configuration based on environment variable or parameter
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'default')

    config_class = config.get(config_name, Config)

    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize configuration-specific setup
    config_class.init_app(app)

    init_logger(app)

    db.init_app(app)
    ma.init_app(app)

    get_logger("app").info("Application startup with config %s", config_class.__name__)
    return app


__all__ = ["create_app", "db", "ma"]
