import logging

from flask import Flask

from shared.config import PostgresConfig
from shared.db.base import create_db_engine, create_session_factory

from push_sender.config import FcmConfig, PushSenderConfig
from push_sender.log import setup_logging
from push_sender.pipeline import PushPipeline
from push_sender.routes import bp

logger = logging.getLogger(__name__)


def create_app(
    pipeline: PushPipeline, config: PushSenderConfig | None = None
) -> Flask:
    """Flask application factory.

    Args:
        pipeline: Fully wired push pipeline (real or test double).
        config: Service settings; read from the environment when omitted.
    """
    config = config or PushSenderConfig()
    setup_logging(config.log_level)

    app = Flask(__name__)
    app.config["CORS_ALLOW_ORIGIN"] = config.cors_allow_origin
    app.extensions["push_pipeline"] = pipeline

    app.register_blueprint(bp)

    if not pipeline.is_configured:
        logger.warning("Push sender started without complete configuration")
    logger.info("Push sender initialized")
    return app


def build_pipeline(config: PushSenderConfig) -> PushPipeline:
    """Wire a production pipeline from environment-backed settings."""
    engine = create_db_engine(PostgresConfig().dsn, pool_pre_ping=True)
    return PushPipeline(FcmConfig(), config, create_session_factory(engine))
