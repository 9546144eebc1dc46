from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from transaction_advisor.api.routes import automation, categorize, duplicates, rules
from transaction_advisor.core import settings
from transaction_advisor.duplicates.detection import DuplicateDetectionEngine
from transaction_advisor.logger import get_logger, setup_logging
from transaction_advisor.manager import ClassificationEngine
from transaction_advisor.services.state_store import StateStore

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing engines...")
        settings.log_environment()

        store = StateStore(data_dir=settings.DATA_DIR)
        categories = store.load_categories()
        if not categories:
            logger.warning("No categories stored yet. Built-in rules stay empty until PUT /categories.")

        classifier = ClassificationEngine(categories)
        saved_rules = store.load_rules()
        if saved_rules is not None:
            classifier.restore_rules(saved_rules)

        detector = DuplicateDetectionEngine(
            store.load_duplicate_settings() or settings.default_duplicate_settings()
        )

        app.state.store = store
        app.state.classifier = classifier
        app.state.detector = detector

        logger.info("Engines initialized.")
        yield
        logger.info("Service shutting down.")

    app = FastAPI(title="Transaction Advisor", lifespan=lifespan)

    app.include_router(categorize.router)
    app.include_router(rules.router)
    app.include_router(duplicates.router)
    app.include_router(automation.router)

    return app


app = create_app()
