from typing import Optional

from fastapi import FastAPI

from grc_dashboard.ai_helper import AnalysisRunner
from grc_dashboard.api.routes import get_runner, get_store, router
from grc_dashboard.config import Settings, load_settings
from grc_dashboard.db import JsonFileStore
from grc_dashboard.logger_config import setup_logger
from grc_dashboard.store import EntityStore


def create_app(store: Optional[EntityStore] = None, runner: Optional[AnalysisRunner] = None,
               settings: Optional[Settings] = None) -> FastAPI:
    """Build the API; without an explicit store, one is opened on the configured JSON file."""
    settings = settings or load_settings()
    setup_logger("grc_dashboard", settings.log_file, settings.log_level)

    if store is None:
        store = EntityStore.open(JsonFileStore(settings.storage_path))
    if runner is None:
        runner = AnalysisRunner(model=settings.analysis_model, api_key=settings.openai_api_key)

    app = FastAPI(title="GRC Dashboard API")
    app.include_router(router)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_runner] = lambda: runner
    return app
