import os

from fastapi import APIRouter, FastAPI

from .routes import forms, prefill, sales_grid, settings


def create_app(config_obj=None) -> FastAPI:
    from ..cache import TTLCache
    from ..config import Config
    from ..db import close_db
    from ..prefill import PrefillService
    from ..settings import create_settings_service

    if config_obj is None:
        config_file = os.environ.get("CONFIG_FILE", "config.toml")
        config_obj = Config.load(config_file)

    app = FastAPI(title="Formwright API")

    app.state.config = config_obj
    app.state.prefill_service = PrefillService.from_settings(config_obj.prefill, cache=TTLCache())
    app.state.settings_service = create_settings_service(config_obj.settings)

    api_router = APIRouter(prefix="/api/v1")
    api_router.include_router(forms.router)
    api_router.include_router(prefill.router)
    api_router.include_router(sales_grid.router)
    api_router.include_router(settings.router)
    app.include_router(api_router)

    @app.on_event("shutdown")
    def shutdown_db():
        close_db()

    return app
