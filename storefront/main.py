import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.errors import register_error_handlers
from storefront.api.routes.health import router as health_router
from storefront.api.routes.payments import router as payments_router
from storefront.core.config import settings
from storefront.core.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    setup_logging(settings.log_level, secrets=settings.secret_values)
    application = FastAPI(title="Storefront Checkout API")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(application)
    application.include_router(health_router)
    application.include_router(payments_router)

    missing = settings.missing_gateway_settings
    if missing:
        logger.warning("phonepe_config_missing_at_startup", extra={"missing": ",".join(missing)})
    return application


app = create_app()
