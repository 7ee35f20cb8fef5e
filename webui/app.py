import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bgpsec_filter import __version__
from bgpsec_filter.filters.service import FilterService, create_filter_service
from bgpsec_filter.utils.config import get_config
from webui.core.audit import setup_audit_logging
from webui.settings import BGPSEC_FILTER_WEBUI_LOG_LEVEL

# Setup logging
logger = logging.getLogger("bgpsec_filter.webui")
log_level = getattr(logging, BGPSEC_FILTER_WEBUI_LOG_LEVEL, logging.INFO)
logger.setLevel(log_level)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
    handler.setLevel(log_level)
    logger.addHandler(handler)


def create_app(service: Optional[FilterService] = None, audit_log_dir: Optional[str] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    if service is None:
        service = create_filter_service()
    if audit_log_dir is None:
        audit_log_dir = get_config().webui.audit_log_dir
    setup_audit_logging(audit_log_dir)

    app = FastAPI(
        title="BGPsec Filter",
        description="Local SLURM BGPsec filter management",
        version=__version__,
        docs_url=None,  # Disable auto docs in production
        redoc_url=None
    )
    app.state.filter_service = service

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    @app.get("/healthz")
    async def healthz():
        return JSONResponse({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    from webui.api import bgpsec_filters

    app.include_router(
        bgpsec_filters.router,
        prefix="/api/bgpsec-filters",
        tags=["bgpsec-filters"]
    )

    logger.info("BGPsec filter API ready")
    return app
