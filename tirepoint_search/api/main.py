"""FastAPI application for TirePoint Search."""

from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from ..search.handler import SearchHandler
from ..search.pricing import PriceFormatter
from ..storage.database import Database
from ..utils.config import Config, get_config, get_settings
from ..utils.nonce import NonceManager
from ..utils.text import sanitize_text_field

AJAX_ACTIONS = (
    "tpsf_get_makes",
    "tpsf_get_models",
    "tpsf_get_years",
    "tpsf_get_tire_results",
)


def send_json_success(data=None, status_code: int = 200) -> JSONResponse:
    return JSONResponse({"success": True, "data": data}, status_code=status_code)


def send_json_error(data=None, status_code: int = 200) -> JSONResponse:
    return JSONResponse({"success": False, "data": data}, status_code=status_code)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


def create_app(
    config: Optional[Config] = None,
    db: Optional[Database] = None,
    nonces: Optional[NonceManager] = None,
) -> FastAPI:
    """Build the API application.

    Args:
        config: Configuration, the global one by default
        db: Content store, opened from ``config.database.url`` by default
        nonces: Nonce manager, keyed with the ``SECRET_KEY`` setting by default

    Returns:
        FastAPI application
    """
    if config is None:
        config = get_config()
    if db is None:
        db = Database(config.database.url, echo=config.database.echo)
    if nonces is None:
        nonces = NonceManager(get_settings().secret_key, config.security.nonce_lifetime)

    app = FastAPI(
        title="TirePoint Search API",
        description="Vehicle selector and tire lookup",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    handler = SearchHandler(
        db,
        config.search,
        price_formatter=PriceFormatter(config.commerce.model_dump()),
    )

    app.state.config = config
    app.state.db = db
    app.state.handler = handler
    app.state.nonces = nonces

    @app.on_event("startup")
    async def startup_event():
        """Run on application startup."""
        logger.info("TirePoint Search API starting up")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "TirePoint Search API",
            "version": "1.0.0",
            "status": "running",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
        }

    @app.get("/nonce")
    async def issue_nonce(request: Request):
        """Hand out the AJAX endpoint and a fresh nonce for the selector."""
        return {
            "ajax_url": str(request.url_for("ajax")),
            "nonce": nonces.create(config.security.nonce_action),
        }

    @app.post("/ajax", name="ajax")
    def ajax(
        request: Request,
        action: str = Form(""),
        nonce: str = Form(""),
        make: str = Form(""),
        model: str = Form(""),
        year: str = Form(""),
    ):
        """Dispatch a selector request.

        Form fields:
            action: One of tpsf_get_makes, tpsf_get_models, tpsf_get_years,
                tpsf_get_tire_results
            nonce: Nonce from ``/nonce``
            make, model, year: Current selection
        """
        if action not in AJAX_ACTIONS:
            return send_json_error("0", status_code=400)

        if config.security.require_nonce and not nonces.verify(
            nonce, config.security.nonce_action
        ):
            logger.warning(f"Rejected {action} with invalid nonce from {client_ip(request)}")
            return send_json_error("-1", status_code=403)

        make = sanitize_text_field(make)
        model = sanitize_text_field(model)
        year = sanitize_text_field(year)

        if action == "tpsf_get_makes":
            return send_json_success(_dump(handler.get_makes()))

        if action == "tpsf_get_models":
            if not make:
                return send_json_error("Make is required.")
            return send_json_success(_dump(handler.get_models(make)))

        if action == "tpsf_get_years":
            if not make or not model:
                return send_json_error("Make and Model are required.")
            return send_json_success(_dump(handler.get_years(make, model)))

        try:
            # make-only searches are allowed
            if not make:
                return send_json_error("Make is required.")

            handler.log_search({"make": make, "model": model, "year": year}, client_ip(request))
            tires = handler.get_tire_results(make, model, year)
            return send_json_success(_dump(tires))

        except Exception as e:
            logger.error(f"Error processing tire results request: {e}")
            return send_json_error(f"Error processing request: {e}")

    @app.get("/tires-for/{make}/{model}/{year}")
    def tire_archive(request: Request, make: str, model: str, year: str):
        """Tires for a complete selection; the selector redirects here."""
        make = sanitize_text_field(make)
        model = sanitize_text_field(model)
        year = sanitize_text_field(year)

        try:
            handler.log_search({"make": make, "model": model, "year": year}, client_ip(request))
            tires = handler.get_tire_results(make, model, year)
        except Exception as e:
            logger.error(f"Error getting tires for {make}/{model}/{year}: {e}")
            return send_json_error(f"Error processing request: {e}", status_code=500)

        return {
            "make": make,
            "model": model,
            "year": year,
            "tires": _dump(tires),
            "total": len(tires),
        }

    return app


def _dump(items) -> list[dict]:
    return [item.model_dump() for item in items]


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(
        "tirepoint_search.api.main:create_app",
        factory=True,
        host=config.api.host,
        port=config.api.port,
        reload=False,
    )
