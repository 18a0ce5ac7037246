import time

from fastapi import FastAPI
import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette_prometheus import PrometheusMiddleware, metrics as starlette_metrics

from libs.py_common.logging import setup_logging

from .db import init_db
from .routes import internal_router, router as wallet_router

logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Wallet Service API",
    description="Read-side wallet ledger: payouts, balances and payout fee quotes.",
    version="0.1.0"
)

app.add_middleware(PrometheusMiddleware)
app.add_route("/metrics", starlette_metrics)


class StructlogRequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(path=request.url.path, method=request.method)

        start_time = time.time()
        status_code = 500 # unless call_next returns
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            logger.error("unhandled_exception_during_request", exc_info=True)
            raise
        finally:
            logger.info(
                "http_request_completed",
                status_code=status_code,
                duration_ms=round((time.time() - start_time) * 1000, 2),
                service="wallet",
            )
        return response


app.add_middleware(StructlogRequestLoggingMiddleware)


@app.on_event("startup")
async def on_startup():
    setup_logging()
    logger.info("wallet_service_api_startup", service="wallet-api", event_name="service_starting")
    init_db()
    logger.info("wallet_service_api_startup_complete", service="wallet-api", event_name="service_started")


app.include_router(wallet_router)
app.include_router(internal_router)


@app.get("/wallet-health", tags=["health"])
async def health_check():
    logger.debug("Wallet service API health check endpoint hit")
    return {"status": "ok", "service": "wallet-api"}


# uvicorn services.wallet.main:app --reload --port 8005
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8005)
