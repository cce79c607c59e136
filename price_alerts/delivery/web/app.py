from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from price_alerts.delivery.web.dependencies import Unauthorized
from price_alerts.delivery.web.routes import router


async def _unauthorized_handler(request: Request, exc: Unauthorized) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "Unauthorized"})


def create_app() -> FastAPI:
    app = FastAPI(title="Price Alert Notifier", version="0.1.0")
    app.add_exception_handler(Unauthorized, _unauthorized_handler)
    app.include_router(router)
    return app
