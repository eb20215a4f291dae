# taskboard/main.py
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import exc as sa_exc
from taskboard.database import engine
from taskboard.routers import performance

logger = logging.getLogger(__name__)

app = FastAPI(title="Taskboard - Performance Reporting", version="1.0")

# Include Routers
app.include_router(performance.router)


def _error_body(message: str, code: str, details=None) -> dict:
    return {"error": {"message": message, "code": code, "details": details}}


@app.exception_handler(sa_exc.TimeoutError)
async def pool_timeout_handler(request: Request, exc: sa_exc.TimeoutError):
    # Pool exhausted: no connection could be borrowed in time
    logger.error("Database pool timeout on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content=_error_body("Database is unavailable, try again later.", "DATABASE_UNAVAILABLE"),
    )


@app.exception_handler(sa_exc.SQLAlchemyError)
async def database_error_handler(request: Request, exc: sa_exc.SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=_error_body("An unexpected internal server error occurred.", "INTERNAL_SERVER_ERROR"),
    )


@app.on_event("shutdown")
async def shutdown_event():
    await engine.dispose()
    logger.info("Database pool closed")


@app.get("/")
def read_root():
    return {"message": "Welcome to Taskboard reporting"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("taskboard.main:app", host="0.0.0.0", port=8000, reload=True)
