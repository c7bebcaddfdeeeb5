from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.routing import APIRoute
import logging

from app.core.config import settings
from app.core.errors import DomainError
from app.core.logging import setup_logging
from app.api import (
    account,
    attendance,
    certificates,
    makeup_requests,
    registrations,
    seminars,
)

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="Seminar attendance, CE credit ledger and certificate eligibility",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "code": exc.code.value},
    )


# Registrations before seminars so /registrations/... never hits /{seminar_id}/...
app.include_router(registrations.router)
app.include_router(attendance.router)
app.include_router(makeup_requests.router)
app.include_router(seminars.router)
app.include_router(certificates.router)
app.include_router(account.router)


@app.get("/routes-simple", response_class=PlainTextResponse)
async def get_routes_simple():
    """
    Returns a concise list of all routes with their paths and methods.
    """
    routes = []
    for route in app.routes:
        if isinstance(route, APIRoute):
            methods = ", ".join(sorted(route.methods))
            routes.append(f"{methods}: {route.path}")

    return "\n".join(routes)


@app.get("/")
async def root():
    return {
        "message": "Seminar CE API",
        "version": settings.api_version,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
