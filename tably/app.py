#!/usr/bin/env python3

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from tably.routes import queue, admin
from tably.configs import OPTIONS, CORS_ORIGINS, SWEEPER_ENABLED
from tably.core import db
from tably.core.exceptions import AuthenticationError, ValidationError
from tably.core.sweeper import ExpirySweeper
from tably import __version__ as VERSION

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    db.init()
    sweeper = ExpirySweeper() if SWEEPER_ENABLED else None
    if sweeper:
        sweeper.start()
    yield
    if sweeper:
        await sweeper.stop()
    db.session.remove()

app = FastAPI(
    title="Tably API",
    description="Tably: a walk-in waitlist for restaurants and cafés",
    version=VERSION,
    lifespan=lifespan,
)

@app.middleware("http")
async def close_session(request: Request, call_next):
    try:
        return await call_next(request)
    finally:
        db.session.remove()

if CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Reports the first invalid field as {message, field} with a 400."""
    error = exc.errors()[0]
    loc = [str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path")]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ValidationError(error.get("msg", "Invalid request"), ".".join(loc) or None).to_dict(),
    )

@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=exc.to_dict())

@app.exception_handler(AuthenticationError)
async def authentication_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"message": str(exc)})

app.include_router(queue.router, prefix="/api")
app.include_router(admin.router, prefix="/api/admin")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("tably.app:app", **OPTIONS)
