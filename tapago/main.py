from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tapago.api.v1.api import api_router
from tapago.core.config import settings
from tapago.core.exceptions import TaPagoError
from tapago.core.logging import setup_logging
from tapago.db.session import close_store, open_store

setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await open_store()
    yield
    await close_store()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TaPagoError)
async def tapago_exception_handler(request: Request, exc: TaPagoError):
    """Render ledger, directory and store errors"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": exc.message,
                "type": exc.error_type,
                "path": str(request.url.path),
            }
        },
    )


@app.get("/")
async def root():
    return {"message": "Welcome to TaPago API"}

app.include_router(api_router, prefix=settings.API_V1_STR)
