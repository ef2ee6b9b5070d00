from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from schoolhub.core.config import settings
from schoolhub.core.errors import install_error_handlers
from schoolhub.core.http_logging import configure_logging, install_request_logging
from schoolhub.db.session import Database
from schoolhub.api.router import router as api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "database", None) is None:
        app.state.database = Database.from_settings(settings)
    try:
        yield
    finally:
        app.state.database.dispose()


configure_logging(settings.LOG_LEVEL)

app = FastAPI(title=settings.APP_NAME, version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_request_logging(app)
install_error_handlers(app)

app.include_router(api_router, prefix="/api")

@app.get("/", include_in_schema=False)
def landing():
    return JSONResponse({"service": settings.APP_NAME, "status": "ok"})

@app.get("/health")
def health():
    return {"status": "ok"}
