import logging
from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException

from app import config
from app.api.v1.chat import router as chat_router
from app.api.v1.upload import router as upload_router
from llm.client import LLMClient
from llm.index import SentenceEmbedder
from llm.memory import ConversationStore
from llm.trip_agent import TripChatAgent
from trips.store import TripStore

logger = logging.getLogger(__name__)


def create_app(
    embedder: Any = None,
    client_factory: Callable[[], Any] = LLMClient,
    load_default_workbook: bool = True,
) -> FastAPI:
    """
    Build the API. ``embedder`` and ``client_factory`` replace the
    sentence-transformers model and the Groq client (tests pass fakes);
    ``load_default_workbook=False`` skips the startup load.
    """
    config.configure_logging()

    workbook_path = config.DEFAULT_WORKBOOK_PATH if load_default_workbook else None

    trip_store = TripStore(embedder or SentenceEmbedder())
    conversations = ConversationStore()
    agent = TripChatAgent(trip_store, conversations, client_factory=client_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load the default workbook at startup when present."""
        if workbook_path:
            try:
                await trip_store.ingest_path(workbook_path)
            except Exception:
                logger.exception("Could not load default workbook %s", workbook_path)
        if trip_store.is_ready:
            logger.info("Trip chat ready with %d trips", trip_store.row_count())
        else:
            logger.info("Trip chat ready, no data yet. Upload a workbook via POST /upload.")
        yield

    app = FastAPI(
        title="Trip Chat Backend",
        description="Upload ride-sharing trip workbooks and ask questions about them with per-user memory.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.trip_store = trip_store
    app.state.conversations = conversations
    app.state.agent = agent

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Every error body is {"error": ...}
    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"error": f"Invalid request body: {message}"})

    @app.get("/", response_class=PlainTextResponse, tags=["system"])
    async def root() -> str:
        return "Trip Chat backend running"

    @app.get("/health", tags=["system"])
    async def health_check() -> dict:
        return {"status": "ok", "ready": trip_store.is_ready, "rows": trip_store.row_count()}

    app.include_router(upload_router, tags=["upload"])
    app.include_router(chat_router, tags=["chat"])

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    logger.info("Backend listening at %s", config.BASE_URL)
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
