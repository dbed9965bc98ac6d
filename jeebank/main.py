"""
Main FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jeebank.api.answers import router as answers_router
from jeebank.api.questions import router as questions_router
from jeebank.core.config import Settings, get_settings
from jeebank.core.database import build_engine, build_session_factory
from jeebank.core.errors import QuestionBankError
from jeebank.jobs.queue import build_queues, build_redis
from jeebank.services.publisher import EventPublisher, RQEventPublisher
from jeebank.services.store import QuestionBankStore, SqlQuestionBankStore
from jeebank.validators.result import error_path

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_store(settings: Settings) -> SqlQuestionBankStore:
    engine = build_engine(settings)
    return SqlQuestionBankStore(engine, build_session_factory(engine))


def build_publishers(settings: Settings) -> Dict[str, EventPublisher]:
    redis = build_redis(settings)
    return {
        resource: RQEventPublisher(
            redis,
            queue,
            settings.push_endpoint(resource),
            subscription=settings.PUSH_SUBSCRIPTION,
            timeout=settings.PUSH_TIMEOUT_SECONDS,
            max_retries=settings.PUSH_MAX_RETRIES,
            ordering_ttl=settings.ORDERING_KEY_TTL,
        )
        for resource, queue in build_queues(settings, redis).items()
    }


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(QuestionBankError)
    async def question_bank_exception_handler(request: Request, exc: QuestionBankError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}: {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = []
        for err in exc.errors():
            # drop the leading "body"/"query"/"path" segment
            path = error_path(tuple(err["loc"][1:]))
            errors.append(f"{path}: {err['msg']}" if path else err["msg"])
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"success": False, "errors": errors})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Internal server error", "error": str(exc)},
        )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[QuestionBankStore] = None,
    publishers: Optional[Dict[str, EventPublisher]] = None,
) -> FastAPI:
    settings = settings or get_settings()
    store = store if store is not None else build_store(settings)
    publishers = publishers if publishers is not None else build_publishers(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.APP_NAME} ({'async' if settings.ASYNC_WRITES else 'sync'} writes)...")
        if hasattr(store, "create_schema"):
            # In production, use migrations instead
            store.create_schema()
            logger.info("Database initialized")
        yield
        logger.info(f"Shutting down {settings.APP_NAME}...")
        if hasattr(store, "dispose"):
            store.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url=settings.DOCS_URL if not settings.is_production() else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.publishers = publishers

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(questions_router, prefix=f"{settings.API_PREFIX}/questions", tags=["questions"])
    app.include_router(answers_router, prefix=f"{settings.API_PREFIX}/answers", tags=["answers"])

    @app.get("/", tags=["Root"])
    def root():
        return {"message": f"{settings.APP_NAME} is running"}

    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok"}

    return app


configure_logging(get_settings())
app = create_app()

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "jeebank.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )
