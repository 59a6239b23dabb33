import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html

from api.v1.api import api_router
from api.v1.chat import running_turns
from core.config import get_settings
from core.error_handler import register_exception_handlers, setup_logging
from core.middleware import CorrelationIdMiddleware
from dependencies.db import AsyncSessionLocal, engine, init_models
from services.ai.llm_client import PydanticAIDesignChatLLM
from services.design_chat.store import SqlAlchemyConversationStore


logger = logging.getLogger(__name__)

# Seconds to let in-flight chat turns persist their results on shutdown
SHUTDOWN_GRACE_SECONDS = 10


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    if settings.AUTO_CREATE_TABLES:
        await init_models()

    app.state.design_chat_llm = PydanticAIDesignChatLLM()
    app.state.conversation_store = SqlAlchemyConversationStore(AsyncSessionLocal)
    logger.info(
        "%s started (environment=%s, provider=%s)",
        settings.APP_NAME,
        settings.ENVIRONMENT,
        settings.LLM_PROVIDER,
    )
    yield

    if running_turns:
        logger.info("Waiting for %d chat turn(s) to finish", len(running_turns))
        await asyncio.wait(set(running_turns), timeout=SHUTDOWN_GRACE_SECONDS)
    await engine.dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging()

    app = FastAPI(
        title="JewelForge API",
        description="Conversational jewelry design assistant",
        version="0.1.0",
        docs_url=None,  # We'll mount docs under /api/v1/docs
        redoc_url=None,
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-ID"],
    )

    # Include API routes
    app.include_router(api_router, prefix="/api/v1")

    # Mount OpenAPI docs under /api/v1/docs and /api/v1/redoc
    @app.get("/api/v1/docs", include_in_schema=False)
    def custom_swagger_ui_html():
        return get_swagger_ui_html(
            openapi_url="/openapi.json", title="JewelForge API Docs"
        )

    @app.get("/api/v1/redoc", include_in_schema=False)
    def redoc_html():
        return get_redoc_html(openapi_url="/openapi.json", title="JewelForge API Redoc")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
