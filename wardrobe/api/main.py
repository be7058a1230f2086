"""FastAPI entrypoint and HTTP routes.

Run with ``uvicorn --factory wardrobe.api.main:create_app``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Callable

import httpx
from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncEngine

from wardrobe.auth.session import (
    SessionProvider,
    SupabaseSessionProvider,
    UnauthorizedError,
    ensure_session_owner,
)
from wardrobe.catalog.classifier import ClothingClassifier, OpenAIClothingClassifier
from wardrobe.catalog.models import ClothingItem, UploadOptions
from wardrobe.catalog.taxonomy import CategoryGroup, ClothingCategory
from wardrobe.config.settings import Settings, get_settings
from wardrobe.db.repository import PersistenceError, SqlWardrobeStore, WardrobeStore
from wardrobe.db.session import create_engine, create_session_factory, init_db
from wardrobe.imgproc.normalize import ImageNormalizer, ImageValidationError
from wardrobe.imgproc.segmentation import BackgroundRemovalError, BackgroundRemover, ReplicateBackgroundRemover
from wardrobe.monitoring.logging import configure_logging
from wardrobe.services.stages import LoggingObserver
from wardrobe.services.upload import UploadInProgressError, UploadOrchestrator
from wardrobe.services.wardrobe import WardrobeService
from wardrobe.storage.backend import StorageBackend, StorageError
from wardrobe.storage.s3 import S3ObjectStorage
from wardrobe.storage.signing import SigV4Signer

logger = logging.getLogger(__name__)

SessionFactory = Callable[[str | None], SessionProvider]


@dataclass(slots=True)
class WardrobeContext:
    """Everything a request needs, wired once per application."""

    normalizer: ImageNormalizer
    storage: StorageBackend
    remover: BackgroundRemover
    classifier: ClothingClassifier
    store: WardrobeStore
    sessions: SessionFactory
    completion_delay: float = 0.0
    environment: str = "dev"
    http: httpx.AsyncClient | None = None
    engine: AsyncEngine | None = None

    def orchestrator(self, access_token: str | None, label: str) -> UploadOrchestrator:
        return UploadOrchestrator(
            session=self.sessions(access_token),
            normalizer=self.normalizer,
            storage=self.storage,
            remover=self.remover,
            classifier=self.classifier,
            store=self.store,
            observer=LoggingObserver(logger, label),
            completion_delay=self.completion_delay,
        )

    def wardrobe(self) -> WardrobeService:
        return WardrobeService(self.store, self.storage)

    async def aclose(self) -> None:
        close = getattr(self.classifier, "close", None)
        if close is not None:
            await close()
        if self.http is not None:
            await self.http.aclose()
        if self.engine is not None:
            await self.engine.dispose()


def build_context(settings: Settings) -> WardrobeContext:
    """Wire the production clients from ``settings``."""

    http = httpx.AsyncClient(timeout=settings.request_timeout)
    engine = create_engine(settings.database_url)
    signer = SigV4Signer(
        access_key_id=settings.s3_access_key_id,
        secret_access_key=settings.s3_secret_access_key,
        region=settings.s3_region,
    )

    def sessions(access_token: str | None) -> SessionProvider:
        return SupabaseSessionProvider(
            http=http,
            supabase_url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            access_token=access_token,
        )

    return WardrobeContext(
        normalizer=ImageNormalizer(
            settings.image_max_bytes,
            max_dimension=settings.image_max_dimension,
            fallback_dimension=settings.image_fallback_dimension,
        ),
        storage=S3ObjectStorage(
            endpoint=settings.s3_endpoint,
            public_base_url=settings.s3_public_base_url,
            bucket=settings.s3_bucket,
            signer=signer,
            http=http,
        ),
        remover=ReplicateBackgroundRemover(
            api_token=settings.replicate_api_token,
            model_version=settings.replicate_model_version,
            base_url=settings.replicate_base_url,
            http=http,
        ),
        classifier=OpenAIClothingClassifier(
            api_key=settings.analysis_api_key,
            model=settings.analysis_model,
            base_url=settings.analysis_base_url,
            timeout=settings.request_timeout,
        ),
        store=SqlWardrobeStore(create_session_factory(engine)),
        sessions=sessions,
        completion_delay=settings.completion_reset_delay,
        environment=settings.environment,
        http=http,
        engine=engine,
    )


def _bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def _error_status(exc: Exception) -> int:
    if isinstance(exc, UnauthorizedError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, ImageValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, UploadInProgressError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_502_BAD_GATEWAY


def create_app(context: WardrobeContext | None = None) -> FastAPI:
    """Initialise the FastAPI application."""

    if context is None:
        settings = get_settings()
        configure_logging(settings)
        context = build_context(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if context.engine is not None:
            await init_db(context.engine)
        yield
        await context.aclose()

    app = FastAPI(
        title="Wardrobe API",
        version="0.1.0",
        docs_url="/docs" if context.environment != "prod" else None,
        redoc_url="/redoc" if context.environment != "prod" else None,
        lifespan=lifespan,
    )
    app.state.context = context

    async def _authorize(user_id: str, token: str | None) -> None:
        try:
            await ensure_session_owner(context.sessions(token), user_id)
        except UnauthorizedError as exc:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple health endpoint used for readiness checks."""

        return {"status": "ok"}

    @app.post(
        "/users/{user_id}/items",
        tags=["wardrobe"],
        status_code=status.HTTP_201_CREATED,
        response_model=ClothingItem,
    )
    async def upload_item(
        user_id: str,
        request: Request,
        remove_background: bool = Query(default=True),
        category: ClothingCategory | None = Query(default=None),
        token: str | None = Depends(_bearer_token),
    ) -> ClothingItem:
        """Run a photo through the upload pipeline and return the stored item."""

        image_bytes = await request.body()
        if not image_bytes:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Image body is empty.")

        orchestrator = context.orchestrator(token, label=user_id)
        options = UploadOptions(should_remove_background=remove_background, category=category)
        try:
            return await orchestrator.upload(image_bytes, user_id, options)
        except (
            UnauthorizedError,
            ImageValidationError,
            UploadInProgressError,
            StorageError,
            BackgroundRemovalError,
            PersistenceError,
        ) as exc:
            raise HTTPException(status_code=_error_status(exc), detail=str(exc)) from exc

    @app.get("/users/{user_id}/items", tags=["wardrobe"], response_model=list[ClothingItem])
    async def list_items(
        user_id: str,
        group: CategoryGroup | None = Query(default=None),
        token: str | None = Depends(_bearer_token),
    ) -> list[ClothingItem]:
        await _authorize(user_id, token)
        try:
            return await context.wardrobe().list_items(user_id, group)
        except PersistenceError as exc:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    @app.delete(
        "/users/{user_id}/items/{item_id}",
        tags=["wardrobe"],
        status_code=status.HTTP_204_NO_CONTENT,
    )
    async def delete_item(user_id: str, item_id: str, token: str | None = Depends(_bearer_token)) -> Response:
        await _authorize(user_id, token)
        try:
            await context.wardrobe().delete_item(item_id, user_id)
        except PersistenceError as exc:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app
