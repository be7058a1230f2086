"""Upload pipeline that turns a captured photo into a stored clothing item."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid

from wardrobe.auth.session import SessionProvider, ensure_session_owner
from wardrobe.catalog.attribute_extractor import AnalysisResult
from wardrobe.catalog.classifier import ClothingClassifier
from wardrobe.catalog.models import ClothingItem, UploadOptions
from wardrobe.db.repository import WardrobeStore
from wardrobe.imgproc.normalize import ImageNormalizer, extension_for, sniff_content_type
from wardrobe.imgproc.segmentation import BackgroundRemover
from wardrobe.metrics.prometheus_exporter import (
    analysis_degraded_total,
    upload_stage_failures_total,
    uploads_total,
)
from wardrobe.services.stages import UploadObserver, UploadStage, UploadState, overall_progress
from wardrobe.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


class UploadInProgressError(RuntimeError):
    """Raised when an orchestrator is asked to start a second concurrent upload."""


def make_upload_suffix() -> str:
    """Random id plus millisecond timestamp, unique per upload and owner."""

    return f"{uuid.uuid4().hex}_{time.time_ns() // 1_000_000}"


def upload_key(user_id: str, kind: str, suffix: str, content_type: str) -> str:
    return f"{user_id}/{kind}_{suffix}.{extension_for(content_type)}"


def build_item(
    *,
    user_id: str,
    image_url: str,
    original_image_url: str | None,
    analysis: AnalysisResult,
    options: UploadOptions,
) -> ClothingItem:
    """Merge analysis output with the caller's options; analysis wins on category."""

    return ClothingItem(
        id=str(uuid.uuid4()),
        user_id=user_id,
        image_url=image_url,
        original_image_url=original_image_url,
        description=analysis.description,
        category=analysis.category or options.category,
        color=analysis.main_color,
        secondary_colors=analysis.secondary_colors,
        style=analysis.style,
        occasion_types=analysis.occasion_types,
        weather_suitability=analysis.weather_suitability,
        fabric_type=analysis.fabric_type,
        texture=analysis.texture,
    )


class UploadOrchestrator:
    """Runs one upload at a time through resize, storage, AI enrichment and persistence.

    Stages run strictly in sequence. A failure before the item is saved is
    fatal and moves the state to ``failed``; objects already written to
    storage are left in place. Only the attribute analysis is allowed to fail
    without aborting: the item is then saved without AI-derived attributes.
    """

    def __init__(
        self,
        *,
        session: SessionProvider,
        normalizer: ImageNormalizer,
        storage: StorageBackend,
        remover: BackgroundRemover,
        classifier: ClothingClassifier,
        store: WardrobeStore,
        observer: UploadObserver | None = None,
        completion_delay: float = 1.0,
    ) -> None:
        self._session = session
        self._normalizer = normalizer
        self._storage = storage
        self._remover = remover
        self._classifier = classifier
        self._store = store
        self._observer = observer
        self._completion_delay = completion_delay
        self._state = UploadState.idle()
        self._busy = False

    @property
    def state(self) -> UploadState:
        return self._state

    async def upload(
        self,
        image_bytes: bytes,
        user_id: str,
        options: UploadOptions | None = None,
    ) -> ClothingItem:
        """Run the full pipeline and return the stored item."""

        if self._busy:
            raise UploadInProgressError("An upload is already running on this orchestrator.")
        self._busy = True
        try:
            return await self._run(image_bytes, user_id, options or UploadOptions())
        finally:
            self._busy = False

    async def _run(self, image_bytes: bytes, user_id: str, options: UploadOptions) -> ClothingItem:
        self._state = UploadState.idle()
        try:
            await ensure_session_owner(self._session, user_id)
            working = await asyncio.to_thread(self._normalizer.normalize, image_bytes)
            suffix = make_upload_suffix()
            original_url: str | None = None

            if options.should_remove_background:
                self._emit(UploadState(UploadStage.UPLOADING_ORIGINAL, 0.0))
                original_url = await self._put(working, user_id, "original", suffix)
                self._emit(UploadState(UploadStage.UPLOADING_ORIGINAL, 1.0))

                self._emit(UploadState(UploadStage.REMOVING_BACKGROUND, 0.0))
                working = await self._remover.remove_background(
                    original_url,
                    on_progress=self._report_background_progress,
                )
                self._emit(UploadState(UploadStage.REMOVING_BACKGROUND, 1.0))

            self._emit(UploadState(UploadStage.ANALYZING_CLOTHING, 0.0))
            image_url = await self._put(working, user_id, "processed", suffix)
            self._emit(UploadState(UploadStage.ANALYZING_CLOTHING, 0.5))
            analysis = await self._analyze(working)
            self._emit(UploadState(UploadStage.ANALYZING_CLOTHING, 1.0))

            self._emit(UploadState(UploadStage.SAVING_TO_DATABASE, 0.0))
            item = build_item(
                user_id=user_id,
                image_url=image_url,
                original_image_url=original_url,
                analysis=analysis,
                options=options,
            )
            saved = await self._store.create(item)
        except Exception as exc:
            self._fail(exc)
            raise

        # Overall progress reaches 1.0 only here.
        self._emit(UploadState.completed())
        uploads_total.labels(outcome="completed").inc()
        logger.info("Clothing item %s saved for user %s", saved.id, user_id)

        await asyncio.sleep(self._completion_delay)
        self._state = UploadState.idle()
        return saved

    async def _put(self, data: bytes, user_id: str, kind: str, suffix: str) -> str:
        content_type = sniff_content_type(data)
        key = upload_key(user_id, kind, suffix, content_type)
        logger.debug("Uploading %d bytes to %s", len(data), key)
        return await self._storage.put(data, key, content_type)

    async def _analyze(self, image_bytes: bytes) -> AnalysisResult:
        try:
            return await self._classifier.analyze(image_bytes)
        except Exception as exc:
            analysis_degraded_total.inc()
            logger.warning("Clothing analysis failed, saving item without AI attributes: %s", exc)
            return AnalysisResult()

    def _report_background_progress(self, fraction: float) -> None:
        # The final 1.0 is emitted once the processed bytes are in hand.
        self._emit(UploadState(UploadStage.REMOVING_BACKGROUND, min(fraction, 0.99)))

    def _emit(self, state: UploadState) -> None:
        self._state = state
        if self._observer is not None:
            self._observer.on_state(state)

    def _fail(self, exc: Exception) -> None:
        stage = self._state.stage
        reached = overall_progress(self._state)
        upload_stage_failures_total.labels(stage=stage.value).inc()
        uploads_total.labels(outcome="failed").inc()
        logger.error("Upload failed during %s: %s", stage.value, exc)
        self._emit(UploadState.failed(str(exc) or type(exc).__name__, reached))
