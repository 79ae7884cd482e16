"""
Shop boost pipeline: turns a pending intake into a shop health snapshot.

Run order: locate intake, download exports, record import artifacts,
derive stats from the repair-order export and from the store, merge,
synthesize, detect issues, persist, log the training event and finally
mark the intake completed. Only lookup and synthesis failures stop a run;
every persistence step after synthesis is best effort.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable

from app.config import (
    LLMSettings,
    ObjectStorageSettings,
    ShopBoostSettings,
    get_llm_settings,
    get_object_storage_settings,
    get_shop_boost_settings,
)
from app.logging_utils import log_event
from app.services.health_scoring import (
    build_metrics,
    build_recommendations,
    compute_scores,
    detect_issues,
)
from app.services.import_artifacts import ImportArtifactRecorder, ImportFileInput, ImportStats
from app.services.training_event_recorder import TrainingEventRecorder
from db.models.shop_import import ImportFileKind
from db.repositories.errors import ShopBoostPersistenceError
from db.repositories.shop_boost_repository import ShopBoostStore, SqlAlchemyShopBoostStore
from db.repositories.storage import HttpObjectStorage, LocalObjectStorage, ObjectStorageBackend
from db.repositories.types import (
    HealthSnapshotCreate,
    InspectionSuggestionCreate,
    IntakeRecord,
    MenuSuggestionCreate,
)
from llm_synthesis.adapter import BaseLLMAdapter, MockLLMAdapter, OpenAILLMAdapter
from llm_synthesis.schema import InspectionSuggestion, MenuSuggestion, ShopHealthSnapshot
from llm_synthesis.synthesizer import SnapshotSynthesizer
from shop_history.aggregation import derive_stats_from_csv
from shop_history.merge import merge_stats
from shop_history.types import DerivedStats

MENU_SUGGESTION_CONFIDENCE = 0.75
INSPECTION_SUGGESTION_CONFIDENCE = 0.8

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def menu_suggestion_rows(
    suggestions: list[MenuSuggestion],
    *,
    shop_id: str,
    intake_id: str | None,
) -> list[MenuSuggestionCreate]:
    return [
        MenuSuggestionCreate(
            shop_id=shop_id,
            intake_id=intake_id,
            suggestion_key=item.id,
            title=item.name,
            price_suggestion=item.recommended_price,
            labor_hours_suggestion=item.estimated_labor_hours,
            confidence=MENU_SUGGESTION_CONFIDENCE,
            reason=item.description or None,
        )
        for item in suggestions
    ]


def _applies_to(usage_context: str) -> str:
    context = usage_context.strip().lower()
    return context if context in {"fleet", "retail"} else "both"


def inspection_suggestion_rows(
    suggestions: list[InspectionSuggestion],
    *,
    shop_id: str,
    intake_id: str | None,
) -> list[InspectionSuggestionCreate]:
    return [
        InspectionSuggestionCreate(
            shop_id=shop_id,
            intake_id=intake_id,
            suggestion_key=item.id,
            name=item.name,
            items={"note": item.note, "usageContext": item.usage_context},
            applies_to=_applies_to(item.usage_context),
            confidence=INSPECTION_SUGGESTION_CONFIDENCE,
        )
        for item in suggestions
    ]


class ShopBoostService:
    """
    Runs the shop boost pipeline for one shop per call.

    Callers keep at most one run per shop in flight; nothing here locks.
    """

    def __init__(
        self,
        *,
        store: ShopBoostStore,
        storage: ObjectStorageBackend,
        synthesizer: SnapshotSynthesizer,
        settings: ShopBoostSettings | None = None,
        clock: Clock = _utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._storage = storage
        self._synthesizer = synthesizer
        self._settings = settings or ShopBoostSettings()
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        self._import_recorder = ImportArtifactRecorder(
            store,
            batch_size=self._settings.import_row_batch_size,
            logger=self._logger,
        )
        self._training_recorder = TrainingEventRecorder(store, logger=self._logger)

    def build_shop_boost_profile(
        self,
        shop_id: str,
        intake_id: str | None = None,
    ) -> ShopHealthSnapshot | None:
        """
        Build, persist and return the snapshot, or ``None`` when no pending
        intake matches or synthesis fails. Never raises.
        """

        intake = self._locate_intake(shop_id, intake_id)
        if intake is None:
            return None

        customers_csv, vehicles_csv, parts_csv = self._download_exports(intake)

        import_stats = self._import_recorder.record(
            intake_id=intake.id,
            files=[
                ImportFileInput(ImportFileKind.CUSTOMERS, intake.customers_file_path, customers_csv),
                ImportFileInput(ImportFileKind.VEHICLES, intake.vehicles_file_path, vehicles_csv),
                ImportFileInput(ImportFileKind.PARTS, intake.parts_file_path, parts_csv),
            ],
        )

        # Repair statistics come from the repair-order (vehicles) export only.
        csv_stats = derive_stats_from_csv(vehicles_csv, log=self._logger)
        merged = merge_stats(csv_stats, self._derive_store_stats(shop_id))
        log_event(
            self._logger,
            logging.INFO,
            "shop_boost_stats_merged",
            shop_id=shop_id,
            intake_id=intake.id,
            total_repair_orders=merged.total_repair_orders,
            distinct_repairs=len(merged.repairs),
        )

        snapshot = self._synthesizer.synthesize(
            shop_id=shop_id,
            questionnaire=intake.questionnaire,
            stats=merged,
        )
        if snapshot is None:
            log_event(
                self._logger,
                logging.WARNING,
                "shop_boost_run_aborted",
                shop_id=shop_id,
                intake_id=intake.id,
                reason="synthesis_failed",
            )
            return None

        issues = detect_issues(
            questionnaire=intake.questionnaire,
            stats=merged,
            comeback_risks=snapshot.comeback_risks,
        )
        recommendations = build_recommendations(
            issues=issues,
            stats=merged,
            menu_suggestions=snapshot.menu_suggestions,
            inspection_suggestions=snapshot.inspection_suggestions,
        )
        snapshot = snapshot.model_copy(
            update={"issues_detected": issues, "recommendations": recommendations}
        )

        self._persist_profile(intake, snapshot, merged, import_stats)
        self._training_recorder.record(snapshot)
        self._mark_completed(intake)

        log_event(
            self._logger,
            logging.INFO,
            "shop_boost_run_completed",
            shop_id=shop_id,
            intake_id=intake.id,
            issues=[issue.key for issue in issues],
            menu_suggestions=len(snapshot.menu_suggestions),
            inspection_suggestions=len(snapshot.inspection_suggestions),
        )
        return snapshot

    def _locate_intake(self, shop_id: str, intake_id: str | None) -> IntakeRecord | None:
        try:
            intake = self._store.find_pending_intake(shop_id, intake_id)
        except ShopBoostPersistenceError as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "shop_boost_intake_lookup_failed",
                shop_id=shop_id,
                intake_id=intake_id,
                error=str(exc),
            )
            return None

        if intake is None:
            log_event(
                self._logger,
                logging.WARNING,
                "shop_boost_intake_not_found",
                shop_id=shop_id,
                intake_id=intake_id,
            )
            return None

        if intake_id is not None and intake.id.lower() != intake_id.strip().lower():
            log_event(
                self._logger,
                logging.WARNING,
                "shop_boost_intake_mismatch",
                shop_id=shop_id,
                intake_id=intake_id,
                found_intake_id=intake.id,
            )
            return None
        return intake

    def _download_exports(self, intake: IntakeRecord) -> tuple[str | None, str | None, str | None]:
        paths = (intake.customers_file_path, intake.vehicles_file_path, intake.parts_file_path)
        with ThreadPoolExecutor(
            max_workers=self._settings.download_workers,
            thread_name_prefix="shop-boost-download",
        ) as pool:
            customers, vehicles, parts = pool.map(self._download_text, paths)
        return customers, vehicles, parts

    def _download_text(self, path: str | None) -> str | None:
        if not path:
            return None
        bucket = self._settings.storage_bucket
        try:
            content = self._storage.download(bucket, path)
        except Exception as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "shop_boost_download_failed",
                bucket=bucket,
                path=path,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None
        return content.decode("utf-8-sig", errors="replace")

    def _derive_store_stats(self, shop_id: str) -> DerivedStats:
        try:
            return self._store.derive_shop_stats(shop_id)
        except ShopBoostPersistenceError as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "shop_boost_store_stats_failed",
                shop_id=shop_id,
                error=str(exc),
            )
            return DerivedStats.empty()

    def _persist_profile(
        self,
        intake: IntakeRecord,
        snapshot: ShopHealthSnapshot,
        merged: DerivedStats,
        import_stats: ImportStats,
    ) -> None:
        shop_id = snapshot.shop_id
        scores = compute_scores(
            questionnaire=intake.questionnaire,
            stats=merged,
            snapshot=snapshot,
            issues=snapshot.issues_detected,
            import_stats=import_stats,
        )
        metrics = build_metrics(
            questionnaire=intake.questionnaire,
            stats=merged,
            import_stats=import_stats,
            generated_at=self._clock(),
        )

        steps: list[tuple[str, Callable[[], object]]] = [
            (
                "health_snapshot",
                lambda: self._store.insert_health_snapshot(
                    HealthSnapshotCreate(
                        shop_id=shop_id,
                        intake_id=intake.id,
                        metrics=metrics,
                        scores=scores,
                        narrative_summary=snapshot.narrative_summary,
                    )
                ),
            ),
            (
                "menu_suggestions",
                lambda: self._store.insert_menu_suggestions(
                    menu_suggestion_rows(snapshot.menu_suggestions, shop_id=shop_id, intake_id=intake.id)
                ),
            ),
            (
                "inspection_suggestions",
                lambda: self._store.insert_inspection_suggestions(
                    inspection_suggestion_rows(
                        snapshot.inspection_suggestions, shop_id=shop_id, intake_id=intake.id
                    )
                ),
            ),
            (
                "profile_summary",
                lambda: self._store.upsert_profile_summary(
                    shop_id=shop_id,
                    summary=snapshot.narrative_summary,
                    refreshed_at=self._clock(),
                ),
            ),
        ]

        for step, write in steps:
            try:
                write()
            except ShopBoostPersistenceError as exc:
                log_event(
                    self._logger,
                    logging.ERROR,
                    "shop_boost_persist_failed",
                    shop_id=shop_id,
                    intake_id=intake.id,
                    step=step,
                    error=str(exc),
                )

    def _mark_completed(self, intake: IntakeRecord) -> None:
        try:
            self._store.mark_intake_completed(intake.id, self._clock())
        except ShopBoostPersistenceError as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "shop_boost_intake_update_failed",
                shop_id=intake.shop_id,
                intake_id=intake.id,
                error=str(exc),
            )


def build_object_storage(settings: ObjectStorageSettings) -> ObjectStorageBackend:
    if settings.backend == "http":
        if not settings.base_url:
            raise RuntimeError("OBJECT_STORAGE_URL is required when OBJECT_STORAGE_BACKEND=http.")
        return HttpObjectStorage(
            settings.base_url,
            service_key=settings.service_key,
            timeout_seconds=settings.timeout_seconds,
        )
    return LocalObjectStorage(settings.local_root)


def build_llm_adapter(settings: LLMSettings) -> BaseLLMAdapter:
    if settings.adapter == "mock":
        return MockLLMAdapter()
    return OpenAILLMAdapter(
        model=settings.model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        api_key=settings.api_key,
        base_url=settings.base_url,
    )


@lru_cache(maxsize=1)
def get_shop_boost_service() -> ShopBoostService:
    """
    Cached service wired from environment settings.
    """

    return ShopBoostService(
        store=SqlAlchemyShopBoostStore(),
        storage=build_object_storage(get_object_storage_settings()),
        synthesizer=SnapshotSynthesizer(build_llm_adapter(get_llm_settings())),
        settings=get_shop_boost_settings(),
    )


def build_shop_boost_profile(shop_id: str, intake_id: str | None = None) -> ShopHealthSnapshot | None:
    return get_shop_boost_service().build_shop_boost_profile(shop_id, intake_id)
