"""Snapshot synthesis: one completion request, validated into a snapshot.

The synthesizer fails closed. Transport errors and unusable responses are
logged and produce ``None``; nothing partial is fabricated. No retry is
attempted here, callers own any outer retry policy.
"""

import logging
from typing import Any, List, Mapping, Optional

from app.logging_utils import log_event
from llm_synthesis.adapter import BaseLLMAdapter
from llm_synthesis.prompt_builder import SnapshotPromptBuilder
from llm_synthesis.schema import ShopHealthSnapshot
from llm_synthesis.validator import (
    IdFactory,
    LLMOutputValidationError,
    new_suggestion_id,
    validate_llm_output,
)
from shop_history.types import DerivedStats


class SnapshotSynthesizer:
    """Builds the prompt, calls the adapter once and validates the result."""

    def __init__(
        self,
        adapter: BaseLLMAdapter,
        *,
        prompt_builder: Optional[SnapshotPromptBuilder] = None,
        id_factory: IdFactory = new_suggestion_id,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._adapter = adapter
        self._prompt_builder = prompt_builder or SnapshotPromptBuilder()
        self._id_factory = id_factory
        self._logger = logger or logging.getLogger(__name__)

    def synthesize(
        self,
        *,
        shop_id: str,
        questionnaire: Optional[Mapping[str, Any]],
        stats: DerivedStats,
    ) -> Optional[ShopHealthSnapshot]:
        """Produce a snapshot for *shop_id*, or ``None`` on any failure.

        Args:
            shop_id: Identity written into the snapshot.
            questionnaire: Intake questionnaire answers.
            stats: Merged repair history statistics.
        """
        prompt = self._prompt_builder.build_prompt(questionnaire, stats)

        try:
            raw = self._adapter.complete(prompt.system, prompt.user)
        except Exception as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "snapshot_completion_failed",
                shop_id=shop_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None

        coercion_errors: List[str] = []
        try:
            snapshot = validate_llm_output(
                raw,
                shop_id=shop_id,
                fallback_stats=stats,
                id_factory=self._id_factory,
                errors=coercion_errors,
            )
        except LLMOutputValidationError as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "snapshot_response_invalid",
                shop_id=shop_id,
                stage=exc.stage,
                errors=exc.errors,
            )
            return None

        if coercion_errors:
            log_event(
                self._logger,
                logging.WARNING,
                "snapshot_entries_dropped",
                shop_id=shop_id,
                errors=coercion_errors,
            )
        return snapshot
