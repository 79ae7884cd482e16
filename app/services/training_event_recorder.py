"""
Appends a finished snapshot to the AI training tables.
"""

from __future__ import annotations

import json
import logging

from app.logging_utils import log_event
from db.repositories.errors import ShopBoostPersistenceError
from db.repositories.shop_boost_repository import ShopBoostStore
from llm_synthesis.schema import ShopHealthSnapshot

TRAINING_SOURCE = "shop_boost"
CONTENT_HEADER = "Shop Health Snapshot:"


def render_training_content(snapshot: ShopHealthSnapshot) -> str:
    return CONTENT_HEADER + "\n" + json.dumps(snapshot.to_payload(), indent=2)


class TrainingEventRecorder:
    """
    Writes an event row and, only when it yields an id, the linked
    text rendering. Failures are logged, never raised.
    """

    def __init__(self, store: ShopBoostStore, *, logger: logging.Logger | None = None) -> None:
        self._store = store
        self._logger = logger or logging.getLogger(__name__)

    def record(self, snapshot: ShopHealthSnapshot) -> str | None:
        """Return the training event id, or ``None`` when nothing was written."""
        try:
            event_id = self._store.insert_training_event(
                shop_id=snapshot.shop_id,
                source=TRAINING_SOURCE,
                payload=snapshot.to_payload(),
            )
        except ShopBoostPersistenceError as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "training_event_insert_failed",
                shop_id=snapshot.shop_id,
                error=str(exc),
            )
            return None

        if not event_id:
            log_event(
                self._logger,
                logging.WARNING,
                "training_event_missing_id",
                shop_id=snapshot.shop_id,
            )
            return None

        try:
            self._store.insert_training_data(
                shop_id=snapshot.shop_id,
                source_event_id=event_id,
                content=render_training_content(snapshot),
            )
        except ShopBoostPersistenceError as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "training_data_insert_failed",
                shop_id=snapshot.shop_id,
                event_id=event_id,
                error=str(exc),
            )
        return event_id
