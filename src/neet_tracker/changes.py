"""Buffered chapter edits, flushed as one update per entity."""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional

from neet_tracker.chapters import bulk_update_chapters, check_chapter_fields, update_chapter
from neet_tracker.errors import BatchPartialFailure, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class PendingChange:
    entity_id: int
    field: str
    value: Any


class PendingChanges:
    """Collects field edits keyed by (entity_id, field); the last value per key wins.

    `updater(entity_id, fields)` performs one entity's write. `validator`, if
    given, sees the entity's merged fields on every `add_change` and raises
    ValidationError to refuse the edit. `bulk_updater(groups)` replaces the
    per-entity fan-out with a single all-or-nothing write. `on_save_complete`
    runs after a fully successful flush, typically to refresh aggregates.
    """

    def __init__(
        self,
        updater: Optional[Callable[[int, dict], Any]] = None,
        on_save_complete: Optional[Callable[[], None]] = None,
        max_workers: int = 4,
        validator: Optional[Callable[[int, dict], None]] = None,
        bulk_updater: Optional[Callable[[dict], Any]] = None,
    ):
        if updater is None and bulk_updater is None:
            raise ValueError("PendingChanges needs an updater or a bulk_updater")
        self.updater = updater
        self.bulk_updater = bulk_updater
        self.validator = validator
        self.on_save_complete = on_save_complete
        self.max_workers = max_workers
        self._changes: list[PendingChange] = []
        self.is_saving = False

    @classmethod
    def for_chapters(cls, db_path: str, on_save_complete=None, atomic: bool = False) -> "PendingChanges":
        """Chapter edits, checked when staged. With `atomic`, the flush is one transaction."""
        def validator(chapter_id, fields):
            check_chapter_fields(db_path, chapter_id, fields)

        if atomic:
            return cls(
                bulk_updater=lambda groups: bulk_update_chapters(db_path, groups),
                on_save_complete=on_save_complete,
                validator=validator,
            )
        return cls(
            lambda chapter_id, fields: update_chapter(db_path, chapter_id, fields),
            on_save_complete=on_save_complete,
            validator=validator,
        )

    @property
    def pending(self) -> list[PendingChange]:
        return list(self._changes)

    @property
    def has_changes(self) -> bool:
        return bool(self._changes)

    def add_change(self, entity_id: int, field: str, value: Any) -> None:
        if self.validator is not None:
            fields = dict(self.grouped().get(entity_id, {}))
            fields[field] = value
            self.validator(entity_id, fields)
        self.remove_change(entity_id, field)
        self._changes.append(PendingChange(entity_id, field, value))

    def remove_change(self, entity_id: int, field: str) -> None:
        self._changes = [
            c for c in self._changes if not (c.entity_id == entity_id and c.field == field)
        ]

    def clear_changes(self) -> None:
        self._changes = []

    def grouped(self) -> dict[int, dict]:
        groups: dict[int, dict] = {}
        for change in self._changes:
            groups.setdefault(change.entity_id, {})[change.field] = change.value
        return groups

    def _write_each(self, groups: dict) -> dict:
        errors = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {
                entity_id: pool.submit(self.updater, entity_id, fields)
                for entity_id, fields in groups.items()
            }
        for entity_id, future in futures.items():
            error = future.exception()
            if error is not None:
                logger.error("Saving entity %s failed: %s", entity_id, error)
                errors[entity_id] = error
        return errors

    def _write_all(self, groups: dict) -> dict:
        try:
            self.bulk_updater(groups)
        except ValidationError:
            raise
        except Exception as e:
            logger.error("Saving %d entities failed: %s", len(groups), e)
            return {entity_id: e for entity_id in groups}
        return {}

    def save_all_changes(self) -> int:
        """Write every pending entity. Returns the number of entities saved.

        A ValidationError from a write is raised as is. Any other failure
        raises BatchPartialFailure carrying each entity's exception. In both
        cases all pending changes are kept.
        """
        groups = self.grouped()
        if not groups:
            return 0
        self.is_saving = True
        try:
            if self.bulk_updater is not None:
                errors = self._write_all(groups)
            else:
                errors = self._write_each(groups)
        finally:
            self.is_saving = False
        for error in errors.values():
            if isinstance(error, ValidationError):
                raise error
        if errors:
            raise BatchPartialFailure(list(errors), len(groups), errors)
        self.clear_changes()
        logger.info("Saved changes for %d entities", len(groups))
        if self.on_save_complete is not None:
            self.on_save_complete()
        return len(groups)
