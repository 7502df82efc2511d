from enum import Enum
from typing import Any, Callable, List, Optional

import structlog

from deckpad.application.deck_store import DeckStore
from deckpad.application.generation import GenerationGateway
from deckpad.application.persistence import PersistenceService
from deckpad.application.slide_editor import SlideEditor
from deckpad.domain.entities import GenerationOptions, Outline, PersistenceRecord, Slide
from deckpad.domain.exceptions import (
    AuthRequiredError,
    GenerationError,
    LocalStateError,
    PersistenceError,
)

logger = structlog.get_logger(__name__)

GENERATION_FAILED_MESSAGE = "Failed to generate outline."
NOT_SIGNED_IN_MESSAGE = "Not signed in"


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    FAILED = "failed"


class DeckWorkspace:
    """Drives one deck from brief to saved record.

    All state changes happen on the event loop thread. ``generating`` and
    ``saving`` keep at most one generation and one save in flight; errors end
    up in ``error`` (generation) or ``message`` (editing and persistence).
    """

    def __init__(
        self,
        gateway: GenerationGateway,
        persistence: PersistenceService,
        store: Optional[DeckStore] = None,
        default_options: Optional[GenerationOptions] = None,
    ) -> None:
        self.gateway = gateway
        self.persistence = persistence
        self.default_options = default_options or GenerationOptions()
        self.store = store or DeckStore()
        self.editors: List[SlideEditor] = []

        self.generating = False
        self.saving = False
        self.save_status = SaveStatus.IDLE
        self.last_saved: Optional[PersistenceRecord] = None
        self.records: List[PersistenceRecord] = []
        self.error: Optional[str] = None
        self.message: Optional[str] = None

    @property
    def outline(self) -> Optional[Outline]:
        return self.store.outline

    @property
    def slides(self) -> List[Slide]:
        return list(self.store.live_slides)

    def can_generate(self, brief: str) -> bool:
        return not self.generating and bool((brief or "").strip())

    async def generate(
        self, brief: str, options: Optional[GenerationOptions] = None
    ) -> Optional[Outline]:
        if not self.can_generate(brief):
            logger.debug(
                "Ignoring generate request",
                generating=self.generating,
                blank_brief=not (brief or "").strip(),
            )
            return None

        self.generating = True
        self.error = None
        # Clear the deck before the request so stale slides are never shown
        epoch = self.store.begin_generation()
        self.editors = []
        try:
            outline = await self.gateway.generate(brief, options or self.default_options)
        except GenerationError as e:
            logger.warning("Generation failed", epoch=epoch, reason=e.reason)
            if epoch == self.store.epoch:
                self.error = GENERATION_FAILED_MESSAGE
            return None
        finally:
            self.generating = False

        if not self.store.commit_outline(outline, epoch):
            return None
        self.editors = [
            SlideEditor(index, slide, epoch, self._on_slide_edited)
            for index, slide in enumerate(self.store.live_slides)
        ]
        return outline

    def _on_slide_edited(self, index: int, slide: Slide, epoch: int) -> None:
        self.store.apply_edit(index, slide, epoch)

    def editor(self, index: int) -> SlideEditor:
        if not 0 <= index < len(self.editors):
            raise LocalStateError(f"Slide {index} does not exist")
        return self.editors[index]

    def edit(self, index: int, action: Callable[[SlideEditor], Any]) -> bool:
        """Run ``action`` against slide ``index``; bad indexes become ``message``."""
        try:
            action(self.editor(index))
        except LocalStateError as e:
            logger.warning("Edit rejected", index=index, error=str(e))
            self.message = str(e)
            return False
        return True

    async def save(self, title: str) -> Optional[PersistenceRecord]:
        if self.saving:
            logger.warning("Save already in flight, rejecting request", title=title)
            return None

        self.saving = True
        self.save_status = SaveStatus.SAVING
        self.message = None
        try:
            record = await self.persistence.save(title, self.store.snapshot())
        except AuthRequiredError:
            return self._save_failed(NOT_SIGNED_IN_MESSAGE)
        except (PersistenceError, LocalStateError) as e:
            return self._save_failed(str(e))
        finally:
            self.saving = False

        self.save_status = SaveStatus.SAVED
        self.last_saved = record
        self.message = f'Saved "{record.title}" (version {record.version})'
        logger.info("Deck saved", record_id=record.id, version=record.version)
        return record

    def _save_failed(self, message: str) -> None:
        self.save_status = SaveStatus.FAILED
        self.message = message
        logger.error("Save failed", error=message)
        return None

    async def load(self) -> List[PersistenceRecord]:
        try:
            self.records = await self.persistence.load()
        except AuthRequiredError:
            self.message = NOT_SIGNED_IN_MESSAGE
        except PersistenceError as e:
            self.message = str(e)
        return self.records

    async def delete(self, record_id: str) -> bool:
        try:
            deleted = await self.persistence.delete(record_id)
        except AuthRequiredError:
            self.message = NOT_SIGNED_IN_MESSAGE
            return False
        except PersistenceError as e:
            self.message = str(e)
            return False

        if deleted:
            self.records = [r for r in self.records if r.id != record_id]
        return deleted
