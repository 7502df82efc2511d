from typing import Callable, List, Optional

import structlog

from deckpad.domain.entities import Outline, Slide
from deckpad.domain.exceptions import LocalStateError

logger = structlog.get_logger(__name__)

DeckListener = Callable[["DeckStore"], None]


class DeckStore:
    """Authoritative client-side deck state.

    Every generation advances ``epoch``; outlines and edits carrying an older
    epoch are dropped instead of merged. ``revision`` counts applied edits
    within the current epoch.
    """

    def __init__(self) -> None:
        self.epoch = 0
        self.revision = 0
        self.outline: Optional[Outline] = None
        self.live_slides: List[Slide] = []
        self._listeners: List[DeckListener] = []

    @property
    def has_outline(self) -> bool:
        return self.outline is not None

    def begin_generation(self) -> int:
        self.epoch += 1
        self.outline = None
        self.live_slides = []
        self.revision = 0
        logger.debug("Generation started", epoch=self.epoch)
        self._notify()
        return self.epoch

    def commit_outline(self, outline: Outline, epoch: int) -> bool:
        if epoch != self.epoch:
            logger.debug(
                "Dropping outline from superseded generation",
                epoch=epoch,
                current_epoch=self.epoch,
            )
            return False

        self.outline = outline
        self.live_slides = list(outline.slides)
        self.revision = 0
        logger.info(
            "Outline committed", epoch=epoch, slide_count=len(self.live_slides)
        )
        self._notify()
        return True

    def apply_edit(self, index: int, slide: Slide, epoch: Optional[int] = None) -> bool:
        if epoch is not None and epoch != self.epoch:
            logger.warning(
                "Ignoring edit from stale epoch",
                index=index,
                epoch=epoch,
                current_epoch=self.epoch,
            )
            return False
        if not 0 <= index < len(self.live_slides):
            logger.error(
                "Ignoring edit for missing slide",
                index=index,
                slide_count=len(self.live_slides),
            )
            return False
        if self.live_slides[index] == slide:
            return False

        self.live_slides[index] = slide
        self.revision += 1
        self._notify()
        return True

    def snapshot(self) -> Outline:
        """The original topic with the current edited slides."""
        if self.outline is None:
            raise LocalStateError("No outline to snapshot")
        return Outline(topic=self.outline.topic, slides=list(self.live_slides))

    def subscribe(self, listener: DeckListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
