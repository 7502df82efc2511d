from typing import Callable, List, Optional

from deckpad.domain.entities import Slide
from deckpad.domain.exceptions import LocalStateError

SlideEditedCallback = Callable[[int, Slide, int], None]


class SlideEditor:
    """Local editable copy of one slide.

    Every mutator rebuilds the slide and reports it through
    ``on_slide_edited(index, slide, epoch)``. Construction and ``sync`` never
    report anything.
    """

    def __init__(
        self,
        index: int,
        initial: Slide,
        epoch: int,
        on_slide_edited: Optional[SlideEditedCallback] = None,
    ) -> None:
        self.index = index
        self.on_slide_edited = on_slide_edited
        self._reset(initial, epoch)

    def _reset(self, initial: Slide, epoch: int) -> None:
        self.epoch = epoch
        self.title = initial.slide_title
        self.points: List[str] = list(initial.talking_points)
        self.visual = initial.visual_suggestion or ""
        self.notes = initial.notes or ""

    def sync(self, initial: Slide, epoch: int) -> None:
        """Drop all local edits when a new deck replaces the old one."""
        if epoch != self.epoch:
            self._reset(initial, epoch)

    def build_slide(self) -> Slide:
        return Slide(
            slide_title=self.title,
            talking_points=list(self.points),
            visual_suggestion=self.visual if self.visual.strip() else None,
            notes=self.notes if self.notes.strip() else None,
        )

    def set_title(self, text: str) -> Slide:
        self.title = text
        return self._emit()

    def set_visual(self, text: str) -> Slide:
        self.visual = text
        return self._emit()

    def set_notes(self, text: str) -> Slide:
        self.notes = text
        return self._emit()

    def update_point(self, i: int, text: str) -> Slide:
        self._check_point(i)
        self.points[i] = text
        return self._emit()

    def add_point(self) -> Slide:
        self.points.append("")
        return self._emit()

    def remove_point(self, i: int) -> Slide:
        self._check_point(i)
        del self.points[i]
        return self._emit()

    def _check_point(self, i: int) -> None:
        if not 0 <= i < len(self.points):
            raise LocalStateError(
                f"Talking point {i} does not exist on slide {self.index}"
            )

    def _emit(self) -> Slide:
        slide = self.build_slide()
        if self.on_slide_edited is not None:
            self.on_slide_edited(self.index, slide, self.epoch)
        return slide
