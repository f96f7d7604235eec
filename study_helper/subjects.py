"""Ordered subject list with a single-item contextual action (delete)."""

from __future__ import annotations

from typing import List, Optional

from .browser import QuestionBrowser
from .errors import InvalidStateError
from .records import SortOrder, StoragePort, Subject, SubjectListView


class SubjectListController:
    def __init__(self, store: StoragePort, sort_order: SortOrder = SortOrder.ALPHABETIC,
                 default_question: str = "") -> None:
        self.store = store
        self.sort_order = sort_order
        self.default_question = default_question
        self.subjects: List[Subject] = []
        self.selected_index: Optional[int] = None
        self.action_active = False

    def load(self, sort_order: Optional[SortOrder] = None) -> List[Subject]:
        """Replace the list with the store's subjects in the given (or current) order."""
        if sort_order is not None:
            self.sort_order = sort_order
        subjects = self.store.list_subjects(self.sort_order)
        self.subjects = subjects
        self._end_action()
        return subjects

    def add_subject(self, text: str) -> Optional[Subject]:
        """Add a subject at the top of the list. Blank text is ignored."""
        if not text or not text.strip():
            return None
        subject = Subject(text)
        subject.id = self.store.insert_subject(subject)
        self.subjects.insert(0, subject)
        if self.selected_index is not None:
            self.selected_index += 1
        return subject

    def open_subject(self, index: int) -> QuestionBrowser:
        subject = self._subject_at(index)
        return QuestionBrowser.open(self.store, subject.id, self.default_question)

    # ── Contextual action ─────────────────────────────────────────

    def select_for_action(self, index: int) -> bool:
        """Start the delete action on one subject. Returns False if one is already open."""
        if self.action_active:
            return False
        self._subject_at(index)
        self.selected_index = index
        self.action_active = True
        return True

    @property
    def selected(self) -> Optional[Subject]:
        if self.selected_index is None:
            return None
        return self.subjects[self.selected_index]

    def confirm_delete(self) -> Subject:
        """Delete the selected subject (and its questions) and close the action."""
        subject = self.selected
        if not self.action_active or subject is None:
            self._end_action()
            raise InvalidStateError("No subject selected")
        if subject.id is None or self.store.get_subject(subject.id) is None:
            self._end_action()
            raise InvalidStateError(f"Subject {subject.text!r} no longer exists")
        self.store.delete_subject(subject.id)
        del self.subjects[self.selected_index]
        self._end_action()
        return subject

    def cancel_action(self) -> None:
        self._end_action()

    def _end_action(self) -> None:
        self.action_active = False
        self.selected_index = None

    def _subject_at(self, index: int) -> Subject:
        if not 0 <= index < len(self.subjects):
            raise InvalidStateError(f"No subject at position {index}")
        return self.subjects[index]

    def view(self) -> SubjectListView:
        return SubjectListView(
            subjects=list(self.subjects),
            sort_order=self.sort_order,
            selected_index=self.selected_index,
            action_active=self.action_active,
        )
