"""Question browsing for one subject: circular navigation, answer reveal and editing with undo."""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from .errors import InvalidStateError, NotFoundError
from .records import BrowserView, Question, StoragePort, Subject


class QuestionBrowser:
    """Owns the question list of one subject while it is being studied.

    All mutations are written through the store first; the in-memory list is only
    touched after the store call returns, so a failing store leaves the browser as
    it was.
    """

    def __init__(self, store: StoragePort, subject: Subject, questions: List[Question],
                 default_question: str = "") -> None:
        if subject.id is None:
            raise ValueError("Subject must be persisted before it can be browsed")
        self.store = store
        self.subject = subject
        self.questions = questions
        self.default_question = default_question
        self.current_index: Optional[int] = 0 if questions else None
        self.revealed = False
        self.last_deleted: Optional[Question] = None

    @classmethod
    def open(cls, store: StoragePort, subject_id: int, default_question: str = "") -> "QuestionBrowser":
        """Load a subject's questions in ascending id order and show the first one."""
        subject = store.get_subject(subject_id)
        if subject is None:
            raise NotFoundError(f"Subject {subject_id} not found")
        return cls(store, subject, store.list_questions(subject_id), default_question)

    @property
    def current(self) -> Optional[Question]:
        if self.current_index is None:
            return None
        return self.questions[self.current_index]

    def _require_current(self) -> Question:
        question = self.current
        if question is None:
            raise InvalidStateError(f"No question to show for {self.subject.text!r}")
        return question

    # ── Navigation ────────────────────────────────────────────────

    def show(self, index: int) -> Optional[Question]:
        """Show the question at ``index``; past either end wraps to the other end."""
        if not self.questions:
            self.current_index = None
            return None
        if index < 0:
            index = len(self.questions) - 1
        elif index >= len(self.questions):
            index = 0
        self.current_index = index
        return self.questions[index]

    def next(self) -> Optional[Question]:
        if self.current_index is None:
            return self.show(0)
        return self.show(self.current_index + 1)

    def previous(self) -> Optional[Question]:
        if self.current_index is None:
            return self.show(0)
        return self.show(self.current_index - 1)

    def toggle_reveal(self) -> bool:
        self.revealed = not self.revealed
        return self.revealed

    # ── Editing ───────────────────────────────────────────────────

    def new_question(self) -> Question:
        """Unsaved draft pre-filled with the configured default question text."""
        return Question(text=self.default_question, answer="", subject_id=self.subject.id)

    def add(self, text: str, answer: str) -> Question:
        question = Question(text=text, answer=answer, subject_id=self.subject.id)
        question.id = self.store.insert_question(question)
        self.questions.append(question)
        self.show(len(self.questions) - 1)
        return question

    def edit(self, text: str, answer: str) -> Question:
        current = self._require_current()
        updated = replace(current, text=text, answer=answer)
        self.store.update_question(updated)
        current.text = text
        current.answer = answer
        return current

    def delete(self) -> Question:
        """Delete the current question and keep it for a single undo."""
        index = self.current_index
        question = self._require_current()
        self.store.delete_question(question.id)
        del self.questions[index]
        self.last_deleted = question
        # Same position now holds the following question; deleting the last one steps back.
        self.show(min(index, len(self.questions) - 1))
        return question

    def undo_delete(self) -> Question:
        """Re-insert the last deleted question as a new record and show it."""
        if self.last_deleted is None:
            raise InvalidStateError("Nothing to undo")
        restored = replace(self.last_deleted, id=None)
        restored.id = self.store.insert_question(restored)
        self.questions.append(restored)
        self.last_deleted = None
        self.show(len(self.questions) - 1)
        return restored

    def view(self) -> BrowserView:
        return BrowserView(
            subject_text=self.subject.text,
            total=len(self.questions),
            current_index=self.current_index,
            question=self.current,
            revealed=self.revealed,
            can_undo=self.last_deleted is not None,
        )
