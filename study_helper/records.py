from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import List, Optional, Protocol


def _now_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class Subject:
    text: str
    updated_at: int = field(default_factory=_now_millis)
    id: Optional[int] = None


@dataclass
class Question:
    text: str
    answer: str
    subject_id: int
    id: Optional[int] = None


class SortOrder(str, enum.Enum):
    """Subject list orderings. Values are the stored preference strings."""
    ALPHABETIC = "alpha"
    NEWEST_FIRST = "new_first"
    OLDEST_FIRST = "old_first"

    @classmethod
    def from_setting(cls, value: Optional[str]) -> "SortOrder":
        for order in cls:
            if order.value == value:
                return order
        return cls.ALPHABETIC


class StoragePort(Protocol):
    """Durable store of subjects and questions used by the controllers."""

    def get_subject(self, subject_id: int) -> Optional[Subject]: ...

    def get_subject_by_text(self, text: str) -> Optional[Subject]: ...

    def list_subjects(self, order: SortOrder) -> List[Subject]: ...

    def insert_subject(self, subject: Subject) -> int: ...

    def delete_subject(self, subject_id: int) -> None: ...

    def get_question(self, question_id: int) -> Optional[Question]: ...

    def list_questions(self, subject_id: int) -> List[Question]: ...

    def insert_question(self, question: Question) -> int: ...

    def update_question(self, question: Question) -> None: ...

    def delete_question(self, question_id: int) -> None: ...


@dataclass
class BrowserView:
    """Everything a renderer needs to redraw the question screen."""
    subject_text: str
    total: int
    current_index: Optional[int]
    question: Optional[Question]
    revealed: bool
    can_undo: bool

    @property
    def title(self) -> str:
        position = 0 if self.current_index is None else self.current_index + 1
        return f"{self.subject_text} ({position}/{self.total})"


@dataclass
class SubjectListView:
    subjects: List[Subject]
    sort_order: SortOrder
    selected_index: Optional[int]
    action_active: bool
