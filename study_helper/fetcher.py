"""Client for the remote study-set source used by the import screen."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

import requests

from .records import Question, Subject
from .settings import DEFAULT_IMPORT_URL

DEBUG_MODE = os.getenv("DEBUG", "0") == "1"


@dataclass
class SubjectsFetched:
    subjects: List[Subject]


@dataclass
class QuestionsFetched:
    subject: Subject
    questions: List[Question] = field(default_factory=list)


@dataclass
class FetchFailed:
    reason: str


FetchResult = Union[SubjectsFetched, QuestionsFetched, FetchFailed]


def json_to_subjects(payload: Any) -> List[Subject]:
    """Convert a ``{"subjects": [...]}`` payload, dropping malformed entries."""
    records = payload.get("subjects") if isinstance(payload, dict) else None
    if not isinstance(records, list):
        return []
    subjects: List[Subject] = []
    for item in records:
        if not isinstance(item, dict):
            continue
        text = item.get("subject")
        updated = item.get("updatetime")
        if not isinstance(text, str) or not text:
            continue
        try:
            updated_at = int(updated)
        except (TypeError, ValueError):
            if DEBUG_MODE:
                print(f"⚠️ Dropping subject {text!r}: bad updatetime {updated!r}")
            continue
        subjects.append(Subject(text=text, updated_at=updated_at))
    return subjects


def json_to_questions(payload: Any) -> List[Question]:
    """Convert a ``{"questions": [...]}`` payload. Questions get ``subject_id=0`` until imported."""
    records = payload.get("questions") if isinstance(payload, dict) else None
    if not isinstance(records, list):
        return []
    questions: List[Question] = []
    for item in records:
        if not isinstance(item, dict):
            continue
        text = item.get("question")
        answer = item.get("answer")
        if not isinstance(text, str) or not isinstance(answer, str):
            if DEBUG_MODE:
                print(f"⚠️ Dropping malformed question record: {item!r}")
            continue
        questions.append(Question(text=text, answer=answer, subject_id=0))
    return questions


class StudyFetcher:
    def __init__(self, base_url: str = DEFAULT_IMPORT_URL, timeout: float = 10,
                 session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.http = session or requests.Session()

    def _get(self, params: dict[str, str]) -> Any:
        response = self.http.get(self.base_url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def fetch_subjects(self) -> FetchResult:
        try:
            payload = self._get({"type": "subjects"})
        except (requests.RequestException, ValueError) as e:
            if DEBUG_MODE:
                print(f"❌ Fetching subjects failed: {e}")
            return FetchFailed(f"Error loading subjects: {e}")
        return SubjectsFetched(json_to_subjects(payload))

    def fetch_questions(self, subject: Subject) -> FetchResult:
        try:
            payload = self._get({"type": "questions", "subject": subject.text})
        except (requests.RequestException, ValueError) as e:
            if DEBUG_MODE:
                print(f"❌ Fetching questions for {subject.text!r} failed: {e}")
            return FetchFailed(f"Error loading questions for {subject.text}: {e}")
        return QuestionsFetched(subject, json_to_questions(payload))
