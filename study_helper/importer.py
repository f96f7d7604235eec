"""Merge fetched subjects and their questions into the local store."""

from __future__ import annotations

import concurrent.futures
import enum
import os
import threading
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Protocol

from .fetcher import FetchFailed, FetchResult, QuestionsFetched
from .records import StoragePort, Subject

DEBUG_MODE = os.getenv("DEBUG", "0") == "1"


class ImportStatus(enum.Enum):
    IMPORTED = "imported"
    DUPLICATE_SKIPPED = "duplicate_skipped"
    EMPTY_QUESTION_SET = "empty_question_set"
    FAILED = "failed"


@dataclass
class ImportOutcome:
    subject_text: str
    status: ImportStatus
    count: int = 0
    reason: str = ""

    @property
    def message(self) -> str:
        if self.status is ImportStatus.IMPORTED:
            return f"{self.subject_text} imported successfully ({self.count} questions)"
        if self.status is ImportStatus.DUPLICATE_SKIPPED:
            return f"{self.subject_text} is already imported."
        if self.status is ImportStatus.EMPTY_QUESTION_SET:
            return f"{self.subject_text} contained no questions"
        return self.reason or f"{self.subject_text} could not be imported"


class QuestionSource(Protocol):
    def fetch_questions(self, subject: Subject) -> FetchResult: ...


class ImportMerger:
    def __init__(self, store: StoragePort, source: QuestionSource, max_workers: int = 5) -> None:
        self.store = store
        self.source = source
        self.max_workers = max_workers
        self._lock = threading.Lock()

    def import_subject(self, candidate: Subject) -> ImportOutcome:
        """Import one fetched subject, skipping it if a subject with the same text exists."""
        if self.store.get_subject_by_text(candidate.text) is not None:
            return ImportOutcome(candidate.text, ImportStatus.DUPLICATE_SKIPPED)

        result = self.source.fetch_questions(candidate)
        if isinstance(result, FetchFailed):
            return ImportOutcome(candidate.text, ImportStatus.FAILED, reason=result.reason)
        if not isinstance(result, QuestionsFetched):
            return ImportOutcome(candidate.text, ImportStatus.FAILED,
                                 reason=f"Unexpected response for {candidate.text}")

        with self._lock:
            # Another worker may have imported the same text while we were fetching.
            if self.store.get_subject_by_text(candidate.text) is not None:
                return ImportOutcome(candidate.text, ImportStatus.DUPLICATE_SKIPPED)
            subject = replace(candidate, id=None)
            subject.id = self.store.insert_subject(subject)
            for question in result.questions:
                self.store.insert_question(replace(question, id=None, subject_id=subject.id))

        if DEBUG_MODE:
            print(f"📥 {subject.text}: {len(result.questions)} questions imported")
        if not result.questions:
            return ImportOutcome(subject.text, ImportStatus.EMPTY_QUESTION_SET)
        return ImportOutcome(subject.text, ImportStatus.IMPORTED, count=len(result.questions))

    def import_subjects(self, candidates: Iterable[Subject]) -> List[ImportOutcome]:
        return [self.import_subject(candidate) for candidate in candidates]

    def run_in_background(self, candidates: Iterable[Subject],
                          executor: Optional[concurrent.futures.Executor] = None
                          ) -> List[concurrent.futures.Future[ImportOutcome]]:
        """Submit one job per subject. Each job owns its subject from lookup to last question."""
        pool = executor or concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers)
        futures = [pool.submit(self.import_subject, candidate) for candidate in candidates]
        if executor is None:
            pool.shutdown(wait=False)
        return futures
