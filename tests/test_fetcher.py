"""Tests for the remote study-set client."""

from typing import Any, Dict, List

import pytest
import requests

from study_helper.fetcher import (
    FetchFailed,
    QuestionsFetched,
    StudyFetcher,
    SubjectsFetched,
    json_to_questions,
    json_to_subjects,
)
from study_helper.records import Subject


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response: Any) -> None:
        self.response = response
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, params: Dict[str, str], timeout: float) -> FakeResponse:
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def test_json_to_subjects_drops_malformed_records() -> None:
    payload = {"subjects": [
        {"subject": "Biology", "updatetime": 1650000000},
        {"subject": "", "updatetime": 1},
        {"updatetime": 5},
        {"subject": "Geology", "updatetime": "not a number"},
        "garbage",
        {"subject": "Physics", "updatetime": "1650000001"},
    ]}
    subjects = json_to_subjects(payload)
    assert [(s.text, s.updated_at) for s in subjects] == [
        ("Biology", 1650000000),
        ("Physics", 1650000001),
    ]
    assert all(s.id is None for s in subjects)


def test_json_to_subjects_without_list() -> None:
    assert json_to_subjects({}) == []
    assert json_to_subjects({"subjects": "nope"}) == []
    assert json_to_subjects(["not", "a", "dict"]) == []


def test_json_to_questions_drops_malformed_records() -> None:
    payload = {"questions": [
        {"question": "What is DNA?", "answer": "Deoxyribonucleic acid"},
        {"question": "Missing answer"},
        {"question": 3, "answer": "bad type"},
        None,
        {"question": "What is RNA?", "answer": "Ribonucleic acid"},
    ]}
    questions = json_to_questions(payload)
    assert [q.text for q in questions] == ["What is DNA?", "What is RNA?"]
    assert all(q.subject_id == 0 for q in questions)


def test_fetch_subjects_success() -> None:
    session = FakeSession(FakeResponse({"subjects": [{"subject": "Biology", "updatetime": 10}]}))
    fetcher = StudyFetcher("https://example.test/study.php", session=session)

    result = fetcher.fetch_subjects()

    assert isinstance(result, SubjectsFetched)
    assert [s.text for s in result.subjects] == ["Biology"]
    assert session.calls[0]["url"] == "https://example.test/study.php"
    assert session.calls[0]["params"] == {"type": "subjects"}


def test_fetch_questions_passes_subject_text() -> None:
    session = FakeSession(FakeResponse({"questions": [{"question": "Q", "answer": "A"}]}))
    fetcher = StudyFetcher(session=session)
    subject = Subject("Biology", updated_at=10)

    result = fetcher.fetch_questions(subject)

    assert isinstance(result, QuestionsFetched)
    assert result.subject is subject
    assert [(q.text, q.answer) for q in result.questions] == [("Q", "A")]
    assert session.calls[0]["params"] == {"type": "questions", "subject": "Biology"}


@pytest.mark.parametrize("response", [
    requests.ConnectionError("connection refused"),
    requests.Timeout("timed out"),
    FakeResponse({}, status_code=500),
    FakeResponse(ValueError("Expecting value")),
])
def test_fetch_failures_are_reported(response: Any) -> None:
    fetcher = StudyFetcher(session=FakeSession(response))
    subjects_result = fetcher.fetch_subjects()
    questions_result = fetcher.fetch_questions(Subject("Biology"))
    assert isinstance(subjects_result, FetchFailed)
    assert "Error loading subjects" in subjects_result.reason
    assert isinstance(questions_result, FetchFailed)
    assert "Biology" in questions_result.reason
