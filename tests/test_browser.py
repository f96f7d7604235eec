"""Tests for browsing, revealing and editing a subject's questions."""

import pytest
from sqlalchemy.exc import OperationalError

from study_helper import db
from study_helper.browser import QuestionBrowser
from study_helper.errors import InvalidStateError, NotFoundError
from study_helper.records import Question, Subject


@pytest.fixture
def store(tmp_path) -> db.StudyStore:
    return db.StudyStore.for_path(str(tmp_path / "test_browser.db"))


@pytest.fixture
def math(store: db.StudyStore) -> int:
    subject_id = store.insert_subject(Subject("Math"))
    store.insert_question(Question("2+3?", "5", subject_id))
    store.insert_question(Question("pi?", "...", subject_id))
    return subject_id


@pytest.fixture
def empty_subject(store: db.StudyStore) -> int:
    return store.insert_subject(Subject("Computing"))


def _fail(*args, **kwargs):
    raise OperationalError("statement", {}, Exception("disk I/O error"))


# ── Opening ───────────────────────────────────────────────────────

def test_open_starts_at_first_question(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    assert browser.current_index == 0
    assert browser.current.text == "2+3?"
    assert browser.revealed is False
    assert browser.last_deleted is None


def test_open_empty_subject(store, empty_subject) -> None:
    browser = QuestionBrowser.open(store, empty_subject)
    assert browser.current_index is None
    assert browser.current is None
    assert browser.view().title == "Computing (0/0)"


def test_open_missing_subject_raises(store) -> None:
    with pytest.raises(NotFoundError):
        QuestionBrowser.open(store, 404)


# ── Navigation ────────────────────────────────────────────────────

def test_next_and_previous_wrap_around(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    browser.next()
    assert browser.current_index == 1
    browser.next()
    assert browser.current_index == 0
    browser.previous()
    assert browser.current_index == 1


@pytest.mark.parametrize("index", [-10**9, -7, -1, 0, 1, 2, 5, 10**9])
def test_show_always_lands_on_valid_index(store, math, index: int) -> None:
    browser = QuestionBrowser.open(store, math)
    browser.show(index)
    assert 0 <= browser.current_index < len(browser.questions)


def test_show_wraps_to_the_other_end(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    assert browser.show(-1).text == "pi?"
    assert browser.show(2).text == "2+3?"


def test_show_on_empty_list_clears_index(store, empty_subject) -> None:
    browser = QuestionBrowser.open(store, empty_subject)
    assert browser.show(3) is None
    assert browser.next() is None
    assert browser.current_index is None


def test_toggle_reveal_survives_navigation(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    assert browser.toggle_reveal() is True
    browser.next()
    assert browser.revealed is True
    assert browser.toggle_reveal() is False


# ── Add / edit ────────────────────────────────────────────────────

def test_add_shows_new_question(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    added = browser.add("e?", "2.718")
    assert added.id is not None
    assert browser.current_index == 2
    assert browser.current is added
    assert store.get_question(added.id).subject_id == math


def test_new_question_uses_default_text(store, math) -> None:
    browser = QuestionBrowser.open(store, math, default_question="Define: ")
    draft = browser.new_question()
    assert draft.text == "Define: "
    assert draft.answer == ""
    assert draft.subject_id == math
    assert draft.id is None
    assert len(store.list_questions(math)) == 2


def test_edit_writes_through(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    browser.next()
    browser.edit("What is pi?", "3.14159")

    assert browser.current.text == "What is pi?"
    saved = store.get_question(browser.current.id)
    assert saved.text == "What is pi?"
    assert saved.answer == "3.14159"


def test_edit_without_current_question_raises(store, empty_subject) -> None:
    browser = QuestionBrowser.open(store, empty_subject)
    with pytest.raises(InvalidStateError):
        browser.edit("x", "y")


def test_failed_edit_leaves_question_unchanged(store, math, monkeypatch) -> None:
    browser = QuestionBrowser.open(store, math)
    monkeypatch.setattr(store, "update_question", _fail)
    with pytest.raises(OperationalError):
        browser.edit("changed", "changed")
    assert browser.current.text == "2+3?"
    assert browser.current.answer == "5"


def test_failed_add_leaves_list_unchanged(store, math, monkeypatch) -> None:
    browser = QuestionBrowser.open(store, math)
    browser.next()
    monkeypatch.setattr(store, "insert_question", _fail)
    with pytest.raises(OperationalError):
        browser.add("new", "one")
    assert len(browser.questions) == 2
    assert browser.current_index == 1


# ── Delete / undo ─────────────────────────────────────────────────

def test_math_scenario(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    assert browser.current_index == 0
    browser.next()
    assert browser.current_index == 1
    browser.next()
    assert browser.current_index == 0

    q1 = browser.delete()
    assert q1.text == "2+3?"
    assert [q.text for q in browser.questions] == ["pi?"]
    assert browser.current_index == 0
    assert browser.current.text == "pi?"

    restored = browser.undo_delete()
    assert [q.text for q in browser.questions] == ["pi?", "2+3?"]
    assert browser.current_index == 1
    assert browser.current is restored
    assert restored.id != q1.id
    assert [q.text for q in store.list_questions(math)] == ["pi?", "2+3?"]


def test_undo_restores_content_and_length(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    before = len(browser.questions)
    deleted = browser.delete()
    assert browser.view().can_undo is True

    restored = browser.undo_delete()
    assert (restored.text, restored.answer, restored.subject_id) == (
        deleted.text, deleted.answer, deleted.subject_id)
    assert len(browser.questions) == before
    assert browser.last_deleted is None


def test_second_undo_changes_nothing(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    browser.delete()
    browser.undo_delete()
    snapshot = [(q.id, q.text) for q in browser.questions]
    index = browser.current_index

    with pytest.raises(InvalidStateError):
        browser.undo_delete()
    assert [(q.id, q.text) for q in browser.questions] == snapshot
    assert browser.current_index == index
    assert len(store.list_questions(math)) == 2


def test_undo_only_remembers_latest_delete(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    browser.delete()
    second = browser.delete()
    restored = browser.undo_delete()
    assert restored.text == second.text
    assert len(browser.questions) == 1


def test_deleting_last_position_shows_new_last(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    browser.add("e?", "2.718")
    assert browser.current_index == 2
    browser.delete()
    assert browser.current_index == 1
    assert browser.current.text == "pi?"


def test_delete_to_empty_then_add(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    browser.delete()
    browser.delete()
    assert browser.current_index is None
    assert browser.questions == []
    assert store.list_questions(math) == []

    browser.add("new?", "yes")
    assert browser.current_index == 0


def test_delete_on_empty_raises(store, empty_subject) -> None:
    browser = QuestionBrowser.open(store, empty_subject)
    with pytest.raises(InvalidStateError):
        browser.delete()


def test_failed_delete_keeps_question(store, math, monkeypatch) -> None:
    browser = QuestionBrowser.open(store, math)
    monkeypatch.setattr(store, "delete_question", _fail)
    with pytest.raises(OperationalError):
        browser.delete()
    assert len(browser.questions) == 2
    assert browser.current_index == 0
    assert browser.last_deleted is None


def test_failed_undo_keeps_undo_slot(store, math, monkeypatch) -> None:
    browser = QuestionBrowser.open(store, math)
    deleted = browser.delete()
    monkeypatch.setattr(store, "insert_question", _fail)
    with pytest.raises(OperationalError):
        browser.undo_delete()
    assert browser.last_deleted is deleted
    assert len(browser.questions) == 1


def test_view_reports_position(store, math) -> None:
    browser = QuestionBrowser.open(store, math)
    browser.next()
    browser.toggle_reveal()
    view = browser.view()
    assert view.title == "Math (2/2)"
    assert view.question.text == "pi?"
    assert view.revealed is True
    assert view.can_undo is False
