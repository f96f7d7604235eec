from __future__ import annotations
from sqlalchemy import create_engine, ForeignKey, Integer, String, Text, func, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session, Mapped, mapped_column, relationship
import os
from typing import Callable, Optional, List

from .errors import NotFoundError
from .records import Question, SortOrder, Subject

DEBUG_MODE = os.getenv("DEBUG", "0") == "1"


class Base(DeclarativeBase):
    pass


def make_engine(db_path: str) -> Engine:
    # Background imports touch the database from worker threads.
    return create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})


DB_PATH: str = os.environ.get("STUDY_HELPER_DB", "study.db")
engine = make_engine(DB_PATH)
# Prevent attribute expiration on commit so returned objects remain accessible
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


class SubjectRow(Base):
    __tablename__ = "subject"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    text: Mapped[str] = mapped_column(String, nullable=False)
    updated: Mapped[int] = mapped_column(Integer, nullable=False)  # epoch milliseconds
    questions: Mapped[List["QuestionRow"]] = relationship(
        back_populates="subject", cascade="all, delete-orphan"
    )

    def to_record(self) -> Subject:
        return Subject(text=self.text, updated_at=self.updated, id=self.id)


class QuestionRow(Base):
    __tablename__ = "question"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    answer: Mapped[str] = mapped_column(Text, nullable=False, default="")
    subject_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("subject.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject: Mapped[SubjectRow] = relationship(back_populates="questions")

    def to_record(self) -> Question:
        return Question(text=self.text, answer=self.answer, subject_id=self.subject_id, id=self.id)


def is_db_initialized(bind: Optional[Engine] = None) -> bool:
    """Check if the database is already initialized by checking if tables exist."""
    inspector = inspect(bind or engine)
    table_names = inspector.get_table_names()
    return {"subject", "question"}.issubset(set(table_names))


def init_db(bind: Optional[Engine] = None) -> None:
    """Initialize the database by creating all tables."""
    Base.metadata.create_all(bind=bind or engine)


class StudyStore:
    """SQLite-backed storage for subjects and questions.

    Every call runs in its own short session and commits before returning, so
    callers can update their in-memory state only once a write has landed.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        self._session_factory = session_factory

    @classmethod
    def for_path(cls, db_path: str) -> "StudyStore":
        bind = make_engine(db_path)
        init_db(bind)
        return cls(sessionmaker(bind=bind, expire_on_commit=False))

    def _session(self) -> Session:
        # Resolved lazily so tests can swap db.SessionLocal.
        factory = self._session_factory or SessionLocal
        return factory()

    # ── Subjects ──────────────────────────────────────────────────

    def get_subject(self, subject_id: int) -> Optional[Subject]:
        with self._session() as session:
            row = session.get(SubjectRow, subject_id)
            return row.to_record() if row else None

    def get_subject_by_text(self, text: str) -> Optional[Subject]:
        with self._session() as session:
            row = session.query(SubjectRow).filter_by(text=text).first()
            return row.to_record() if row else None

    def list_subjects(self, order: SortOrder = SortOrder.ALPHABETIC) -> List[Subject]:
        with self._session() as session:
            query = session.query(SubjectRow)
            if order is SortOrder.NEWEST_FIRST:
                query = query.order_by(SubjectRow.updated.desc(), SubjectRow.id.desc())
            elif order is SortOrder.OLDEST_FIRST:
                query = query.order_by(SubjectRow.updated.asc(), SubjectRow.id.asc())
            else:
                query = query.order_by(func.lower(SubjectRow.text), SubjectRow.id)
            return [row.to_record() for row in query.all()]

    def insert_subject(self, subject: Subject) -> int:
        with self._session() as session:
            row = SubjectRow(text=subject.text, updated=subject.updated_at)
            session.add(row)
            session.commit()
            if DEBUG_MODE:
                print(f"✅ Inserted subject #{row.id}: {subject.text!r}")
            return row.id

    def delete_subject(self, subject_id: int) -> None:
        """Delete a subject together with all of its questions."""
        with self._session() as session:
            row = session.get(SubjectRow, subject_id)
            if row is None:
                raise NotFoundError(f"Subject {subject_id} not found")
            session.delete(row)
            session.commit()
            if DEBUG_MODE:
                print(f"🗑️ Deleted subject #{subject_id}")

    # ── Questions ─────────────────────────────────────────────────

    def get_question(self, question_id: int) -> Optional[Question]:
        with self._session() as session:
            row = session.get(QuestionRow, question_id)
            return row.to_record() if row else None

    def list_questions(self, subject_id: int) -> List[Question]:
        with self._session() as session:
            rows = (
                session.query(QuestionRow)
                .filter(QuestionRow.subject_id == subject_id)
                .order_by(QuestionRow.id)
                .all()
            )
            return [row.to_record() for row in rows]

    def insert_question(self, question: Question) -> int:
        with self._session() as session:
            if session.get(SubjectRow, question.subject_id) is None:
                raise NotFoundError(f"Subject {question.subject_id} not found")
            row = QuestionRow(text=question.text, answer=question.answer, subject_id=question.subject_id)
            session.add(row)
            session.commit()
            return row.id

    def update_question(self, question: Question) -> None:
        with self._session() as session:
            row = session.get(QuestionRow, question.id) if question.id is not None else None
            if row is None:
                raise NotFoundError(f"Question {question.id} not found")
            row.text = question.text
            row.answer = question.answer
            row.subject_id = question.subject_id
            session.commit()

    def delete_question(self, question_id: int) -> None:
        with self._session() as session:
            row = session.get(QuestionRow, question_id)
            if row is None:
                raise NotFoundError(f"Question {question_id} not found")
            session.delete(row)
            session.commit()


STARTER_DATA = [
    ("Math", [
        ("What is 2 + 3?", "2 + 3 = 5"),
        ("What is pi?", "Pi is the ratio of a circle's circumference to its diameter."),
    ]),
    ("History", [
        ("On what date was the U.S. Declaration of Independence adopted?", "July 4, 1776."),
    ]),
    ("Computing", []),
]


def seed_starter_data(store: StudyStore) -> bool:
    """Insert the starter subjects when the store has none. Returns True if seeded."""
    if store.list_subjects():
        return False
    for subject_text, questions in STARTER_DATA:
        subject_id = store.insert_subject(Subject(subject_text))
        for text, answer in questions:
            store.insert_question(Question(text, answer, subject_id))
    if DEBUG_MODE:
        print(f"🌱 Seeded {len(STARTER_DATA)} starter subjects")
    return True
