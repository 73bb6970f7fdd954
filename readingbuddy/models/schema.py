from sqlalchemy import Column, String, Integer, DateTime, Float, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship
from readingbuddy.database import Base
from readingbuddy.models.reading import DifficultyLevel, ContentType, QuestionType, ProgressStatus
from datetime import datetime


def _enum_column(enum_cls, name: str, **kwargs):
    # Persist the enum values ("beginner"), not the member names ("BEGINNER")
    return Column(
        SAEnum(enum_cls, name=name, values_callable=lambda e: [member.value for member in e]),
        **kwargs
    )


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    age = Column(Integer, nullable=False)
    level = _enum_column(DifficultyLevel, "difficulty_level", nullable=False, default=DifficultyLevel.BEGINNER)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    progress = relationship("UserProgress", back_populates="user")
    quiz_attempts = relationship("QuizAttempt", back_populates="user")
    reading_sessions = relationship("ReadingSession", back_populates="user")


class Content(Base):
    __tablename__ = "content"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    type = _enum_column(ContentType, "content_type", nullable=False)
    difficulty = _enum_column(DifficultyLevel, "difficulty_level", nullable=False)
    text_content = Column(Text, nullable=False)
    audio_url = Column(String, nullable=True)
    order_index = Column(Integer, nullable=False)
    phonics_focus = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    quizzes = relationship("Quiz", back_populates="content")


class Word(Base):
    __tablename__ = "words"

    id = Column(Integer, primary_key=True, index=True)
    word = Column(String, nullable=False)
    phonetic_spelling = Column(String, nullable=True)
    audio_url = Column(String, nullable=True)
    difficulty = _enum_column(DifficultyLevel, "difficulty_level", nullable=False)
    definition = Column(String, nullable=True)
    example_sentence = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    content_id = Column(Integer, ForeignKey("content.id"), nullable=False)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    content = relationship("Content", back_populates="quizzes")
    questions = relationship("Question", back_populates="quiz", order_by="Question.order_index")


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=False)
    question_text = Column(String, nullable=False)
    question_type = _enum_column(QuestionType, "question_type", nullable=False)
    correct_answer = Column(String, nullable=False)
    options = Column(JSON, nullable=True)  # list of choices for multiple choice
    order_index = Column(Integer, nullable=False)
    points = Column(Integer, nullable=False, default=1)

    quiz = relationship("Quiz", back_populates="questions")


class UserProgress(Base):
    __tablename__ = "user_progress"
    __table_args__ = (UniqueConstraint("user_id", "content_id", name="uq_user_progress_user_content"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    content_id = Column(Integer, ForeignKey("content.id"), nullable=False)
    status = _enum_column(ProgressStatus, "progress_status", nullable=False, default=ProgressStatus.NOT_STARTED)
    completion_percentage = Column(Float, nullable=False, default=0)
    time_spent_seconds = Column(Integer, nullable=False, default=0)
    last_accessed = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="progress")


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=False)
    score = Column(Float, nullable=False)
    total_questions = Column(Integer, nullable=False)
    correct_answers = Column(Integer, nullable=False)
    time_taken_seconds = Column(Integer, nullable=False)
    completed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="quiz_attempts")


class ReadingSession(Base):
    __tablename__ = "reading_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    content_id = Column(Integer, ForeignKey("content.id"), nullable=False)
    words_read = Column(Integer, nullable=False, default=0)
    reading_accuracy = Column(Float, nullable=True)
    session_duration_seconds = Column(Integer, nullable=False)
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    ended_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="reading_sessions")
