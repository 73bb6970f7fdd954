from typing import List, Optional
from datetime import datetime
import logging

from fastapi import HTTPException
from sqlalchemy import case
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from readingbuddy.models.reading import (
    DIFFICULTY_ORDER,
    ContentType,
    CreateContentInput,
    CreateQuizAttemptInput,
    CreateQuizInput,
    CreateReadingSessionInput,
    CreateUserInput,
    CreateWordInput,
    DifficultyLevel,
    ProgressStatus,
    UpdateProgressInput,
    UpdateUserInput,
)
from readingbuddy.models.schema import (
    Content,
    Question,
    Quiz,
    QuizAttempt,
    ReadingSession,
    User,
    UserProgress,
    Word,
)

logger = logging.getLogger(__name__)


def _commit(db: Session, record, action: str):
    """Commit a pending change and refresh the record, rolling back on failure."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{action} failed: {e}")
        raise
    db.refresh(record)
    return record


def _apply_progress_update(progress: UserProgress, data: UpdateProgressInput, now: datetime) -> None:
    if data.status is not None:
        progress.status = data.status
    if data.completion_percentage is not None:
        progress.completion_percentage = data.completion_percentage
    if data.time_spent_seconds is not None:
        progress.time_spent_seconds = data.time_spent_seconds
    progress.last_accessed = now


class ReadingStorage:
    """Handles all reading-app data storage operations"""

    # Users

    @staticmethod
    def create_user(db: Session, data: CreateUserInput) -> User:
        now = datetime.utcnow()
        user = User(name=data.name, age=data.age, level=data.level, created_at=now, updated_at=now)
        db.add(user)
        return _commit(db, user, "User creation")

    @staticmethod
    def get_users(db: Session) -> List[User]:
        return db.query(User).order_by(User.id).all()

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise HTTPException(status_code=404, detail=f"User with id {user_id} does not exist")
        return user

    @staticmethod
    def update_user(db: Session, user_id: int, data: UpdateUserInput) -> User:
        user = ReadingStorage.get_user(db, user_id)

        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(user, key, value)
        user.updated_at = datetime.utcnow()

        return _commit(db, user, "User update")

    # Content

    @staticmethod
    def create_content(db: Session, data: CreateContentInput) -> Content:
        now = datetime.utcnow()
        content = Content(**data.model_dump(), created_at=now, updated_at=now)
        db.add(content)
        return _commit(db, content, "Content creation")

    @staticmethod
    def get_all_content(db: Session) -> List[Content]:
        """All content in curriculum order: beginner to advanced, then order_index"""
        difficulty_rank = case(
            {level.value: rank for rank, level in enumerate(DIFFICULTY_ORDER)},
            value=Content.difficulty,
        )
        return db.query(Content).order_by(difficulty_rank, Content.order_index, Content.id).all()

    @staticmethod
    def get_content_by_difficulty(
        db: Session, difficulty: DifficultyLevel, content_type: Optional[ContentType] = None
    ) -> List[Content]:
        query = db.query(Content).filter(Content.difficulty == difficulty)
        if content_type is not None:
            query = query.filter(Content.type == content_type)
        return query.order_by(Content.order_index, Content.id).all()

    @staticmethod
    def get_content(db: Session, content_id: int) -> Content:
        content = db.query(Content).filter(Content.id == content_id).first()
        if not content:
            raise HTTPException(status_code=404, detail=f"Content with id {content_id} does not exist")
        return content

    # Words

    @staticmethod
    def create_word(db: Session, data: CreateWordInput) -> Word:
        word = Word(**data.model_dump(), created_at=datetime.utcnow())
        db.add(word)
        return _commit(db, word, "Word creation")

    @staticmethod
    def get_words(db: Session) -> List[Word]:
        return db.query(Word).order_by(Word.id).all()

    # Progress

    @staticmethod
    def find_progress(db: Session, user_id: int, content_id: int) -> Optional[UserProgress]:
        return db.query(UserProgress).filter(
            UserProgress.user_id == user_id,
            UserProgress.content_id == content_id,
        ).first()

    @staticmethod
    def update_user_progress(db: Session, data: UpdateProgressInput) -> UserProgress:
        """Create the (user, content) progress row on first touch, update it in place after"""
        ReadingStorage.get_user(db, data.user_id)
        ReadingStorage.get_content(db, data.content_id)

        progress = ReadingStorage.find_progress(db, data.user_id, data.content_id)
        now = datetime.utcnow()
        if progress:
            _apply_progress_update(progress, data, now)
            return _commit(db, progress, "Update user progress")

        progress = UserProgress(
            user_id=data.user_id,
            content_id=data.content_id,
            status=data.status or ProgressStatus.NOT_STARTED,
            completion_percentage=data.completion_percentage or 0,
            time_spent_seconds=data.time_spent_seconds or 0,
            last_accessed=now,
            created_at=now,
        )
        db.add(progress)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent request inserted the row first
            db.rollback()
            logger.info(f"Progress row for user {data.user_id}, content {data.content_id} already exists, updating it")
            progress = ReadingStorage.find_progress(db, data.user_id, data.content_id)
            if progress is None:
                raise
            _apply_progress_update(progress, data, now)
            return _commit(db, progress, "Update user progress")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Update user progress failed: {e}")
            raise
        db.refresh(progress)
        return progress

    @staticmethod
    def get_user_progress(db: Session, user_id: int, content_id: Optional[int] = None) -> List[UserProgress]:
        query = db.query(UserProgress).filter(UserProgress.user_id == user_id)
        if content_id is not None:
            query = query.filter(UserProgress.content_id == content_id)
        return query.order_by(UserProgress.id).all()

    # Quizzes

    @staticmethod
    def create_quiz(db: Session, data: CreateQuizInput) -> Quiz:
        ReadingStorage.get_content(db, data.content_id)

        quiz = Quiz(
            content_id=data.content_id,
            title=data.title,
            description=data.description,
            created_at=datetime.utcnow(),
        )
        quiz.questions = [Question(**question.model_dump()) for question in data.questions]
        db.add(quiz)
        return _commit(db, quiz, "Quiz creation")

    @staticmethod
    def get_quiz(db: Session, quiz_id: int) -> Quiz:
        quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
        if not quiz:
            raise HTTPException(status_code=404, detail=f"Quiz with id {quiz_id} does not exist")
        return quiz

    @staticmethod
    def get_quizzes_by_content(db: Session, content_id: int) -> List[Quiz]:
        return db.query(Quiz).filter(Quiz.content_id == content_id).order_by(Quiz.id).all()

    @staticmethod
    def get_questions(db: Session, quiz_id: int) -> List[Question]:
        return db.query(Question).filter(Question.quiz_id == quiz_id).order_by(
            Question.order_index, Question.id
        ).all()

    # Quiz attempts

    @staticmethod
    def create_quiz_attempt(db: Session, data: CreateQuizAttemptInput) -> QuizAttempt:
        ReadingStorage.get_user(db, data.user_id)
        ReadingStorage.get_quiz(db, data.quiz_id)

        attempt = QuizAttempt(**data.model_dump(), completed_at=datetime.utcnow())
        db.add(attempt)
        return _commit(db, attempt, "Quiz attempt creation")

    @staticmethod
    def get_quiz_attempts(db: Session, user_id: int) -> List[QuizAttempt]:
        """All attempts for a user, newest first"""
        return db.query(QuizAttempt).filter(QuizAttempt.user_id == user_id).order_by(
            QuizAttempt.completed_at.desc(), QuizAttempt.id.desc()
        ).all()

    # Reading sessions

    @staticmethod
    def create_reading_session(db: Session, data: CreateReadingSessionInput) -> ReadingSession:
        ReadingStorage.get_user(db, data.user_id)
        ReadingStorage.get_content(db, data.content_id)

        session = ReadingSession(**data.model_dump(), started_at=datetime.utcnow(), ended_at=None)
        db.add(session)
        return _commit(db, session, "Reading session creation")

    @staticmethod
    def get_reading_sessions(db: Session, user_id: int) -> List[ReadingSession]:
        """All sessions for a user, newest first"""
        return db.query(ReadingSession).filter(ReadingSession.user_id == user_id).order_by(
            ReadingSession.started_at.desc(), ReadingSession.id.desc()
        ).all()
