from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from typing import List, Optional
from datetime import datetime
from contextlib import asynccontextmanager
from sqlalchemy.orm import Session
from dotenv import load_dotenv
import logging
import os

from readingbuddy.database import IS_SERVERLESS, get_db, init_db
from readingbuddy.gamification import (
    AchievementSummary,
    aggregate_progress,
    build_progress_index,
    score_quiz,
    summarize_achievements,
)
from readingbuddy.models import reading
from readingbuddy.models.reading import ContentType, DifficultyLevel
from readingbuddy.storage import ReadingStorage
from readingbuddy.utils import (
    format_time,
    format_percentage,
    get_encouragement_message,
    get_progress_emoji,
    get_score_emoji,
    level_content_progress,
)

load_dotenv()


def resolve_log_level(name: Optional[str]) -> int:
    """Map a LOG_LEVEL name to a logging level, INFO for anything unknown"""
    level = logging.getLevelName((name or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


# Set up logging
logging.basicConfig(level=resolve_log_level(os.getenv("LOG_LEVEL")))
logger = logging.getLogger(__name__)

# Comma-separated list, "*" allows every origin
CORS_ALLOWED_ORIGINS = [
    origin.strip() for origin in os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup"""
    init_db()
    logger.info("Reading Buddy API ready")
    yield


app = FastAPI(
    title="Reading Buddy",
    lifespan=None if IS_SERVERLESS else lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# Enable CORS for frontend connection
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.get("/api/healthcheck")
def healthcheck():
    return {"status": "ok", "timestamp": datetime.utcnow().isoformat()}


# --- Users ------------------------------------------------------------

@app.post("/api/users", response_model=reading.User)
def create_user(data: reading.CreateUserInput, db: Session = Depends(get_db)):
    """Create a child account. Level defaults to beginner."""
    user = ReadingStorage.create_user(db, data)
    logger.info(f"Created user {user.id} at level {user.level.value}")
    return user


@app.get("/api/users", response_model=List[reading.User])
def get_users(db: Session = Depends(get_db)):
    return ReadingStorage.get_users(db)


@app.patch("/api/users/{user_id}", response_model=reading.User)
def update_user(user_id: int, data: reading.UpdateUserInput, db: Session = Depends(get_db)):
    """Update name, age or level as the child moves through the curriculum"""
    return ReadingStorage.update_user(db, user_id, data)


# --- Content ----------------------------------------------------------

@app.post("/api/content", response_model=reading.Content)
def create_content(data: reading.CreateContentInput, db: Session = Depends(get_db)):
    return ReadingStorage.create_content(db, data)


@app.get("/api/content", response_model=List[reading.Content])
def get_all_content(db: Session = Depends(get_db)):
    return ReadingStorage.get_all_content(db)


@app.get("/api/content/difficulty/{difficulty}", response_model=List[reading.Content])
def get_content_by_difficulty(
    difficulty: DifficultyLevel,
    type: Optional[ContentType] = None,
    db: Session = Depends(get_db),
):
    return ReadingStorage.get_content_by_difficulty(db, difficulty, type)


@app.get("/api/content/{content_id}/quizzes", response_model=List[reading.Quiz])
def get_quizzes_by_content(content_id: int, db: Session = Depends(get_db)):
    return ReadingStorage.get_quizzes_by_content(db, content_id)


# --- Words ------------------------------------------------------------

@app.post("/api/words", response_model=reading.Word)
def create_word(data: reading.CreateWordInput, db: Session = Depends(get_db)):
    return ReadingStorage.create_word(db, data)


@app.get("/api/words", response_model=List[reading.Word])
def get_words(db: Session = Depends(get_db)):
    return ReadingStorage.get_words(db)


# --- Progress ---------------------------------------------------------

@app.post("/api/progress", response_model=reading.UserProgress)
def update_user_progress(data: reading.UpdateProgressInput, db: Session = Depends(get_db)):
    """Record progress on a content item, creating the row on first interaction"""
    return ReadingStorage.update_user_progress(db, data)


@app.get("/api/progress/{user_id}", response_model=List[reading.UserProgress])
def get_user_progress(user_id: int, content_id: Optional[int] = None, db: Session = Depends(get_db)):
    return ReadingStorage.get_user_progress(db, user_id, content_id)


# --- Quizzes ----------------------------------------------------------

@app.post("/api/quizzes", response_model=reading.Quiz)
def create_quiz(data: reading.CreateQuizInput, db: Session = Depends(get_db)):
    """Create a quiz for a content item together with its questions"""
    return ReadingStorage.create_quiz(db, data)


@app.get("/api/quizzes/{quiz_id}/questions", response_model=List[reading.Question])
def get_quiz_questions(quiz_id: int, db: Session = Depends(get_db)):
    ReadingStorage.get_quiz(db, quiz_id)
    return ReadingStorage.get_questions(db, quiz_id)


@app.post("/api/quizzes/{quiz_id}/submit")
def submit_quiz(quiz_id: int, data: reading.SubmitQuizInput, db: Session = Depends(get_db)):
    """Score a child's answers and record the attempt"""
    ReadingStorage.get_user(db, data.user_id)
    ReadingStorage.get_quiz(db, quiz_id)
    questions = ReadingStorage.get_questions(db, quiz_id)

    result = score_quiz(questions, data.answers)
    attempt = ReadingStorage.create_quiz_attempt(db, reading.CreateQuizAttemptInput(
        user_id=data.user_id,
        quiz_id=quiz_id,
        score=result.score,
        total_questions=result.total_questions,
        correct_answers=result.correct_answers,
        time_taken_seconds=data.time_taken_seconds,
    ))
    logger.info(f"User {data.user_id} scored {result.score}% on quiz {quiz_id}")

    return {
        "attempt": reading.QuizAttempt.model_validate(attempt),
        "score": result.score,
        "correct_answers": result.correct_answers,
        "total_questions": result.total_questions,
        "emoji": get_score_emoji(result.score),
        "message": get_encouragement_message(result.score),
    }


@app.post("/api/quiz-attempts", response_model=reading.QuizAttempt)
def create_quiz_attempt(data: reading.CreateQuizAttemptInput, db: Session = Depends(get_db)):
    return ReadingStorage.create_quiz_attempt(db, data)


@app.get("/api/users/{user_id}/quiz-attempts", response_model=List[reading.QuizAttempt])
def get_quiz_attempts(user_id: int, db: Session = Depends(get_db)):
    return ReadingStorage.get_quiz_attempts(db, user_id)


# --- Reading sessions -------------------------------------------------

@app.post("/api/reading-sessions", response_model=reading.ReadingSession)
def create_reading_session(data: reading.CreateReadingSessionInput, db: Session = Depends(get_db)):
    return ReadingStorage.create_reading_session(db, data)


@app.get("/api/users/{user_id}/reading-sessions", response_model=List[reading.ReadingSession])
def get_reading_sessions(user_id: int, db: Session = Depends(get_db)):
    return ReadingStorage.get_reading_sessions(db, user_id)


# --- Progress dashboard & achievements ---------------------------------

def _load_reader_records(db: Session, user_id: int):
    """Load everything the aggregation needs before any of it runs"""
    user = ReadingStorage.get_user(db, user_id)
    content = ReadingStorage.get_all_content(db)
    progress = ReadingStorage.get_user_progress(db, user_id)
    attempts = ReadingStorage.get_quiz_attempts(db, user_id)
    sessions = ReadingStorage.get_reading_sessions(db, user_id)
    return user, content, progress, attempts, sessions


@app.get("/api/users/{user_id}/dashboard")
def get_dashboard(user_id: int, db: Session = Depends(get_db)):
    """Totals plus per-content progress for the content at the user's level"""
    user, content, progress, attempts, sessions = _load_reader_records(db, user_id)
    stats = aggregate_progress(user, content, progress, attempts, sessions)
    progress_index = build_progress_index(progress)

    return {
        "user_id": user.id,
        "level": user.level,
        "stats": stats,
        "overall_progress_display": format_percentage(stats.overall_progress_percent),
        "overall_progress_emoji": get_progress_emoji(stats.overall_progress_percent),
        "total_reading_time_display": format_time(stats.total_reading_time_seconds),
        "average_quiz_score_display": (
            format_percentage(stats.average_quiz_score) if stats.quiz_attempt_count > 0 else "N/A"
        ),
        "content": level_content_progress(user, content, progress_index),
    }


@app.get("/api/users/{user_id}/achievements", response_model=AchievementSummary)
def get_achievements(user_id: int, db: Session = Depends(get_db)):
    """Achievements, unlocked first, with the overview for the header card"""
    user, content, progress, attempts, sessions = _load_reader_records(db, user_id)
    stats = aggregate_progress(user, content, progress, attempts, sessions)
    return summarize_achievements(stats)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
