from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional
from datetime import datetime
from enum import Enum


class DifficultyLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


# Curriculum order, used when listing the whole catalog
DIFFICULTY_ORDER = [DifficultyLevel.BEGINNER, DifficultyLevel.INTERMEDIATE, DifficultyLevel.ADVANCED]


class ContentType(str, Enum):
    WORD = "word"
    SENTENCE = "sentence"
    STORY = "story"
    POEM = "poem"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    FILL_BLANK = "fill_blank"
    WORD_MATCH = "word_match"


class ProgressStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Records as returned by the API

class User(ORMModel):
    id: int
    name: str
    age: int = Field(ge=6, le=12)
    level: DifficultyLevel = DifficultyLevel.BEGINNER
    created_at: datetime
    updated_at: datetime


class Content(ORMModel):
    id: int
    title: str
    type: ContentType
    difficulty: DifficultyLevel
    text_content: str
    audio_url: Optional[str] = None
    order_index: int
    phonics_focus: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Word(ORMModel):
    id: int
    word: str
    phonetic_spelling: Optional[str] = None
    audio_url: Optional[str] = None
    difficulty: DifficultyLevel
    definition: Optional[str] = None
    example_sentence: Optional[str] = None
    created_at: datetime


class Quiz(ORMModel):
    id: int
    content_id: int
    title: str
    description: Optional[str] = None
    created_at: datetime


class Question(ORMModel):
    id: int
    quiz_id: int
    question_text: str
    question_type: QuestionType
    correct_answer: str
    options: Optional[List[str]] = None
    order_index: int
    points: int = 1


class UserProgress(ORMModel):
    id: int
    user_id: int
    content_id: int
    status: ProgressStatus
    completion_percentage: float = Field(ge=0, le=100)
    time_spent_seconds: int = 0
    last_accessed: datetime
    created_at: datetime


class QuizAttempt(ORMModel):
    id: int
    user_id: int
    quiz_id: int
    score: float = Field(ge=0, le=100)
    total_questions: int
    correct_answers: int
    time_taken_seconds: int
    completed_at: datetime


class ReadingSession(ORMModel):
    id: int
    user_id: int
    content_id: int
    words_read: int = 0
    reading_accuracy: Optional[float] = None
    session_duration_seconds: int
    started_at: datetime
    ended_at: Optional[datetime] = None


# Request bodies

class CreateUserInput(BaseModel):
    name: str = Field(min_length=1)
    age: int = Field(ge=6, le=12)
    level: DifficultyLevel = DifficultyLevel.BEGINNER


class UpdateUserInput(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    age: Optional[int] = Field(default=None, ge=6, le=12)
    level: Optional[DifficultyLevel] = None


class CreateContentInput(BaseModel):
    title: str = Field(min_length=1)
    type: ContentType
    difficulty: DifficultyLevel
    text_content: str = Field(min_length=1)
    audio_url: Optional[str] = None
    order_index: int
    phonics_focus: Optional[str] = None


class CreateWordInput(BaseModel):
    word: str = Field(min_length=1)
    phonetic_spelling: Optional[str] = None
    audio_url: Optional[str] = None
    difficulty: DifficultyLevel
    definition: Optional[str] = None
    example_sentence: Optional[str] = None


class UpdateProgressInput(BaseModel):
    user_id: int
    content_id: int
    status: Optional[ProgressStatus] = None
    completion_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    time_spent_seconds: Optional[int] = Field(default=None, ge=0)


class CreateQuestionInput(BaseModel):
    question_text: str = Field(min_length=1)
    question_type: QuestionType
    correct_answer: str
    options: Optional[List[str]] = None
    order_index: int
    points: int = 1


class CreateQuizInput(BaseModel):
    content_id: int
    title: str = Field(min_length=1)
    description: Optional[str] = None
    questions: List[CreateQuestionInput] = []


class CreateQuizAttemptInput(BaseModel):
    user_id: int
    quiz_id: int
    score: float = Field(ge=0, le=100)
    total_questions: int = Field(ge=0)
    correct_answers: int = Field(ge=0)
    time_taken_seconds: int = Field(ge=0)


class SubmitQuizInput(BaseModel):
    user_id: int
    answers: Dict[int, str]  # question id -> answer given
    time_taken_seconds: int = Field(default=0, ge=0)


class CreateReadingSessionInput(BaseModel):
    user_id: int
    content_id: int
    words_read: int = Field(default=0, ge=0)
    reading_accuracy: Optional[float] = Field(default=None, ge=0, le=100)
    session_duration_seconds: int = Field(ge=0)
