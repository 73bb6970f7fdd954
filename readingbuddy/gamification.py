"""
Progress statistics and achievements for a reader.

Everything here is a pure function of already-loaded records: the caller
fetches the user's progress, quiz attempts and reading sessions, and this
module reduces them to totals and evaluates the achievement catalog.
Records are read by attribute, so ORM rows and pydantic models both work.
"""
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
from enum import Enum
from pydantic import BaseModel

from readingbuddy.models.reading import ProgressStatus
from readingbuddy.utils import format_progress_label, get_achievement_overview

PERFECT_SCORE = 100

# Product-chosen thresholds
QUIZ_EXPERT_MIN_AVERAGE = 80
LEVEL_UP_MIN_COMPLETED = 8
LEVEL_UP_MIN_AVERAGE = 75


class AchievementCategory(str, Enum):
    READING = "reading"
    QUIZ = "quiz"
    PROGRESS = "progress"
    STREAK = "streak"


class ProgressStats(BaseModel):
    completed_count: int = 0
    eligible_content_count: int = 0
    overall_progress_percent: float = 0
    total_words_read: int = 0
    total_reading_time_seconds: int = 0
    average_quiz_score: float = 0
    perfect_quiz_count: int = 0
    quiz_attempt_count: int = 0
    reading_session_count: int = 0


class AchievementRule(BaseModel):
    id: str
    title: str
    description: str
    emoji: str
    category: AchievementCategory
    requirements: Dict[str, float]  # stat name -> minimum value, all must hold
    progress_stat: Optional[str] = None  # requirement shown as a progress bar


class Achievement(BaseModel):
    id: str
    title: str
    description: str
    emoji: str
    category: AchievementCategory
    unlocked: bool
    progress: Optional[float] = None
    max_progress: Optional[float] = None
    progress_label: Optional[str] = None


class AchievementSummary(BaseModel):
    achievements: List[Achievement]
    unlocked_count: int
    total_achievements: int
    completion_percentage: float
    overview_emoji: str
    overview_message: str


class QuizResult(BaseModel):
    score: int
    correct_answers: int
    total_questions: int


ACHIEVEMENT_RULES: List[AchievementRule] = [
    # Reading achievements
    AchievementRule(
        id="first_story",
        title="First Story",
        description="Complete your first story!",
        emoji="📖",
        category=AchievementCategory.READING,
        requirements={"completed_count": 1},
    ),
    AchievementRule(
        id="story_master",
        title="Story Master",
        description="Complete 5 stories",
        emoji="📚",
        category=AchievementCategory.READING,
        requirements={"completed_count": 5},
        progress_stat="completed_count",
    ),
    AchievementRule(
        id="reading_champion",
        title="Reading Champion",
        description="Complete 10 stories",
        emoji="🏆",
        category=AchievementCategory.READING,
        requirements={"completed_count": 10},
        progress_stat="completed_count",
    ),

    # Word count achievements
    AchievementRule(
        id="word_explorer",
        title="Word Explorer",
        description="Read 100 words",
        emoji="🔤",
        category=AchievementCategory.READING,
        requirements={"total_words_read": 100},
        progress_stat="total_words_read",
    ),
    AchievementRule(
        id="word_collector",
        title="Word Collector",
        description="Read 500 words",
        emoji="📝",
        category=AchievementCategory.READING,
        requirements={"total_words_read": 500},
        progress_stat="total_words_read",
    ),
    AchievementRule(
        id="word_master",
        title="Word Master",
        description="Read 1,000 words",
        emoji="🌟",
        category=AchievementCategory.READING,
        requirements={"total_words_read": 1000},
        progress_stat="total_words_read",
    ),

    # Time-based achievements (seconds)
    AchievementRule(
        id="quick_reader",
        title="Quick Reader",
        description="Read for 30 minutes total",
        emoji="⚡",
        category=AchievementCategory.READING,
        requirements={"total_reading_time_seconds": 1800},
        progress_stat="total_reading_time_seconds",
    ),
    AchievementRule(
        id="dedicated_reader",
        title="Dedicated Reader",
        description="Read for 2 hours total",
        emoji="💪",
        category=AchievementCategory.READING,
        requirements={"total_reading_time_seconds": 7200},
        progress_stat="total_reading_time_seconds",
    ),

    # Quiz achievements
    AchievementRule(
        id="quiz_rookie",
        title="Quiz Rookie",
        description="Complete your first quiz",
        emoji="🧩",
        category=AchievementCategory.QUIZ,
        requirements={"quiz_attempt_count": 1},
    ),
    AchievementRule(
        id="quiz_expert",
        title="Quiz Expert",
        description="Average 80% on quizzes",
        emoji="🎯",
        category=AchievementCategory.QUIZ,
        requirements={"average_quiz_score": QUIZ_EXPERT_MIN_AVERAGE},
    ),
    AchievementRule(
        id="perfect_score",
        title="Perfect Score",
        description="Get 100% on a quiz",
        emoji="💯",
        category=AchievementCategory.QUIZ,
        requirements={"perfect_quiz_count": 1},
    ),
    AchievementRule(
        id="quiz_master",
        title="Quiz Master",
        description="Get 3 perfect quiz scores",
        emoji="🏅",
        category=AchievementCategory.QUIZ,
        requirements={"perfect_quiz_count": 3},
        progress_stat="perfect_quiz_count",
    ),

    # Progress achievements
    AchievementRule(
        id="getting_started",
        title="Getting Started",
        description="Start your reading journey!",
        emoji="🚀",
        category=AchievementCategory.PROGRESS,
        requirements={"reading_session_count": 1},
    ),
    AchievementRule(
        id="level_up_ready",
        title="Level Up Ready",
        description="You're ready for the next level!",
        emoji="⬆️",
        category=AchievementCategory.PROGRESS,
        requirements={
            "completed_count": LEVEL_UP_MIN_COMPLETED,
            "average_quiz_score": LEVEL_UP_MIN_AVERAGE,
        },
    ),
]

ACHIEVEMENT_CATALOG_SIZE = len(ACHIEVEMENT_RULES)


def build_progress_index(progress: Iterable[Any]) -> Dict[int, Any]:
    """Map content id to its progress record; the first record for an id wins."""
    index: Dict[int, Any] = {}
    for record in progress:
        index.setdefault(record.content_id, record)
    return index


def aggregate_progress(
    user: Any,
    content: Sequence[Any],
    progress: Sequence[Any],
    attempts: Sequence[Any],
    sessions: Sequence[Any],
) -> ProgressStats:
    """Reduce a reader's records to the totals shown on the dashboard.

    Completed progress rows are counted without checking that their content
    still exists or matches the reader's level. Only the eligible-content
    denominator is restricted to ``user.level``.
    """
    completed_count = sum(1 for p in progress if p.status == ProgressStatus.COMPLETED)
    eligible_content_count = sum(1 for c in content if c.difficulty == user.level)
    overall_progress_percent = (
        (completed_count / eligible_content_count) * 100 if eligible_content_count > 0 else 0
    )

    total_words_read = sum(s.words_read for s in sessions)
    total_reading_time_seconds = sum(s.session_duration_seconds for s in sessions)

    average_quiz_score = sum(a.score for a in attempts) / len(attempts) if attempts else 0
    perfect_quiz_count = sum(1 for a in attempts if a.score == PERFECT_SCORE)

    return ProgressStats(
        completed_count=completed_count,
        eligible_content_count=eligible_content_count,
        overall_progress_percent=overall_progress_percent,
        total_words_read=total_words_read,
        total_reading_time_seconds=total_reading_time_seconds,
        average_quiz_score=average_quiz_score,
        perfect_quiz_count=perfect_quiz_count,
        quiz_attempt_count=len(attempts),
        reading_session_count=len(sessions),
    )


def rule_unlocked(rule: AchievementRule, stats: Mapping[str, float]) -> bool:
    return all(stats.get(key, 0) >= minimum for key, minimum in rule.requirements.items())


def evaluate_achievements(
    stats: ProgressStats,
    rules: Sequence[AchievementRule] = ACHIEVEMENT_RULES,
) -> List[Achievement]:
    """Evaluate every rule against the stats, in catalog order."""
    values = stats.model_dump()
    achievements = []

    for rule in rules:
        progress = None
        max_progress = None
        progress_label = None
        if rule.progress_stat:
            max_progress = rule.requirements[rule.progress_stat]
            progress = min(values.get(rule.progress_stat, 0), max_progress)
            progress_label = format_progress_label(progress, max_progress, rule.progress_stat)

        achievements.append(Achievement(
            id=rule.id,
            title=rule.title,
            description=rule.description,
            emoji=rule.emoji,
            category=rule.category,
            unlocked=rule_unlocked(rule, values),
            progress=progress,
            max_progress=max_progress,
            progress_label=progress_label,
        ))

    return achievements


def sort_achievements(achievements: Iterable[Achievement]) -> List[Achievement]:
    """Unlocked first, then by category name; ties keep catalog order."""
    return sorted(achievements, key=lambda a: (not a.unlocked, a.category.value))


def unlock_ratio(achievements: Iterable[Achievement]) -> float:
    unlocked = sum(1 for a in achievements if a.unlocked)
    return unlocked / ACHIEVEMENT_CATALOG_SIZE


def summarize_achievements(stats: ProgressStats) -> AchievementSummary:
    achievements = evaluate_achievements(stats)
    unlocked_count = sum(1 for a in achievements if a.unlocked)
    overview = get_achievement_overview(unlocked_count, ACHIEVEMENT_CATALOG_SIZE)

    return AchievementSummary(
        achievements=sort_achievements(achievements),
        unlocked_count=unlocked_count,
        total_achievements=ACHIEVEMENT_CATALOG_SIZE,
        completion_percentage=round(unlock_ratio(achievements) * 100, 1),
        overview_emoji=overview["emoji"],
        overview_message=overview["message"],
    )


def _normalize_answer(answer: Optional[str]) -> str:
    return (answer or "").strip().lower()


def score_quiz(questions: Sequence[Any], answers: Mapping[int, str]) -> QuizResult:
    """Score submitted answers against each question's correct answer.

    Comparison ignores case and surrounding whitespace. Unanswered questions
    count as wrong.
    """
    total_questions = len(questions)
    correct_answers = 0

    for question in questions:
        given = answers.get(question.id)
        if given and _normalize_answer(given) == _normalize_answer(question.correct_answer):
            correct_answers += 1

    # Halves round up, so 1 of 8 correct scores 13
    score = math.floor(correct_answers / total_questions * 100 + 0.5) if total_questions > 0 else 0

    return QuizResult(score=score, correct_answers=correct_answers, total_questions=total_questions)
