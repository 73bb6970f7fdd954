from typing import Any, Dict, List, Mapping, Optional, Sequence
import math
from readingbuddy.models.reading import ProgressStatus

TIME_ACHIEVEMENT_STATS = {"total_reading_time_seconds"}


def format_time(seconds: float) -> str:
    """Format a duration for display (e.g., 45m, 1h 5m)"""
    minutes = int(seconds // 60)
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    return f"{minutes}m"


def format_percentage(value: float) -> str:
    """Whole-number percentage with halves rounded up (e.g., 62.5 -> 63%)"""
    return f"{math.floor(value + 0.5)}%"


def get_progress_emoji(percentage: float) -> str:
    if percentage >= 100:
        return "⭐"
    elif percentage >= 75:
        return "🔥"
    elif percentage >= 50:
        return "💪"
    elif percentage >= 25:
        return "🌱"
    return "🚀"


def get_score_emoji(score: float) -> str:
    """Get the medal shown next to a quiz score"""
    if score >= 90:
        return "🏆"
    elif score >= 80:
        return "🥇"
    elif score >= 70:
        return "🥈"
    elif score >= 60:
        return "🥉"
    return "📚"


def get_encouragement_message(score: float) -> str:
    if score >= 90:
        return "Outstanding! You're a reading superstar! 🌟"
    elif score >= 80:
        return "Excellent work! You really understood the story! 🎉"
    elif score >= 70:
        return "Great job! You're getting better and better! 👏"
    elif score >= 60:
        return "Good effort! Keep practicing and you'll improve! 📚"
    return "Keep reading and trying! You're learning every day! 💪"


def get_achievement_overview(unlocked_count: int, total: int) -> Dict[str, str]:
    """Headline emoji and message for the achievement overview card"""
    if total > 0 and unlocked_count == total:
        return {"emoji": "👑", "message": "Achievement Master!"}
    elif unlocked_count >= total * 0.75:
        return {"emoji": "🌟", "message": "Almost there!"}
    elif unlocked_count >= total * 0.5:
        return {"emoji": "⭐", "message": "Great progress!"}
    return {"emoji": "🏃", "message": "Keep going!"}


def format_progress_label(progress: float, max_progress: float, progress_stat: Optional[str] = None) -> str:
    """Render "progress / max" for an achievement's progress bar.

    Reading-time achievements are shown as durations rather than seconds.
    """
    if progress_stat in TIME_ACHIEVEMENT_STATS:
        return f"{format_time(progress)} / {format_time(max_progress)}"
    return f"{progress:g} / {max_progress:g}"


def get_content_progress(content_id: int, progress_index: Mapping[int, Any]) -> float:
    """Completion percentage for a content item, 0 when there is no progress yet"""
    progress = progress_index.get(content_id)
    return progress.completion_percentage if progress is not None else 0


def level_content_progress(user: Any, content: Sequence[Any], progress_index: Mapping[int, Any]) -> List[Dict[str, Any]]:
    """Content at the user's level in curriculum order, with the user's progress on each"""
    items = sorted((c for c in content if c.difficulty == user.level), key=lambda c: c.order_index)

    rows = []
    for item in items:
        progress = progress_index.get(item.id)
        percentage = get_content_progress(item.id, progress_index)
        time_spent = progress.time_spent_seconds if progress is not None else 0
        rows.append({
            "content_id": item.id,
            "title": item.title,
            "type": item.type,
            "order_index": item.order_index,
            "status": progress.status if progress is not None else ProgressStatus.NOT_STARTED,
            "completion_percentage": percentage,
            "time_spent_seconds": time_spent,
            "time_spent_display": format_time(time_spent) if time_spent else None,
            "emoji": get_content_emoji(percentage),
        })

    return rows


def get_content_emoji(percentage: float) -> str:
    if percentage >= 100:
        return "⭐"
    return "📖" if percentage > 0 else "📚"
