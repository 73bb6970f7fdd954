"""
API tests against an in-memory SQLite database.
"""
import logging

import pytest

from readingbuddy.main import resolve_log_level


def create_quiz(client, content_id):
    response = client.post("/api/quizzes", json={
        "content_id": content_id,
        "title": "Sam's Day",
        "questions": [
            {"question_text": "Who went to the park?", "question_type": "fill_blank",
             "correct_answer": "Sam", "order_index": 2},
            {"question_text": "The sun was out.", "question_type": "true_false",
             "correct_answer": "true", "order_index": 1},
            {"question_text": "How did Sam feel?", "question_type": "multiple_choice",
             "correct_answer": "happy", "options": ["happy", "sad", "angry"], "order_index": 3},
        ],
    })
    assert response.status_code == 200
    return response.json()


def test_healthcheck(client):
    response = client.get("/api/healthcheck")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_user_defaults_to_beginner(client):
    response = client.post("/api/users", json={"name": "Mia", "age": 7})

    assert response.status_code == 200
    data = response.json()
    assert data["level"] == "beginner"
    assert data["id"] is not None


def test_create_user_rejects_age_outside_range(client):
    assert client.post("/api/users", json={"name": "Tot", "age": 5}).status_code == 422
    assert client.post("/api/users", json={"name": "Teen", "age": 13}).status_code == 422
    assert client.post("/api/users", json={"name": "", "age": 8}).status_code == 422


def test_update_user_changes_only_given_fields(client, make_user):
    user = make_user(name="Leo", age=9)

    response = client.patch(f"/api/users/{user['id']}", json={"level": "intermediate"})

    assert response.status_code == 200
    data = response.json()
    assert data["level"] == "intermediate"
    assert data["name"] == "Leo"
    assert data["age"] == 9


def test_update_missing_user_is_404(client):
    assert client.patch("/api/users/999", json={"name": "Ghost"}).status_code == 404


def test_get_users(client, make_user):
    make_user(name="A")
    make_user(name="B")

    names = [u["name"] for u in client.get("/api/users").json()]

    assert names == ["A", "B"]


def test_all_content_in_curriculum_order(client, make_content):
    make_content(title="Advanced 1", difficulty="advanced", order_index=1)
    make_content(title="Beginner 2", difficulty="beginner", order_index=2)
    make_content(title="Intermediate 1", difficulty="intermediate", order_index=1)
    make_content(title="Beginner 1", difficulty="beginner", order_index=1)

    titles = [c["title"] for c in client.get("/api/content").json()]

    assert titles == ["Beginner 1", "Beginner 2", "Intermediate 1", "Advanced 1"]


def test_content_by_difficulty_and_type(client, make_content):
    make_content(title="Poem", difficulty="beginner", order_index=2, type="poem")
    make_content(title="Story", difficulty="beginner", order_index=1, type="story")
    make_content(title="Other", difficulty="advanced", order_index=1, type="story")

    beginner = client.get("/api/content/difficulty/beginner").json()
    stories = client.get("/api/content/difficulty/beginner", params={"type": "story"}).json()

    assert [c["title"] for c in beginner] == ["Story", "Poem"]
    assert [c["title"] for c in stories] == ["Story"]


def test_words(client):
    response = client.post("/api/words", json={"word": "cat", "difficulty": "beginner", "phonetic_spelling": "k-a-t"})

    assert response.status_code == 200
    words = client.get("/api/words").json()
    assert [w["word"] for w in words] == ["cat"]
    assert words[0]["definition"] is None


def test_progress_is_created_then_updated_in_place(client, make_user, make_content):
    user = make_user()
    content = make_content()

    created = client.post("/api/progress", json={
        "user_id": user["id"],
        "content_id": content["id"],
        "status": "in_progress",
        "completion_percentage": 25,
        "time_spent_seconds": 300,
    })
    updated = client.post("/api/progress", json={
        "user_id": user["id"],
        "content_id": content["id"],
        "completion_percentage": 100,
        "status": "completed",
    })

    assert created.status_code == 200
    assert updated.status_code == 200
    assert updated.json()["id"] == created.json()["id"]
    assert updated.json()["time_spent_seconds"] == 300

    rows = client.get(f"/api/progress/{user['id']}").json()
    assert len(rows) == 1
    assert rows[0]["status"] == "completed"
    assert rows[0]["completion_percentage"] == 100


def test_new_progress_defaults(client, make_user, make_content):
    user = make_user()
    content = make_content()

    data = client.post("/api/progress", json={"user_id": user["id"], "content_id": content["id"]}).json()

    assert data["status"] == "not_started"
    assert data["completion_percentage"] == 0
    assert data["time_spent_seconds"] == 0


def test_progress_for_missing_user_or_content_is_404(client, make_user, make_content):
    user = make_user()
    content = make_content()

    missing_user = client.post("/api/progress", json={"user_id": 999, "content_id": content["id"]})
    missing_content = client.post("/api/progress", json={"user_id": user["id"], "content_id": 999})

    assert missing_user.status_code == 404
    assert missing_content.status_code == 404


def test_progress_filtered_by_content(client, make_user, make_content):
    user = make_user()
    first = make_content(order_index=1)
    second = make_content(order_index=2)
    for item in (first, second):
        client.post("/api/progress", json={"user_id": user["id"], "content_id": item["id"]})

    rows = client.get(f"/api/progress/{user['id']}", params={"content_id": second["id"]}).json()

    assert [r["content_id"] for r in rows] == [second["id"]]


def test_quiz_attempts_and_sessions_are_listed_newest_first(client, make_user, make_content):
    user = make_user()
    content = make_content()
    quiz = create_quiz(client, content["id"])

    for score in (60, 90):
        client.post("/api/quiz-attempts", json={
            "user_id": user["id"],
            "quiz_id": quiz["id"],
            "score": score,
            "total_questions": 10,
            "correct_answers": score // 10,
            "time_taken_seconds": 120,
        })
    for words in (10, 20):
        response = client.post("/api/reading-sessions", json={
            "user_id": user["id"],
            "content_id": content["id"],
            "words_read": words,
            "session_duration_seconds": 60,
        })
        assert response.json()["ended_at"] is None
        assert response.json()["reading_accuracy"] is None

    attempts = client.get(f"/api/users/{user['id']}/quiz-attempts").json()
    sessions = client.get(f"/api/users/{user['id']}/reading-sessions").json()

    assert [a["score"] for a in attempts] == [90, 60]
    assert [s["words_read"] for s in sessions] == [20, 10]


def test_quiz_attempt_score_out_of_range_is_rejected(client):
    response = client.post("/api/quiz-attempts", json={
        "user_id": 1,
        "quiz_id": 1,
        "score": 101,
        "total_questions": 1,
        "correct_answers": 1,
        "time_taken_seconds": 1,
    })

    assert response.status_code == 422


def test_quiz_attempt_for_missing_user_or_quiz_is_404(client, make_user, make_content):
    user = make_user()
    quiz = create_quiz(client, make_content()["id"])
    attempt = {"score": 80, "total_questions": 5, "correct_answers": 4, "time_taken_seconds": 60}

    missing_user = client.post("/api/quiz-attempts", json={**attempt, "user_id": 999, "quiz_id": quiz["id"]})
    missing_quiz = client.post("/api/quiz-attempts", json={**attempt, "user_id": user["id"], "quiz_id": 999})

    assert missing_user.status_code == 404
    assert missing_quiz.status_code == 404
    assert client.get(f"/api/users/{user['id']}/quiz-attempts").json() == []


def test_reading_session_for_missing_user_or_content_is_404(client, make_user, make_content):
    user = make_user()
    content = make_content()
    session = {"words_read": 50, "session_duration_seconds": 120}

    missing_user = client.post("/api/reading-sessions", json={**session, "user_id": 999, "content_id": content["id"]})
    missing_content = client.post("/api/reading-sessions", json={**session, "user_id": user["id"], "content_id": 999})

    assert missing_user.status_code == 404
    assert missing_content.status_code == 404
    assert client.get(f"/api/users/{user['id']}/reading-sessions").json() == []


def test_quiz_questions_and_content_lookup(client, make_content):
    content = make_content()
    quiz = create_quiz(client, content["id"])

    quizzes = client.get(f"/api/content/{content['id']}/quizzes").json()
    questions = client.get(f"/api/quizzes/{quiz['id']}/questions").json()

    assert [q["id"] for q in quizzes] == [quiz["id"]]
    assert [q["correct_answer"] for q in questions] == ["true", "Sam", "happy"]
    assert questions[2]["options"] == ["happy", "sad", "angry"]
    assert client.get("/api/quizzes/999/questions").status_code == 404


def test_quiz_for_missing_content_is_404(client):
    response = client.post("/api/quizzes", json={"content_id": 999, "title": "Nope"})

    assert response.status_code == 404


def test_submit_quiz_scores_and_records_attempt(client, make_user, make_content):
    user = make_user()
    content = make_content()
    quiz = create_quiz(client, content["id"])
    questions = client.get(f"/api/quizzes/{quiz['id']}/questions").json()
    answers = {str(q["id"]): q["correct_answer"].upper() for q in questions}

    response = client.post(f"/api/quizzes/{quiz['id']}/submit", json={
        "user_id": user["id"],
        "answers": answers,
        "time_taken_seconds": 45,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["score"] == 100
    assert data["correct_answers"] == 3
    assert data["emoji"] == "🏆"
    assert data["attempt"]["quiz_id"] == quiz["id"]

    attempts = client.get(f"/api/users/{user['id']}/quiz-attempts").json()
    assert [a["score"] for a in attempts] == [100]


def test_dashboard(client, make_user, make_content):
    user = make_user()
    first = make_content(title="First", order_index=1)
    second = make_content(title="Second", order_index=2)
    make_content(title="Hard", difficulty="advanced", order_index=1)

    client.post("/api/progress", json={
        "user_id": user["id"], "content_id": second["id"],
        "status": "completed", "completion_percentage": 100, "time_spent_seconds": 600,
    })
    client.post("/api/reading-sessions", json={
        "user_id": user["id"], "content_id": second["id"],
        "words_read": 80, "session_duration_seconds": 3900,
    })

    data = client.get(f"/api/users/{user['id']}/dashboard").json()

    assert data["stats"]["completed_count"] == 1
    assert data["stats"]["eligible_content_count"] == 2
    assert data["stats"]["overall_progress_percent"] == 50
    assert data["overall_progress_display"] == "50%"
    assert data["total_reading_time_display"] == "1h 5m"
    assert data["average_quiz_score_display"] == "N/A"
    assert [row["content_id"] for row in data["content"]] == [first["id"], second["id"]]
    assert data["content"][0]["status"] == "not_started"
    assert data["content"][1]["time_spent_display"] == "10m"


def test_dashboard_for_missing_user_is_404(client):
    assert client.get("/api/users/999/dashboard").status_code == 404


def test_achievements(client, make_user, make_content):
    user = make_user()
    content = make_content()
    quiz = create_quiz(client, content["id"])

    client.post("/api/progress", json={
        "user_id": user["id"], "content_id": content["id"], "status": "completed",
    })
    client.post("/api/quiz-attempts", json={
        "user_id": user["id"], "quiz_id": quiz["id"], "score": 100,
        "total_questions": 3, "correct_answers": 3, "time_taken_seconds": 30,
    })

    data = client.get(f"/api/users/{user['id']}/achievements").json()
    unlocked = [a["id"] for a in data["achievements"] if a["unlocked"]]

    assert data["total_achievements"] == 14
    assert data["unlocked_count"] == 4
    assert unlocked == ["quiz_rookie", "quiz_expert", "perfect_score", "first_story"]
    assert data["achievements"][0]["category"] == "quiz"
    assert data["overview_message"] == "Keep going!"


@pytest.mark.parametrize("name, level", [
    (None, logging.INFO),
    ("debug", logging.DEBUG),
    (" WARNING ", logging.WARNING),
    ("verbose", logging.INFO),
    ("", logging.INFO),
])
def test_resolve_log_level(name, level):
    assert resolve_log_level(name) == level
