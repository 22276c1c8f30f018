"""Integration tests for the quiz endpoints."""

from config import get_school_topic
from models.attempt import AttemptModel
from conftest import DEFAULT_QUESTIONS

QUIZ_BODY = {
    "title": "Ekosistem Sawah",
    "description": "Rantai makanan di sawah",
    "subject": "Biologi",
    "questions": DEFAULT_QUESTIONS,
    "time_limit": 20,
    "passing_score": 70,
    "difficulty": "easy",
}


def answers(*selected):
    return {
        "answers": [
            {"question_index": i, "selected_answer": s} for i, s in enumerate(selected)
        ],
        "time_spent": 120,
    }


class TestCreateQuiz:
    """Tests for POST /api/quizzes."""

    def test_teacher_creates_quiz_and_school_is_notified(
        self, client, teacher, school, auth_headers, notifier
    ):
        response = client.post("/api/quizzes", json=QUIZ_BODY, headers=auth_headers(teacher))

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["question_count"] == 4
        assert data["max_attempts"] == 3
        assert data["school"]["school_id"] == school.school_id
        assert data["creator"]["full_name"] == "Sari Wulandari"

        [(topic, message)] = notifier.topic_sends
        assert topic == get_school_topic(school.school_id)
        assert message.title == "Kuis Baru Tersedia!"
        assert "Ekosistem Sawah" in message.body

    def test_student_cannot_create_quiz(self, client, student, auth_headers):
        response = client.post("/api/quizzes", json=QUIZ_BODY, headers=auth_headers(student))

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. Insufficient permissions."

    def test_correct_answer_must_index_an_option(self, client, teacher, auth_headers):
        body = dict(QUIZ_BODY)
        body["questions"] = [{"question": "?", "options": ["a", "b"], "correct_answer": 2}]

        response = client.post("/api/quizzes", json=body, headers=auth_headers(teacher))

        assert response.status_code == 400

    def test_superadmin_quiz_has_no_school(self, client, admin, auth_headers, notifier):
        response = client.post("/api/quizzes", json=QUIZ_BODY, headers=auth_headers(admin))

        assert response.status_code == 201
        assert response.json()["data"]["school"] is None
        assert notifier.topic_sends == []


class TestReadQuiz:
    """Tests for listing and reading quizzes."""

    def test_list_hides_inactive_and_paginates(self, client, teacher, make_quiz, auth_headers):
        for i in range(3):
            make_quiz(teacher, title=f"Kuis {i}")
        hidden = make_quiz(teacher, title="Lama")
        client.delete(f"/api/quizzes/{hidden.quiz_id}", headers=auth_headers(teacher))

        response = client.get("/api/quizzes", params={"page": 1, "limit": 2})

        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
        assert "questions" not in body["data"][0]

    def test_filters(self, client, teacher, make_quiz):
        make_quiz(teacher, subject="Matematika", difficulty="hard")
        make_quiz(teacher, subject="Biologi")

        response = client.get(
            "/api/quizzes", params={"subject": "matem", "difficulty": "hard"}
        )

        assert [q["subject"] for q in response.json()["data"]] == ["Matematika"]

    def test_invalid_limit(self, client):
        response = client.get("/api/quizzes", params={"limit": 0})

        assert response.status_code == 400

    def test_student_does_not_see_answers(self, client, teacher, student, make_quiz, auth_headers):
        quiz = make_quiz(teacher)

        response = client.get(f"/api/quizzes/{quiz.quiz_id}", headers=auth_headers(student))

        data = response.json()["data"]
        assert "correct_answer" not in data["questions"][0]
        assert data["user_attempts"] == 0
        assert data["attempts_left"] == 3

    def test_owner_sees_answers(self, client, teacher, make_quiz, auth_headers):
        quiz = make_quiz(teacher)

        response = client.get(f"/api/quizzes/{quiz.quiz_id}", headers=auth_headers(teacher))

        assert response.json()["data"]["questions"][0]["correct_answer"] == 1

    def test_anonymous_read(self, client, teacher, make_quiz):
        quiz = make_quiz(teacher)

        data = client.get(f"/api/quizzes/{quiz.quiz_id}").json()["data"]

        assert data["user_attempts"] is None
        assert "correct_answer" not in data["questions"][0]

    def test_unknown_quiz(self, client):
        response = client.get("/api/quizzes/missing")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Quiz not found"}


class TestSubmitQuiz:
    """Tests for POST /api/quizzes/{quiz_id}/submit."""

    def test_submission_is_graded_and_recorded(
        self, client, teacher, student, make_quiz, auth_headers
    ):
        quiz = make_quiz(teacher)

        response = client.post(
            f"/api/quizzes/{quiz.quiz_id}/submit",
            json=answers(1, 0, 0, 0),
            headers=auth_headers(student),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["score"] == 75
        assert data["correct_answers"] == 3
        assert data["total_questions"] == 4
        assert data["is_passed"] is True
        assert data["attempt_number"] == 1
        assert data["attempts_left"] == 2
        assert [a["is_correct"] for a in data["answers"]] == [True, True, True, False]

    def test_missing_answers_count_as_wrong(
        self, client, teacher, student, make_quiz, auth_headers
    ):
        quiz = make_quiz(teacher)
        body = {"answers": [{"question_index": 0, "selected_answer": 1}]}

        data = client.post(
            f"/api/quizzes/{quiz.quiz_id}/submit", json=body, headers=auth_headers(student)
        ).json()["data"]

        assert data["score"] == 25
        assert data["is_passed"] is False
        assert data["answers"][1]["selected_answer"] is None

    def test_attempt_limit(
        self, client, teacher, student, make_quiz, auth_headers, db_session
    ):
        quiz = make_quiz(teacher, max_attempts=1)
        url = f"/api/quizzes/{quiz.quiz_id}/submit"

        first = client.post(url, json=answers(1, 0, 0, 1), headers=auth_headers(student))
        second = client.post(url, json=answers(1, 0, 0, 1), headers=auth_headers(student))

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["message"] == "Maximum attempts reached for this quiz"
        db_session.expire_all()
        assert db_session.query(AttemptModel).count() == 1

    def test_inactive_quiz_cannot_be_submitted(
        self, client, teacher, student, make_quiz, auth_headers
    ):
        quiz = make_quiz(teacher)
        client.delete(f"/api/quizzes/{quiz.quiz_id}", headers=auth_headers(teacher))

        response = client.post(
            f"/api/quizzes/{quiz.quiz_id}/submit",
            json=answers(1, 0, 0, 1),
            headers=auth_headers(student),
        )

        assert response.status_code == 404

    def test_result_pushed_to_registered_devices(
        self, client, teacher, student, make_quiz, auth_headers, notifier
    ):
        quiz = make_quiz(teacher)
        client.post(
            "/api/notifications/devices",
            json={"token": "fcm-budi"},
            headers=auth_headers(student),
        )

        client.post(
            f"/api/quizzes/{quiz.quiz_id}/submit",
            json=answers(1, 0, 0, 1),
            headers=auth_headers(student),
        )

        [(tokens, message)] = notifier.device_sends
        assert tokens == ["fcm-budi"]
        assert message.body == 'Kuis "Kuis Sains" - Nilai: 100% (LULUS)'

    def test_requires_login(self, client, teacher, make_quiz):
        quiz = make_quiz(teacher)

        response = client.post(f"/api/quizzes/{quiz.quiz_id}/submit", json=answers(1))

        assert response.status_code == 401


class TestResults:
    """Tests for GET /api/quizzes/{quiz_id}/results."""

    def test_latest_attempt_first(self, client, teacher, student, make_quiz, auth_headers):
        quiz = make_quiz(teacher)
        url = f"/api/quizzes/{quiz.quiz_id}"
        client.post(f"{url}/submit", json=answers(0, 1, 1, 0), headers=auth_headers(student))
        client.post(f"{url}/submit", json=answers(1, 0, 0, 1), headers=auth_headers(student))

        data = client.get(f"{url}/results", headers=auth_headers(student)).json()["data"]

        assert [a["attempt_number"] for a in data] == [2, 1]
        assert [a["score"] for a in data] == [100, 0]
        assert data[0]["quiz"]["title"] == "Kuis Sains"

    def test_results_are_per_user(
        self, client, teacher, student, make_quiz, auth_headers
    ):
        quiz = make_quiz(teacher)
        client.post(
            f"/api/quizzes/{quiz.quiz_id}/submit",
            json=answers(1, 0, 0, 1),
            headers=auth_headers(student),
        )

        data = client.get(
            f"/api/quizzes/{quiz.quiz_id}/results", headers=auth_headers(teacher)
        ).json()["data"]

        assert data == []

    def test_unknown_quiz(self, client, student, auth_headers):
        response = client.get("/api/quizzes/missing/results", headers=auth_headers(student))

        assert response.status_code == 404


class TestUpdateDeleteQuiz:
    """Tests for PUT and DELETE /api/quizzes/{quiz_id}."""

    def test_owner_updates(self, client, teacher, make_quiz, auth_headers):
        quiz = make_quiz(teacher)

        response = client.put(
            f"/api/quizzes/{quiz.quiz_id}",
            json={"title": "Kuis Sains Lanjutan", "passing_score": 80},
            headers=auth_headers(teacher),
        )

        data = response.json()["data"]
        assert data["title"] == "Kuis Sains Lanjutan"
        assert data["passing_score"] == 80

    def test_other_teacher_cannot_update(self, client, teacher, make_user, make_quiz, auth_headers):
        quiz = make_quiz(teacher)
        other = make_user("guru", full_name="Pak Joko")

        response = client.put(
            f"/api/quizzes/{quiz.quiz_id}",
            json={"title": "Diambil alih"},
            headers=auth_headers(other),
        )

        assert response.status_code == 403

    def test_superadmin_deletes_any_quiz(self, client, teacher, admin, make_quiz, auth_headers):
        quiz = make_quiz(teacher)

        response = client.delete(f"/api/quizzes/{quiz.quiz_id}", headers=auth_headers(admin))

        assert response.json()["message"] == "Quiz deleted successfully"
        assert client.get(f"/api/quizzes/{quiz.quiz_id}").status_code == 404
