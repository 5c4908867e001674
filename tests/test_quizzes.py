import json

from extensions import db
from models import QuizAttempt, StudySession, User

QUESTIONS = [
    {"question_text": "Capital of France?", "correct_answer": "Paris",
     "options": ["Paris", "Lyon", "Nice", "Lille"]},
    {"question_text": "6 x 7?", "correct_answer": "42", "question_type": "short_answer"},
    {"question_text": "The sky is blue.", "correct_answer": "true", "question_type": "true_false",
     "options": ["true", "false"]},
    {"question_text": "Linear search complexity?", "correct_answer": "O(n)"},
]


def create_quiz(client, user, title="Basics", questions=QUESTIONS, **extra):
    resp = client.post("/api/quizzes", headers=user.headers, json={"title": title, **extra})
    assert resp.status_code == 201, resp.get_json()
    quiz = resp.get_json()["quiz"]
    ids = []
    for q in questions:
        added = client.post(f"/api/quizzes/{quiz['id']}/questions", headers=user.headers, json=q)
        assert added.status_code == 201, added.get_json()
        ids.append(added.get_json()["question"]["id"])
    return quiz, ids


def submit(client, user, quiz_id, answers, seconds=90):
    return client.post(f"/api/quizzes/{quiz_id}/submit", headers=user.headers,
                       json={"answers": answers, "timeTakenSeconds": seconds})


class TestQuizAuthoring:
    def test_questions_are_numbered_and_counted(self, client, alice):
        quiz, ids = create_quiz(client, alice)

        body = client.get(f"/api/quizzes/{quiz['id']}", headers=alice.headers).get_json()["quiz"]
        assert body["total_questions"] == 4
        assert [q["id"] for q in body["questions"]] == ids
        assert [q["order_index"] for q in body["questions"]] == [1, 2, 3, 4]

    def test_answers_are_not_exposed(self, client, alice, bob):
        quiz, _ = create_quiz(client, alice)

        body = client.get(f"/api/quizzes/{quiz['id']}", headers=bob.headers).get_json()["quiz"]
        assert all("correct_answer" not in q for q in body["questions"])

    def test_title_required(self, client, alice):
        resp = client.post("/api/quizzes", headers=alice.headers, json={"description": "no title"})

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Quiz title is required"

    def test_question_validation(self, client, alice):
        quiz, _ = create_quiz(client, alice, questions=[])
        url = f"/api/quizzes/{quiz['id']}/questions"

        assert client.post(url, headers=alice.headers, json={"question_text": "No answer"}).status_code == 400
        assert client.post(url, headers=alice.headers, json={
            "question_text": "Q", "correct_answer": "A", "question_type": "essay"}).status_code == 400
        assert client.post(url, headers=alice.headers, json={
            "question_text": "Q", "correct_answer": "A", "points": -1}).status_code == 400

    def test_only_the_course_instructor_manages_course_quizzes(self, client, alice, bob):
        course = client.post("/api/courses", headers=alice.headers, json={"title": "Geo"}).get_json()["course"]

        denied = client.post("/api/quizzes", headers=bob.headers, json={"title": "Hijack", "course_id": course["id"]})
        assert denied.status_code == 403

        quiz, _ = create_quiz(client, alice, questions=[], course_id=course["id"])
        assert client.post(f"/api/quizzes/{quiz['id']}/questions", headers=bob.headers,
                           json={"question_text": "Q", "correct_answer": "A"}).status_code == 403
        assert client.delete(f"/api/quizzes/{quiz['id']}", headers=bob.headers).status_code == 403
        assert client.delete(f"/api/quizzes/{quiz['id']}", headers=alice.headers).status_code == 200
        assert client.get(f"/api/quizzes/{quiz['id']}", headers=alice.headers).status_code == 404

    def test_list_is_public_and_filterable(self, client, alice):
        course = client.post("/api/courses", headers=alice.headers, json={"title": "Geo"}).get_json()["course"]
        create_quiz(client, alice, title="Loose", questions=[])
        create_quiz(client, alice, title="In course", questions=[], course_id=course["id"])

        assert len(client.get("/api/quizzes").get_json()["quizzes"]) == 2
        filtered = client.get(f"/api/quizzes?courseId={course['id']}").get_json()["quizzes"]
        assert [q["title"] for q in filtered] == ["In course"]
        assert filtered[0]["course_title"] == "Geo"


class TestSubmit:
    def test_all_correct(self, app, client, alice, bob):
        quiz, ids = create_quiz(client, alice)
        answers = dict(zip(map(str, ids), [" paris", "42", "True", "o(n)"]))

        resp = submit(client, bob, quiz["id"], answers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["score"] == "100.00"
        assert body["correctAnswers"] == 4
        assert body["totalQuestions"] == 4
        assert body["earnedPoints"] == 4
        assert body["totalPoints"] == 4
        assert body["pointsEarned"] == 10
        assert all(r["correct"] for r in body["results"])

        with app.app_context():
            assert db.session.get(User, bob.id).points == 10
            attempt = db.session.get(QuizAttempt, body["attemptId"])
            assert attempt.score == 100
            assert attempt.time_taken_seconds == 90
            session = StudySession.query.filter_by(user_id=bob.id).one()
            assert session.session_type == "quiz"
            assert session.duration_minutes == 2
            assert session.points_earned == 10

    def test_partial_positional_answers(self, client, alice, bob):
        quiz, _ = create_quiz(client, alice)

        body = submit(client, bob, quiz["id"], ["Lyon", "42", "false", ""]).get_json()

        assert body["score"] == "25.00"
        assert body["correctAnswers"] == 1
        assert body["pointsEarned"] == 2
        assert [r["correct"] for r in body["results"]] == [False, True, False, False]
        assert body["results"][0]["correctAnswer"] == "Paris"

    def test_zero_point_quiz(self, client, alice, bob):
        quiz, ids = create_quiz(client, alice, questions=[
            {"question_text": "Warm-up", "correct_answer": "yes", "points": 0},
        ])

        body = submit(client, bob, quiz["id"], {str(ids[0]): "yes"}).get_json()

        assert body["score"] == "0.00"
        assert body["correctAnswers"] == 1
        assert body["pointsEarned"] == 0

    def test_missing_quiz(self, client, bob):
        resp = submit(client, bob, 999, [])

        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Quiz not found"

    def test_quiz_without_questions(self, app, client, alice, bob):
        quiz, _ = create_quiz(client, alice, questions=[])

        resp = submit(client, bob, quiz["id"], [])

        assert resp.status_code == 422
        assert resp.get_json()["error"] == "Quiz has no questions"
        with app.app_context():
            assert QuizAttempt.query.count() == 0

    def test_answer_count_mismatch(self, app, client, alice, bob):
        quiz, _ = create_quiz(client, alice)

        resp = submit(client, bob, quiz["id"], ["Paris"])

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Expected 4 answers, got 1"
        with app.app_context():
            assert QuizAttempt.query.count() == 0
            assert db.session.get(User, bob.id).points == 0

    def test_missing_answers(self, client, alice, bob):
        quiz, _ = create_quiz(client, alice)
        resp = client.post(f"/api/quizzes/{quiz['id']}/submit", headers=bob.headers, json={})
        assert resp.status_code == 400

    def test_negative_time(self, client, alice, bob):
        quiz, _ = create_quiz(client, alice)
        assert submit(client, bob, quiz["id"], ["a", "b", "c", "d"], seconds=-5).status_code == 400

    def test_attempts_are_listed_newest_first(self, client, alice, bob):
        quiz, ids = create_quiz(client, alice)
        submit(client, bob, quiz["id"], ["Lyon", "42", "false", ""])
        submit(client, bob, quiz["id"], {str(ids[0]): "Paris"})

        attempts = client.get("/api/quizzes/user/attempts", headers=bob.headers).get_json()["attempts"]

        assert [a["score"] for a in attempts] == ["25.00", "25.00"]
        assert attempts[0]["id"] > attempts[1]["id"]
        assert attempts[0]["quiz_title"] == "Basics"
        assert client.get("/api/quizzes/user/attempts", headers=alice.headers).get_json()["attempts"] == []


class TestGenerate:
    def test_generated_quiz_is_saved(self, client, alice, fake_gemini):
        fake_gemini.reply = json.dumps({"questions": [
            {"question": "2 + 2?", "type": "multiple_choice", "options": ["3", "4"],
             "correctAnswer": "4", "explanation": "Arithmetic"},
            {"question": "Missing answer"},
            {"question": "HTTP is stateless.", "type": "true_false", "options": ["true", "false"],
             "correctAnswer": "true"},
        ]})

        resp = client.post("/api/quizzes/generate", headers=alice.headers,
                           json={"topic": "Basics", "numQuestions": 3, "timeLimit": 10})

        assert resp.status_code == 201
        quiz = resp.get_json()["quiz"]
        assert quiz["title"] == "Quiz: Basics"
        assert quiz["total_questions"] == 2
        assert quiz["time_limit_minutes"] == 10

        detail = client.get(f"/api/quizzes/{quiz['id']}", headers=alice.headers).get_json()["quiz"]
        assert [q["order_index"] for q in detail["questions"]] == [1, 2]
        assert detail["questions"][1]["question_type"] == "true_false"

    def test_unusable_output(self, client, alice, fake_gemini):
        fake_gemini.reply = '{"questions": []}'

        resp = client.post("/api/quizzes/generate", headers=alice.headers, json={"topic": "Basics"})

        assert resp.status_code == 502

    def test_invalid_difficulty(self, client, alice, fake_gemini):
        resp = client.post("/api/quizzes/generate", headers=alice.headers,
                           json={"topic": "Basics", "difficulty": "impossible"})
        assert resp.status_code == 400


class TestNumericInput:
    def test_time_limit_overflow(self, client, alice):
        resp = client.post("/api/quizzes", headers=alice.headers, content_type="application/json",
                           data='{"title": "Timed", "time_limit_minutes": 1e400}')

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "time_limit_minutes must be an integer"

    def test_fractional_points(self, client, alice):
        quiz, _ = create_quiz(client, alice, questions=[])
        resp = client.post(f"/api/quizzes/{quiz['id']}/questions", headers=alice.headers,
                           json={"question_text": "Q", "correct_answer": "A", "points": 1.5})
        assert resp.status_code == 400

    def test_question_count_overflow(self, client, alice, fake_gemini):
        resp = client.post("/api/quizzes/generate", headers=alice.headers, content_type="application/json",
                           data='{"topic": "Basics", "numQuestions": 1e400}')
        assert resp.status_code == 400
        assert fake_gemini.calls == []
