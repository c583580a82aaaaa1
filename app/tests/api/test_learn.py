import uuid
from datetime import date, timedelta

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from app import crud
from app.api.deps import get_today
from app.core.config import settings
from app.main import app
from app.models import ChallengeOption, Course, User, UserProgress

API = settings.API_V1_STR


def select_course(client: TestClient, headers: dict[str, str], course: Course) -> dict:
    r = client.post(f"{API}/courses/{course.id}/select", headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


def pick_option(db: Session, challenge_id: str, correct: bool) -> str:
    option = db.exec(
        select(ChallengeOption).where(
            ChallengeOption.challenge_id == uuid.UUID(challenge_id),
            ChallengeOption.correct == correct,
        )
    ).first()
    assert option is not None
    return str(option.id)


def answer(client, headers, challenge_id, option_id):
    return client.post(
        f"{API}/learn/challenges/{challenge_id}/answer",
        headers=headers,
        json={"option_id": option_id},
    )


def load_progress(db: Session, user: User) -> UserProgress:
    db.expire_all()
    progress = crud.get_user_progress(session=db, user_id=user.id)
    assert progress is not None
    return progress


def test_learning_requires_an_active_course(client, user_headers, course):
    r = client.get(f"{API}/learn/units", headers=user_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "no_active_course"


def test_select_course_creates_progress(client, user_headers, course, user):
    progress = select_course(client, user_headers, course)
    assert progress["active_course_id"] == str(course.id)
    assert progress["hearts"] == 5
    assert progress["points"] == 0
    assert progress["user_name"] == user.full_name
    assert progress["active_course"]["title"] == course.title


def test_units_are_ordered_with_lesson_status(client, user_headers, course):
    select_course(client, user_headers, course)
    r = client.get(f"{API}/learn/units", headers=user_headers)
    assert r.status_code == 200
    units = r.json()
    assert [unit["order"] for unit in units] == [1, 2]
    assert [lesson["title"] for lesson in units[0]["lessons"]] == [
        "Basic greetings",
        "Personal pronouns",
        "Numbers 1-10",
    ]
    assert not any(lesson["completed"] for unit in units for lesson in unit["lessons"])


def test_options_do_not_reveal_the_answer(client, user_headers, course):
    select_course(client, user_headers, course)
    lesson = client.get(f"{API}/learn/lesson", headers=user_headers).json()
    for challenge in lesson["challenges"]:
        for option in challenge["options"]:
            assert "correct" not in option


def test_lesson_completes_only_after_every_challenge(client, db, user_headers, course):
    select_course(client, user_headers, course)
    lesson = client.get(f"{API}/learn/lesson", headers=user_headers).json()
    assert lesson["title"] == "Basic greetings"
    assert lesson["percentage"] == 0
    challenges = lesson["challenges"]
    assert len(challenges) == 3

    results = []
    for challenge in challenges:
        r = answer(client, user_headers, challenge["id"], pick_option(db, challenge["id"], True))
        assert r.status_code == 200, r.text
        results.append(r.json())

    assert [result["lesson_completed"] for result in results] == [False, False, True]
    assert results[-1]["points"] == 30

    units = client.get(f"{API}/learn/units", headers=user_headers).json()
    assert units[0]["lessons"][0]["completed"] is True
    assert units[0]["lessons"][1]["completed"] is False

    # The current lesson moves on to the next incomplete one
    current = client.get(f"{API}/learn/lesson", headers=user_headers).json()
    assert current["title"] == "Personal pronouns"


def test_lesson_percentage_rounds(client, db, user_headers, course):
    select_course(client, user_headers, course)
    lesson = client.get(f"{API}/learn/lesson", headers=user_headers).json()
    first = lesson["challenges"][0]["id"]
    answer(client, user_headers, first, pick_option(db, first, True))

    r = client.get(f"{API}/learn/lesson/percentage", headers=user_headers)
    assert r.json() == 33

    r = client.get(f"{API}/learn/lessons/{lesson['id']}", headers=user_headers)
    detail = r.json()
    assert detail["percentage"] == 33
    assert [c["completed"] for c in detail["challenges"]] == [True, False, False]


def test_wrong_answer_spends_shield_then_heart(client, db, user, user_headers, course):
    select_course(client, user_headers, course)
    progress = load_progress(db, user)
    progress.heart_shields = 1
    db.add(progress)
    db.commit()

    lesson = client.get(f"{API}/learn/lesson", headers=user_headers).json()
    challenge_id = lesson["challenges"][0]["id"]
    wrong = pick_option(db, challenge_id, False)

    first = answer(client, user_headers, challenge_id, wrong).json()
    assert first["correct"] is False
    assert first["shield_used"] is True
    assert first["hearts"] == 5
    assert first["shields_remaining"] == 0
    assert first["correct_option_id"] == pick_option(db, challenge_id, True)

    second = answer(client, user_headers, challenge_id, wrong).json()
    assert second["shield_used"] is False
    assert second["hearts"] == 4


def test_no_hearts_blocks_new_challenges(client, db, user, user_headers, course):
    select_course(client, user_headers, course)
    progress = load_progress(db, user)
    progress.hearts = 0
    db.add(progress)
    db.commit()

    lesson = client.get(f"{API}/learn/lesson", headers=user_headers).json()
    challenge_id = lesson["challenges"][0]["id"]
    r = answer(client, user_headers, challenge_id, pick_option(db, challenge_id, True))
    assert r.status_code == 400
    assert r.json()["detail"] == "hearts"
    assert load_progress(db, user).points == 0


def test_practice_on_completed_challenge_refills_a_heart(client, db, user, user_headers, course):
    select_course(client, user_headers, course)
    lesson = client.get(f"{API}/learn/lesson", headers=user_headers).json()
    challenge_id = lesson["challenges"][0]["id"]
    correct = pick_option(db, challenge_id, True)
    answer(client, user_headers, challenge_id, correct)

    progress = load_progress(db, user)
    progress.hearts = 0
    db.add(progress)
    db.commit()

    r = answer(client, user_headers, challenge_id, correct)
    assert r.status_code == 200, r.text
    result = r.json()
    assert result["practice"] is True
    assert result["hearts"] == 1
    assert result["points"] == 20


def test_option_from_another_challenge_is_rejected(client, db, user_headers, course):
    select_course(client, user_headers, course)
    lesson = client.get(f"{API}/learn/lesson", headers=user_headers).json()
    first, second = lesson["challenges"][0]["id"], lesson["challenges"][1]["id"]
    r = answer(client, user_headers, first, pick_option(db, second, True))
    assert r.status_code == 400


def test_boost_doubles_xp_and_is_used_at_lesson_end(client, db, user, user_headers, course):
    select_course(client, user_headers, course)
    progress = load_progress(db, user)
    progress.xp_boost_lessons = 1
    db.add(progress)
    db.commit()

    lesson = client.get(f"{API}/learn/lesson", headers=user_headers).json()
    for challenge in lesson["challenges"]:
        result = answer(
            client, user_headers, challenge["id"], pick_option(db, challenge["id"], True)
        ).json()
        assert result["boosted"] is True
        assert result["xp_gained"] == 20
    assert load_progress(db, user).xp_boost_lessons == 1

    r = client.post(f"{API}/learn/lesson/complete", headers=user_headers)
    assert r.json() == {"boost_consumed": True, "xp_boost_lessons": 0}

    r = client.post(f"{API}/learn/lesson/complete", headers=user_headers)
    assert r.json() == {"boost_consumed": False, "xp_boost_lessons": 0}


def test_streak_follows_the_calendar(client, db, user, user_headers, course):
    select_course(client, user_headers, course)
    lesson = client.get(f"{API}/learn/lesson", headers=user_headers).json()
    challenges = lesson["challenges"]
    day = date(2026, 5, 1)

    try:
        app.dependency_overrides[get_today] = lambda: day
        first = answer(client, user_headers, challenges[0]["id"], pick_option(db, challenges[0]["id"], True)).json()
        assert first["streak"] == 1
        assert first["streak_extended"] is True

        app.dependency_overrides[get_today] = lambda: day + timedelta(days=1)
        second = answer(client, user_headers, challenges[1]["id"], pick_option(db, challenges[1]["id"], True)).json()
        assert second["streak"] == 2

        app.dependency_overrides[get_today] = lambda: day + timedelta(days=6)
        r = client.post(f"{API}/learn/streak/check", headers=user_headers)
        assert r.json() == {"streak_lost": True, "days": 2, "streak": 0}
    finally:
        app.dependency_overrides.pop(get_today, None)

    progress = load_progress(db, user)
    assert progress.longest_streak == 2
    assert progress.streak == 0
