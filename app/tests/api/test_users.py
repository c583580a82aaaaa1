from app.core.config import settings
from app.tests.conftest import TEST_PASSWORD, set_progress

API = settings.API_V1_STR


def test_signup_and_login(client):
    r = client.post(
        f"{API}/users/signup",
        json={"email": "rita@example.com", "password": TEST_PASSWORD, "full_name": "Rita"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["email"] == "rita@example.com"
    assert "hashed_password" not in r.json()

    r = client.post(
        f"{API}/login/access-token",
        data={"username": "rita@example.com", "password": TEST_PASSWORD},
    )
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["full_name"] == "Rita"


def test_signup_with_taken_email(client, user):
    r = client.post(
        f"{API}/users/signup",
        json={"email": user.email, "password": TEST_PASSWORD},
    )
    assert r.status_code == 400


def test_login_with_wrong_password(client, user):
    r = client.post(
        f"{API}/login/access-token",
        data={"username": user.email, "password": "not-the-password"},
    )
    assert r.status_code == 400


def test_bad_token_is_rejected(client):
    r = client.get(f"{API}/users/me", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 403


def test_update_me_syncs_progress_card(client, learner_headers):
    r = client.patch(
        f"{API}/users/me",
        headers=learner_headers,
        json={"full_name": "Ana C.", "image_url": "https://cdn.example.com/ana.png"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["full_name"] == "Ana C."

    progress = client.get(f"{API}/users/me/progress", headers=learner_headers).json()
    assert progress["user_name"] == "Ana C."
    assert progress["user_image_src"] == "https://cdn.example.com/ana.png"


def test_update_me_with_taken_email(client, other_user, user_headers):
    r = client.patch(f"{API}/users/me", headers=user_headers, json={"email": other_user.email})
    assert r.status_code == 409


def test_progress_requires_course(client, user_headers):
    r = client.get(f"{API}/users/me/progress", headers=user_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "no_active_course"


def test_my_profile_lists_achievements(client, db, user, learner_headers):
    set_progress(db, user, points=260, total_xp_earned=260, longest_streak=3)
    r = client.get(f"{API}/users/me/profile", headers=learner_headers)
    assert r.status_code == 200
    profile = r.json()
    unlocked = {a["title"] for a in profile["achievements"] if a["unlocked"]}
    assert {"First Step", "Curious Mind", "Chatterbox", "Weekend", "Warm-up"} <= unlocked
    assert "Dedicated Student" not in unlocked
    assert "Level 1" in unlocked
    assert len(profile["achievements"]) == 88
    assert profile["unlocked_count"] == len(unlocked)
    assert profile["completed_lessons"] == 0
    assert profile["is_following"] is False


def test_other_profile_requires_progress(client, other_user, user_headers):
    r = client.get(f"{API}/users/{other_user.id}/profile", headers=user_headers)
    assert r.status_code == 404
