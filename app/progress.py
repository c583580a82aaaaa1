"""Game rules for hearts, XP, streaks and the power-up shop.

Every function here mutates a ``UserProgress``-like object in place and does
no I/O; ``app.crud`` loads the row, applies a rule and commits. A rule that
fails raises ``ProgressError`` before touching any field.
"""
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Protocol

from pydantic import BaseModel

from app.models import MAX_HEARTS

XP_PER_CHALLENGE = 10
BOOSTED_XP_PER_CHALLENGE = 20
XP_BOOST_LESSONS_PER_PURCHASE = 5


class ProgressError(ValueError):
    """A game rule refused the action. ``code`` is what the client shows."""

    def __init__(self, code: str, message: str | None = None):
        self.code = code
        super().__init__(message or code)


class ProgressState(Protocol):
    hearts: int
    points: int
    total_xp_earned: int
    streak: int
    longest_streak: int
    last_practice_date: date | None
    xp_boost_lessons: int
    heart_shields: int
    streak_freezes: int


class StreakChange(str, Enum):
    UNCHANGED = "unchanged"
    STARTED = "started"
    EXTENDED = "extended"
    FROZEN = "frozen"
    RESET = "reset"


class AnswerOutcome(BaseModel):
    xp_gained: int
    boosted: bool
    streak_change: StreakChange


def today_local(offset_hours: int = 0) -> date:
    return (datetime.now(timezone.utc) + timedelta(hours=offset_hours)).date()


def _days_since(last: date | None, today: date) -> int | None:
    if last is None:
        return None
    return (today - last).days


def advance_streak(progress: ProgressState, today: date) -> StreakChange:
    """Record practice on ``today``.

    Practising again on the same day changes nothing. The day after the last
    practice extends the streak. Missing exactly one day is covered by a
    streak freeze when one is available; any other gap starts over at 1.
    """
    gap = _days_since(progress.last_practice_date, today)
    if gap is not None and gap <= 0:
        return StreakChange.UNCHANGED

    if gap is None:
        progress.streak = 1
        change = StreakChange.STARTED
    elif gap == 1:
        progress.streak += 1
        change = StreakChange.EXTENDED
    elif gap == 2 and progress.streak_freezes > 0:
        progress.streak_freezes -= 1
        progress.streak += 1
        change = StreakChange.FROZEN
    else:
        progress.streak = 1
        change = StreakChange.RESET

    progress.longest_streak = max(progress.longest_streak, progress.streak)
    progress.last_practice_date = today
    return change


def check_streak(progress: ProgressState, today: date) -> int:
    """Zero out a streak that can no longer be saved.

    Returns the length of the streak that was lost, or 0 when the streak is
    still alive (practised today or yesterday, or a freeze covers the one
    missed day).
    """
    gap = _days_since(progress.last_practice_date, today)
    if gap is None or gap <= 1 or progress.streak == 0:
        return 0
    if gap == 2 and progress.streak_freezes > 0:
        return 0
    lost = progress.streak
    progress.streak = 0
    return lost


def xp_for_answer(progress: ProgressState) -> tuple[int, bool]:
    boosted = progress.xp_boost_lessons > 0
    return (BOOSTED_XP_PER_CHALLENGE if boosted else XP_PER_CHALLENGE), boosted


def apply_correct_answer(
    progress: ProgressState, *, practice: bool, today: date
) -> AnswerOutcome:
    """Award XP for a correct answer.

    Re-answering a challenge that is already completed is practice: it gives
    back one heart (the free refill) instead of requiring one.
    """
    if practice:
        progress.hearts = min(progress.hearts + 1, MAX_HEARTS)
    elif progress.hearts <= 0:
        raise ProgressError("hearts", "No hearts left")

    xp, boosted = xp_for_answer(progress)
    progress.points += xp
    progress.total_xp_earned += xp
    change = advance_streak(progress, today)
    return AnswerOutcome(xp_gained=xp, boosted=boosted, streak_change=change)


def apply_wrong_answer(progress: ProgressState) -> bool:
    """Charge a wrong answer. Returns True when a heart shield absorbed it."""
    if progress.heart_shields > 0:
        progress.heart_shields -= 1
        return True
    if progress.hearts <= 0:
        raise ProgressError("hearts", "No hearts left")
    progress.hearts -= 1
    return False


def apply_lesson_complete(progress: ProgressState) -> bool:
    # Boosts are counted per lesson, so the counter only moves here.
    if progress.xp_boost_lessons > 0:
        progress.xp_boost_lessons -= 1
        return True
    return False


# Shop

class ShopItemSpec(BaseModel):
    id: str
    title: str
    description: str
    cost: int


SHOP_ITEMS: dict[str, ShopItemSpec] = {
    item.id: item
    for item in (
        ShopItemSpec(id="heart", title="One heart", description="Adds one heart.", cost=20),
        ShopItemSpec(id="refill", title="Refill hearts", description="Refills all 5 hearts.", cost=100),
        ShopItemSpec(
            id="xp_boost",
            title="Double XP",
            description=f"Your next {XP_BOOST_LESSONS_PER_PURCHASE} lessons give "
            f"{BOOSTED_XP_PER_CHALLENGE} XP per correct answer.",
            cost=150,
        ),
        ShopItemSpec(
            id="heart_shield",
            title="Heart shield",
            description="Protects one heart on your next mistake.",
            cost=100,
        ),
        ShopItemSpec(
            id="streak_freeze",
            title="Streak freeze",
            description="Keeps your streak alive if you miss one day.",
            cost=300,
        ),
    )
}


def purchase_error(progress: ProgressState, item_id: str) -> str | None:
    item = SHOP_ITEMS.get(item_id)
    if item is None:
        return "unknown_item"
    if item_id in ("heart", "refill") and progress.hearts >= MAX_HEARTS:
        return "hearts_full"
    if progress.points < item.cost:
        return "not_enough_xp"
    return None


def purchase(progress: ProgressState, item_id: str) -> ShopItemSpec:
    error = purchase_error(progress, item_id)
    if error:
        raise ProgressError(error)

    item = SHOP_ITEMS[item_id]
    progress.points -= item.cost
    if item_id == "heart":
        progress.hearts = min(progress.hearts + 1, MAX_HEARTS)
    elif item_id == "refill":
        progress.hearts = MAX_HEARTS
    elif item_id == "xp_boost":
        progress.xp_boost_lessons += XP_BOOST_LESSONS_PER_PURCHASE
    elif item_id == "heart_shield":
        progress.heart_shields += 1
    elif item_id == "streak_freeze":
        progress.streak_freezes += 1
    return item
