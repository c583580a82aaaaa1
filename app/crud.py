import logging
import math
import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import and_, or_
from sqlmodel import Session, col, func, select

from app import progress as rules
from app.core.security import get_password_hash, verify_password
from app.models import (
    DEFAULT_USER_IMAGE,
    DEFAULT_USER_NAME,
    Challenge,
    ChallengeOption,
    ChallengeOptionPublic,
    ChallengeProgress,
    ChallengeResult,
    ChallengeWithOptions,
    ChatMessage,
    ChatMessageCreate,
    ChatMessagePublic,
    ConversationPublic,
    Course,
    Follow,
    LeaderboardEntry,
    Lesson,
    LessonCompleteResult,
    LessonDetail,
    LessonWithStatus,
    Notification,
    NotificationPublic,
    NotificationType,
    PracticeSession,
    PracticeSessionCreate,
    StreakStatus,
    Unit,
    UnitWithLessons,
    User,
    UserCard,
    UserCreate,
    UserProgress,
    UserUpdateMe,
)
from app.progress import StreakChange

logger = logging.getLogger(__name__)


def create_user(*, session: Session, user_create: UserCreate) -> User:
    db_obj = User.model_validate(
        user_create, update={"hashed_password": get_password_hash(user_create.password)}
    )
    session.add(db_obj)
    session.commit()
    session.refresh(db_obj)
    return db_obj


def update_user_me(*, session: Session, db_user: User, user_in: UserUpdateMe) -> User:
    user_data = user_in.model_dump(exclude_unset=True)
    db_user.sqlmodel_update(user_data)
    session.add(db_user)
    session.commit()
    session.refresh(db_user)
    sync_user_info(session=session, user=db_user)
    return db_user


def get_user_by_email(*, session: Session, email: str) -> User | None:
    statement = select(User).where(User.email == email)
    session_user = session.exec(statement).first()
    return session_user


# Dummy hash to use for timing attack prevention when user is not found
# This is an Argon2 hash of a random password, used to ensure constant-time comparison
DUMMY_HASH = "$argon2id$v=19$m=65536,t=3,p=4$MjQyZWE1MzBjYjJlZTI0Yw$YTU4NGM5ZTZmYjE2NzZlZjY0ZWY3ZGRkY2U2OWFjNjk"


def authenticate(*, session: Session, email: str, password: str) -> User | None:
    db_user = get_user_by_email(session=session, email=email)
    if not db_user:
        # Run a verification anyway so unknown emails take as long as known ones
        verify_password(password, DUMMY_HASH)
        return None
    verified, updated_password_hash = verify_password(password, db_user.hashed_password)
    if not verified:
        return None
    if updated_password_hash:
        db_user.hashed_password = updated_password_hash
        session.add(db_user)
        session.commit()
        session.refresh(db_user)
    return db_user


def display_name(user: User) -> str:
    return user.full_name or user.email.split("@")[0] or DEFAULT_USER_NAME


# User progress

def get_user_progress(*, session: Session, user_id: uuid.UUID) -> UserProgress | None:
    statement = select(UserProgress).where(UserProgress.user_id == user_id)
    return session.exec(statement).first()


def sync_user_info(*, session: Session, user: User) -> UserProgress | None:
    """Copy the account's name and avatar onto the progress row."""
    db_progress = get_user_progress(session=session, user_id=user.id)
    if not db_progress:
        return None
    db_progress.user_name = display_name(user)
    db_progress.user_image_src = user.image_url or DEFAULT_USER_IMAGE
    session.add(db_progress)
    session.commit()
    session.refresh(db_progress)
    return db_progress


def select_course(*, session: Session, user: User, course_id: uuid.UUID) -> UserProgress:
    db_progress = get_user_progress(session=session, user_id=user.id)
    if db_progress:
        db_progress.active_course_id = course_id
    else:
        db_progress = UserProgress(user_id=user.id, active_course_id=course_id)
    db_progress.user_name = display_name(user)
    db_progress.user_image_src = user.image_url or DEFAULT_USER_IMAGE
    session.add(db_progress)
    session.commit()
    session.refresh(db_progress)
    return db_progress


# Course content

def get_courses(*, session: Session) -> list[Course]:
    return list(session.exec(select(Course).order_by(Course.title)).all())


def get_ordered_units(*, session: Session, course_id: uuid.UUID) -> list[Unit]:
    statement = select(Unit).where(Unit.course_id == course_id).order_by(Unit.order)
    return list(session.exec(statement).all())


def _ordered(items: list[Any]) -> list[Any]:
    return sorted(items, key=lambda item: item.order)


def get_completed_challenge_ids(
    *, session: Session, user_id: uuid.UUID, challenge_ids: list[uuid.UUID]
) -> set[uuid.UUID]:
    if not challenge_ids:
        return set()
    statement = select(ChallengeProgress.challenge_id).where(
        ChallengeProgress.user_id == user_id,
        col(ChallengeProgress.challenge_id).in_(challenge_ids),
        col(ChallengeProgress.completed).is_(True),
    )
    return set(session.exec(statement).all())


def _lesson_completed(challenges: list[Challenge], completed_ids: set[uuid.UUID]) -> bool:
    # A lesson without challenges is never complete.
    return bool(challenges) and all(challenge.id in completed_ids for challenge in challenges)


def get_units_with_status(
    *, session: Session, user_id: uuid.UUID, course_id: uuid.UUID
) -> list[UnitWithLessons]:
    units = get_ordered_units(session=session, course_id=course_id)
    challenge_ids = [
        challenge.id
        for unit in units
        for lesson in unit.lessons
        for challenge in lesson.challenges
    ]
    completed_ids = get_completed_challenge_ids(
        session=session, user_id=user_id, challenge_ids=challenge_ids
    )

    result: list[UnitWithLessons] = []
    for unit in units:
        lessons = [
            LessonWithStatus(
                id=lesson.id,
                unit_id=lesson.unit_id,
                title=lesson.title,
                order=lesson.order,
                completed=_lesson_completed(lesson.challenges, completed_ids),
            )
            for lesson in _ordered(unit.lessons)
        ]
        result.append(
            UnitWithLessons(
                id=unit.id,
                course_id=unit.course_id,
                title=unit.title,
                description=unit.description,
                order=unit.order,
                lessons=lessons,
            )
        )
    return result


def get_first_incomplete_lesson_id(
    *, session: Session, user_id: uuid.UUID, course_id: uuid.UUID
) -> uuid.UUID | None:
    for unit in get_units_with_status(session=session, user_id=user_id, course_id=course_id):
        for lesson in unit.lessons:
            if not lesson.completed:
                return lesson.id
    return None


def is_lesson_completed(*, session: Session, user_id: uuid.UUID, lesson_id: uuid.UUID) -> bool:
    lesson = session.get(Lesson, lesson_id)
    if not lesson:
        return False
    completed_ids = get_completed_challenge_ids(
        session=session,
        user_id=user_id,
        challenge_ids=[challenge.id for challenge in lesson.challenges],
    )
    return _lesson_completed(lesson.challenges, completed_ids)


def get_lesson_detail(
    *,
    session: Session,
    user_id: uuid.UUID,
    course_id: uuid.UUID | None,
    lesson_id: uuid.UUID | None = None,
) -> LessonDetail | None:
    """Load a lesson with per-challenge completion.

    Without ``lesson_id`` the first incomplete lesson of ``course_id`` is used.
    """
    if lesson_id is None:
        if course_id is None:
            return None
        lesson_id = get_first_incomplete_lesson_id(
            session=session, user_id=user_id, course_id=course_id
        )
        if lesson_id is None:
            return None

    lesson = session.get(Lesson, lesson_id)
    if not lesson:
        return None

    challenges = _ordered(lesson.challenges)
    completed_ids = get_completed_challenge_ids(
        session=session, user_id=user_id, challenge_ids=[c.id for c in challenges]
    )
    percentage = 0
    if challenges:
        done = sum(1 for c in challenges if c.id in completed_ids)
        percentage = math.floor(done / len(challenges) * 100 + 0.5)

    return LessonDetail(
        id=lesson.id,
        unit_id=lesson.unit_id,
        title=lesson.title,
        order=lesson.order,
        percentage=percentage,
        challenges=[
            ChallengeWithOptions(
                id=challenge.id,
                lesson_id=challenge.lesson_id,
                question=challenge.question,
                type=challenge.type,
                order=challenge.order,
                completed=challenge.id in completed_ids,
                options=[
                    ChallengeOptionPublic.model_validate(option, from_attributes=True)
                    for option in challenge.options
                ],
            )
            for challenge in challenges
        ],
    )


# Answers and lessons

def get_challenge_progress(
    *, session: Session, user_id: uuid.UUID, challenge_id: uuid.UUID
) -> ChallengeProgress | None:
    statement = select(ChallengeProgress).where(
        ChallengeProgress.user_id == user_id,
        ChallengeProgress.challenge_id == challenge_id,
    )
    return session.exec(statement).first()


def _correct_option_id(challenge: Challenge) -> uuid.UUID | None:
    return next((option.id for option in challenge.options if option.correct), None)


def complete_challenge(
    *, session: Session, db_progress: UserProgress, challenge: Challenge, today: date
) -> ChallengeResult:
    existing = get_challenge_progress(
        session=session, user_id=db_progress.user_id, challenge_id=challenge.id
    )
    practice = existing is not None and existing.completed
    outcome = rules.apply_correct_answer(db_progress, practice=practice, today=today)

    if existing:
        existing.completed = True
        session.add(existing)
    else:
        session.add(
            ChallengeProgress(
                user_id=db_progress.user_id, challenge_id=challenge.id, completed=True
            )
        )
    session.add(db_progress)
    session.commit()
    session.refresh(db_progress)

    return ChallengeResult(
        correct=True,
        correct_option_id=_correct_option_id(challenge),
        practice=practice,
        xp_gained=outcome.xp_gained,
        boosted=outcome.boosted,
        hearts=db_progress.hearts,
        points=db_progress.points,
        streak=db_progress.streak,
        streak_extended=outcome.streak_change
        in (StreakChange.STARTED, StreakChange.EXTENDED, StreakChange.FROZEN),
        shields_remaining=db_progress.heart_shields,
        lesson_completed=is_lesson_completed(
            session=session, user_id=db_progress.user_id, lesson_id=challenge.lesson_id
        ),
    )


def wrong_answer(
    *, session: Session, db_progress: UserProgress, challenge: Challenge
) -> ChallengeResult:
    shield_used = rules.apply_wrong_answer(db_progress)
    session.add(db_progress)
    session.commit()
    session.refresh(db_progress)
    return ChallengeResult(
        correct=False,
        correct_option_id=_correct_option_id(challenge),
        hearts=db_progress.hearts,
        points=db_progress.points,
        streak=db_progress.streak,
        shield_used=shield_used,
        shields_remaining=db_progress.heart_shields,
    )


def answer_challenge(
    *,
    session: Session,
    db_progress: UserProgress,
    challenge: Challenge,
    option: ChallengeOption,
    today: date,
) -> ChallengeResult:
    if option.correct:
        return complete_challenge(
            session=session, db_progress=db_progress, challenge=challenge, today=today
        )
    return wrong_answer(session=session, db_progress=db_progress, challenge=challenge)


def complete_lesson(*, session: Session, db_progress: UserProgress) -> LessonCompleteResult:
    boost_consumed = rules.apply_lesson_complete(db_progress)
    if boost_consumed:
        session.add(db_progress)
        session.commit()
        session.refresh(db_progress)
    return LessonCompleteResult(
        boost_consumed=boost_consumed, xp_boost_lessons=db_progress.xp_boost_lessons
    )


def check_streak_status(
    *, session: Session, db_progress: UserProgress, today: date
) -> StreakStatus:
    lost = rules.check_streak(db_progress, today)
    if lost:
        logger.info("User %s lost a %s day streak", db_progress.user_id, lost)
        session.add(db_progress)
        session.commit()
        session.refresh(db_progress)
    return StreakStatus(streak_lost=lost > 0, days=lost, streak=db_progress.streak)


def buy_item(*, session: Session, db_progress: UserProgress, item_id: str) -> UserProgress:
    item = rules.purchase(db_progress, item_id)
    session.add(db_progress)
    session.commit()
    session.refresh(db_progress)
    logger.info("User %s bought %s for %s XP", db_progress.user_id, item.id, item.cost)
    return db_progress


def get_top_users(
    *, session: Session, current_user_id: uuid.UUID | None = None, limit: int = 10
) -> list[LeaderboardEntry]:
    statement = (
        select(UserProgress)
        .order_by(col(UserProgress.points).desc(), UserProgress.user_name)
        .limit(limit)
    )
    return [
        LeaderboardEntry(
            rank=rank,
            user_id=row.user_id,
            user_name=row.user_name,
            user_image_src=row.user_image_src,
            points=row.points,
            is_current_user=row.user_id == current_user_id,
        )
        for rank, row in enumerate(session.exec(statement).all(), start=1)
    ]


def count_completed_lessons(*, session: Session, db_progress: UserProgress) -> int:
    if db_progress.active_course_id is None:
        return 0
    units = get_units_with_status(
        session=session,
        user_id=db_progress.user_id,
        course_id=db_progress.active_course_id,
    )
    return sum(1 for unit in units for lesson in unit.lessons if lesson.completed)


# Social

def get_user_cards(*, session: Session, user_ids: list[uuid.UUID]) -> dict[uuid.UUID, UserCard]:
    if not user_ids:
        return {}
    cards: dict[uuid.UUID, UserCard] = {}
    rows = session.exec(
        select(UserProgress).where(col(UserProgress.user_id).in_(user_ids))
    ).all()
    for row in rows:
        cards[row.user_id] = UserCard(
            user_id=row.user_id,
            user_name=row.user_name,
            user_image_src=row.user_image_src,
            points=row.points,
            streak=row.streak,
        )
    missing = [user_id for user_id in user_ids if user_id not in cards]
    if missing:
        for user in session.exec(select(User).where(col(User.id).in_(missing))).all():
            cards[user.id] = UserCard(
                user_id=user.id,
                user_name=display_name(user),
                user_image_src=user.image_url or DEFAULT_USER_IMAGE,
            )
    return cards


def get_follow(
    *, session: Session, follower_id: uuid.UUID, following_id: uuid.UUID
) -> Follow | None:
    statement = select(Follow).where(
        Follow.follower_id == follower_id, Follow.following_id == following_id
    )
    return session.exec(statement).first()


def is_following(*, session: Session, follower_id: uuid.UUID, following_id: uuid.UUID) -> bool:
    return get_follow(session=session, follower_id=follower_id, following_id=following_id) is not None


def follow_user(*, session: Session, follower_id: uuid.UUID, following_id: uuid.UUID) -> Follow:
    if follower_id == following_id:
        raise ValueError("You cannot follow yourself")
    existing = get_follow(session=session, follower_id=follower_id, following_id=following_id)
    if existing:
        return existing

    db_follow = Follow(follower_id=follower_id, following_id=following_id)
    session.add(db_follow)
    session.add(
        Notification(
            user_id=following_id, actor_id=follower_id, type=NotificationType.FOLLOW
        )
    )
    session.commit()
    session.refresh(db_follow)
    logger.info("User %s followed %s", follower_id, following_id)
    return db_follow


def unfollow_user(*, session: Session, follower_id: uuid.UUID, following_id: uuid.UUID) -> bool:
    existing = get_follow(session=session, follower_id=follower_id, following_id=following_id)
    if not existing:
        return False
    session.delete(existing)
    session.commit()
    logger.info("User %s unfollowed %s", follower_id, following_id)
    return True


def get_followers(*, session: Session, user_id: uuid.UUID) -> list[UserCard]:
    statement = (
        select(Follow.follower_id)
        .where(Follow.following_id == user_id)
        .order_by(col(Follow.created_at).desc())
    )
    ids = list(session.exec(statement).all())
    cards = get_user_cards(session=session, user_ids=ids)
    return [cards[i] for i in ids if i in cards]


def get_following(*, session: Session, user_id: uuid.UUID) -> list[UserCard]:
    statement = (
        select(Follow.following_id)
        .where(Follow.follower_id == user_id)
        .order_by(col(Follow.created_at).desc())
    )
    ids = list(session.exec(statement).all())
    cards = get_user_cards(session=session, user_ids=ids)
    return [cards[i] for i in ids if i in cards]


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_users(
    *, session: Session, query: str, exclude_user_id: uuid.UUID, limit: int = 20
) -> list[UserCard]:
    """Case-insensitive substring match on names; ``%`` and ``_`` match literally."""
    statement = (
        select(UserProgress)
        .where(
            col(UserProgress.user_name).ilike(_like_pattern(query.strip()), escape="\\"),
            UserProgress.user_id != exclude_user_id,
        )
        .order_by(col(UserProgress.points).desc())
        .limit(limit)
    )
    return [
        UserCard(
            user_id=row.user_id,
            user_name=row.user_name,
            user_image_src=row.user_image_src,
            points=row.points,
            streak=row.streak,
        )
        for row in session.exec(statement).all()
    ]


# Notifications

def get_notifications(
    *, session: Session, user_id: uuid.UUID, limit: int = 50
) -> list[NotificationPublic]:
    statement = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(col(Notification.created_at).desc())
        .limit(limit)
    )
    rows = list(session.exec(statement).all())
    cards = get_user_cards(session=session, user_ids=list({row.actor_id for row in rows}))
    return [
        NotificationPublic(
            id=row.id,
            type=row.type,
            content=row.content,
            read=row.read,
            actor_id=row.actor_id,
            actor_name=cards[row.actor_id].user_name if row.actor_id in cards else DEFAULT_USER_NAME,
            created_at=row.created_at,
        )
        for row in rows
    ]


def count_unread_notifications(*, session: Session, user_id: uuid.UUID) -> int:
    statement = select(func.count()).select_from(Notification).where(
        Notification.user_id == user_id, col(Notification.read).is_(False)
    )
    return session.exec(statement).one()


def mark_notifications_read(*, session: Session, user_id: uuid.UUID) -> int:
    rows = session.exec(
        select(Notification).where(
            Notification.user_id == user_id, col(Notification.read).is_(False)
        )
    ).all()
    for row in rows:
        row.read = True
        session.add(row)
    session.commit()
    return len(rows)


# Messages

def _pair_filter(user_id: uuid.UUID, partner_id: uuid.UUID):
    return or_(
        and_(ChatMessage.sender_id == user_id, ChatMessage.receiver_id == partner_id),
        and_(ChatMessage.sender_id == partner_id, ChatMessage.receiver_id == user_id),
    )


def send_message(
    *,
    session: Session,
    sender_id: uuid.UUID,
    receiver_id: uuid.UUID,
    message_in: ChatMessageCreate,
) -> ChatMessage:
    db_message = ChatMessage.model_validate(
        message_in, update={"sender_id": sender_id, "receiver_id": receiver_id}
    )
    session.add(db_message)
    preview = message_in.content if message_in.type == "text" else (message_in.file_name or message_in.type.value)
    session.add(
        Notification(
            user_id=receiver_id,
            actor_id=sender_id,
            type=NotificationType.MESSAGE,
            content=preview[:500],
        )
    )
    session.commit()
    session.refresh(db_message)
    logger.info("Message %s sent from %s to %s", db_message.id, sender_id, receiver_id)
    return db_message


def get_thread(
    *, session: Session, user_id: uuid.UUID, partner_id: uuid.UUID
) -> list[ChatMessage]:
    statement = (
        select(ChatMessage)
        .where(_pair_filter(user_id, partner_id))
        .order_by(col(ChatMessage.created_at).asc())
    )
    return list(session.exec(statement).all())


def get_messages_since(
    *,
    session: Session,
    user_id: uuid.UUID,
    partner_id: uuid.UUID,
    after: datetime | None,
) -> list[ChatMessage]:
    statement = select(ChatMessage).where(_pair_filter(user_id, partner_id))
    if after is not None:
        # Inclusive so rows sharing the last timestamp are not skipped;
        # callers drop ids they have already seen.
        statement = statement.where(col(ChatMessage.created_at) >= after)
    statement = statement.order_by(col(ChatMessage.created_at).asc())
    return list(session.exec(statement).all())


def get_conversations(*, session: Session, user_id: uuid.UUID) -> list[ConversationPublic]:
    statement = (
        select(ChatMessage)
        .where(or_(ChatMessage.sender_id == user_id, ChatMessage.receiver_id == user_id))
        .order_by(col(ChatMessage.created_at).desc())
    )
    latest: dict[uuid.UUID, ChatMessage] = {}
    for message in session.exec(statement).all():
        partner_id = message.receiver_id if message.sender_id == user_id else message.sender_id
        latest.setdefault(partner_id, message)

    cards = get_user_cards(session=session, user_ids=list(latest))
    return [
        ConversationPublic(
            partner=cards[partner_id],
            last_message=ChatMessagePublic.model_validate(message, from_attributes=True),
        )
        for partner_id, message in latest.items()
        if partner_id in cards
    ]


# Practice transcripts

def save_practice_session(
    *, session: Session, user_id: uuid.UUID, session_in: PracticeSessionCreate
) -> PracticeSession:
    db_session = PracticeSession.model_validate(session_in, update={"user_id": user_id})
    session.add(db_session)
    session.commit()
    session.refresh(db_session)
    return db_session


def get_practice_history(*, session: Session, user_id: uuid.UUID) -> list[PracticeSession]:
    statement = (
        select(PracticeSession)
        .where(PracticeSession.user_id == user_id)
        .order_by(col(PracticeSession.created_at).desc())
    )
    return list(session.exec(statement).all())
