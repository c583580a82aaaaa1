import uuid
from datetime import date, datetime, timezone
from enum import Enum

from pydantic import EmailStr
from sqlalchemy import JSON, DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from app.achievements import AchievementStatus


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


DEFAULT_USER_NAME = "Student"
DEFAULT_USER_IMAGE = "/mascot.svg"
MAX_HEARTS = 5


# Shared properties
class UserBase(SQLModel):
    email: EmailStr = Field(unique=True, index=True, max_length=255)
    is_active: bool = True
    is_superuser: bool = False
    full_name: str | None = Field(default=None, max_length=255)
    image_url: str | None = Field(default=None, max_length=1024)


# Properties to receive via API on creation
class UserCreate(UserBase):
    password: str = Field(min_length=8, max_length=128)


class UserRegister(SQLModel):
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=8, max_length=128)
    full_name: str | None = Field(default=None, max_length=255)


class UserUpdateMe(SQLModel):
    full_name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = Field(default=None, max_length=255)
    image_url: str | None = Field(default=None, max_length=1024)


# Database model, database table inferred from class name
class User(UserBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    hashed_password: str
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


# Properties to return via API, id is always required
class UserPublic(UserBase):
    id: uuid.UUID
    created_at: datetime | None = None


# Generic message
class Message(SQLModel):
    message: str


# JSON payload containing access token
class Token(SQLModel):
    access_token: str
    token_type: str = "bearer"


# Contents of JWT token
class TokenPayload(SQLModel):
    sub: str | None = None


# Course content

class ChallengeType(str, Enum):
    SELECT = "SELECT"
    ASSIST = "ASSIST"


class CourseBase(SQLModel):
    title: str = Field(min_length=1, max_length=255)
    image_src: str = Field(max_length=1024)


class Course(CourseBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    units: list["Unit"] = Relationship(back_populates="course", cascade_delete=True)


class CoursePublic(CourseBase):
    id: uuid.UUID


class UnitBase(SQLModel):
    title: str = Field(max_length=255)
    description: str
    order: int


class Unit(UnitBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    course_id: uuid.UUID = Field(
        foreign_key="course.id", nullable=False, ondelete="CASCADE"
    )
    course: Course | None = Relationship(back_populates="units")
    lessons: list["Lesson"] = Relationship(back_populates="unit", cascade_delete=True)


class LessonBase(SQLModel):
    title: str = Field(max_length=255)
    order: int


class Lesson(LessonBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    unit_id: uuid.UUID = Field(
        foreign_key="unit.id", nullable=False, ondelete="CASCADE"
    )
    unit: Unit | None = Relationship(back_populates="lessons")
    challenges: list["Challenge"] = Relationship(back_populates="lesson", cascade_delete=True)


class LessonPublic(LessonBase):
    id: uuid.UUID
    unit_id: uuid.UUID


class LessonWithStatus(LessonPublic):
    completed: bool = False


class UnitPublic(UnitBase):
    id: uuid.UUID
    course_id: uuid.UUID


class UnitWithLessons(UnitPublic):
    lessons: list[LessonWithStatus]


class CourseWithUnits(CoursePublic):
    units: list[UnitWithLessons]


class ChallengeBase(SQLModel):
    question: str
    type: ChallengeType
    order: int


class Challenge(ChallengeBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    lesson_id: uuid.UUID = Field(
        foreign_key="lesson.id", nullable=False, ondelete="CASCADE"
    )
    lesson: Lesson | None = Relationship(back_populates="challenges")
    options: list["ChallengeOption"] = Relationship(back_populates="challenge", cascade_delete=True)
    progress: list["ChallengeProgress"] = Relationship(back_populates="challenge", cascade_delete=True)


class ChallengeOptionBase(SQLModel):
    text: str
    image_src: str | None = Field(default=None, max_length=1024)
    audio_src: str | None = Field(default=None, max_length=1024)


class ChallengeOption(ChallengeOptionBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    correct: bool = False
    challenge_id: uuid.UUID = Field(
        foreign_key="challenge.id", nullable=False, ondelete="CASCADE"
    )
    challenge: Challenge | None = Relationship(back_populates="options")


# Correctness is decided server-side, so options go out without the flag.
class ChallengeOptionPublic(ChallengeOptionBase):
    id: uuid.UUID


class ChallengeWithOptions(ChallengeBase):
    id: uuid.UUID
    lesson_id: uuid.UUID
    completed: bool = False
    options: list[ChallengeOptionPublic]


class LessonDetail(LessonPublic):
    challenges: list[ChallengeWithOptions]
    percentage: int = 0


class ChallengeProgress(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "challenge_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )
    challenge_id: uuid.UUID = Field(
        foreign_key="challenge.id", nullable=False, ondelete="CASCADE"
    )
    completed: bool = False
    challenge: Challenge | None = Relationship(back_populates="progress")


# Gamification state, one row per user

class UserProgressBase(SQLModel):
    user_name: str = Field(default=DEFAULT_USER_NAME, max_length=255)
    user_image_src: str = Field(default=DEFAULT_USER_IMAGE, max_length=1024)
    hearts: int = Field(default=MAX_HEARTS, ge=0, le=MAX_HEARTS)
    points: int = Field(default=0, ge=0)
    total_xp_earned: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_practice_date: date | None = None
    xp_boost_lessons: int = Field(default=0, ge=0)
    heart_shields: int = Field(default=0, ge=0)
    streak_freezes: int = Field(default=0, ge=0)


class UserProgress(UserProgressBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", unique=True
    )
    active_course_id: uuid.UUID | None = Field(
        default=None, foreign_key="course.id", ondelete="SET NULL"
    )
    active_course: Course | None = Relationship()


class UserProgressPublic(UserProgressBase):
    user_id: uuid.UUID
    active_course_id: uuid.UUID | None = None
    active_course: CoursePublic | None = None


class ChallengeResult(SQLModel):
    correct: bool
    correct_option_id: uuid.UUID | None = None
    practice: bool = False
    xp_gained: int = 0
    boosted: bool = False
    hearts: int
    points: int
    streak: int
    streak_extended: bool = False
    shield_used: bool = False
    shields_remaining: int = 0
    lesson_completed: bool = False


class AnswerSubmit(SQLModel):
    option_id: uuid.UUID


class LessonCompleteResult(SQLModel):
    boost_consumed: bool
    xp_boost_lessons: int


class StreakStatus(SQLModel):
    streak_lost: bool
    days: int = 0
    streak: int


class ShopItem(SQLModel):
    id: str
    title: str
    description: str
    cost: int
    can_buy: bool


class LeaderboardEntry(SQLModel):
    rank: int
    user_id: uuid.UUID
    user_name: str
    user_image_src: str
    points: int
    is_current_user: bool = False


# Social

class UserCard(SQLModel):
    user_id: uuid.UUID
    user_name: str
    user_image_src: str
    points: int = 0
    streak: int = 0


class ProfilePublic(SQLModel):
    progress: UserProgressPublic
    completed_lessons: int
    achievements: list[AchievementStatus]
    unlocked_count: int
    is_following: bool = False


class Follow(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("follower_id", "following_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    follower_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )
    following_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class NotificationType(str, Enum):
    FOLLOW = "FOLLOW"
    MESSAGE = "MESSAGE"


class NotificationBase(SQLModel):
    type: NotificationType
    content: str | None = Field(default=None, max_length=500)
    read: bool = False


class Notification(NotificationBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )
    actor_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE"
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class NotificationPublic(NotificationBase):
    id: uuid.UUID
    actor_id: uuid.UUID
    actor_name: str = DEFAULT_USER_NAME
    created_at: datetime | None = None


class NotificationsPublic(SQLModel):
    data: list[NotificationPublic]
    unread_count: int


class ChatMessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    GIF = "gif"


class ChatMessageBase(SQLModel):
    content: str = Field(min_length=1, max_length=4000)
    type: ChatMessageType = ChatMessageType.TEXT
    file_name: str | None = Field(default=None, max_length=255)


class ChatMessageCreate(ChatMessageBase):
    pass


class ChatMessage(ChatMessageBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    sender_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )
    receiver_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
        index=True,
    )


class ChatMessagePublic(ChatMessageBase):
    id: uuid.UUID
    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    created_at: datetime | None = None


class ConversationPublic(SQLModel):
    partner: UserCard
    last_message: ChatMessagePublic


# AI practice transcripts

class PracticeType(str, Enum):
    WRITING = "writing"
    SPEAKING = "speaking"


class PracticeSessionBase(SQLModel):
    type: PracticeType
    prompt: str = Field(max_length=2000)
    prompt_data: dict = Field(default_factory=dict, sa_type=JSON)
    user_input: str
    feedback: dict = Field(default_factory=dict, sa_type=JSON)
    score: int = Field(default=0, ge=0, le=100)
    audio_url: str | None = Field(default=None, max_length=1024)


class PracticeSessionCreate(PracticeSessionBase):
    pass


class PracticeSession(PracticeSessionBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class PracticeSessionPublic(PracticeSessionBase):
    id: uuid.UUID
    created_at: datetime | None = None
