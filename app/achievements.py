from typing import Literal

from pydantic import BaseModel

Metric = Literal[
    "total_xp",
    "longest_streak",
    "heart_shields",
    "xp_boost_lessons",
    "streak_freezes",
    "hearts",
]


class Achievement(BaseModel):
    title: str
    description: str
    icon: str
    metric: Metric
    threshold: int


class AchievementStatus(Achievement):
    unlocked: bool


def _xp(title: str, threshold: int, icon: str, description: str | None = None) -> Achievement:
    return Achievement(
        title=title,
        description=description or f"Earn {threshold:,} XP",
        icon=icon,
        metric="total_xp",
        threshold=threshold,
    )


def _level(level: int, icon: str) -> Achievement:
    threshold = level * 100
    return _xp(f"Level {level}", threshold, icon, f"Reach {threshold:,} XP")


def _streak(title: str, days: int, icon: str) -> Achievement:
    return Achievement(
        title=title,
        description=f"Reach a {days} day streak",
        icon=icon,
        metric="longest_streak",
        threshold=days,
    )


def _owned(title: str, metric: Metric, count: int, noun: str, icon: str) -> Achievement:
    return Achievement(
        title=title,
        description=f"Hold {count} {noun}",
        icon=icon,
        metric=metric,
        threshold=count,
    )


ACHIEVEMENTS: list[Achievement] = [
    # Total XP
    _xp("First Step", 10, "🦶"),
    _xp("Second Step", 20, "🦶"),
    _xp("Third Step", 30, "🦶"),
    _xp("Fourth Step", 40, "🦶"),
    _xp("Literate", 50, "🅰️"),
    _xp("Curious Mind", 100, "🌱"),
    _xp("Chatterbox", 250, "💬"),
    _xp("Dedicated Student", 500, "📝"),
    _xp("Number of the Beast", 666, "🤘"),
    _xp("Junior Polyglot", 750, "🐤"),
    _xp("Jackpot", 777, "🎰"),
    _xp("Aspirant", 1_000, "📗"),
    _xp("Translator", 1_500, "🗣️"),
    _xp("New Year", 2_024, "🎆"),
    _xp("Futurist", 2_077, "🤖"),
    _xp("Apprentice", 2_500, "📘"),
    _xp("Poet", 3_000, "✒️"),
    _xp("Scholar", 5_000, "📙"),
    _xp("Novelist", 7_500, "📖"),
    _xp("Mount Everest", 8_848, "🏔️"),
    _xp("Over 9000!", 9_001, "💥"),
    _xp("Master", 10_000, "🎓"),
    _xp("The Deep", 11_000, "🌊"),
    _xp("Encyclopedia", 15_000, "📚"),
    _xp("Grandmaster", 25_000, "🦉"),
    _xp("Librarian", 35_000, "🏛️"),
    _xp("Marathon", 42_000, "🏃"),
    _xp("Sage", 50_000, "🧠"),
    _xp("Oracle", 75_000, "🔮"),
    _xp("Enlightened", 100_000, "✨"),
    _xp("Prophet", 150_000, "📜"),
    _xp("Legendary", 250_000, "🏆"),
    _xp("Mythical", 500_000, "🦄"),
    _xp("Divine", 1_000_000, "⛈️"),
    _xp("Milky Way", 2_000_000, "🌌"),
    _xp("Black Hole", 3_000_000, "⚫"),
    _xp("Multiverse", 4_000_000, "💠"),
    _xp("Omniscient", 5_000_000, "👁️"),
    _xp("The Creator", 10_000_000, "🌌"),
    _xp("Rich", 1_000, "💰", "Accumulate 1,000 XP in total"),
    _xp("Millionaire", 1_000_000, "🏦", "Accumulate 1,000,000 XP in total"),
    # Levels, one per 100 XP
    _level(1, "1️⃣"),
    _level(5, "5️⃣"),
    _level(10, "🔟"),
    _level(20, "😎"),
    _level(30, "🦁"),
    _level(40, "🐯"),
    _level(50, "🦅"),
    _level(60, "🦈"),
    _level(70, "🦖"),
    _level(80, "🐲"),
    _level(90, "👹"),
    _level(100, "💯"),
    # Longest streak
    _streak("Weekend", 2, "✌️"),
    _streak("Warm-up", 3, "🕯️"),
    _streak("Water", 4, "💧"),
    _streak("Handful", 5, "🖐️"),
    _streak("Spark", 7, "🔥"),
    _streak("Earth", 8, "🌱"),
    _streak("Two Hands", 10, "👐"),
    _streak("Air", 12, "💨"),
    _streak("Flame", 14, "🔥"),
    _streak("Fire", 16, "🔥"),
    _streak("Ether", 20, "✨"),
    _streak("Three Weeks", 21, "🥚"),
    _streak("Blaze", 30, "🧨"),
    _streak("Lent", 40, "🕯️"),
    _streak("Inferno", 60, "🌋"),
    _streak("Centenarian", 100, "💯"),
    _streak("Obsessed", 150, "👺"),
    _streak("Half a Year", 183, "🗓️"),
    _streak("Unstoppable", 250, "🚂"),
    _streak("Around the Sun", 365, "🌍"),
    _streak("Martian", 687, "👽"),
    _streak("Millennium", 1_000, "🗿"),
    _streak("Eternal", 2_000, "♾️"),
    # Inventory
    _owned("Prepared", "heart_shields", 1, "heart shield", "🛡️"),
    _owned("Tank", "heart_shields", 3, "heart shields", "🏯"),
    _owned("Untouchable", "heart_shields", 5, "heart shields", "💎"),
    _owned("Energized", "xp_boost_lessons", 1, "boosted lesson", "🔋"),
    _owned("Overload", "xp_boost_lessons", 5, "boosted lessons", "⚡"),
    _owned("High Voltage", "xp_boost_lessons", 10, "boosted lessons", "🏭"),
    _owned("Chilled", "streak_freezes", 1, "streak freeze", "🍦"),
    _owned("Frozen", "streak_freezes", 3, "streak freezes", "🥶"),
    _owned("Ice Age", "streak_freezes", 5, "streak freezes", "🧊"),
    _owned("Alive", "hearts", 1, "heart", "💓"),
    _owned("Healthy", "hearts", 3, "hearts", "💖"),
    _owned("Perfect", "hearts", 5, "hearts", "💪"),
]


def metric_value(progress, metric: Metric) -> int:
    if metric == "total_xp":
        # Rows created before total_xp_earned existed only carry points.
        return progress.total_xp_earned or progress.points or 0
    return getattr(progress, metric) or 0


def evaluate_achievements(progress) -> list[AchievementStatus]:
    return [
        AchievementStatus(
            **achievement.model_dump(),
            unlocked=metric_value(progress, achievement.metric) >= achievement.threshold,
        )
        for achievement in ACHIEVEMENTS
    ]
