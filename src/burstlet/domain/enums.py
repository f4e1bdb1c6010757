"""Domain enumerations."""

from enum import StrEnum


class JobStatus(StrEnum):
    """Status of a generation job.

    Jobs only move forward: PENDING -> PROCESSING -> one terminal state.
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELED = "CANCELED"


class JobType(StrEnum):
    """Kinds of content a job can generate."""

    VIDEO = "video"
    BLOG = "blog"
    SOCIAL = "social"


class Capability(StrEnum):
    """Category of generation a provider adapter supports."""

    VIDEO = "video"
    TEXT = "text"
    AUDIO = "audio"


class Platform(StrEnum):
    """Social platforms content can target."""

    TWITTER = "twitter"
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"


class VideoQuality(StrEnum):
    """Render quality tiers offered by video providers."""

    DRAFT = "draft"
    STANDARD = "standard"
    HIGH = "high"
    ULTRA = "ultra"


class BlogTone(StrEnum):
    PROFESSIONAL = "professional"
    CASUAL = "casual"
    HUMOROUS = "humorous"
    EDUCATIONAL = "educational"


class BlogLength(StrEnum):
    """Blog length buckets and their target word counts."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"

    @property
    def target_words(self) -> int:
        return {"short": 500, "medium": 1000, "long": 2000}[self.value]


class ContentStatus(StrEnum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


class SubscriptionPlan(StrEnum):
    FREE = "FREE"
    STARTER = "STARTER"
    PROFESSIONAL = "PROFESSIONAL"
    ENTERPRISE = "ENTERPRISE"


class SubscriptionStatus(StrEnum):
    ACTIVE = "ACTIVE"
    CANCELED = "CANCELED"
    PAST_DUE = "PAST_DUE"
    TRIALING = "TRIALING"


# Capability each job type is executed with
JOB_CAPABILITY: dict[JobType, Capability] = {
    JobType.VIDEO: Capability.VIDEO,
    JobType.BLOG: Capability.TEXT,
    JobType.SOCIAL: Capability.TEXT,
}
