"""
TOPAZ scoring service settings

Settings are read from the environment (and `.env`) once at import time.
"""
from typing import List

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv()


class SupabaseConfig(BaseSettings):
    """Supabase connection"""

    supabase_url: str = Field(default="", description="Supabase Project URL")
    supabase_key: str = Field(default="", description="Supabase anon key")

    class Config:
        env_prefix = ""
        case_sensitive = False


class AppConfig(BaseSettings):
    """Application settings"""

    title: str = "TOPAZ 2.0 Scoring"
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="HTTP port")

    default_judges_count: int = Field(default=3, description="Judges per new competition")
    max_judges_count: int = Field(default=10, description="Upper bound on judges")
    leaderboard_size: int = Field(default=20, description="Season leaderboard rows")

    log_level: str = Field(default="INFO", description="stderr log level")
    log_dir: str = Field(default="logs", description="Rotated log file directory")

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    class Config:
        env_prefix = "TOPAZ_"
        case_sensitive = False


class PhotoConfig(BaseSettings):
    """Entry photo storage and compression"""

    bucket_name: str = Field(default="entry-photos", description="Storage bucket")
    max_size_mb: float = Field(default=1.0, description="Max compressed size (MB)")
    max_width_or_height: int = Field(default=1920, description="Longest edge (px)")
    initial_quality: int = Field(default=90, description="First JPEG quality tried")
    min_quality: int = Field(default=40, description="Lowest JPEG quality tried")
    cache_control: str = Field(default="3600", description="Cache-Control max-age")

    class Config:
        env_prefix = "TOPAZ_PHOTO_"
        case_sensitive = False


class RealtimeConfig(BaseSettings):
    """Change feed settings"""

    # "local": events come from this process's own writes
    # "supabase": events come from Supabase postgres_changes
    source: str = Field(default="local", description="Change feed source")
    queue_size: int = Field(default=256, description="Per-subscriber queue size")
    event_log_size: int = Field(default=1000, description="Recent events kept")

    class Config:
        env_prefix = "TOPAZ_REALTIME_"
        case_sensitive = False


# Global settings instances
supabase_config = SupabaseConfig()
app_config = AppConfig()
photo_config = PhotoConfig()
realtime_config = RealtimeConfig()


# =====================================================
# Scoring rules
# =====================================================

SCORE_FIELDS = ["technique", "creativity", "presentation", "appearance"]
MAX_SUBSCORE = 25
MAX_TOTAL_SCORE = 100
MAX_DECIMAL_PLACES = 2

# Season medal thresholds (points needed)
MEDAL_THRESHOLDS = [
    ("Gold", 50),
    ("Silver", 35),
    ("Bronze", 25),
]

ABILITY_LEVEL_DESCRIPTIONS = {
    "Beginning": "Beginning (Less than 2 years)",
    "Intermediate": "Intermediate (2-4 years)",
    "Advanced": "Advanced (5+ years)",
}

DIVISION_TYPES = ["Solo", "Duo/Trio", "Small Group", "Large Group", "Production"]


# Supabase tables
class Tables:
    """Supabase table names"""

    COMPETITIONS = "competitions"
    CATEGORIES = "categories"
    AGE_DIVISIONS = "age_divisions"
    ENTRIES = "entries"
    SCORES = "scores"
    ADMIN_FILTERS = "admin_filters"
    MEDAL_PARTICIPANTS = "medal_participants"
    MEDAL_AWARDS = "medal_awards"
