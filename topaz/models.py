"""
Data models (Pydantic)
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Any, Dict
import datetime as dt
from enum import Enum

from .config import app_config


class CompetitionStatus(str, Enum):
    """Competition status"""
    ACTIVE = "active"
    COMPLETED = "completed"


class MedalLevel(str, Enum):
    """Season medal level"""
    NONE = "None"
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"


class AbilityLevel(str, Enum):
    """Years of training"""
    BEGINNING = "Beginning"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class ChangeType(str, Enum):
    """Row change kinds, as named by the Supabase change feed"""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# =====================================================
# Competitions
# =====================================================

class CompetitionCreate(BaseModel):
    """New competition"""
    name: str = Field(..., min_length=1, description="Competition name")
    date: Optional[dt.date] = Field(None, description="Competition date")
    venue: Optional[str] = Field(None, description="Venue")
    judges_count: Optional[int] = Field(None, ge=1, le=app_config.max_judges_count, description="Number of judges")
    judge_names: List[str] = Field(default_factory=list, description="Judge display names")
    status: CompetitionStatus = Field(default=CompetitionStatus.ACTIVE)
    is_test: Optional[bool] = Field(None, description="Test run flag")

    class Config:
        use_enum_values = True


class CompetitionUpdate(BaseModel):
    """Partial competition update"""
    name: Optional[str] = None
    date: Optional[dt.date] = None
    venue: Optional[str] = None
    judges_count: Optional[int] = Field(None, ge=1, le=app_config.max_judges_count)
    judge_names: Optional[List[str]] = None
    status: Optional[CompetitionStatus] = None
    is_test: Optional[bool] = None

    class Config:
        use_enum_values = True


class Competition(BaseModel):
    """Stored competition"""
    id: str
    name: str
    date: Optional[dt.date] = None
    venue: Optional[str] = None
    judges_count: int = 3
    judge_names: List[str] = Field(default_factory=list)
    status: str = CompetitionStatus.ACTIVE.value
    is_test: Optional[bool] = None
    is_archived: Optional[bool] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class CompetitionStats(BaseModel):
    """Row counts for one competition"""
    total_entries: int = 0
    total_scores: int = 0
    total_categories: int = 0


# =====================================================
# Categories / age divisions
# =====================================================

class CategoryCreate(BaseModel):
    """New category. `description` may carry a variety level: "Jazz | Variety A" """
    competition_id: str
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_special_category: bool = False


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_special_category: Optional[bool] = None


class Category(BaseModel):
    """Stored category"""
    id: str
    competition_id: str
    name: str
    description: Optional[str] = None
    is_special_category: bool = False
    created_at: Optional[dt.datetime] = None


class AgeDivisionCreate(BaseModel):
    """New age division"""
    competition_id: str
    name: str = Field(..., min_length=1)
    min_age: Optional[int] = Field(None, ge=0)
    max_age: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None


class AgeDivisionUpdate(BaseModel):
    name: Optional[str] = None
    min_age: Optional[int] = Field(None, ge=0)
    max_age: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None


class AgeDivision(BaseModel):
    """Stored age division"""
    id: str
    competition_id: str
    name: str
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    description: Optional[str] = None
    created_at: Optional[dt.datetime] = None


# =====================================================
# Entries
# =====================================================

class GroupMember(BaseModel):
    """Dancer in a group entry"""
    name: str
    age: Optional[int] = None


class EntryCreate(BaseModel):
    """New entry"""
    competition_id: str
    entry_number: Optional[int] = Field(None, ge=1, description="Assigned when omitted")
    competitor_name: str = Field(..., min_length=1)
    category_id: Optional[str] = None
    age_division_id: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)
    dance_type: Optional[str] = Field(None, description="Division type (Solo, Duo/Trio, ...)")
    ability_level: Optional[AbilityLevel] = None
    is_medal_program: bool = False
    medal_points: int = 0
    current_medal_level: MedalLevel = MedalLevel.NONE
    group_members: List[GroupMember] = Field(default_factory=list)
    studio_name: Optional[str] = None
    teacher_name: Optional[str] = None
    photo_url: Optional[str] = None

    class Config:
        use_enum_values = True


class EntryUpdate(BaseModel):
    entry_number: Optional[int] = Field(None, ge=1)
    competitor_name: Optional[str] = None
    category_id: Optional[str] = None
    age_division_id: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)
    dance_type: Optional[str] = None
    ability_level: Optional[AbilityLevel] = None
    is_medal_program: Optional[bool] = None
    group_members: Optional[List[GroupMember]] = None
    studio_name: Optional[str] = None
    teacher_name: Optional[str] = None
    photo_url: Optional[str] = None

    class Config:
        use_enum_values = True


class Entry(BaseModel):
    """Stored entry"""
    id: str
    competition_id: str
    entry_number: Optional[int] = None
    competitor_name: str
    category_id: Optional[str] = None
    age_division_id: Optional[str] = None
    age: Optional[int] = None
    dance_type: Optional[str] = None
    ability_level: Optional[str] = None
    is_medal_program: bool = False
    medal_points: int = 0
    current_medal_level: str = MedalLevel.NONE.value
    group_members: List[GroupMember] = Field(default_factory=list)
    studio_name: Optional[str] = None
    teacher_name: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


# =====================================================
# Scores
# =====================================================

class ScoreSubmit(BaseModel):
    """One judge's sub-scores for one entry (validated by the calculator)"""
    competition_id: str
    entry_id: str
    judge_number: int = Field(..., ge=1)
    technique: Any = None
    creativity: Any = None
    presentation: Any = None
    appearance: Any = None
    notes: Optional[str] = None


class ScoreUpdate(BaseModel):
    technique: Optional[float] = None
    creativity: Optional[float] = None
    presentation: Optional[float] = None
    appearance: Optional[float] = None
    notes: Optional[str] = None


class Score(BaseModel):
    """Stored judge score"""
    id: str
    competition_id: str
    entry_id: str
    judge_number: int
    technique: float
    creativity: float
    presentation: float
    appearance: float
    total_score: float
    notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


# =====================================================
# Admin filters
# =====================================================

class AdminFilters(BaseModel):
    """Filter configuration shared by every judge screen"""
    category_filter: Optional[str] = Field(None, description="Category id, None = all")
    division_type_filter: str = Field(default="all")
    age_division_filter: Optional[str] = Field(None, description="Age division id, None = all")
    ability_filter: str = Field(default="all")


# =====================================================
# Medals
# =====================================================

class MedalParticipant(BaseModel):
    """Season medal points for one dancer"""
    id: Optional[str] = None
    participant_name: str
    total_points: int = 0
    current_medal_level: str = MedalLevel.NONE.value


class MedalAward(BaseModel):
    """One season point credited for a first place"""
    id: Optional[str] = None
    participant_name: str
    competition_id: str
    entry_id: str
    points_awarded: int = 1
    awarded_at: Optional[dt.datetime] = None


class LeaderboardEntry(MedalParticipant):
    """Leaderboard row"""
    rank: int
    points_to_next: int = 0
    next_level: str = ""


class MedalAwardSummary(BaseModel):
    """Result of awarding one competition's medal points"""
    total_awarded: int = 0
    first_place_count: int = 0
    summary: List[Dict[str, Any]] = Field(default_factory=list)
    message: Optional[str] = None


# =====================================================
# Results
# =====================================================

class RankedEntry(BaseModel):
    """Entry with its computed result"""
    id: str
    entry_number: Optional[int] = None
    competitor_name: str
    category_id: Optional[str] = None
    age_division_id: Optional[str] = None
    ability_level: Optional[str] = None
    dance_type: Optional[str] = None
    average_score: float = 0.0
    judges_scored: int = 0
    rank: Optional[int] = None
    category_rank: Optional[int] = None


class BulkResult(BaseModel):
    """Outcome of a bulk operation"""
    success: List[Any] = Field(default_factory=list)
    failed: List[Dict[str, Any]] = Field(default_factory=list)
    message: Optional[str] = None
