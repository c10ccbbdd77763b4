"""
Tests for environment settings
"""

import pytest
from pydantic import ValidationError

from topaz.config import AppConfig, PhotoConfig, RealtimeConfig, MEDAL_THRESHOLDS, SCORE_FIELDS, app_config
from topaz.models import CompetitionCreate


class TestSettings:
    """Tests for settings loaded from the environment"""

    def test_defaults(self):
        config = RealtimeConfig()
        assert config.source == "local"
        assert config.queue_size == 256

    def test_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("TOPAZ_DEFAULT_JUDGES_COUNT", "5")
        monkeypatch.setenv("TOPAZ_PHOTO_BUCKET_NAME", "showcase-photos")
        monkeypatch.setenv("TOPAZ_REALTIME_SOURCE", "supabase")

        assert AppConfig().default_judges_count == 5
        assert PhotoConfig().bucket_name == "showcase-photos"
        assert RealtimeConfig().source == "supabase"

    def test_scoring_rules(self):
        assert SCORE_FIELDS == ["technique", "creativity", "presentation", "appearance"]
        assert [threshold for _, threshold in MEDAL_THRESHOLDS] == [50, 35, 25]

    def test_judges_count_bounded_by_setting(self):
        assert CompetitionCreate(name="Spring", judges_count=app_config.max_judges_count).judges_count == app_config.max_judges_count
        with pytest.raises(ValidationError):
            CompetitionCreate(name="Spring", judges_count=app_config.max_judges_count + 1)
