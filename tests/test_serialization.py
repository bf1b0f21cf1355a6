"""Tests for models/serialization.py and snapshot migration detection."""
from podtekst_analytics.metrics import person_value, timing_count, median_response_ms
from podtekst_analytics.models.quantitative import QuantitativeAnalysis, needs_recompute
from podtekst_analytics.models.serialization import (
    quantitative_from_dict,
    quantitative_to_dict,
    to_camel,
    to_snake,
)


class TestNames:
    def test_camel_and_snake(self):
        assert to_camel("median_response_time_ms") == "medianResponseTimeMs"
        assert to_snake("medianResponseTimeMs") == "median_response_time_ms"
        assert to_snake("perPerson") == "per_person"


class TestQuantitativeFromDict:
    def test_partial_snapshot(self):
        """Older snapshots miss timing maps, heatmap and _version entirely."""
        quant = quantitative_from_dict({
            "perPerson": {"Ann": {"totalMessages": 12, "emojiCount": 3, "someFutureField": 1}},
            "timing": {"perPerson": {"Ann": {"medianResponseTimeMs": 4000}}},
            "engagement": {"totalSessions": 2},
        })
        assert quant.per_person["Ann"].total_messages == 12
        assert quant.timing.late_night_messages is None
        assert quant.timing.longest_silence is None
        assert quant.heatmap is None
        assert quant.version is None
        assert timing_count(quant, 'late_night_messages', "Ann") == 0
        assert median_response_ms(quant, "Ann") == 4000
        assert person_value(quant, "Bob", 'total_messages') == 0

    def test_version_key(self):
        data = quantitative_to_dict(QuantitativeAnalysis(version=2))
        assert data["_version"] == 2
        assert "version" not in data
        assert quantitative_from_dict(data).version == 2

    def test_none_fields_omitted(self):
        data = quantitative_to_dict(QuantitativeAnalysis())
        assert "heatmap" not in data
        assert "_version" not in data


class TestNeedsRecompute:
    def test_versions(self):
        assert needs_recompute(QuantitativeAnalysis()) is True
        assert needs_recompute(QuantitativeAnalysis(version=1)) is True
        assert needs_recompute(QuantitativeAnalysis(version=2)) is False
