"""Tests for fingerprint.py: re-upload detection hash."""
import hashlib
import logging

from conftest import BASE_TS, DAY_MS, HOUR_MS, build_conversation
from podtekst_analytics import fingerprint
from podtekst_analytics.fingerprint import compute_fingerprint, fingerprint_conversation, _rolling_hash_hex

START_OF_DAY = 1_704_067_200_000  # 2024-01-01T00:00:00Z


class TestComputeFingerprint:
    def test_known_digest(self):
        """SHA-256 over compact sorted-key JSON of the normalized payload."""
        payload = '{"participants":["ann","bob"],"platform":"messenger","startDay":1704067200000}'
        expected = hashlib.sha256(payload.encode("utf-8")).hexdigest()
        assert compute_fingerprint(["Bob", "Ann"], "messenger", BASE_TS) == expected

    def test_lowercase_hex_length(self):
        fp = compute_fingerprint(["Ann"], "whatsapp", BASE_TS)
        assert len(fp) == 64
        assert fp == fp.lower()
        int(fp, 16)

    def test_participant_order_case_and_whitespace_ignored(self):
        a = compute_fingerprint(["Ann", "Bob"], "messenger", BASE_TS)
        b = compute_fingerprint(["  bob", "ANN  "], "messenger", BASE_TS)
        assert a == b

    def test_duplicate_names_collapse(self):
        assert compute_fingerprint(["Ann", "ann "], "telegram", BASE_TS) == \
            compute_fingerprint(["ann"], "telegram", BASE_TS)

    def test_same_utc_day_same_fingerprint(self):
        morning = compute_fingerprint(["Ann", "Bob"], "messenger", START_OF_DAY)
        night = compute_fingerprint(["Ann", "Bob"], "messenger", START_OF_DAY + DAY_MS - 1)
        assert morning == night

    def test_next_day_differs(self):
        today = compute_fingerprint(["Ann", "Bob"], "messenger", START_OF_DAY + HOUR_MS)
        tomorrow = compute_fingerprint(["Ann", "Bob"], "messenger", START_OF_DAY + DAY_MS)
        assert today != tomorrow

    def test_platform_is_part_of_identity(self):
        assert compute_fingerprint(["Ann", "Bob"], "messenger", BASE_TS) != \
            compute_fingerprint(["Ann", "Bob"], "whatsapp", BASE_TS)


class TestFallbackHash:
    def test_rolling_hash_values(self):
        assert _rolling_hash_hex("") == "00000000"
        assert _rolling_hash_hex("a") == "00000061"
        assert _rolling_hash_hex("ab") == format(97 * 31 + 98, "08x")

    def test_wraps_to_32_bits(self):
        value = _rolling_hash_hex("x" * 200)
        assert len(value) == 8
        assert int(value, 16) <= 0xFFFFFFFF

    def test_fallback_when_sha256_unavailable(self, monkeypatch, caplog):
        """An unusable SHA-256 gives an 8-char deterministic hash and a warning, never an error."""
        def broken_sha256(*args, **kwargs):
            raise ValueError("unsupported hash type sha256")

        monkeypatch.setattr(fingerprint.hashlib, "sha256", broken_sha256)
        with caplog.at_level(logging.WARNING, logger="podtekst_analytics.fingerprint"):
            first = compute_fingerprint(["Ann", "Bob"], "messenger", BASE_TS)
            second = compute_fingerprint(["bob", "ann"], "messenger", BASE_TS)

        assert len(first) == 8
        assert first == second
        assert "falling back" in caplog.text


class TestFingerprintConversation:
    def test_uses_first_message_timestamp(self, duo_conversation):
        assert fingerprint_conversation(duo_conversation) == \
            compute_fingerprint(["Ann", "Bob"], "messenger", BASE_TS)

    def test_empty_conversation_uses_date_range(self):
        conversation = build_conversation(["Ann", "Bob"], [])
        assert fingerprint_conversation(conversation) == compute_fingerprint(["Ann", "Bob"], "messenger", 0)
