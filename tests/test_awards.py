"""Tests for awards.py: group chat awards."""
from conftest import BASE_TS, DAY_MS, HOUR_MS, MINUTE_MS, build_conversation, build_quant
from podtekst_analytics.awards import AWARD_COLORS, build_awards, format_response_time
from podtekst_analytics.config import Settings
from podtekst_analytics.models.quantitative import LongestSilence


def _group(names):
    return build_conversation(list(names), [(n, BASE_TS + i * MINUTE_MS, "x") for i, n in enumerate(names)])


def _by_title(awards):
    return {a.title: a for a in awards}


class TestBuildAwards:
    def test_two_person_chat_gets_no_awards(self):
        quant = build_quant(per_person={"Ann": {"total_messages": 50}, "Bob": {"total_messages": 10}})
        assert build_awards(quant, _group(["Ann", "Bob"])) == []

    def test_repeated_names_count_once(self):
        """A two-person chat listing someone twice is still too small for awards."""
        conversation = build_conversation(
            ["Ann", "Ann", "Bob"], [("Ann", BASE_TS, "hi"), ("Bob", BASE_TS + MINUTE_MS, "yo")])
        quant = build_quant(per_person={"Ann": {"total_messages": 1}, "Bob": {"total_messages": 1}})
        assert build_awards(quant, conversation) == []

    def test_thresholds_follow_given_settings(self):
        quant = build_quant(per_person={
            "Ann": {"total_messages": 2, "reactions_given": 2}, "Bob": {"total_messages": 1},
        })
        custom = Settings(AWARD_MIN_PARTICIPANTS=2, AWARD_SIMP_MIN_REACTIONS=1)
        awards = _by_title(build_awards(quant, _group(["Ann", "Bob"]), custom))
        assert awards["Most Active"].winner == "Ann"
        assert awards["Biggest Simp"].stat == "2 reactions"

    def test_most_active_always_present(self, group_names):
        quant = build_quant(per_person={
            "Ann": {"total_messages": 10}, "Bob": {"total_messages": 1_234}, "Cleo": {"total_messages": 5},
        })
        awards = build_awards(quant, _group(group_names))
        assert [a.title for a in awards] == ['Most Active']
        assert awards[0].winner == "Bob"
        assert awards[0].stat == "1,234 msgs"
        assert awards[0].color == AWARD_COLORS[0]

    def test_ties_go_to_first_participant(self, group_names):
        quant = build_quant(per_person={name: {"total_messages": 7} for name in group_names})
        assert build_awards(quant, _group(group_names))[0].winner == "Ann"

    def test_slowest_responder(self, group_names):
        quant = build_quant(timing_per_person={"Ann": 60_000, "Bob": 2 * HOUR_MS, "Cleo": 0})
        award = _by_title(build_awards(quant, _group(group_names)))['Slowest Responder']
        assert award.winner == "Bob"
        assert award.stat == "avg. 2.0h"

    def test_slowest_responder_needs_timing(self, group_names):
        zero = build_quant(timing_per_person={name: 0 for name in group_names})
        assert 'Slowest Responder' not in _by_title(build_awards(build_quant(), _group(group_names)))
        assert 'Slowest Responder' not in _by_title(build_awards(zero, _group(group_names)))

    def test_biggest_simp_threshold(self, group_names):
        at = build_quant(per_person={"Cleo": {"reactions_given": 5}})
        above = build_quant(per_person={"Cleo": {"reactions_given": 6}})
        assert 'Biggest Simp' not in _by_title(build_awards(at, _group(group_names)))
        award = _by_title(build_awards(above, _group(group_names)))['Biggest Simp']
        assert (award.winner, award.stat) == ("Cleo", "6 reactions")

    def test_ghost_supreme_needs_a_full_day(self, group_names):
        short = build_quant(longest_silence=LongestSilence(duration_ms=23 * HOUR_MS, last_sender="Bob"))
        long = build_quant(longest_silence=LongestSilence(duration_ms=2 * DAY_MS + HOUR_MS, last_sender="Bob"))
        assert 'Ghost Supreme' not in _by_title(build_awards(short, _group(group_names)))
        award = _by_title(build_awards(long, _group(group_names)))['Ghost Supreme']
        assert (award.winner, award.stat) == ("Bob", "2 days of silence")

    def test_emoji_monarch_and_night_owl(self, group_names):
        quant = build_quant(
            per_person={"Ann": {"emoji_count": 21}, "Bob": {"emoji_count": 20}},
            late_night={"Ann": 3, "Bob": 10, "Cleo": 11},
        )
        awards = _by_title(build_awards(quant, _group(group_names)))
        assert awards['Emoji Monarch'].winner == "Ann"
        assert awards['Night Owl'].winner == "Cleo"
        assert awards['Night Owl'].stat == "11 after 22:00"

    def test_award_order(self, group_names):
        quant = build_quant(
            per_person={"Ann": {"total_messages": 3, "reactions_given": 9, "emoji_count": 30}},
            timing_per_person={"Bob": 5 * MINUTE_MS},
            longest_silence=LongestSilence(duration_ms=3 * DAY_MS, last_sender="Cleo"),
            late_night={"Cleo": 12},
        )
        titles = [a.title for a in build_awards(quant, _group(group_names))]
        assert titles == ['Most Active', 'Slowest Responder', 'Biggest Simp', 'Ghost Supreme',
                          'Emoji Monarch', 'Night Owl']


class TestFormatResponseTime:
    def test_units(self):
        assert format_response_time(42_000) == "42s"
        assert format_response_time(5 * MINUTE_MS) == "5min"
        assert format_response_time(90 * MINUTE_MS) == "1.5h"

    def test_halves_round_up(self):
        assert format_response_time(2_500) == "3s"
        assert format_response_time(2.5 * MINUTE_MS) == "3min"
        assert format_response_time(1_400) == "1s"
