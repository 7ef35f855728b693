"""
Payload Pulverizer — Narrative Catalogue Tests
================================================

What:  The shredder log catalogue and pick_shredder_log().
"""

import random

from pulverizer.services import narratives


class TestShredderLogs:
    """Tests for the shredder log catalogue."""

    def test_catalogue_holds_every_narrative(self):
        assert len(narratives.SHREDDER_LOGS) == 32

    def test_narratives_are_distinct_and_non_empty(self):
        assert len(set(narratives.SHREDDER_LOGS)) == len(narratives.SHREDDER_LOGS)
        for log in narratives.SHREDDER_LOGS:
            assert len(log) >= 3
            assert all(line.strip() for line in log)

    def test_catalogue_includes_the_countdown_narrative(self):
        boom = [log for log in narratives.SHREDDER_LOGS if "BOOM 💥" in log]
        assert len(boom) == 1
        assert boom[0][0] == "Payload acquired. This is what we've trained for."

    def test_pick_returns_a_catalogued_log_as_list(self):
        picked = narratives.pick_shredder_log(rng=random.Random(7))
        assert isinstance(picked, list)
        assert tuple(picked) in narratives.SHREDDER_LOGS

    def test_pick_is_deterministic_for_a_seeded_rng(self):
        first = narratives.pick_shredder_log(rng=random.Random(42))
        second = narratives.pick_shredder_log(rng=random.Random(42))
        assert first == second

    def test_pick_from_custom_catalogue(self):
        logs = [("only", "one", "choice")]
        assert narratives.pick_shredder_log(logs) == ["only", "one", "choice"]
