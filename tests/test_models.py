"""Tests for Pydantic models."""

import json

import pytest
from pydantic import ValidationError

from cardvault.models import CardAsset, KPIs, Profile, Score, Snapshot, VaultEntry


class TestKPIs:
    def test_wire_aliases(self):
        kpis = KPIs.model_validate({"followers": 10, "avgEngPerPost": 2.5, "velocity7d": 3})
        assert kpis.avg_eng_per_post == 2.5
        assert kpis.velocity_7d == 3

    def test_populate_by_name(self):
        kpis = KPIs(avg_eng_per_post=4, velocity_7d=1)
        dumped = kpis.model_dump(by_alias=True)
        assert dumped["avgEngPerPost"] == 4
        assert dumped["velocity7d"] == 1

    def test_negative_values_allowed(self):
        """The scorer clamps, so the model does not reject."""
        assert KPIs(followers=-1).followers == -1

    def test_frozen(self):
        kpis = KPIs(followers=1)
        with pytest.raises(ValidationError):
            kpis.followers = 2


class TestScore:
    def test_create(self):
        score = Score(value=69, tier="gold")
        assert score.formula_version == "v1"
        assert score.model_dump(by_alias=True)["formulaVersion"] == "v1"

    def test_value_range(self):
        with pytest.raises(ValidationError):
            Score(value=101, tier="mythic")
        with pytest.raises(ValidationError):
            Score(value=-1, tier="bronze")

    def test_invalid_tier(self):
        with pytest.raises(ValidationError, match="tier"):
            Score(value=50, tier="diamond")


class TestProfile:
    def test_defaults(self):
        profile = Profile(username="jack")
        assert profile.platform == "x"
        assert len(profile.id) == 36
        assert profile.created_at

    def test_invalid_platform(self):
        with pytest.raises(ValidationError, match="platform"):
            Profile(username="jack", platform="myspace")


class TestSnapshot:
    def test_get_tags(self):
        snap = Snapshot(
            profile_id="p1",
            captured_at="2024-01-31T23:59:00+00:00",
            kpis=KPIs(),
            score=Score(value=0, tier="bronze"),
            provenance={"tags": ["genesis", "foil"]},
            card_number=1,
        )
        assert snap.get_tags() == ["genesis", "foil"]
        assert snap.captured_at_dt().day == 31

    def test_card_number_positive(self):
        with pytest.raises(ValidationError):
            Snapshot(
                profile_id="p1",
                captured_at="2024-01-01T00:00:00+00:00",
                kpis=KPIs(),
                score=Score(value=0, tier="bronze"),
                card_number=0,
            )


class TestCardAsset:
    def test_invalid_format(self):
        with pytest.raises(ValidationError, match="format"):
            CardAsset(snapshot_id="s1", format="gif", url="/x.gif")


class TestVaultEntry:
    def test_default_visibility(self):
        entry = VaultEntry(snapshot_id="s1")
        assert entry.visibility == "public"
        assert entry.tags == []

    def test_invalid_visibility(self):
        with pytest.raises(ValidationError, match="visibility"):
            VaultEntry(snapshot_id="s1", visibility="friends")

    def test_serialize(self):
        entry = VaultEntry(snapshot_id="s1", tags=["foil"])
        assert json.loads(entry.model_dump_json())["tags"] == ["foil"]
