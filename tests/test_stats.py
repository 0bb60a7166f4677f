"""
Tests for derived 5e character values
"""
import pytest

from dicewizard.game.stats import StatCalculator, SKILLS


@pytest.mark.parametrize("score,modifier", [(1, -5), (8, -1), (9, -1), (10, 0), (11, 0), (15, 2), (20, 5)])
def test_ability_modifier(score, modifier):
    assert StatCalculator.ability_modifier(score) == modifier


@pytest.mark.parametrize("level,bonus", [(0, 2), (1, 2), (4, 2), (5, 3), (9, 4), (13, 5), (17, 6), (20, 6)])
def test_proficiency_bonus(level, bonus):
    assert StatCalculator.proficiency_bonus(level) == bonus


def test_derive_applies_proficiencies():
    scores = {"strength": 16, "dexterity": 14, "constitution": 12, "intelligence": 8, "wisdom": 13, "charisma": 10}

    stats = StatCalculator.derive(scores, 5, ["perception", "athletics"], ["strength"])

    assert stats.proficiency_bonus == 3
    assert stats.initiative == 2
    assert stats.passive_perception == 10 + 1 + 3
    assert stats.skills["athletics"] == 3 + 3
    assert stats.skills["stealth"] == 2
    assert stats.skills["arcana"] == -1
    assert stats.saving_throws["strength"] == 6
    assert stats.saving_throws["wisdom"] == 1
    assert set(stats.skills) == set(SKILLS)


def test_missing_scores_default_to_ten():
    stats = StatCalculator.derive({}, 1)
    assert set(stats.modifiers.values()) == {0}
    assert stats.passive_perception == 10
    assert stats.to_dict()["proficiency_bonus"] == 2
