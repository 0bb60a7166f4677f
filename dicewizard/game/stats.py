from typing import Dict, Iterable
from dataclasses import dataclass, field, asdict

ABILITIES = ("strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma")

SKILLS = {
    "acrobatics": "dexterity",
    "animalHandling": "wisdom",
    "arcana": "intelligence",
    "athletics": "strength",
    "deception": "charisma",
    "history": "intelligence",
    "insight": "wisdom",
    "intimidation": "charisma",
    "investigation": "intelligence",
    "medicine": "wisdom",
    "nature": "intelligence",
    "perception": "wisdom",
    "performance": "charisma",
    "persuasion": "charisma",
    "religion": "intelligence",
    "sleightOfHand": "dexterity",
    "stealth": "dexterity",
    "survival": "wisdom",
}

@dataclass
class DerivedStats:
    modifiers: Dict[str, int]
    proficiency_bonus: int
    initiative: int
    passive_perception: int
    skills: Dict[str, int] = field(default_factory=dict)
    saving_throws: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


class StatCalculator:
    """5e derived values, recomputed from stored fields on every read"""

    @staticmethod
    def ability_modifier(score: int) -> int:
        return (score - 10) // 2

    @staticmethod
    def proficiency_bonus(level: int) -> int:
        return (max(level, 1) - 1) // 4 + 2

    @classmethod
    def derive(cls, scores: Dict[str, int], level: int,
               skill_proficiencies: Iterable[str] = (), saving_throw_proficiencies: Iterable[str] = ()) -> DerivedStats:
        modifiers = {ability: cls.ability_modifier(scores.get(ability, 10)) for ability in ABILITIES}
        bonus = cls.proficiency_bonus(level)
        proficient_skills = set(skill_proficiencies or ())
        proficient_saves = set(saving_throw_proficiencies or ())

        skills = {
            skill: modifiers[ability] + (bonus if skill in proficient_skills else 0)
            for skill, ability in SKILLS.items()
        }
        saves = {
            ability: modifiers[ability] + (bonus if ability in proficient_saves else 0)
            for ability in ABILITIES
        }
        passive = 10 + modifiers["wisdom"]
        if "perception" in proficient_skills:
            passive += bonus

        return DerivedStats(
            modifiers=modifiers,
            proficiency_bonus=bonus,
            initiative=modifiers["dexterity"],
            passive_perception=passive,
            skills=skills,
            saving_throws=saves,
        )

    @classmethod
    def for_character(cls, char) -> DerivedStats:
        scores = {ability: getattr(char, ability) for ability in ABILITIES}
        return cls.derive(scores, char.level, char.skill_proficiencies or (), char.saving_throw_proficiencies or ())
