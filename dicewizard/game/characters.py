import logging
from typing import List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from dicewizard.database import as_utc
from dicewizard.errors import CharacterNotFound
from dicewizard.game.stats import StatCalculator
from dicewizard.metrics import CHARACTERS_TOTAL
from dicewizard.models import Character

logger = logging.getLogger(__name__)

# columns a client may write; everything else is server-owned
EDITABLE_FIELDS = (
    "name", "race", "char_class", "level", "background", "alignment", "experience_points",
    "strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma",
    "max_hp", "current_hp", "temp_hp", "armor_class", "speed", "hit_dice",
    "skill_proficiencies", "saving_throw_proficiencies", "features", "equipment", "notes",
)

DEFAULTS = {
    "level": 1,
    "strength": 10, "dexterity": 10, "constitution": 10,
    "intelligence": 10, "wisdom": 10, "charisma": 10,
    "max_hp": 10, "armor_class": 10, "speed": 30, "hit_dice": "1d8",
}


def character_view(char: Character) -> dict:
    data = {field: getattr(char, field) for field in EDITABLE_FIELDS}
    data.update({
        "id": char.id,
        "user_id": char.user_id,
        "created_at": as_utc(char.created_at),
        "updated_at": as_utc(char.updated_at),
        "derived": StatCalculator.for_character(char).to_dict(),
    })
    for field in ("skill_proficiencies", "saving_throw_proficiencies", "features", "equipment"):
        data[field] = list(data[field] or [])
    return data


class CharacterEngine:
    """Character sheets, visible only to the user who owns them"""

    @classmethod
    async def list_characters(cls, user_id: int, db: AsyncSession) -> List[Character]:
        result = await db.execute(
            select(Character).where(Character.user_id == user_id).order_by(Character.updated_at.desc(), Character.id.desc())
        )
        return list(result.scalars().all())

    @classmethod
    async def count_characters(cls, db: AsyncSession) -> int:
        return await db.scalar(select(func.count()).select_from(Character))

    @classmethod
    async def get_character(cls, character_id: int, user_id: int, db: AsyncSession) -> Character:
        char = await db.get(Character, character_id)
        if char is None or char.user_id != user_id:
            raise CharacterNotFound()
        return char

    @classmethod
    async def create_character(cls, user_id: int, data: dict, db: AsyncSession) -> Character:
        values = {field: data[field] for field in EDITABLE_FIELDS if data.get(field) is not None}
        for field, default in DEFAULTS.items():
            if not values.get(field):
                values[field] = default
        if not values.get("current_hp"):
            values["current_hp"] = values["max_hp"]

        char = Character(user_id=user_id, **values)
        db.add(char)
        await db.commit()
        CHARACTERS_TOTAL.inc()
        logger.info("Character %s created for user %s", char.id, user_id)
        return char

    @classmethod
    async def update_character(cls, character_id: int, user_id: int, data: dict, db: AsyncSession) -> Character:
        char = await cls.get_character(character_id, user_id, db)
        for field in EDITABLE_FIELDS:
            if data.get(field) is not None:
                setattr(char, field, data[field])
        await db.commit()
        return char

    @classmethod
    async def delete_character(cls, character_id: int, user_id: int, db: AsyncSession):
        char = await cls.get_character(character_id, user_id, db)
        await db.delete(char)
        await db.commit()
        CHARACTERS_TOTAL.dec()
        logger.info("Character %s deleted by user %s", character_id, user_id)
