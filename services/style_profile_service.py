"""
Style Profile Service: Business Logic Layer for Creator Style Profiles

Encapsulates profile operations including:
- Lazy get-or-create from the single default constructor
- Whole-object validated replacement
- Reset to defaults
- Incremental edits of the emoji, separator, replacement and abbreviation vocabularies

Design Pattern: Service Layer with Repository Pattern
"""

from typing import Any, Callable, Dict, Union

from loguru import logger

from core.exceptions import ValidationError
from core.models import CreatorStyle, StyleProfile, coerce_model, default_style_profile
from knowledge.style_profile_repository import StyleProfileRepository


def _require_value(field: str, value: Any) -> str:
    if value is None or not str(value).strip():
        raise ValidationError.for_field(field, f"{field} cannot be empty")
    return str(value)


class StyleProfileService:
    """
    Service layer for style profiles.

    A profile never has to be created explicitly: the first read or write
    materializes it from ``default_style_profile()``.
    """

    def __init__(self, style_profile_repository: StyleProfileRepository):
        self.style_profile_repository = style_profile_repository
        logger.debug("StyleProfileService initialized")

    async def get_or_create(self, creator_id: int) -> CreatorStyle:
        """
        Return the creator's profile, creating the default one on first access.

        Raises:
            CreatorNotFoundError: If the creator does not exist
        """
        profile, created = await self.style_profile_repository.get_or_create(
            creator_id, default_style_profile()
        )
        if created:
            logger.info(f"Style profile auto-created for creator {creator_id}")
        return profile

    async def update_profile(
        self, creator_id: int, profile: Union[StyleProfile, Dict[str, Any]]
    ) -> CreatorStyle:
        """
        Replace the whole profile after validating it.

        On rejection nothing is written, so the stored profile is unchanged.

        Raises:
            ValidationError: Listing every violated field
            CreatorNotFoundError: If the creator does not exist
        """
        validated = coerce_model(StyleProfile, profile)
        return await self.style_profile_repository.replace(creator_id, validated)

    async def reset_to_defaults(self, creator_id: int) -> CreatorStyle:
        logger.info(f"Resetting style profile of creator {creator_id} to defaults")
        return await self.style_profile_repository.replace(creator_id, default_style_profile())

    # =========================================================================
    # INCREMENTAL EDITS
    # =========================================================================

    async def _edit(
        self, creator_id: int, mutate: Callable[[Dict[str, Any]], bool]
    ) -> CreatorStyle:
        """Read, apply ``mutate`` to one field, then write back if it changed."""
        current = await self.get_or_create(creator_id)
        data = current.profile().model_dump()
        if not mutate(data):
            return current
        return await self.update_profile(creator_id, data)

    @staticmethod
    def _set_adder(field: str, value: str) -> Callable[[Dict[str, Any]], bool]:
        def mutate(data: Dict[str, Any]) -> bool:
            if value in data[field]:
                return False
            data[field].append(value)
            return True

        return mutate

    @staticmethod
    def _set_remover(field: str, value: str) -> Callable[[Dict[str, Any]], bool]:
        def mutate(data: Dict[str, Any]) -> bool:
            if value not in data[field]:
                return False
            data[field].remove(value)
            return True

        return mutate

    @staticmethod
    def _map_setter(field: str, key: str, value: str) -> Callable[[Dict[str, Any]], bool]:
        def mutate(data: Dict[str, Any]) -> bool:
            if data[field].get(key) == value:
                return False
            data[field][key] = value
            return True

        return mutate

    @staticmethod
    def _map_remover(field: str, key: str) -> Callable[[Dict[str, Any]], bool]:
        def mutate(data: Dict[str, Any]) -> bool:
            return data[field].pop(key, None) is not None

        return mutate

    async def add_emoji(self, creator_id: int, emoji: str) -> CreatorStyle:
        emoji = _require_value("emoji", emoji)
        return await self._edit(creator_id, self._set_adder("approved_emojis", emoji))

    async def remove_emoji(self, creator_id: int, emoji: str) -> CreatorStyle:
        return await self._edit(creator_id, self._set_remover("approved_emojis", emoji))

    async def add_separator(self, creator_id: int, separator: str) -> CreatorStyle:
        separator = _require_value("separator", separator)
        return await self._edit(creator_id, self._set_adder("sentence_separators", separator))

    async def remove_separator(self, creator_id: int, separator: str) -> CreatorStyle:
        return await self._edit(creator_id, self._set_remover("sentence_separators", separator))

    async def add_replacement(self, creator_id: int, key: str, value: str) -> CreatorStyle:
        """Add or overwrite a text replacement."""
        key = _require_value("key", key)
        value = _require_value("value", value)
        return await self._edit(creator_id, self._map_setter("text_replacements", key, value))

    async def remove_replacement(self, creator_id: int, key: str) -> CreatorStyle:
        return await self._edit(creator_id, self._map_remover("text_replacements", key))

    async def add_abbreviation(self, creator_id: int, key: str, value: str) -> CreatorStyle:
        """Add or overwrite an abbreviation expansion."""
        key = _require_value("key", key)
        value = _require_value("value", value)
        return await self._edit(creator_id, self._map_setter("common_abbreviations", key, value))

    async def remove_abbreviation(self, creator_id: int, key: str) -> CreatorStyle:
        return await self._edit(creator_id, self._map_remover("common_abbreviations", key))


__all__ = ["StyleProfileService"]
