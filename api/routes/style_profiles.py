"""
Style Profile Routes: Per-Creator Style Configuration

The profile is created with defaults on first access, so GET never
answers 404 for a creator that exists.
"""

from fastapi import APIRouter, Depends, Query

from api.schemas import EmojiRequest, MappingEntryRequest, SeparatorRequest
from container import get_style_profile_service_dependency
from core.models import CreatorStyle, StyleProfile
from security import get_current_principal
from services.style_profile_service import StyleProfileService

router = APIRouter(
    prefix="/creators/{creator_id}/style",
    tags=["Style Profiles"],
    dependencies=[Depends(get_current_principal)],
)


@router.get("", response_model=CreatorStyle, summary="Get (or create) the style profile")
async def get_style_profile(
    creator_id: int,
    service: StyleProfileService = Depends(get_style_profile_service_dependency),
) -> CreatorStyle:
    return await service.get_or_create(creator_id)


@router.put("", response_model=CreatorStyle, summary="Replace the style profile")
async def replace_style_profile(
    creator_id: int,
    payload: StyleProfile,
    service: StyleProfileService = Depends(get_style_profile_service_dependency),
) -> CreatorStyle:
    return await service.update_profile(creator_id, payload)


@router.post("/reset", response_model=CreatorStyle, summary="Reset to defaults")
async def reset_style_profile(
    creator_id: int,
    service: StyleProfileService = Depends(get_style_profile_service_dependency),
) -> CreatorStyle:
    return await service.reset_to_defaults(creator_id)


# ============================================================================
# VOCABULARY EDITS
# ============================================================================


@router.post("/emojis", response_model=CreatorStyle)
async def add_emoji(
    creator_id: int,
    payload: EmojiRequest,
    service: StyleProfileService = Depends(get_style_profile_service_dependency),
) -> CreatorStyle:
    return await service.add_emoji(creator_id, payload.emoji)


@router.delete("/emojis", response_model=CreatorStyle)
async def remove_emoji(
    creator_id: int,
    emoji: str = Query(...),
    service: StyleProfileService = Depends(get_style_profile_service_dependency),
) -> CreatorStyle:
    return await service.remove_emoji(creator_id, emoji)


@router.post("/separators", response_model=CreatorStyle)
async def add_separator(
    creator_id: int,
    payload: SeparatorRequest,
    service: StyleProfileService = Depends(get_style_profile_service_dependency),
) -> CreatorStyle:
    return await service.add_separator(creator_id, payload.separator)


@router.delete("/separators", response_model=CreatorStyle)
async def remove_separator(
    creator_id: int,
    separator: str = Query(...),
    service: StyleProfileService = Depends(get_style_profile_service_dependency),
) -> CreatorStyle:
    return await service.remove_separator(creator_id, separator)


@router.post("/replacements", response_model=CreatorStyle)
async def add_replacement(
    creator_id: int,
    payload: MappingEntryRequest,
    service: StyleProfileService = Depends(get_style_profile_service_dependency),
) -> CreatorStyle:
    return await service.add_replacement(creator_id, payload.key, payload.value)


@router.delete("/replacements", response_model=CreatorStyle)
async def remove_replacement(
    creator_id: int,
    key: str = Query(...),
    service: StyleProfileService = Depends(get_style_profile_service_dependency),
) -> CreatorStyle:
    return await service.remove_replacement(creator_id, key)


@router.post("/abbreviations", response_model=CreatorStyle)
async def add_abbreviation(
    creator_id: int,
    payload: MappingEntryRequest,
    service: StyleProfileService = Depends(get_style_profile_service_dependency),
) -> CreatorStyle:
    return await service.add_abbreviation(creator_id, payload.key, payload.value)


@router.delete("/abbreviations", response_model=CreatorStyle)
async def remove_abbreviation(
    creator_id: int,
    key: str = Query(...),
    service: StyleProfileService = Depends(get_style_profile_service_dependency),
) -> CreatorStyle:
    return await service.remove_abbreviation(creator_id, key)
