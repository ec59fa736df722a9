"""
Contact and family graph endpoints.

Every route is scoped to the account named by the X-Account-Id header and
delegates to the service tools in core.services.family_service.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from core.context import RequestContext
from core.services import family_service
from app.deps import get_request_context


router = APIRouter(prefix="/api/contacts", tags=["contacts"])

STATUS_CODES = {"not_found": 404, "error": 400}


class ContactCreateRequest(BaseModel):
    first_name: str
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    is_partial: bool = False


class NameUpdateRequest(BaseModel):
    first_name: str
    middle_name: Optional[str] = None
    last_name: Optional[str] = None


class FoodPreferencesRequest(BaseModel):
    food_preferences: Optional[str] = None


class BirthdayRequest(BaseModel):
    approximation: str
    date_of_birth: Optional[str] = None
    age: Optional[int] = None


class AvatarColorRequest(BaseModel):
    color: Optional[str] = None


class RelativeLinkRequest(BaseModel):
    """Link an existing contact by id, or a new partial contact by name."""

    contact_id: Optional[int] = None
    bilateral: bool = False
    first_name: Optional[str] = None
    last_name: Optional[str] = None


def _unwrap(result: dict) -> dict:
    status_code = STATUS_CODES.get(result.get("status"))
    if status_code is not None:
        raise HTTPException(status_code=status_code, detail=result)
    return result


# =============================================================================
# Contacts
# =============================================================================

@router.post("", status_code=201)
def create_contact(body: ContactCreateRequest, context: RequestContext = Depends(get_request_context)):
    return _unwrap(family_service.contact_create(**body.model_dump(), context=context))


@router.get("/{contact_id}")
def get_contact(contact_id: int, context: RequestContext = Depends(get_request_context)):
    return _unwrap(family_service.contact_get(contact_id=contact_id, context=context))


@router.patch("/{contact_id}/name")
def update_name(contact_id: int, body: NameUpdateRequest, context: RequestContext = Depends(get_request_context)):
    return _unwrap(family_service.contact_update_name(contact_id=contact_id, **body.model_dump(), context=context))


@router.put("/{contact_id}/food-preferences")
def update_food_preferences(
    contact_id: int,
    body: FoodPreferencesRequest,
    context: RequestContext = Depends(get_request_context),
):
    return _unwrap(
        family_service.contact_update_food_preferences(
            contact_id=contact_id,
            food_preferences=body.food_preferences,
            context=context,
        )
    )


@router.put("/{contact_id}/birthday")
def set_birthday(contact_id: int, body: BirthdayRequest, context: RequestContext = Depends(get_request_context)):
    return _unwrap(family_service.contact_set_birthday(contact_id=contact_id, **body.model_dump(), context=context))


@router.put("/{contact_id}/avatar-color")
def set_avatar_color(contact_id: int, body: AvatarColorRequest, context: RequestContext = Depends(get_request_context)):
    return _unwrap(family_service.contact_set_avatar_color(contact_id=contact_id, color=body.color, context=context))


# =============================================================================
# Family graph
# =============================================================================

@router.get("/{contact_id}/potential-relatives")
def potential_relatives(contact_id: int, context: RequestContext = Depends(get_request_context)):
    return _unwrap(family_service.contact_potential_relatives(contact_id=contact_id, context=context))


@router.get("/{contact_id}/family")
def family(contact_id: int, context: RequestContext = Depends(get_request_context)):
    return _unwrap(family_service.contact_family(contact_id=contact_id, context=context))


@router.post("/{contact_id}/partners", status_code=201)
def link_partner(contact_id: int, body: RelativeLinkRequest, context: RequestContext = Depends(get_request_context)):
    return _unwrap(
        family_service.contact_link_partner(
            contact_id=contact_id,
            partner_id=body.contact_id,
            bilateral=body.bilateral,
            first_name=body.first_name,
            last_name=body.last_name,
            context=context,
        )
    )


@router.get("/{contact_id}/partners/first")
def first_partner(contact_id: int, context: RequestContext = Depends(get_request_context)):
    return _unwrap(family_service.contact_first_partner(contact_id=contact_id, context=context))


@router.post("/{contact_id}/partners/{partner_id}/bilateral", status_code=201)
def make_partnership_bilateral(
    contact_id: int,
    partner_id: int,
    context: RequestContext = Depends(get_request_context),
):
    return _unwrap(
        family_service.contact_make_partnership_bilateral(
            contact_id=contact_id,
            partner_id=partner_id,
            context=context,
        )
    )


@router.delete("/{contact_id}/partners/{partner_id}")
def unlink_partner(
    contact_id: int,
    partner_id: int,
    bilateral: bool = False,
    context: RequestContext = Depends(get_request_context),
):
    return _unwrap(
        family_service.contact_unlink_partner(
            contact_id=contact_id,
            partner_id=partner_id,
            bilateral=bilateral,
            context=context,
        )
    )


@router.post("/{contact_id}/offsprings", status_code=201)
def link_offspring(contact_id: int, body: RelativeLinkRequest, context: RequestContext = Depends(get_request_context)):
    return _unwrap(
        family_service.contact_link_offspring(
            parent_id=contact_id,
            child_id=body.contact_id,
            bilateral=body.bilateral,
            first_name=body.first_name,
            last_name=body.last_name,
            context=context,
        )
    )


@router.delete("/{contact_id}/offsprings/{child_id}")
def unlink_offspring(
    contact_id: int,
    child_id: int,
    bilateral: bool = False,
    context: RequestContext = Depends(get_request_context),
):
    return _unwrap(
        family_service.contact_unlink_offspring(
            parent_id=contact_id,
            child_id=child_id,
            bilateral=bilateral,
            context=context,
        )
    )


@router.get("/{contact_id}/progenitors/first")
def first_progenitor(contact_id: int, context: RequestContext = Depends(get_request_context)):
    return _unwrap(family_service.contact_first_progenitor(contact_id=contact_id, context=context))


@router.get("/{contact_id}/reminders/relatives")
def relative_reminders(contact_id: int, context: RequestContext = Depends(get_request_context)):
    return _unwrap(family_service.contact_relative_reminders(contact_id=contact_id, context=context))


# =============================================================================
# Event log
# =============================================================================

@router.get("/{contact_id}/events")
def events(
    contact_id: int,
    object_type: Optional[str] = None,
    limit: int = 50,
    context: RequestContext = Depends(get_request_context),
):
    return _unwrap(
        family_service.contact_events(
            contact_id=contact_id,
            object_type=object_type,
            limit=limit,
            context=context,
        )
    )


@router.delete("/{contact_id}/events/{other_id}")
def delete_events_between(
    contact_id: int,
    other_id: int,
    object_type: str,
    context: RequestContext = Depends(get_request_context),
):
    return _unwrap(
        family_service.contact_delete_events_between(
            contact_id=contact_id,
            other_id=other_id,
            object_type=object_type,
            context=context,
        )
    )
