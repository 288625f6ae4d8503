"""Allowlist administration (admin only).

Entries are never hard-deleted: ``DELETE`` deactivates the entry so the
history of who had access survives.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import EmailStr, field_validator

from constellation.api.auth import Principal, require_admin
from constellation.api.deps import get_store
from constellation.api.guards import body_limit, rate_limit
from constellation.models import AllowedEmail, CamelModel, Role, utcnow
from constellation.services.repositories import new_id
from constellation.services.store import DataStore

log = logging.getLogger(__name__)

router = APIRouter(tags=["access"])


class CreateAllowedEmailInput(CamelModel):
    email: EmailStr
    role: Role = Role.MEMBER

    @field_validator("email", mode="before")
    @classmethod
    def _strip_email(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def _lowercase_email(cls, v: str) -> str:
        return v.lower()


class PatchAllowedEmailInput(CamelModel):
    role: Optional[Role] = None
    is_active: Optional[bool] = None


@router.get(
    "/access/allowlist",
    response_model=list[AllowedEmail],
    dependencies=[Depends(rate_limit("allowlist:list", "allowlist_read"))],
)
async def list_allowlist(
    store: DataStore = Depends(get_store),
    admin: Principal = Depends(require_admin),
) -> list[AllowedEmail]:
    return sorted(store.allowlist.list(), key=lambda e: e.created_at, reverse=True)


@router.post(
    "/access/allowlist",
    status_code=201,
    response_model=AllowedEmail,
    dependencies=[Depends(rate_limit("allowlist:create", "admin")), Depends(body_limit("log"))],
)
async def add_allowed_email(
    body: CreateAllowedEmailInput,
    store: DataStore = Depends(get_store),
    admin: Principal = Depends(require_admin),
) -> AllowedEmail:
    """Add an email, or re-activate it with the given role if already listed."""
    existing = store.allowlist.find_by_email(body.email)
    if existing is not None:
        entry = existing.model_copy(update={"role": body.role, "is_active": True, "updated_at": utcnow()})
    else:
        entry = AllowedEmail(id=new_id(), email=body.email, role=body.role)
    store.allowlist.save(entry)
    log.info("Allowlist entry saved", extra={"email": entry.email, "role": entry.role.value, "by": admin.email})
    return entry


@router.patch(
    "/access/allowlist/{entry_id}",
    response_model=AllowedEmail,
    dependencies=[Depends(rate_limit("allowlist:update", "admin")), Depends(body_limit("log"))],
)
async def update_allowed_email(
    entry_id: str,
    body: PatchAllowedEmailInput,
    store: DataStore = Depends(get_store),
    admin: Principal = Depends(require_admin),
) -> AllowedEmail:
    entry = store.allowlist.require(entry_id)
    update: dict[str, object] = {"updated_at": utcnow()}
    if body.role is not None:
        update["role"] = body.role
    if body.is_active is not None:
        update["is_active"] = body.is_active
    updated = entry.model_copy(update=update)
    store.allowlist.save(updated)
    log.info("Allowlist entry updated", extra={"email": updated.email, "by": admin.email})
    return updated


@router.delete(
    "/access/allowlist/{entry_id}",
    response_model=AllowedEmail,
    dependencies=[Depends(rate_limit("allowlist:delete", "admin"))],
)
async def deactivate_allowed_email(
    entry_id: str,
    store: DataStore = Depends(get_store),
    admin: Principal = Depends(require_admin),
) -> AllowedEmail:
    entry = store.allowlist.require(entry_id)
    updated = entry.model_copy(update={"is_active": False, "updated_at": utcnow()})
    store.allowlist.save(updated)
    log.info("Allowlist entry deactivated", extra={"email": updated.email, "by": admin.email})
    return updated
