# backend/pdi_engine/domain/pdi/ledger.py
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ..errors import ValidationError
from .common import new_id, opt_str, utcnow
from .enums import SignoffOutcome
from .inspections import Inspection, Photo, Signoff
from .transitions import next_status, resolve_outcome


def new_photo(
    inspection: Inspection,
    *,
    url: str,
    caption: Optional[str] = None,
    item_id: Optional[str] = None,
    defect_id: Optional[str] = None,
    uploaded_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Photo:
    url = (url or "").strip()
    if not url:
        raise ValidationError("photo url is required", entity_id=inspection.id)

    # Links must point at something this inspection owns.
    item_id = opt_str(item_id)
    defect_id = opt_str(defect_id)
    if item_id is not None:
        inspection.find_item(item_id)
    if defect_id is not None:
        inspection.find_defect(defect_id)

    return Photo(
        id=new_id(),
        url=url,
        caption=opt_str(caption),
        item_id=item_id,
        defect_id=defect_id,
        uploaded_by=opt_str(uploaded_by),
        created_at=now or utcnow(),
    )


def append_signoff(
    inspection: Inspection,
    *,
    user_id: str,
    role: str,
    outcome: SignoffOutcome | str | None = None,
    signature: Optional[str] = None,
    comment: Optional[str] = None,
    now: Optional[datetime] = None,
    restrict_roles: bool = False,
    approver_roles: Iterable[str] = (),
) -> Signoff:
    """
    Append a sign-off to `inspection` (a working copy) and apply its outcome.

    The status change is computed before anything is appended, so a rejected
    sign-off leaves the inspection exactly as it was.
    """
    user_id = (user_id or "").strip()
    role = (role or "").strip()
    if not user_id:
        raise ValidationError("sign-off user_id is required", entity_id=inspection.id)
    if not role:
        raise ValidationError("sign-off role is required", entity_id=inspection.id)

    try:
        resolved = resolve_outcome(role, outcome)
    except ValueError:
        raise ValidationError(f"invalid sign-off outcome '{outcome}'", entity_id=inspection.id)

    if restrict_roles and resolved != SignoffOutcome.ACKNOWLEDGE:
        allowed = {r.strip().lower() for r in approver_roles}
        if role.lower() not in allowed:
            raise ValidationError(
                f"role '{role}' may not record a '{resolved.value}' sign-off",
                entity_id=inspection.id,
            )

    target = next_status(inspection.status, resolved, entity_id=inspection.id)

    now = now or utcnow()
    signoff = Signoff(
        id=new_id(),
        user_id=user_id,
        role=role,
        outcome=resolved,
        signed_at=now,
        signature=opt_str(signature),
        comment=opt_str(comment),
    )
    inspection.signoffs.append(signoff)
    inspection.status = target
    inspection.updated_at = now
    return signoff
