# backend/pdi_engine/services/pdi_service.py
"""
PDIService: the single function-call surface over the PDI engine.

Every mutation runs as read-copy-mutate-put under the store lock:
    - load a fresh copy of the entity from the DocumentStore
    - apply the pure domain operation to that copy
    - put it back only when the operation succeeded
so a failed call never leaves a half-applied entity behind. After a
successful mutation the new snapshot (with derived progress) is broadcast
through the event facade and a success notice goes to the NotificationSink.
Errors from the domain taxonomy are logged, reported to the sink and
re-raised unchanged.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, Optional

from ..config import Settings, settings
from ..domain.errors import (
    InspectionNotFound,
    InvalidTransition,
    PDIError,
    TemplateNotFound,
    ValidationError,
)
from ..domain.pdi.common import clean_str, new_id, utcnow
from ..domain.pdi.defects import apply_defect_update, new_defect
from ..domain.pdi.enums import InspectionStatus, ItemStatus
from ..domain.pdi.factory import create_inspection as instantiate_inspection
from ..domain.pdi.inspections import Defect, Inspection, Photo
from ..domain.pdi.ledger import append_signoff, new_photo
from ..domain.pdi.progress import (
    InspectionSummary,
    dashboard_stats as compute_dashboard_stats,
    progress,
    required_pending_items,
    summarize_inspection as compute_summary,
)
from ..domain.pdi.task_bridge import (
    TaskDraft,
    calendar_event as build_calendar_event,
    derive_defect_tasks as build_defect_tasks,
    derive_task as build_task,
)
from ..domain.pdi.templates import (
    Template,
    apply_template_update,
    build_template,
    coerce_template_payload,
    duplicate_template as copy_template,
    starter_templates,
)
from ..domain.pdi.transitions import require_transition
from .asset_directory import AssetDirectory, InMemoryAssetDirectory
from .document_store import KIND_INSPECTION, KIND_TEMPLATE, DocumentStore, InMemoryDocumentStore, SqlDocumentStore
from .events_facade import EventFacade, Observer
from .notifications import LoggingNotificationSink, NotificationSink
from .task_sink import InMemoryTaskSink, TaskSink

log = logging.getLogger(__name__)


class PDIService:
    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        *,
        events: Optional[EventFacade] = None,
        notifier: Optional[NotificationSink] = None,
        task_sink: Optional[TaskSink] = None,
        assets: Optional[AssetDirectory] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store if store is not None else InMemoryDocumentStore()
        self.events = events or EventFacade()
        self.notifier = notifier or LoggingNotificationSink()
        self.task_sink = task_sink or InMemoryTaskSink()
        self.assets = assets or InMemoryAssetDirectory()
        self.config = config or settings
        self._clock = clock

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------
    @contextmanager
    def _operation(self, action: str, **context: Any) -> Iterator[None]:
        with self.store.locked():
            try:
                yield
            except PDIError as e:
                log.warning(
                    "%s failed: %s",
                    action,
                    e.message,
                    extra={"error_code": e.code, **{k: v for k, v in context.items() if v is not None}},
                )
                self.notifier.notify("error", f"{action} failed: {e.message}", error_code=e.code, **context)
                raise
        self.notifier.notify("success", f"{action} succeeded", **context)

    def _now(self) -> datetime:
        return self._clock()

    def _load_template(self, template_id: str) -> Template:
        raw = self.store.get(KIND_TEMPLATE, template_id)
        if raw is None:
            raise TemplateNotFound(template_id)
        return Template.from_dict(raw)

    def _load_inspection(self, inspection_id: str) -> Inspection:
        raw = self.store.get(KIND_INSPECTION, inspection_id)
        if raw is None:
            raise InspectionNotFound(inspection_id)
        return Inspection.from_dict(raw)

    def _put_template(self, tmpl: Template) -> None:
        self.store.put(KIND_TEMPLATE, tmpl.id, tmpl.as_dict())

    def _put_inspection(self, insp: Inspection) -> None:
        self.store.put(KIND_INSPECTION, insp.id, insp.as_dict())

    def _all_inspections(self) -> list[Inspection]:
        return [Inspection.from_dict(d) for d in self.store.list(KIND_INSPECTION)]

    def _all_templates(self) -> list[Template]:
        return [Template.from_dict(d) for d in self.store.list(KIND_TEMPLATE)]

    def _is_referenced(self, template_id: str) -> bool:
        return any(d.get("template_id") == template_id for d in self.store.list(KIND_INSPECTION))

    def _broadcast_inspection(self, event_type: str, insp: Inspection, actor: Optional[str]) -> None:
        snap = insp.as_dict()
        snap["progress"] = progress(insp)
        self.events.emit(event_type=event_type, entity_id=insp.id, snapshot=snap, actor_user_id=actor)

    def _broadcast_template(self, event_type: str, tmpl: Template, actor: Optional[str]) -> None:
        self.events.emit(event_type=event_type, entity_id=tmpl.id, snapshot=tmpl.as_dict(), actor_user_id=actor)

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer for post-mutation snapshots; returns an unsubscribe callable."""
        return self.events.subscribe(observer)

    # ------------------------------------------------------------------
    # templates
    # ------------------------------------------------------------------
    def create_template(self, payload: Any, *, actor: Optional[str] = None) -> Template:
        with self._operation("create template"):
            tmpl = build_template(coerce_template_payload(payload), now=self._now())
            if self.store.get(KIND_TEMPLATE, tmpl.id) is not None:
                raise ValidationError(f"template id already exists: {tmpl.id}", entity_id=tmpl.id)
            self._put_template(tmpl)
            self._broadcast_template("template_created", tmpl, actor)
        return tmpl

    def update_template(self, template_id: str, payload: Any, *, actor: Optional[str] = None) -> Template:
        """
        Unreferenced templates are edited in place (version + 1). A template
        any inspection points at is left alone; the edit is stored as a new
        template with a new id and version + 1, and that one is returned.
        """
        with self._operation("update template", template_id=template_id):
            current = self._load_template(template_id)
            now = self._now()
            updated = apply_template_update(current, coerce_template_payload(payload), now=now)
            if self._is_referenced(template_id):
                updated.id = new_id()
                updated.created_at = now
            self._put_template(updated)
            self._broadcast_template("template_updated", updated, actor)
        return updated

    def delete_template(self, template_id: str, *, actor: Optional[str] = None) -> None:
        with self._operation("delete template", template_id=template_id):
            tmpl = self._load_template(template_id)
            self.store.delete(KIND_TEMPLATE, template_id)
            self._broadcast_template("template_deleted", tmpl, actor)

    def duplicate_template(self, template_id: str, *, actor: Optional[str] = None) -> Template:
        with self._operation("duplicate template", template_id=template_id):
            dup = copy_template(self._load_template(template_id), now=self._now())
            self._put_template(dup)
            self._broadcast_template("template_duplicated", dup, actor)
        return dup

    def list_templates(self, *, active_only: bool = False) -> list[Template]:
        rows = self._all_templates()
        if active_only:
            rows = [t for t in rows if t.is_active]
        return rows

    def get_template(self, template_id: str) -> Template:
        return self._load_template(template_id)

    def seed_starter_templates(self) -> list[Template]:
        """Insert the stock dealership templates that are not stored yet."""
        added: list[Template] = []
        with self.store.locked():
            for tmpl in starter_templates(now=self._now()):
                if self.store.get(KIND_TEMPLATE, tmpl.id) is None:
                    self._put_template(tmpl)
                    added.append(tmpl)
        if added:
            log.info("seeded starter templates", extra={"event_type": "templates_seeded"})
        return added

    # ------------------------------------------------------------------
    # inspections
    # ------------------------------------------------------------------
    def create_inspection(
        self,
        *,
        template_id: str,
        asset_id: str,
        inspector_id: str,
        notes: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Inspection:
        with self._operation("create inspection", template_id=template_id):
            raw = self.store.get(KIND_TEMPLATE, template_id)
            template = Template.from_dict(raw) if raw is not None else None
            insp = instantiate_inspection(
                template,
                template_id=template_id,
                asset_id=asset_id,
                inspector_id=inspector_id,
                now=self._now(),
            )
            if notes:
                insp.notes = notes.strip()
            self._put_inspection(insp)
            self._broadcast_inspection("inspection_created", insp, actor)
        return insp

    def update_inspection(
        self,
        inspection_id: str,
        *,
        notes: Optional[str] = None,
        inspector_id: Optional[str] = None,
        asset_id: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Inspection:
        """Header fields only; status moves through complete / sign-off / reopen."""
        with self._operation("update inspection", inspection_id=inspection_id):
            insp = self._load_inspection(inspection_id)
            if notes is None and inspector_id is None and asset_id is None:
                raise ValidationError("nothing to update", entity_id=inspection_id)

            if inspector_id is not None:
                if not inspector_id.strip():
                    raise ValidationError("inspector_id cannot be blank", entity_id=inspection_id)
                insp.inspector_id = inspector_id.strip()
            if asset_id is not None:
                if not asset_id.strip():
                    raise ValidationError("asset_id cannot be blank", entity_id=inspection_id)
                insp.asset_id = asset_id.strip()
            if notes is not None:
                insp.notes = notes

            insp.updated_at = self._now()
            self._put_inspection(insp)
            self._broadcast_inspection("inspection_updated", insp, actor)
        return insp

    def update_inspection_item(
        self,
        inspection_id: str,
        item_id: str,
        *,
        status: ItemStatus | str | None = None,
        notes: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Inspection:
        with self._operation("update inspection item", inspection_id=inspection_id, item_id=item_id):
            insp = self._load_inspection(inspection_id)
            if insp.status != InspectionStatus.IN_PROGRESS:
                raise InvalidTransition(
                    f"items can only be updated while in_progress (status: {insp.status.value})",
                    entity_id=inspection_id,
                )

            item = insp.find_item(item_id)
            if status is None and notes is None:
                raise ValidationError("provide status and/or notes", entity_id=item_id)

            now = self._now()
            if status is not None:
                try:
                    item.status = ItemStatus(status)
                except ValueError:
                    raise ValidationError(f"invalid item status '{status}'", entity_id=item_id)
            if notes is not None:
                item.notes = notes
            item.updated_at = now
            insp.updated_at = now

            self._put_inspection(insp)
            self._broadcast_inspection("inspection_item_updated", insp, actor)
        return insp

    def complete_inspection(
        self,
        inspection_id: str,
        *,
        notes: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Inspection:
        with self._operation("complete inspection", inspection_id=inspection_id):
            insp = self._load_inspection(inspection_id)
            require_transition(insp.status, InspectionStatus.COMPLETED, entity_id=inspection_id)

            if self.config.pdi_require_required_items_resolved:
                pending = required_pending_items(insp)
                if pending:
                    names = ", ".join(it.name for it in pending[:5])
                    raise ValidationError(
                        f"{len(pending)} required item(s) still pending: {names}",
                        entity_id=inspection_id,
                    )

            now = self._now()
            insp.status = InspectionStatus.COMPLETED
            insp.completed_at = now
            if notes is not None:
                insp.notes = notes
            insp.updated_at = now

            self._put_inspection(insp)
            self._broadcast_inspection("inspection_completed", insp, actor)
        return insp

    def reopen_inspection(self, inspection_id: str, *, actor: Optional[str] = None) -> Inspection:
        with self._operation("reopen inspection", inspection_id=inspection_id):
            insp = self._load_inspection(inspection_id)
            require_transition(insp.status, InspectionStatus.IN_PROGRESS, entity_id=inspection_id)
            insp.status = InspectionStatus.IN_PROGRESS
            insp.completed_at = None
            insp.updated_at = self._now()
            self._put_inspection(insp)
            self._broadcast_inspection("inspection_reopened", insp, actor)
        return insp

    def list_inspections(
        self,
        *,
        status: InspectionStatus | str | None = None,
        search: Optional[str] = None,
        inspector_id: Optional[str] = None,
        asset_id: Optional[str] = None,
    ) -> list[Inspection]:
        rows = self._all_inspections()

        if status is not None:
            try:
                wanted = InspectionStatus(status)
            except ValueError:
                raise ValidationError(f"invalid inspection status '{status}'")
            rows = [r for r in rows if r.status == wanted]
        if inspector_id:
            rows = [r for r in rows if r.inspector_id == inspector_id]
        if asset_id:
            rows = [r for r in rows if r.asset_id == asset_id]

        needle = clean_str(search).lower()
        if needle:
            rows = [
                r
                for r in rows
                if needle in r.asset_id.lower() or needle in r.inspector_id.lower() or needle in r.template_name.lower()
            ]

        rows.sort(key=lambda r: r.started_at, reverse=True)
        return rows

    def get_inspection_by_id(self, inspection_id: str) -> Inspection:
        return self._load_inspection(inspection_id)

    def inspection_progress(self, inspection_id: str) -> int:
        return progress(self._load_inspection(inspection_id))

    def summarize_inspection(self, inspection_id: str) -> InspectionSummary:
        return compute_summary(self._load_inspection(inspection_id))

    # ------------------------------------------------------------------
    # defects / evidence / sign-offs
    # ------------------------------------------------------------------
    def create_defect(
        self,
        inspection_id: str,
        *,
        title: str,
        description: str = "",
        severity: str = "medium",
        assigned_to: Optional[str] = None,
        item_id: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Defect:
        with self._operation("add defect", inspection_id=inspection_id, item_id=item_id):
            insp = self._load_inspection(inspection_id)
            now = self._now()
            defect = new_defect(
                insp,
                title=title,
                description=description,
                severity=severity,
                assigned_to=assigned_to,
                item_id=item_id,
                now=now,
            )
            insp.defects.append(defect)
            insp.updated_at = now
            self._put_inspection(insp)
            self._broadcast_inspection("defect_added", insp, actor)
        return defect

    def update_defect(
        self,
        inspection_id: str,
        defect_id: str,
        *,
        status: Optional[str] = None,
        assigned_to: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Defect:
        with self._operation("update defect", inspection_id=inspection_id, defect_id=defect_id):
            insp = self._load_inspection(inspection_id)
            now = self._now()
            defect = apply_defect_update(insp.find_defect(defect_id), status=status, assigned_to=assigned_to, now=now)
            insp.updated_at = now
            self._put_inspection(insp)
            self._broadcast_inspection("defect_updated", insp, actor)
        return defect

    def add_photo(
        self,
        inspection_id: str,
        *,
        url: str,
        caption: Optional[str] = None,
        item_id: Optional[str] = None,
        defect_id: Optional[str] = None,
        uploaded_by: Optional[str] = None,
    ) -> Photo:
        with self._operation("add photo", inspection_id=inspection_id, item_id=item_id, defect_id=defect_id):
            insp = self._load_inspection(inspection_id)
            now = self._now()
            photo = new_photo(
                insp,
                url=url,
                caption=caption,
                item_id=item_id,
                defect_id=defect_id,
                uploaded_by=uploaded_by,
                now=now,
            )
            insp.photos.append(photo)
            insp.updated_at = now
            self._put_inspection(insp)
            self._broadcast_inspection("photo_added", insp, uploaded_by)
        return photo

    def add_signoff(
        self,
        inspection_id: str,
        *,
        user_id: str,
        role: str,
        outcome: Optional[str] = None,
        signature: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> Inspection:
        with self._operation("add sign-off", inspection_id=inspection_id, user_id=user_id):
            insp = self._load_inspection(inspection_id)
            append_signoff(
                insp,
                user_id=user_id,
                role=role,
                outcome=outcome,
                signature=signature,
                comment=comment,
                now=self._now(),
                restrict_roles=self.config.pdi_restrict_approver_roles,
                approver_roles=self.config.pdi_approver_roles,
            )
            self._put_inspection(insp)
            self._broadcast_inspection("signoff_added", insp, user_id)
        return insp

    # ------------------------------------------------------------------
    # task bridge / read models
    # ------------------------------------------------------------------
    def _asset_for(self, insp: Inspection) -> Optional[dict]:
        return self.assets.get(insp.asset_id)

    def derive_task(self, inspection_id: str, *, now: Optional[datetime] = None) -> TaskDraft:
        insp = self._load_inspection(inspection_id)
        return build_task(
            insp,
            now=now or self._now(),
            asset=self._asset_for(insp),
            days_in_progress=self.config.pdi_task_due_days_in_progress,
            days_other=self.config.pdi_task_due_days_other,
        )

    def derive_defect_tasks(self, inspection_id: str, *, now: Optional[datetime] = None) -> list[TaskDraft]:
        insp = self._load_inspection(inspection_id)
        return build_defect_tasks(
            insp,
            now=now or self._now(),
            asset=self._asset_for(insp),
            days_in_progress=self.config.pdi_task_due_days_in_progress,
            days_other=self.config.pdi_task_due_days_other,
        )

    def emit_follow_up(
        self,
        inspection_id: str,
        *,
        include_defects: bool = True,
        actor: Optional[str] = None,
    ) -> list[TaskDraft]:
        """Push the inspection draft (and one per open defect) to the task sink."""
        with self._operation("emit follow-up", inspection_id=inspection_id):
            now = self._now()
            drafts = [self.derive_task(inspection_id, now=now)]
            if include_defects:
                drafts.extend(self.derive_defect_tasks(inspection_id, now=now))
            for d in drafts:
                self.task_sink.submit(d)
            self.events.emit(
                event_type="follow_up_emitted",
                entity_id=inspection_id,
                snapshot={"tasks": [d.as_dict() for d in drafts]},
                actor_user_id=actor,
            )
        return drafts

    def calendar_event(self, inspection_id: str) -> dict:
        insp = self._load_inspection(inspection_id)
        return build_calendar_event(
            insp,
            asset=self._asset_for(insp),
            duration_hours=self.config.pdi_calendar_duration_hours,
        )

    def dashboard_stats(self) -> dict:
        return compute_dashboard_stats(self._all_inspections(), self._all_templates())


# ----------------------------------------------------------------------
# wiring
# ----------------------------------------------------------------------
def build_service(config: Optional[Settings] = None) -> PDIService:
    cfg = config or settings
    backend = (cfg.store_backend or "memory").strip().lower()

    store: DocumentStore
    if backend == "sql":
        from ..db import SessionLocal, init_db

        init_db()
        store = SqlDocumentStore(SessionLocal)
    elif backend == "memory":
        store = InMemoryDocumentStore()
    else:
        raise ValueError(f"unknown store_backend: {cfg.store_backend}")

    svc = PDIService(store, config=cfg)
    if cfg.seed_starter_templates:
        svc.seed_starter_templates()
    return svc


_service: Optional[PDIService] = None
_service_lock = threading.Lock()


def get_service() -> PDIService:
    """FastAPI dependency; one engine per process."""
    global _service
    with _service_lock:
        if _service is None:
            _service = build_service()
        return _service

