# backend/pdi_engine/config.py
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


DEV_JWT_SECRET = "dev-only-pdi-engine-signing-key-change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    app_version: str = "2026-10-19.v1"
    database_url: str = "sqlite:///./pdi_engine.db"

    # memory|sql
    store_backend: str = "memory"
    seed_starter_templates: bool = True

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- PDI rules ----
    # Off = completion is operator-asserted (observed behavior).
    pdi_require_required_items_resolved: bool = False

    # Off = any role may record an approve/reject outcome.
    pdi_restrict_approver_roles: bool = False
    pdi_approver_roles: list[str] = ["supervisor", "manager", "admin"]

    # ---- Task bridge ----
    pdi_task_due_days_in_progress: int = 1
    pdi_task_due_days_other: int = 2
    pdi_calendar_duration_hours: float = 4.0

    # ---- Auth ----
    auth_mode: str = "dev"  # dev|jwt
    allow_local_auth_bypass: bool = True

    dev_header_org_slug: str = "X-Org-Slug"
    dev_header_user_id: str = "X-User-Id"
    dev_header_user_role: str = "X-User-Role"

    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        # Hard fail: no dev-bypass auth in prod
        if is_prod:
            if (self.auth_mode or "").strip().lower() == "dev":
                raise ValueError("SECURITY: auth_mode=dev is not allowed in prod")
            if bool(self.allow_local_auth_bypass):
                raise ValueError("SECURITY: allow_local_auth_bypass=True is not allowed in prod")
            if self.jwt_secret == DEV_JWT_SECRET:
                raise ValueError("SECURITY: jwt_secret must be set in prod")

            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")

        if (self.pdi_task_due_days_in_progress or 0) < 0 or (self.pdi_task_due_days_other or 0) < 0:
            raise ValueError("pdi task due-day offsets must be >= 0")


settings = Settings()
