"""
FastAPI dependency injection module for the Sale Attribution backend.

Key Dependencies Provided:
- get_settings_dependency / SettingsDep: the cached Settings singleton
- get_sales_repository / RepositoryDep: the resolved sales history repository
- get_event_source, get_order_registrar: collaborators resolved once per process
- get_orchestrator / OrchestratorDep: AnalysisOrchestrator wired with the above
- verify_auth_password: optional shared-password check on x-auth-password

Collaborators are chosen from configuration the first time they are requested
and reused afterwards. Tests replace them through app.dependency_overrides:

    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException

from sale_attribution.core.config import Settings, get_settings
from sale_attribution.services.event_source import EventWindowSource, build_event_source
from sale_attribution.services.orchestrator import AnalysisOrchestrator
from sale_attribution.services.persistence import SalesRepository, init_repository
from sale_attribution.services.registration import OrderRegistrar, build_order_registrar


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    """
    return get_settings()


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


# =============================================================================
# Collaborator Dependencies
# =============================================================================

def get_sales_repository() -> SalesRepository:
    """Return the repository resolved at startup (resolving it on first use)."""
    return init_repository(get_settings())


@lru_cache()
def get_event_source() -> EventWindowSource:
    return build_event_source(get_settings())


@lru_cache()
def get_order_registrar() -> OrderRegistrar:
    return build_order_registrar(get_settings())


RepositoryDep = Annotated[SalesRepository, Depends(get_sales_repository)]


def get_orchestrator(
    settings: SettingsDep,
    repository: RepositoryDep,
) -> AnalysisOrchestrator:
    """Build an orchestrator around the process-wide collaborators."""
    return AnalysisOrchestrator(
        event_source=get_event_source(),
        repository=repository,
        registrar=get_order_registrar(),
        margin_minutes=settings.event_window_margin_minutes,
    )


OrchestratorDep = Annotated[AnalysisOrchestrator, Depends(get_orchestrator)]


# =============================================================================
# Authentication Dependency
# =============================================================================

async def verify_auth_password(
    settings: SettingsDep,
    x_auth_password: Annotated[Optional[str], Header()] = None,
) -> None:
    """
    Require the configured AUTH_PASSWORD in the x-auth-password header.

    No check is performed when AUTH_PASSWORD is not set.

    Raises:
        HTTPException 401: If the header is missing or does not match.
    """
    if not settings.auth_password:
        return

    if x_auth_password != settings.auth_password:
        raise HTTPException(status_code=401, detail="Unauthorized")
