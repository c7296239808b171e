# ecostore_admin/api/deps.py
from typing import Optional

from fastapi import Depends, HTTPException, status

from ecostore_admin.config import settings
from ecostore_admin.database import db, FileBackedDB
from ecostore_admin.services.gateway import RemoteGateway
from ecostore_admin.services.save_orchestrator import SaveOrchestrator
from ecostore_admin.services.save_warnings import SaveWarningLedger
from ecostore_admin.services.sessions import FormSessionRegistry, ProductFormSession

# one registry per process; sessions inside it are independent
registry = FormSessionRegistry(settings.PREVIEW_DIR, settings.MAX_IMAGE_BYTES, settings.PREVIEW_MAX_SIDE)

_gateway: Optional[RemoteGateway] = None


def get_db() -> FileBackedDB:
    """
    Dependency that returns the file-backed DB object.
    Usage:
        db = Depends(get_db)
    """
    return db


def get_registry() -> FormSessionRegistry:
    return registry


def get_gateway() -> RemoteGateway:
    """Shared backend client, created on first use."""
    global _gateway
    if _gateway is None:
        _gateway = RemoteGateway(settings.BACKEND_URL, timeout=settings.GATEWAY_TIMEOUT)
    return _gateway


async def close_gateway() -> None:
    global _gateway
    if _gateway is not None:
        await _gateway.aclose()
        _gateway = None


def get_ledger(db: FileBackedDB = Depends(get_db)) -> SaveWarningLedger:
    return SaveWarningLedger(db)


def get_orchestrator(
    gateway: RemoteGateway = Depends(get_gateway),
    ledger: SaveWarningLedger = Depends(get_ledger),
) -> SaveOrchestrator:
    return SaveOrchestrator(gateway, ledger)


def get_session(session_id: str, registry: FormSessionRegistry = Depends(get_registry)) -> ProductFormSession:
    """
    Resolve the form session named in the path. Raises 404 for unknown or
    closed sessions.
    """
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form session not found")
    return session
