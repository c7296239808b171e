# ecostore_admin/services/sessions.py
from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from ecostore_admin.models.draft_store import DraftStore
from ecostore_admin.models.product import ProductRecord
from ecostore_admin.services.file_stager import FileStager
from ecostore_admin.services.save_orchestrator import SaveOrchestrator, SaveOutcome

logger = logging.getLogger(__name__)


class SaveInProgress(Exception):
    pass


@dataclass
class ProductFormSession:
    """One open create/edit product form."""
    id: str
    store: DraftStore
    product_id: Optional[str] = None
    saving: bool = False
    opened_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def mode(self) -> str:
        return "edit" if self.product_id else "create"

    @property
    def can_save(self) -> bool:
        return not self.saving and self.store.has_unsaved_changes()

    async def submit(self, orchestrator: SaveOrchestrator) -> SaveOutcome:
        """
        Run a save, refusing to start a second one while the first is in
        flight. The flag is set before the first await.
        """
        if self.saving:
            raise SaveInProgress(f"A save is already running for form {self.id}")
        self.saving = True
        try:
            outcome = await orchestrator.save(self.store, self.product_id)
        finally:
            self.saving = False
        if outcome.succeeded and self.product_id is None:
            self.product_id = outcome.product_id
        return outcome

    def teardown(self) -> int:
        return self.store.release()


class FormSessionRegistry:
    """
    Live product forms, keyed by session id. Each session gets its own preview
    sub-directory and Draft Store; nothing is shared between sessions.
    """

    def __init__(self, preview_dir, max_bytes: int, preview_max_side: int = 300):
        self.preview_dir = Path(preview_dir)
        self.max_bytes = max_bytes
        self.preview_max_side = preview_max_side
        self._sessions: Dict[str, ProductFormSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, record: Optional[ProductRecord] = None) -> ProductFormSession:
        sid = uuid.uuid4().hex
        stager = FileStager(self.preview_dir / sid, self.max_bytes, self.preview_max_side)
        store = DraftStore(stager)
        product_id = None
        if record is not None:
            store.load(record)
            product_id = record.id
        session = ProductFormSession(id=sid, store=store, product_id=product_id)
        self._sessions[sid] = session
        logger.info("Opened %s form %s%s", session.mode, sid, f" for product {product_id}" if product_id else "")
        return session

    def get(self, sid: str) -> Optional[ProductFormSession]:
        return self._sessions.get(sid)

    def find_preview(self, token: str, thumbnail: bool = False) -> Optional[Path]:
        """File behind a live preview token; None once the handle is released."""
        for session in self._sessions.values():
            for handle in session.store.stager.previews:
                if handle.token != token or handle.released:
                    continue
                if thumbnail and handle.variants:
                    return handle.variants[0]
                return handle.path
        return None

    def close(self, sid: str) -> bool:
        session = self._sessions.pop(sid, None)
        if session is None:
            return False
        released = session.teardown()
        logger.info("Closed form %s (released %d preview(s))", sid, released)
        return True

    def close_all(self) -> int:
        ids: List[str] = list(self._sessions.keys())
        for sid in ids:
            self.close(sid)
        return len(ids)
