# ecostore_admin/services/save_warnings.py
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ecostore_admin.database import FileBackedDB

logger = logging.getLogger(__name__)

TABLE = "save_warnings"


class SaveWarningLedger:
    """
    Keeps image delete/upload failures that happened after a product was
    saved, so they can be retried by hand once the form has closed.
    """

    def __init__(self, db: FileBackedDB):
        self.db = db

    def record(self, product_id: Optional[str], step: str, message: str, items: List[str]) -> Dict[str, Any]:
        row = {
            "product_id": product_id or "",
            "step": step,
            "message": message,
            "items": json.dumps(list(items)),
            "created_at": datetime.utcnow().isoformat(sep=" "),
        }
        saved = self.db.create_record(TABLE, row, id_field="id")
        logger.warning("Save warning for product %s (%s): %s", product_id, step, message)
        return self._decode(saved)

    def list(self, product_id: Optional[str] = None) -> List[Dict[str, Any]]:
        rows = [self._decode(r) for r in self.db.list_records(TABLE)]
        if product_id:
            rows = [r for r in rows if r.get("product_id") == product_id]
        return rows

    def get(self, warning_id: str) -> Optional[Dict[str, Any]]:
        row = self.db.get_record(TABLE, "id", warning_id)
        return self._decode(row) if row else None

    def dismiss(self, warning_id: str) -> bool:
        return self.db.delete_record(TABLE, "id", warning_id)

    @staticmethod
    def _decode(row: Dict[str, Any]) -> Dict[str, Any]:
        out = dict(row)
        raw = out.get("items") or "[]"
        try:
            items = json.loads(raw) if isinstance(raw, str) else list(raw)
            if not isinstance(items, list):
                items = [items]
        except ValueError:
            items = [raw]
        out["items"] = [str(i) for i in items]
        return out
