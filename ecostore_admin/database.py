# ecostore_admin/database.py
"""
Small file-backed table layer using CSV files as storage.
Provides basic CRUD primitives per table name. Uses file locking so that
concurrent writers do not corrupt files.

Usage:
    from ecostore_admin.database import db
    db.list_records("save_warnings")
    db.create_record("save_warnings", {"product_id": "abc", "step": "upload"})
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
import pandas as pd
import uuid
from filelock import FileLock
from ecostore_admin.config import settings


class FileBackedDB:
    """
    Manages CSV files inside data_dir.
    Table name maps to a file name in settings, or <table>.csv.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else Path(settings.DATA_DIR)

    def _file_path(self, table: str) -> Path:
        # allow passing explicit filenames
        if table.endswith(".csv"):
            return self.data_dir / Path(table)

        mapping = {
            "save_warnings": settings.SAVE_WARNINGS_FILE,
        }
        filename = mapping.get(table, f"{table}.csv")
        return Path(self.data_dir) / Path(filename)

    def _lock_for(self, path: Path) -> FileLock:
        return FileLock(str(path) + ".lock")

    def _read_df(self, table: str) -> pd.DataFrame:
        path = self._file_path(table)
        if not path.exists():
            return pd.DataFrame()
        return pd.read_csv(path, dtype=str).fillna("")

    def _write_df_nolock(self, table: str, df: pd.DataFrame) -> None:
        """
        Write DataFrame for `table` WITHOUT acquiring the file lock.
        Use this only when the caller already holds the lock.
        """
        path = self._file_path(table)
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=False)

    # --- high-level CRUD primitives ---

    def list_records(self, table: str) -> List[Dict[str, Any]]:
        df = self._read_df(table)
        if df.empty:
            return []
        return df.where(pd.notnull(df), None).to_dict(orient="records")

    def get_record(self, table: str, key: str, value: Any) -> Optional[Dict[str, Any]]:
        df = self._read_df(table)
        if df.empty or key not in df.columns:
            return None
        # treat everything as string for comparison simplicity
        mask = df[key].astype(str) == str(value)
        if not mask.any():
            return None
        row = df[mask].iloc[0].to_dict()
        return {k: (None if pd.isna(v) else v) for k, v in row.items()}

    def create_record(self, table: str, data: Dict[str, Any], id_field: str = "id") -> Dict[str, Any]:
        """
        Create a new record. If id_field is not present in `data`, one is generated (uuid4 hex).
        Returns the saved record (with id).
        """
        path = self._file_path(table)
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock_for(path):
            df = self._read_df(table)
            if df.empty:
                df = pd.DataFrame(columns=list(data.keys()) + ([id_field] if id_field not in data else []))
            if id_field not in data or not data.get(id_field):
                data[id_field] = uuid.uuid4().hex
            new_row = {k: ("" if v is None else v) for k, v in data.items()}
            df = pd.concat([df, pd.DataFrame([new_row])], ignore_index=True, sort=False)
            self._write_df_nolock(table, df)
        return data

    def delete_record(self, table: str, key: str, value: Any) -> bool:
        """
        Delete all records where df[key] == value. Returns True if any rows were removed.
        """
        path = self._file_path(table)
        if not path.exists():
            return False
        with self._lock_for(path):
            df = self._read_df(table)
            if df.empty or key not in df.columns:
                return False
            orig_len = len(df)
            df = df[df[key].astype(str) != str(value)]
            if len(df) == orig_len:
                return False
            self._write_df_nolock(table, df)
            return True


# module-level singleton for convenience
db = FileBackedDB()
