# ecostore_admin/services/file_stager.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ecostore_admin.utils.images import StagedFile, PreviewHandle, create_preview

logger = logging.getLogger(__name__)


@dataclass
class StageResult:
    accepted: int
    rejected: int
    warning: Optional[str] = None


def _mib(n: int) -> str:
    mib = n / (1024 * 1024)
    return f"{mib:g} MB"


class FileStager:
    """
    Upload queue for one product form.

    Every staged file is paired with exactly one live PreviewHandle. Handles
    are acquired in stage_files() and released by remove_staged_file(),
    replace_files() or release_all(); nothing else creates or drops them.
    """

    def __init__(self, preview_dir, max_bytes: int, preview_max_side: int = 300):
        self.preview_dir = Path(preview_dir)
        self.max_bytes = int(max_bytes)
        self.preview_max_side = preview_max_side
        self._entries: List[Tuple[StagedFile, PreviewHandle]] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def files(self) -> List[StagedFile]:
        return [f for f, _ in self._entries]

    @property
    def previews(self) -> List[PreviewHandle]:
        return [h for _, h in self._entries]

    @property
    def entries(self) -> List[Tuple[StagedFile, PreviewHandle]]:
        return list(self._entries)

    def stage_files(self, incoming: Iterable[StagedFile]) -> StageResult:
        """
        Append the files that fit under the size limit. Oversized files are
        dropped and reported once for the whole batch.
        """
        accepted: List[StagedFile] = []
        rejected = 0
        for f in incoming:
            if f.size > self.max_bytes:
                rejected += 1
                continue
            accepted.append(f)

        for f in accepted:
            handle = create_preview(f, self.preview_dir, self.preview_max_side)
            self._entries.append((f, handle))

        warning = None
        if rejected:
            noun = "file was" if rejected == 1 else "files were"
            warning = f"{rejected} {noun} larger than {_mib(self.max_bytes)} and skipped."
            logger.info("Rejected %d oversized file(s)", rejected)

        return StageResult(accepted=len(accepted), rejected=rejected, warning=warning)

    def replace_files(self, incoming: Iterable[StagedFile]) -> StageResult:
        """Recompute the queue from scratch; old previews go before new ones are made."""
        incoming = list(incoming)
        self.release_all()
        return self.stage_files(incoming)

    def remove_staged_file(self, index: int) -> StagedFile:
        if index < 0 or index >= len(self._entries):
            raise IndexError(f"No staged file at index {index}")
        staged, handle = self._entries.pop(index)
        handle.release()
        return staged

    def release_all(self) -> int:
        """Release every held preview and empty the queue. Returns how many were released."""
        count = 0
        for _, handle in self._entries:
            handle.release()
            count += 1
        self._entries = []
        return count
