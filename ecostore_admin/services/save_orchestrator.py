# ecostore_admin/services/save_orchestrator.py
"""
Multi-step product save.

    idle -> validating -> rejected
                       -> saving_product -> failed
                                         -> deleting_images -> uploading_images -> complete
                                         -> uploading_images -> complete
                                         -> complete

saving_product is the only fatal step. Image removal and image upload are
best effort: a failure is reported as a warning and the save still completes.
Steps are awaited one after another, never concurrently.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ecostore_admin.core.state_machine import StateMachine
from ecostore_admin.core.validation import validate_images
from ecostore_admin.models.draft_store import DraftStore
from ecostore_admin.services.gateway import RemoteGateway, RequestError
from ecostore_admin.services.save_warnings import SaveWarningLedger

logger = logging.getLogger(__name__)

SAVE_TRANSITIONS: Dict[str, List[str]] = {
    "idle": ["validating"],
    "validating": ["rejected", "saving_product"],
    "saving_product": ["failed", "deleting_images", "uploading_images", "complete"],
    "deleting_images": ["uploading_images", "complete"],
    "uploading_images": ["complete"],
    "rejected": [],
    "failed": [],
    "complete": [],
}


@dataclass
class StepResult:
    """Outcome of one remote step. ok is None when the step was skipped."""
    ok: Optional[bool] = None
    error: Optional[str] = None


@dataclass
class SaveOutcome:
    state: str = "idle"
    mode: str = "create"
    product_id: Optional[str] = None
    errors: Dict[str, str] = field(default_factory=dict)
    core: StepResult = field(default_factory=StepResult)
    delete: StepResult = field(default_factory=StepResult)
    upload: StepResult = field(default_factory=StepResult)
    uploaded_count: int = 0
    warnings: List[str] = field(default_factory=list)
    history: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == "complete"

    @property
    def navigate_away(self) -> bool:
        # the form closes once the product itself is saved, warnings or not
        return self.succeeded


def _extract_identity(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    doc = data.get("product") if isinstance(data.get("product"), dict) else data
    ident = doc.get("_id") or doc.get("id") or data.get("productId")
    return str(ident) if ident else None


class SaveOrchestrator:
    def __init__(self, gateway: RemoteGateway, ledger: Optional[SaveWarningLedger] = None):
        self.gateway = gateway
        self.ledger = ledger

    def _machine(self, outcome: SaveOutcome) -> StateMachine:
        sm = StateMachine(state="idle", allowed_transitions=SAVE_TRANSITIONS)

        def _log(entry):
            logger.info("Product save (%s %s): %s -> %s", outcome.mode, outcome.product_id or "new",
                        entry["from"], entry["to"])

        sm.register_after("*", "*", _log)
        return sm

    async def save(self, store: DraftStore, product_id: Optional[str] = None) -> SaveOutcome:
        """
        Run one submit. `product_id` selects update (edit form) over create.
        Never raises for remote failures; they are folded into the outcome.
        """
        mode = "edit" if product_id else "create"
        outcome = SaveOutcome(mode=mode, product_id=product_id)
        sm = self._machine(outcome)

        sm.apply("validating")
        errors = store.validate_all()
        errors.update(validate_images(store.final_image_count, mode))
        if errors:
            outcome.errors = errors
            sm.apply("rejected", meta={"fields": sorted(errors)})
            return self._finish(outcome, sm)

        # step 2: the product record itself
        sm.apply("saving_product")
        try:
            if mode == "create":
                data = await self.gateway.create_product(store.build_payload(include_images=False))
                outcome.product_id = _extract_identity(data)
                if not outcome.product_id:
                    raise RequestError("Product was created but the server returned no id")
            else:
                await self.gateway.update_product(product_id, store.build_payload(include_images=True))
        except RequestError as e:
            outcome.core = StepResult(ok=False, error=e.message)
            sm.apply("failed", meta={"error": e.message})
            return self._finish(outcome, sm)
        outcome.core = StepResult(ok=True)
        store.mark_saved()

        # step 3: removed images (edit only)
        pending_delete = list(store.images.pending_delete)
        if mode == "edit" and pending_delete:
            sm.apply("deleting_images", meta={"count": len(pending_delete)})
            try:
                await self.gateway.remove_product_images(outcome.product_id, pending_delete)
            except RequestError as e:
                outcome.delete = StepResult(ok=False, error=e.message)
                self._warn(outcome, "delete", f"Product saved, but removing images failed: {e.message}",
                           pending_delete)
            else:
                outcome.delete = StepResult(ok=True)
                store.clear_pending_delete()

        # step 4: staged uploads, in the order they were added
        staged = store.stager.files
        if staged:
            sm.apply("uploading_images", meta={"count": len(staged)})
            try:
                data = await self.gateway.upload_product_images(outcome.product_id, staged)
            except RequestError as e:
                outcome.upload = StepResult(ok=False, error=e.message)
                self._warn(outcome, "upload", f"Product saved, but uploading images failed: {e.message}",
                           [f.filename for f in staged])
            else:
                count = len(staged)
                if isinstance(data, dict) and data.get("uploadedCount") is not None:
                    try:
                        count = int(data["uploadedCount"])
                    except (TypeError, ValueError):
                        count = len(staged)
                outcome.uploaded_count = count
                outcome.upload = StepResult(ok=True)
                if count < len(staged):
                    self._warn(outcome, "upload",
                               f"Product saved, but only {count} of {len(staged)} images were accepted.",
                               [f.filename for f in staged])
                store.stager.release_all()

        sm.apply("complete", meta={"warnings": len(outcome.warnings)})
        return self._finish(outcome, sm)

    def _warn(self, outcome: SaveOutcome, step: str, message: str, items: List[str]) -> None:
        outcome.warnings.append(message)
        if self.ledger is None:
            return
        try:
            self.ledger.record(outcome.product_id, step, message, items)
        except Exception:
            # product is already saved; ledger errors are logged only
            logger.exception("Could not record save warning for product %s", outcome.product_id)

    @staticmethod
    def _finish(outcome: SaveOutcome, sm: StateMachine) -> SaveOutcome:
        outcome.state = sm.state
        outcome.history = list(sm.history)
        return outcome
