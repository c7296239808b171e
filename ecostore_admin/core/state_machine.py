from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Tuple
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


class InvalidTransition(ValueError):
    pass


HistoryEntry = Dict[str, Any]
Hook = Callable[[HistoryEntry], None]


class StateMachine:
    """
    Small, generic state machine with:
      - allowed transitions map
      - history recording (with metadata)
      - optional after hooks for transitions, per edge or for every edge

    States without outgoing transitions are terminal.

    Usage:
      sm = StateMachine(state="idle", allowed_transitions=SAVE_TRANSITIONS)
      sm.apply("validating")
      sm.apply("saving_product", meta={"mode": "edit"})
      sm.is_terminal  # False until rejected / failed / complete
    """

    def __init__(self, state: str, allowed_transitions: Dict[str, List[str]],
                 history: Optional[List[HistoryEntry]] = None):
        self.state = state or ""
        self.allowed_transitions = allowed_transitions or {}
        self.history: List[HistoryEntry] = list(history or [])
        # hooks keyed by (from_state, to_state) tuple; ("*", "*") fires on every transition
        self._after_hooks: Dict[Tuple[str, str], Hook] = {}

    @property
    def is_terminal(self) -> bool:
        return not self.allowed_transitions.get(self.state)

    def can_transition(self, to_state: str) -> bool:
        allowed = self.allowed_transitions.get(self.state, [])
        return to_state in allowed

    def register_after(self, from_state: str, to_state: str, fn: Hook) -> None:
        self._after_hooks[(from_state, to_state)] = fn

    def _invoke_hooks(self, from_state: str, to_state: str, entry: HistoryEntry):
        for key in ((from_state, to_state), ("*", "*")):
            fn = self._after_hooks.get(key)
            if not fn:
                continue
            try:
                fn(entry)
            except Exception:
                # hooks must not break state progression
                logger.exception("Transition hook failed for %s -> %s", from_state, to_state)

    def apply(self, to_state: str, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Attempt to transition to `to_state`. Raises InvalidTransition.
        Returns dict with keys: state, history (full list).
        """
        to_state = (to_state or "").strip()
        if not to_state:
            raise InvalidTransition("Empty target state")

        if not self.can_transition(to_state):
            raise InvalidTransition(f"Invalid transition: {self.state} -> {to_state}")

        entry: HistoryEntry = {
            "from": self.state,
            "to": to_state,
            "at": datetime.utcnow().isoformat(sep=" "),
            "meta": dict(meta or {}),
        }

        prev_state = self.state
        self.state = to_state
        self.history.append(entry)

        self._invoke_hooks(prev_state, to_state, entry)

        return {"state": self.state, "history": list(self.history)}
