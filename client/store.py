"""Ordered, id-keyed view state for one list of rounds."""

from typing import Dict, Iterator, List, Optional

from models import RoundView


class FeedStore:
    """Rounds in display order. Entries are replaced whole, never patched in place."""

    def __init__(self):
        self._order: List[str] = []
        self._rounds: Dict[str, RoundView] = {}

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[RoundView]:
        return (self._rounds[round_id] for round_id in self._order)

    def __contains__(self, round_id: str) -> bool:
        return round_id in self._rounds

    @property
    def items(self) -> List[RoundView]:
        return list(self)

    def replace(self, rounds: List[RoundView]) -> None:
        self._order = []
        self._rounds = {}
        self.append(rounds)

    def append(self, rounds: List[RoundView]) -> int:
        """Add rounds not already present; returns how many were added."""
        added = 0
        for view in rounds:
            if view.id is None or view.id in self._rounds:
                continue
            self._order.append(view.id)
            self._rounds[view.id] = view
            added += 1
        return added

    def get(self, round_id: str) -> Optional[RoundView]:
        return self._rounds.get(round_id)

    def put(self, view: RoundView) -> None:
        """Swap in a new version of a round already in the list."""
        if view.id not in self._rounds:
            raise KeyError(view.id)
        self._rounds[view.id] = view

    def remove(self, round_id: str) -> Optional[RoundView]:
        view = self._rounds.pop(round_id, None)
        if view is not None:
            self._order.remove(round_id)
        return view

    def snapshot_round(self, round_id: str) -> Optional[RoundView]:
        # RoundView is never mutated once stored, so the stored object is the snapshot
        return self._rounds.get(round_id)

    def restore_round(self, snapshot: RoundView) -> None:
        if snapshot.id in self._rounds:
            self._rounds[snapshot.id] = snapshot

    def set_following(self, user_id: str, flag: bool) -> int:
        """Update the follow flag on every round by `user_id`; returns how many changed."""
        changed = 0
        for round_id, view in self._rounds.items():
            if view.user_id == user_id and view.is_following != flag:
                self._rounds[round_id] = view.model_copy(update={"is_following": flag})
                changed += 1
        return changed
