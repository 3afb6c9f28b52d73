"""Odometer state used to enumerate the rows of one record.

Each lazy group number owns a :class:`GroupState` holding its current index
and size. All greedy results share one :class:`GreedyGroupState`, which
sits before every numbered group and is exhausted after a single row.
Lower group numbers cycle fastest; when one overflows the increment
carries into the next group and every lower group restarts at zero.
"""

from __future__ import annotations

import bisect
import logging

from ..exceptions import InternalInvariantError

logger = logging.getLogger(__name__)


class GroupState:
    """Index and size of one lazy group."""

    def __init__(self, group_number: int) -> None:
        self.group_number = group_number
        self.group_size = 0
        self.current_index = 0

    def add_member(self, size: int) -> None:
        """Account for a member that needs ``size`` rows; the group size is the maximum."""
        if size > self.group_size:
            self.group_size = size

    def is_exhausted(self) -> bool:
        return self.current_index >= self.group_size

    def reset(self) -> None:
        self.current_index = 0

    def advance(self) -> bool:
        """Move to the next index; False when that overflows the group."""
        self.current_index += 1
        return self.current_index < self.group_size

    def __repr__(self) -> str:
        return f"GroupState(group={self.group_number}, index={self.current_index}, size={self.group_size})"


class GreedyGroupState(GroupState):
    """Pseudo-group shared by all greedy results; contributes to exactly one row."""

    def __init__(self) -> None:
        super().__init__(group_number=-1)
        self.exhausted = False

    def is_exhausted(self) -> bool:
        return self.exhausted

    def reset(self) -> None:
        pass

    def advance(self) -> bool:
        self.exhausted = True
        return False

    def __repr__(self) -> str:
        return f"GreedyGroupState(exhausted={self.exhausted})"


class GroupStateChain:
    """Group states ordered by ascending group number, greedy pseudo-group first."""

    def __init__(self) -> None:
        self._states: dict[int, GroupState] = {}
        self._order: list[int] = []
        self._greedy: GreedyGroupState | None = None

    def add_greedy(self) -> GreedyGroupState:
        if self._greedy is None:
            self._greedy = GreedyGroupState()
        return self._greedy

    def get_or_create(self, group_number: int) -> GroupState:
        state = self._states.get(group_number)
        if state is None:
            state = self._states[group_number] = GroupState(group_number)
            bisect.insort(self._order, group_number)
        return state

    def states(self) -> list[GroupState]:
        ordered: list[GroupState] = [self._states[n] for n in self._order]
        if self._greedy is not None:
            ordered.insert(0, self._greedy)
        return ordered

    def index_for(self, group_number: int, indexes: dict[int, int] | None = None) -> int:
        """Current index of a group, read from ``indexes`` when given (a snapshot or a local override)."""
        try:
            if indexes is not None:
                return indexes[group_number]
            return self._states[group_number].current_index
        except KeyError:
            raise InternalInvariantError(f"No group state for group {group_number}")

    def indexes(self) -> dict[int, int]:
        return {n: self._states[n].current_index for n in self._order}

    def has_next(self) -> bool:
        return any(not state.is_exhausted() for state in self.states())

    def increment(self) -> bool:
        """Advance the odometer by one row; False once every group is exhausted."""
        lower: list[GroupState] = []
        for state in self.states():
            if state.advance():
                for earlier in lower:
                    earlier.reset()
                logger.debug("Advanced %r", state)
                return True
            lower.append(state)
        return False

    def total_rows(self) -> int:
        """Rows the chain enumerates from a fresh start."""
        sizes = [self._states[n].group_size for n in self._order]
        if not any(sizes) and self._greedy is None:
            return 0
        total = 1
        for size in sizes:
            total *= max(size, 1)
        return total

    def __len__(self) -> int:
        return len(self._order) + (1 if self._greedy is not None else 0)
