# data_structures.py

from collections import namedtuple
from typing import NewType, Optional

# Canonical string form of a board position. Join key between the policy,
# the replay buffer and the value store.
StateKey = NewType('StateKey', str)

# A board coordinate. A pass is None, never a sentinel coordinate.
Move = namedtuple('Move', ['row', 'col'])

# One experience of the learning agent, recorded once per move it makes.
Transition = namedtuple('Transition', [
    'current_state',   # StateKey the agent moved from
    'next_state',      # StateKey right after its move
    'reward',          # Shaped or terminal reward (float)
    'done'             # True when next_state is terminal
])

# What the match runner reports for every turn, moves and passes alike.
TurnResult = namedtuple('TurnResult', [
    'player',          # 1 (black) or -1 (white)
    'move',            # Move, or None for a pass
    'board_before',    # np.ndarray
    'board_after'      # np.ndarray; same contents as board_before on a pass
])


def is_pass(move: Optional[Move]) -> bool:
    return move is None
