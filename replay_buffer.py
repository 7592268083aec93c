from collections import deque

import numpy as np


class ReplayBuffer:
    """Bounded FIFO of transitions. Once full, every insert evicts the oldest entry."""

    def __init__(self, capacity, rng=None):
        if capacity <= 0:
            raise ValueError(f"Replay buffer capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.data = deque(maxlen=capacity)
        self.rng = rng if rng is not None else np.random.default_rng()

    def add(self, transition):
        # deque(maxlen=...) drops from the left, i.e. strictly the oldest insert.
        self.data.append(transition)

    def extend(self, transitions):
        for t in transitions:
            self.add(t)

    def sample(self, batch_size):
        """Independent uniform draws with replacement. None if the buffer is empty."""
        if not self.data:
            return None
        indices = self.rng.integers(0, len(self.data), size=batch_size)
        return [self.data[i] for i in indices]

    def clear(self):
        self.data.clear()

    def __len__(self):
        return len(self.data)

    def __iter__(self):
        return iter(self.data)
