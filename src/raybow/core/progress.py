"""Milestone-based progress tracking.

A ProgressTracker counts steps between a minimum and a maximum value and
reports the relative progress only when it has advanced by at least one
milestone since the last report. That keeps progress logging down to a
handful of lines however many steps a render takes.

Example:
    >>> tracker = ProgressTracker(0.0, 100.0, step=10.0, milestone=0.25)
    >>> [tracker.increment() for _ in range(5)]
    [None, None, 0.3, None, 0.5]
"""


class ProgressTracker:
    """Counts steps and reports progress at relative milestones.

    Attributes:
        minimum: Starting value.
        maximum: Value at completion.
        step: Amount added by each increment().
        milestone: Relative progress in (0, 1] between two reports.
    """

    def __init__(self, minimum: float, maximum: float, step: float, milestone: float) -> None:
        """Create a tracker positioned at ``minimum``.

        Raises:
            ValueError: If maximum <= minimum or milestone is outside (0, 1].
        """
        if maximum <= minimum:
            raise ValueError(f"maximum ({maximum}) must be greater than minimum ({minimum})")
        if not 0.0 < milestone <= 1.0:
            raise ValueError(f"milestone must be in (0, 1], got {milestone}")

        self.minimum = minimum
        self.maximum = maximum
        self.step = step
        self.milestone = milestone
        self._current = minimum
        self._threshold = 0.0

    @property
    def progress(self) -> float:
        """Current relative progress (0 at minimum, 1 at maximum)."""
        return (self._current - self.minimum) / (self.maximum - self.minimum)

    def increment(self, steps: int = 1) -> float | None:
        """Advance by ``steps`` steps.

        Returns:
            The relative progress if a milestone was crossed, else None.
        """
        self._current += self.step * steps
        current_progress = self.progress
        if current_progress - self._threshold >= self.milestone:
            while current_progress - self._threshold >= self.milestone:
                self._threshold += self.milestone
            return current_progress
        return None
