# Wash programme model for the dishwasher/grid simulation
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class ProgrammeStep:
    """
    A single step of a wash programme.
    duration: int, step time in seconds
    power: int, power draw in Watts during the step
    """
    duration: int
    power: int


# "Eco" 50C programme: cold pre-wash, main wash at up to 50C, cold rinse,
# hot rinse, drying. Modelled on an Electrolux ESL 6115.
ECO_PROGRAMME = [
    (23 * 60, 100),
    (14 * 60, 2200),
    (28 * 60, 100),
    (15 * 60, 2200),
    (15 * 60, 0),
]

# Standard 65C programme: cold pre-wash, main wash at up to 65C,
# warm and hot rinses, drying.
STANDARD_PROGRAMME = [
    (10 * 60, 100),
    (12 * 60, 2200),
    (4 * 60, 100),
    (5 * 60, 2200),
    (5 * 60, 100),
    (4 * 60, 2200),
    (3 * 60, 100),
    (4 * 60, 2200),
    (3 * 60, 100),
    (15 * 60, 2200),
    (2 * 60, 100),
    (1 * 60, 2200),
    (2 * 60, 100),
    (1 * 60, 2200),
    (2 * 60, 100),
    (1 * 60, 2200),
    (15 * 60, 0),
]


def _jitter(value, rand_pct, u):
    # each term truncates to whole seconds / Watts
    half = int(value * (rand_pct / 2))
    jittered = int(value - half + int(value * rand_pct * u))
    # truncation can overshoot by one when value * rand_pct / 2 is not whole
    return min(jittered, value + half)


class WashProgramme:
    """
    An ordered, fixed sequence of ProgrammeStep objects.
    Step times and powers are randomised once at construction and never change.
    """
    def __init__(self, pairs, rand_pct=0.0, rng=None):
        """
        pairs: list of (duration_s, power_w) tuples
        rand_pct: float, randomisation fraction, 0.2 = +/-10%
        rng: numpy Generator used for the jitter draws (only needed if rand_pct > 0)
        """
        if rand_pct and rng is None:
            rng = np.random.default_rng()
        steps = []
        for duration, power in pairs:
            if rand_pct:
                duration = _jitter(duration, rand_pct, rng.random())
                power = _jitter(power, rand_pct, rng.random())
            steps.append(ProgrammeStep(int(duration), int(power)))
        self._steps = tuple(steps)
        self._total_run_time = sum(step.duration for step in self._steps)

    @property
    def steps(self):
        return self._steps

    @property
    def num_steps(self):
        return len(self._steps)

    @property
    def total_run_time(self):
        """Sum of the (randomised) step durations in seconds."""
        return self._total_run_time

    def __getitem__(self, index):
        return self._steps[index]

    def __len__(self):
        return len(self._steps)

    def __repr__(self):
        return f"WashProgramme(steps={len(self._steps)}, total_run_time={self._total_run_time})"


# Example: total run time with and without randomisation
if __name__ == "__main__":
    rng = np.random.default_rng(42)
    print("Total run time =", WashProgramme(ECO_PROGRAMME, 0.05, rng).total_run_time)
    print("Total run time =", WashProgramme(ECO_PROGRAMME).total_run_time)
