# Dishwasher load model with frequency-sensitive ("dynamic demand") control
import logging
from enum import Enum

import numpy as np

from dwgrid.models.programme import WashProgramme, ECO_PROGRAMME

logger = logging.getLogger(__name__)

# --- CONTROL CONSTANTS ---

MIN_HEAT_LOAD = 1000        # W, steps drawing more than this are heating steps
MAX_DELAY_TIME = 1800.0     # s, total deferral allowed in one wash cycle
TURN_OFF_FREQ = 49.2        # Hz
TURN_ON_FREQ = 49.95        # Hz

FIXED_OFF_TIME = 1200.0         # s, fixed delay before frequency is re-tested
SINGLE_MIN_OFF_TIME = 300.0     # s
SINGLE_MAX_OFF_TIME = 7200.0    # s
PROP_MAX_OFF_TIME = 1200.0      # s
PROP_FREQ_MAX_OFF_TIME = 600.0  # s
PROP_FREQ_BAND = 0.1            # Hz, sliding range of the proportional threshold


class DelayPolicy(Enum):
    """
    Dynamic demand regimes.
    NONE: plain dishwasher, ignores frequency
    FIXED: turn off below 49.2 Hz, re-test after a fixed 20 minutes
    SINGLE_RANDOM: turn off below 49.2 Hz, resume after one random delay
    PROP_RANDOM: random delay scaled down as the heating cycle progresses
    PROP_FREQ_RANDOM: turn-off threshold and random delay both scaled by progress
    """
    NONE = "none"
    FIXED = "fixed"
    SINGLE_RANDOM = "single_random"
    PROP_RANDOM = "prop_random"
    PROP_FREQ_RANDOM = "prop_freq_random"


DEFAULT_TURN_OFF_FREQ = {
    DelayPolicy.NONE: TURN_OFF_FREQ,
    DelayPolicy.FIXED: TURN_OFF_FREQ,
    DelayPolicy.SINGLE_RANDOM: TURN_OFF_FREQ,
    DelayPolicy.PROP_RANDOM: 49.8,
    DelayPolicy.PROP_FREQ_RANDOM: 49.5,
}


def turn_off_threshold(policy, turn_off_freq, pct_step_elapsed=0.0):
    """
    Returns the frequency below which a heating step is suspended.
    For PROP_FREQ_RANDOM the threshold slides from turn_off_freq + 0.1 Hz at the
    start of a step down to turn_off_freq as the step progresses.
    """
    if policy is DelayPolicy.NONE:
        return -np.inf
    if policy is DelayPolicy.PROP_FREQ_RANDOM:
        return turn_off_freq + PROP_FREQ_BAND * (1.0 - pct_step_elapsed)
    return turn_off_freq


def draw_retry_time(policy, rng, pct_step_elapsed=0.0):
    """
    Returns the wait (seconds) before the next frequency test.
    FIXED consumes no random draw.
    """
    if policy is DelayPolicy.FIXED:
        return FIXED_OFF_TIME
    u = rng.random()
    if policy is DelayPolicy.SINGLE_RANDOM:
        return u * SINGLE_MAX_OFF_TIME + SINGLE_MIN_OFF_TIME
    if policy is DelayPolicy.PROP_RANDOM:
        return u * PROP_MAX_OFF_TIME * (1 - pct_step_elapsed)
    if policy is DelayPolicy.PROP_FREQ_RANDOM:
        return u * PROP_FREQ_MAX_OFF_TIME * (1 - pct_step_elapsed)
    return 0.0


def retests_frequency(policy):
    """SINGLE_RANDOM resumes when its one delay expires, whatever the frequency."""
    return policy is not DelayPolicy.SINGLE_RANDOM


class Dishwasher:
    """
    Steps through a WashProgramme and returns the electrical load each tick.
    When frequency sags during a heating step the heater is suspended (DELAYED)
    according to the DelayPolicy, and the programme clock stops until heating
    resumes. The programme restarts from step 0 on completion.
    """
    min_heat_load = MIN_HEAT_LOAD
    max_delay_time = MAX_DELAY_TIME

    def __init__(self, programme=ECO_PROGRAMME, rand_pct=0.0, policy=DelayPolicy.FIXED,
                 rng=None, programme_rng=None):
        """
        programme: WashProgramme, or list of (duration_s, power_w) pairs
        rand_pct: float, randomisation fraction applied when building from pairs
        policy: DelayPolicy, the dynamic demand regime
        rng: numpy Generator for runtime retry draws (fresh unseeded one if None)
        programme_rng: numpy Generator for the programme jitter
        """
        if not isinstance(programme, WashProgramme):
            programme = WashProgramme(programme, rand_pct, programme_rng)
        self._programme = programme
        self._policy = DelayPolicy(policy)
        self._rng = rng if rng is not None else np.random.default_rng()

        self._turn_off_freq = DEFAULT_TURN_OFF_FREQ[self._policy]
        self._turn_on_freq = TURN_ON_FREQ

        # programme cursor
        self._step_number = 0
        self._step_run_time = 0.0
        self._runtime = 0.0

        # delay state
        self._heating = False
        self._delayed = False
        self._wait_time = 0.0
        self._retry_time = 0.0
        self._total_delay_time = 0.0

    # --- STATE MACHINE ---

    def advance(self, freq, dt):
        """
        Runs the dishwasher for one tick of dt seconds at grid frequency freq.
        Returns the load in Watts for this tick.
        """
        if self._delayed:
            return self._advance_delayed(freq, dt)
        return self._advance_running(freq, dt)

    def _advance_running(self, freq, dt):
        programme = self._programme
        self._step_run_time += dt
        self._runtime += dt

        pct_step_elapsed = 0.0
        if self._policy is DelayPolicy.PROP_FREQ_RANDOM:
            pct_step_elapsed = self._pct_step_elapsed()

        if self._step_run_time > programme[self._step_number].duration:
            self._step_number += 1
            self._step_run_time = 0.0
            if self._step_number > programme.num_steps - 1:
                self._step_number = 0
                self._total_delay_time = 0.0

        if self._policy is DelayPolicy.PROP_RANDOM:
            pct_step_elapsed = self._pct_step_elapsed()

        step = programme[self._step_number]
        self._heating = step.power > self.min_heat_load
        threshold = turn_off_threshold(self._policy, self._turn_off_freq, pct_step_elapsed)
        # once the ceiling is reached, heating runs on until the programme wraps
        if self._heating and freq < threshold and self._total_delay_time < self.max_delay_time:
            self._delayed = True
            self._heating = False
            self._wait_time = 0.0
            self._retry_time = draw_retry_time(self._policy, self._rng, pct_step_elapsed)
            logger.debug("Heating suspended at %.3f Hz, retry in %.1f s", freq, self._retry_time)
            # heater off, the pre-wash (motor only) draw remains
            return programme[0].power
        return step.power

    def _advance_delayed(self, freq, dt):
        self._wait_time += dt
        self._total_delay_time += dt
        if self._total_delay_time >= self.max_delay_time:
            logger.debug("Delay ceiling of %.0f s reached, forcing resume", self.max_delay_time)
            return self._resume()
        if self._wait_time > self._retry_time:
            if not retests_frequency(self._policy) or freq >= self._turn_on_freq:
                return self._resume()
            self._wait_time = 0.0
            # retries use the full-scale delay: progress is not carried into DELAYED
            self._retry_time = draw_retry_time(self._policy, self._rng, 0.0)
        return 0

    def _resume(self):
        self._delayed = False
        return self._programme[self._step_number].power

    def _pct_step_elapsed(self):
        # measured against the first step's duration, a proxy for heating progress
        return np.float64(self._step_run_time) / self._programme[0].duration

    def seed_position(self, t):
        """
        Places the programme cursor where a cold start would be after t seconds
        with no delays. Used to spread a fleet across its programmes.
        """
        cumulative = 0
        passed_time = 0
        step = 0
        for i, programme_step in enumerate(self._programme.steps):
            cumulative += programme_step.duration
            if t < cumulative:
                step = i
                break
            passed_time += programme_step.duration
        self._runtime = t
        self._step_number = step
        self._step_run_time = t - passed_time

    # --- THRESHOLDS ---

    def set_turn_off_freq(self, f):
        self._turn_off_freq = f

    def set_turn_on_freq(self, f):
        self._turn_on_freq = f

    # --- ACCESSORS ---

    @property
    def programme(self):
        return self._programme

    @property
    def policy(self):
        return self._policy

    @property
    def turn_off_freq(self):
        return self._turn_off_freq

    @property
    def turn_on_freq(self):
        return self._turn_on_freq

    @property
    def total_run_time(self):
        return self._programme.total_run_time

    @property
    def step_number(self):
        return self._step_number

    @property
    def step_run_time(self):
        return self._step_run_time

    @property
    def runtime(self):
        return self._runtime

    @property
    def heating(self):
        return self._heating

    @property
    def delayed(self):
        return self._delayed

    @property
    def wait_time(self):
        return self._wait_time

    @property
    def retry_time(self):
        return self._retry_time

    @property
    def total_delay_time(self):
        return self._total_delay_time


# Example: one dishwasher at a sagging frequency
if __name__ == "__main__":
    dw = Dishwasher([(100, 0), (100, 2200)], policy=DelayPolicy.FIXED)
    for t in range(400):
        load = dw.advance(49.0, 1.0)
        print(t, load, dw.delayed, dw.total_delay_time)
