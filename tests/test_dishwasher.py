# tests/test_dishwasher.py
"""Tests for the Dishwasher state machine and its delay policies.

Test Coverage:
- Programme playback and wrap-around
- seed_position() cursor placement
- RUNNING -> DELAYED transitions per policy
- Retry, recovery and the delay ceiling
- Threshold setters
"""

import numpy as np
import pytest

from dwgrid.models.dishwasher import (
    FIXED_OFF_TIME,
    MAX_DELAY_TIME,
    DelayPolicy,
    Dishwasher,
    draw_retry_time,
    turn_off_threshold,
)

DT = 1.0
LOW_FREQ = 49.0
NORMAL_FREQ = 50.0


def run(dw, freq, ticks, dt=DT):
    return [dw.advance(freq, dt) for _ in range(ticks)]


@pytest.fixture
def two_step():
    """Pre-wash with no draw followed by a heating step."""
    return [(100, 0), (100, 2200)]


# ================================================================
# PLAYBACK
# ================================================================
class TestPlayback:

    def test_no_policy_follows_programme(self):
        dw = Dishwasher([(3, 100), (2, 2200)], policy=DelayPolicy.NONE)

        loads = run(dw, LOW_FREQ, 12)

        # a step ends on the tick its elapsed time exceeds its duration
        assert loads == [100, 100, 100, 2200, 2200, 2200, 100, 100, 100, 100, 2200, 2200]
        assert not dw.delayed

    def test_programme_wraps_to_first_step(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.FIXED)

        run(dw, NORMAL_FREQ, 202)

        assert dw.step_number == 0
        assert dw.step_run_time == 0.0

    def test_runtime_accumulates_while_running(self, two_step):
        dw = Dishwasher(two_step)

        run(dw, NORMAL_FREQ, 50)

        assert dw.runtime == 50.0


class TestSeedPosition:

    @pytest.fixture
    def dw(self):
        return Dishwasher([(100, 0), (200, 2200), (300, 100)])

    @pytest.mark.parametrize("t, step, elapsed", [
        (0, 0, 0),
        (50, 0, 50),
        (100, 1, 0),
        (150, 1, 50),
        (300, 2, 0),
        (599, 2, 299),
    ])
    def test_cursor_placement(self, dw, t, step, elapsed):
        dw.seed_position(t)

        assert dw.step_number == step
        assert dw.step_run_time == elapsed
        assert dw.runtime == t

    def test_beyond_total_run_time_stays_on_first_step(self, dw):
        dw.seed_position(650)

        assert dw.step_number == 0
        assert dw.step_run_time == 50

    def test_seeded_position_is_resumed(self, dw):
        dw.seed_position(150)

        assert dw.advance(NORMAL_FREQ, DT) == 2200
        assert dw.step_run_time == 51


# ================================================================
# FIXED DELAY
# ================================================================
class TestFixedDelay:

    def test_enters_delay_when_heating_would_start(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.FIXED)

        loads = run(dw, LOW_FREQ, 101)

        assert dw.delayed
        assert not dw.heating
        assert dw.step_number == 1
        assert dw.retry_time == FIXED_OFF_TIME
        # pre-wash power is drawn on the tick heating is suspended
        assert loads[-1] == 0

    def test_stays_delayed_until_ceiling_then_resumes(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.FIXED)
        run(dw, LOW_FREQ, 101)

        for _ in range(int(MAX_DELAY_TIME) - 1):
            assert dw.advance(LOW_FREQ, DT) == 0
            assert dw.delayed
            assert dw.retry_time == FIXED_OFF_TIME

        assert dw.advance(LOW_FREQ, DT) == 2200
        assert not dw.delayed
        assert dw.total_delay_time == MAX_DELAY_TIME

        # heating keeps going at low frequency once the ceiling is reached
        for _ in range(50):
            assert dw.advance(LOW_FREQ, DT) == 2200
            assert not dw.delayed
            assert dw.heating

    def test_ceiling_holds_until_programme_wraps(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.FIXED)
        run(dw, LOW_FREQ, 101 + int(MAX_DELAY_TIME))

        loads = run(dw, LOW_FREQ, 100)
        assert loads == [2200] * 100

        # the next cycle starts with a fresh delay allowance
        run(dw, LOW_FREQ, 102)
        assert dw.total_delay_time == 0.0
        assert dw.delayed

    def test_retry_resets_wait_time(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.FIXED)
        run(dw, LOW_FREQ, 101)

        run(dw, LOW_FREQ, int(FIXED_OFF_TIME) + 1)

        assert dw.delayed
        assert dw.wait_time == 0.0
        assert dw.total_delay_time == FIXED_OFF_TIME + 1

    def test_resumes_when_frequency_recovers(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.FIXED)
        run(dw, LOW_FREQ, 101)

        loads = run(dw, NORMAL_FREQ, int(FIXED_OFF_TIME) + 1)

        assert loads[-1] == 2200
        assert all(load == 0 for load in loads[:-1])
        assert not dw.delayed

    def test_programme_clock_stops_while_delayed(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.FIXED)
        run(dw, LOW_FREQ, 101)
        runtime = dw.runtime

        run(dw, LOW_FREQ, 500)

        assert dw.runtime == runtime
        assert dw.step_run_time == 0.0

    def test_total_delay_is_monotone_while_delayed(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.FIXED)
        run(dw, LOW_FREQ, 101)

        previous = dw.total_delay_time
        while dw.delayed:
            dw.advance(LOW_FREQ, DT)
            assert dw.total_delay_time >= previous
            previous = dw.total_delay_time

    def test_total_delay_resets_on_programme_wrap(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.FIXED)
        run(dw, LOW_FREQ, 101 + int(MAX_DELAY_TIME))
        assert dw.total_delay_time == MAX_DELAY_TIME

        run(dw, NORMAL_FREQ, 101)

        assert dw.step_number == 0
        assert dw.total_delay_time == 0.0

    def test_heating_and_delayed_are_exclusive(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.FIXED)

        for i in range(3000):
            dw.advance(LOW_FREQ if i % 700 < 400 else NORMAL_FREQ, DT)
            assert not (dw.heating and dw.delayed)

    def test_non_heating_steps_never_delay(self):
        dw = Dishwasher([(100, 500), (100, 1000)], policy=DelayPolicy.FIXED)

        for _ in range(1000):
            dw.advance(0.0, DT)
            assert not dw.delayed


# ================================================================
# RANDOM DELAYS
# ================================================================
class TestSingleRandomDelay:

    def test_retry_time_drawn_once(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.SINGLE_RANDOM, rng=np.random.default_rng(5))
        run(dw, LOW_FREQ, 101)

        expected = np.random.default_rng(5).random() * 7200 + 300

        assert dw.delayed
        assert dw.retry_time == pytest.approx(expected)
        assert 300 <= dw.retry_time < 7500

    def test_resumes_without_retesting_frequency(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.SINGLE_RANDOM, rng=np.random.default_rng(5))
        dw.max_delay_time = 1e9
        run(dw, LOW_FREQ, 101)
        retry = dw.retry_time

        ticks = 0
        while dw.delayed:
            load = dw.advance(LOW_FREQ, DT)
            ticks += 1

        assert ticks == int(np.floor(retry)) + 1
        assert load == 2200

    def test_delay_ceiling_applies(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.SINGLE_RANDOM, rng=np.random.default_rng(5))
        run(dw, LOW_FREQ, 101)

        ticks = 0
        while dw.delayed:
            dw.advance(LOW_FREQ, DT)
            ticks += 1

        assert ticks <= MAX_DELAY_TIME


class TestPropRandomDelay:

    def test_default_turn_off_freq(self):
        assert Dishwasher(policy=DelayPolicy.PROP_RANDOM).turn_off_freq == pytest.approx(49.8)

    def test_delays_below_49_8(self):
        dw = Dishwasher([(100, 100), (400, 2200)], policy=DelayPolicy.PROP_RANDOM,
                        rng=np.random.default_rng(7))
        dw.seed_position(150)

        assert dw.advance(49.75, DT) == 100
        assert dw.delayed

    def test_no_delay_above_threshold(self):
        dw = Dishwasher([(100, 100), (400, 2200)], policy=DelayPolicy.PROP_RANDOM)
        dw.seed_position(150)

        assert dw.advance(49.85, DT) == 2200
        assert not dw.delayed

    def test_retry_scaled_by_progress_against_first_step(self):
        dw = Dishwasher([(100, 100), (400, 2200)], policy=DelayPolicy.PROP_RANDOM,
                        rng=np.random.default_rng(7))
        dw.seed_position(150)

        dw.advance(LOW_FREQ, DT)

        # 51 s into the heating step, measured against the 100 s first step
        expected = np.random.default_rng(7).random() * 1200 * (1 - 51 / 100)
        assert dw.retry_time == pytest.approx(expected)

    def test_later_retries_use_full_scale(self):
        dw = Dishwasher([(100, 100), (400, 2200)], policy=DelayPolicy.PROP_RANDOM,
                        rng=np.random.default_rng(7))
        dw.seed_position(150)
        dw.advance(LOW_FREQ, DT)

        for _ in range(2000):
            dw.advance(LOW_FREQ, DT)
            if dw.wait_time == 0.0:
                break

        reference = np.random.default_rng(7)
        reference.random()
        assert dw.delayed
        assert dw.retry_time == pytest.approx(reference.random() * 1200)


class TestPropFreqRandomDelay:

    def test_threshold_high_early_in_step(self):
        dw = Dishwasher([(100, 100), (100, 2200)], policy=DelayPolicy.PROP_FREQ_RANDOM,
                        rng=np.random.default_rng(3))
        dw.seed_position(100)

        # 1 s in: threshold is 49.5 + 0.1 * 0.99 = 49.599 Hz
        assert dw.advance(49.58, DT) == 100
        assert dw.delayed
        expected = np.random.default_rng(3).random() * 600 * (1 - 0.01)
        assert dw.retry_time == pytest.approx(expected)

    def test_threshold_low_late_in_step(self):
        dw = Dishwasher([(100, 100), (100, 2200)], policy=DelayPolicy.PROP_FREQ_RANDOM)
        dw.seed_position(190)

        # 91 s in: threshold is 49.509 Hz
        assert dw.advance(49.58, DT) == 2200
        assert not dw.delayed

    def test_resumes_on_recovery(self):
        dw = Dishwasher([(100, 100), (100, 2200)], policy=DelayPolicy.PROP_FREQ_RANDOM,
                        rng=np.random.default_rng(3))
        dw.seed_position(100)
        dw.advance(LOW_FREQ, DT)

        loads = run(dw, NORMAL_FREQ, 700)

        assert not dw.delayed
        assert 2200 in loads


# ================================================================
# POLICY FUNCTIONS AND SETTERS
# ================================================================
class TestPolicyFunctions:

    @pytest.mark.parametrize("policy", [DelayPolicy.FIXED, DelayPolicy.SINGLE_RANDOM,
                                        DelayPolicy.PROP_RANDOM])
    def test_fixed_thresholds_ignore_progress(self, policy):
        assert turn_off_threshold(policy, 49.2, 0.0) == 49.2
        assert turn_off_threshold(policy, 49.2, 0.7) == 49.2

    def test_sliding_threshold(self):
        assert turn_off_threshold(DelayPolicy.PROP_FREQ_RANDOM, 49.5, 0.0) == pytest.approx(49.6)
        assert turn_off_threshold(DelayPolicy.PROP_FREQ_RANDOM, 49.5, 1.0) == pytest.approx(49.5)

    def test_fixed_retry_consumes_no_draw(self):
        rng = np.random.default_rng(1)

        assert draw_retry_time(DelayPolicy.FIXED, rng) == FIXED_OFF_TIME
        assert rng.random() == np.random.default_rng(1).random()


class TestThresholdSetters:

    def test_set_turn_off_freq(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.FIXED)
        dw.set_turn_off_freq(49.9)

        run(dw, 49.85, 101)

        assert dw.delayed

    def test_set_turn_on_freq(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.FIXED)
        dw.set_turn_on_freq(49.5)
        run(dw, LOW_FREQ, 101)

        loads = run(dw, 49.6, int(FIXED_OFF_TIME) + 1)

        assert loads[-1] == 2200
        assert not dw.delayed

    def test_no_policy_ignores_frequency(self, two_step):
        dw = Dishwasher(two_step, policy=DelayPolicy.NONE)

        loads = run(dw, 0.0, 150)

        assert not dw.delayed
        assert loads[-1] == 2200
