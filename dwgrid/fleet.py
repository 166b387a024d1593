import logging

import numpy as np

from dwgrid.config import (
    FLEET_SEED, PROGRAMME_SEED, RUNTIME_SEED, FLEET_RAND_PCT, PCT_ECO, ON_LOAD_THRESHOLD_W,
)
from dwgrid.models.dishwasher import Dishwasher, DelayPolicy
from dwgrid.models.programme import WashProgramme, ECO_PROGRAMME, STANDARD_PROGRAMME

logger = logging.getLogger(__name__)

# --- FLEET AGGREGATION ---

class DishwasherFleet:
    """
    Owns a fixed set of dishwashers and sums their load each tick.
    Construction is reproducible: the same seeds always build the same fleet.
    """
    def __init__(self, num_washers, pct_eco=PCT_ECO, policy=DelayPolicy.PROP_FREQ_RANDOM,
                 rand_pct=FLEET_RAND_PCT, seed=FLEET_SEED, programme_seed=PROGRAMME_SEED,
                 runtime_seed=RUNTIME_SEED):
        # Number of dishwashers in the fleet
        self.num_washers = num_washers
        # Percentage of dishwashers running the 'Eco' programme
        self.pct_eco = pct_eco
        self.policy = DelayPolicy(policy)
        rng = np.random.default_rng(seed)
        programme_rng = np.random.default_rng(programme_seed)
        # one runtime stream per dishwasher, independent of fleet size
        runtime_seqs = np.random.SeedSequence(runtime_seed).spawn(num_washers)

        self._washers = []
        num_eco = 0
        for n in range(num_washers):
            if rng.random() * 100 < pct_eco:
                pairs = ECO_PROGRAMME
                num_eco += 1
            else:
                pairs = STANDARD_PROGRAMME
            programme = WashProgramme(pairs, rand_pct, programme_rng)
            dw = Dishwasher(programme, policy=self.policy,
                            rng=np.random.default_rng(runtime_seqs[n]))
            # start part-way through the programme so the fleet is not synchronised
            dw.seed_position(rng.random() * dw.total_run_time)
            self._washers.append(dw)

        self._loads = np.zeros(num_washers)
        self._pct_on_load = 0.0
        self._pct_delayed = 0.0
        self._max_total_delay = 0.0
        logger.info(f"Built fleet of {num_washers} dishwashers ({num_eco} Eco, policy {self.policy.value})")

    def calc_load(self, dt, freq):
        """
        Runs every dishwasher for one tick and returns the total fleet load (W).
        Also refreshes the fleet telemetry for this tick.
        """
        num_on_load = 0
        num_delayed = 0
        max_total_delay = 0.0
        for n, dw in enumerate(self._washers):
            self._loads[n] = dw.advance(freq, dt)
            if self._loads[n] > ON_LOAD_THRESHOLD_W:
                num_on_load += 1
            if dw.total_delay_time > max_total_delay:
                max_total_delay = dw.total_delay_time
            if dw.delayed:
                num_delayed += 1
        if self.num_washers:
            self._pct_on_load = 100 * num_on_load / self.num_washers
            self._pct_delayed = 100 * num_delayed / self.num_washers
        self._max_total_delay = max_total_delay
        return float(self._loads.sum())

    def set_turn_off_freq(self, f):
        for dw in self._washers:
            dw.set_turn_off_freq(f)

    def set_turn_on_freq(self, f):
        for dw in self._washers:
            dw.set_turn_on_freq(f)

    # --- TELEMETRY ---

    @property
    def washers(self):
        return tuple(self._washers)

    @property
    def loads(self):
        """Per-dishwasher loads (W) from the last tick."""
        return self._loads.copy()

    @property
    def pct_on_load(self):
        """Percentage of dishwashers drawing more than 200 W last tick."""
        return self._pct_on_load

    @property
    def pct_delayed(self):
        """Percentage of dishwashers with heating suspended last tick."""
        return self._pct_delayed

    @property
    def max_total_delay(self):
        """Longest accumulated delay (s) across the fleet last tick."""
        return self._max_total_delay

    def __len__(self):
        return self.num_washers


# --- EXAMPLE TEST ---
if __name__ == "__main__":
    fleet = DishwasherFleet(1000, 40)
    dt = 0.1
    t = 0.0
    while t < 12000:
        load = fleet.calc_load(dt, 50.0)
        print(t, load, fleet.pct_on_load)
        t += dt
