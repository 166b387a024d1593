import logging

import pandas as pd

from dwgrid.config import ScenarioConfig, BASE_SETPOINT, RESERVE_SETPOINT
from dwgrid.fleet import DishwasherFleet
from dwgrid.models.generator import Generator
from dwgrid.models.grid import Grid
from dwgrid.models.wind import WindPower

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    "time_s", "frequency_hz", "deficit_mw", "released_mw", "reserve_mw", "base_mw",
    "dishwasher_mw", "pct_heating", "base_max_mw", "delta_f_hz", "max_total_delay_s",
    "pct_delayed", "delayed_mw", "wind_mw",
]

# --- SIMULATION ENGINE ---

class GridSimulation:
    """
    Couples a dishwasher fleet, a base load generator, spinning reserve and
    optional wind to a single grid and steps them forward in time.
    Each tick the fleet and the generators respond to the frequency settled at
    the end of the previous tick.
    """
    def __init__(self, config=None, wind=None):
        """
        config: ScenarioConfig, all run parameters
        wind: WindPower, optional; loaded from config.wind_file if not given
        """
        self.config = config or ScenarioConfig()
        cfg = self.config
        self.fleet = DishwasherFleet(cfg.num_washers, cfg.pct_eco, cfg.policy,
                                     seed=cfg.seed, programme_seed=cfg.programme_seed,
                                     runtime_seed=cfg.runtime_seed)
        self.fleet.set_turn_off_freq(cfg.turn_off_freq)
        self.fleet.set_turn_on_freq(cfg.turn_on_freq)
        self.grid = Grid(cfg.base_gen + cfg.initial_dw_power + cfg.grid_headroom,
                         cfg.inertia_constant, cfg.nominal_freq)
        # base load plant running flat out
        self.base_gen = Generator(cfg.base_gen, BASE_SETPOINT, cfg.nominal_freq, cfg.droop,
                                  cfg.base_gain, cfg.base_gen)
        # spinning reserve, not initially generating
        self.reserve_gen = Generator(cfg.reserve_gen, RESERVE_SETPOINT, cfg.nominal_freq,
                                     cfg.droop, cfg.reserve_gain)
        if wind is None and cfg.wind_file:
            wind = WindPower.from_csv(cfg.wind_file)
        self.wind = wind
        self.freq = cfg.nominal_freq
        self.t = cfg.start_time
        self.min_dishwasher_power = float("inf")
        self.max_dishwasher_power = 0.0

    def step(self, i):
        """Advances one tick. i is the tick index, 0 being the load step."""
        cfg = self.config
        dt = cfg.dt
        self.t += dt

        dw_power = self.fleet.calc_load(dt, self.freq) * cfg.dw_multiplier
        self.max_dishwasher_power = max(self.max_dishwasher_power, dw_power)
        self.min_dishwasher_power = min(self.min_dishwasher_power, dw_power)
        load = cfg.base_load + dw_power

        wind_power = self.wind.power_at(self.t) if self.wind is not None else 0.0
        base_power = self.base_gen.get_current_power(self.freq, dt)
        reserve_power = self.reserve_gen.get_current_power(self.freq, dt)
        released = self.grid.get_released_power(cfg.base_load, self.freq, cfg.nominal_freq)
        surplus = self.grid.get_surplus_power(base_power + reserve_power + wind_power, released, load)
        self.freq = self.grid.get_new_frequency(self.freq, surplus, dt)

        row = {
            "time_s": self.t,
            "frequency_hz": self.freq,
            "deficit_mw": -surplus / 1e6,
            "released_mw": released / 1e6,
            "reserve_mw": reserve_power / 1e6,
            "base_mw": base_power / 1e6,
            "dishwasher_mw": dw_power / 1e6,
            "pct_heating": self.fleet.pct_on_load,
            "base_max_mw": self.base_gen.max_power / 1e6,
            "delta_f_hz": self.grid.delta_f,
            "max_total_delay_s": self.fleet.max_total_delay,
            "pct_delayed": self.fleet.pct_delayed,
            "delayed_mw": self.fleet.pct_delayed / 100 * cfg.num_washers * cfg.dw_multiplier / 1e6,
            "wind_mw": wind_power / 1e6,
        }

        if cfg.step_required and i == 0:
            # trip a unit: take the load step off the base capacity
            logger.info(f"t={self.t:.1f}s: base generation tripped by {cfg.load_step / 1e6:.0f} MW")
            self.base_gen.override_current_power(cfg.base_gen - cfg.load_step)
            self.base_gen.set_max_power(cfg.base_gen - cfg.load_step)
        if self.t >= cfg.secondary_response_time:
            if self.base_gen.max_power != cfg.base_gen:
                logger.info(f"t={self.t:.1f}s: secondary response restores base capacity")
            self.base_gen.set_max_power(cfg.base_gen)
        return row

    def run(self, num_ticks=None):
        """
        Runs the scenario and returns a DataFrame with one row per tick.
        """
        cfg = self.config
        num_ticks = cfg.num_ticks if num_ticks is None else num_ticks
        logger.info(f"Running '{cfg.name}': {num_ticks} ticks of {cfg.dt}s, "
                    f"{cfg.num_washers} dishwashers x {cfg.dw_multiplier}")
        rows = [self.step(i) for i in range(cfg.start_index, cfg.start_index + num_ticks)]
        df = pd.DataFrame(rows, columns=RESULT_COLUMNS)
        logger.info(f"Finished '{cfg.name}': final frequency {self.freq:.4f} Hz")
        return df


def write_results(df, path, config, sim=None):
    """
    Writes a run as plain text: parameter header lines, then comma-separated columns.
    """
    with open(path, "w") as f:
        f.write(f"H = {config.inertia_constant}\n")
        f.write(f"Base Generation (GW) = {config.base_gen / 1e9}\n")
        f.write(f"Spinning Reserve (GW) = {config.reserve_gen / 1e9}\n")
        f.write(f"Number of dishwashers = {config.num_washers * config.dw_multiplier}\n")
        f.write(f"Percentage running 'Eco' programme = {config.pct_eco}\n")
        f.write(f"Load step required = {config.step_required}\n")
        f.write(f"Load step (GW) = {config.load_step / 1e9}\n")
        df.to_csv(f, index=False)
        if sim is not None:
            f.write(f"Minimum Dishwasher power was {sim.min_dishwasher_power} (W)\n")
            f.write(f"Maximum Dishwasher power was {sim.max_dishwasher_power} (W)\n")
    logger.info(f"Wrote {len(df)} rows to {path}")
