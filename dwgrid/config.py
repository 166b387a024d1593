"""Simulation parameters for the dishwasher/grid model."""

from dataclasses import dataclass, fields, asdict

import yaml

# --- FLEET ---
FLEET_SEED = 987654321      # construction stream: programme choice and start phase
PROGRAMME_SEED = 42         # jitter of step times and powers
RUNTIME_SEED = 20110101     # parent of the per-appliance retry streams
FLEET_RAND_PCT = 0.2        # 0.2 = +/-10%
PCT_ECO = 40.0              # percentage of dishwashers running the 'Eco' programme
ON_LOAD_THRESHOLD_W = 200.0 # above baseline/motor-only draw

# --- GRID ---
NOMINAL_FREQ = 50.0         # Hz
INERTIA_CONSTANT = 4.0      # s
GENERATOR_DROOP = 4.0       # %
BASE_GAIN = 0.0067          # base load governor gain
RESERVE_GAIN = 0.3          # spinning reserve governor gain
BASE_SETPOINT = 52.0        # Hz, zero-output set point of base load plant
RESERVE_SETPOINT = 50.0     # Hz


class ConfigError(ValueError):
    """Raised for unknown or malformed scenario settings."""


@dataclass
class ScenarioConfig:
    """
    Every parameter of one simulation run. Powers are in Watts, times in seconds.
    """
    name: str = "step_load"
    inertia_constant: float = INERTIA_CONSTANT
    base_load: float = 28.68e9
    base_gen: float = 30.0e9
    reserve_gen: float = 0.0
    initial_dw_power: float = 1.32e9
    grid_headroom: float = 1.32e9
    load_step: float = 1.32e9
    step_required: bool = True
    secondary_response_time: float = 120.0

    num_washers: int = 1000
    dw_multiplier: int = 1280
    pct_eco: float = PCT_ECO
    policy: str = "prop_freq_random"
    turn_off_freq: float = 49.8
    turn_on_freq: float = 49.95
    seed: int = FLEET_SEED
    programme_seed: int = PROGRAMME_SEED
    runtime_seed: int = RUNTIME_SEED

    nominal_freq: float = NOMINAL_FREQ
    droop: float = GENERATOR_DROOP
    base_gain: float = BASE_GAIN
    reserve_gain: float = RESERVE_GAIN

    dt: float = 0.1
    start_time: float = -200.0
    start_index: int = -2000
    num_ticks: int = 152000
    wind_file: str = ""

    @classmethod
    def from_dict(cls, data):
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown scenario settings: {', '.join(sorted(unknown))}")
        try:
            return cls(**data)
        except TypeError as e:
            raise ConfigError(str(e)) from e

    @classmethod
    def from_yaml(cls, path):
        """Load a scenario from a YAML file. An empty file gives the defaults."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping of scenario settings")
        return cls.from_dict(data)

    def to_dict(self):
        return asdict(self)


# Preset scenarios
SCENARIOS = {
    # loss of a 1.32 GW unit with no spinning reserve, dishwashers absorb the shortfall
    "step_load": ScenarioConfig(),
    # a day of real wind output at 1 s resolution with 3.3 GW of spinning reserve
    "wind": ScenarioConfig(
        name="wind",
        base_load=29.02e9,
        base_gen=29.7e9,
        reserve_gen=3.3e9,
        grid_headroom=1.0e9,
        load_step=0.0,
        step_required=False,
        secondary_response_time=float("inf"),
        dt=1.0,
        start_time=0.0,
        start_index=0,
        num_ticks=324000,
        wind_file="InterpolatedWindData.csv",
    ),
}


def get_scenario(name):
    """Returns a copy of a preset scenario."""
    if name not in SCENARIOS:
        raise ConfigError(f"Unknown scenario '{name}', choose from {', '.join(SCENARIOS)}")
    return ScenarioConfig.from_dict(SCENARIOS[name].to_dict())
