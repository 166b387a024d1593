#!/usr/bin/env python3
"""
Dishwasher dynamic demand simulation - runs a scenario and writes results.dat.

Example:
    python main.py --scenario step_load --ticks 20000
    python main.py --config config.yaml
"""

import argparse
import logging
import sys

from dwgrid.analytics import summarise, flag_events
from dwgrid.config import ScenarioConfig, ConfigError, get_scenario, SCENARIOS
from dwgrid.models.wind import WindDataError
from dwgrid.simulation import GridSimulation, write_results

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Simulate grid frequency with a fleet of frequency-sensitive dishwashers.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--scenario", choices=sorted(SCENARIOS), default="step_load",
                        help="Preset scenario (ignored when --config is given)")
    parser.add_argument("--config", type=str, default=None,
                        help="YAML scenario file")
    parser.add_argument("--ticks", type=int, default=None,
                        help="Number of simulation ticks (overrides the scenario)")
    parser.add_argument("--washers", type=int, default=None,
                        help="Number of dishwashers simulated")
    parser.add_argument("--policy", type=str, default=None,
                        help="Delay policy: none, fixed, single_random, prop_random, prop_freq_random")
    parser.add_argument("--wind-file", type=str, default=None,
                        help="Wind data CSV (seconds,MW)")
    parser.add_argument("--output", type=str, default="results.dat")
    parser.add_argument("--debug", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = ScenarioConfig.from_yaml(args.config) if args.config else get_scenario(args.scenario)
        if args.ticks is not None:
            config.num_ticks = args.ticks
        if args.washers is not None:
            config.num_washers = args.washers
        if args.policy is not None:
            config.policy = args.policy
        if args.wind_file is not None:
            config.wind_file = args.wind_file
        sim = GridSimulation(config)
    except (OSError, ConfigError, WindDataError) as e:
        logger.error(f"Could not set up simulation: {e}")
        return 1
    except ValueError as e:
        # e.g. an unknown delay policy name
        logger.error(f"Invalid scenario setting: {e}")
        return 1

    df = sim.run()

    try:
        write_results(df, args.output, config, sim)
    except OSError as e:
        logger.error(f"Error writing {args.output}: {e}")
        return 1

    print(summarise(df, config.dt).to_string())
    for warning in flag_events(df, config.dt):
        print("Warning:", warning)
    return 0


if __name__ == "__main__":
    sys.exit(main())
