# Wind generation time series for the dishwasher/grid simulation
import logging
import os

import pandas as pd

logger = logging.getLogger(__name__)


class WindDataError(ValueError):
    """Raised when a wind data file cannot be parsed."""


class WindPower:
    """
    Distributed wind generation read from a historical series.
    Each row of the source is (time in seconds, power in MW); a row's power
    applies until the simulation time passes the row's time.
    """
    def __init__(self, series):
        """
        series: DataFrame with integer column 'step_sec' and float column 'power_mw'
        """
        self.series = series.reset_index(drop=True)
        self._row = -1
        self._exhausted = False
        self.step_sec = 0
        self.wind_power = 0.0

    @classmethod
    def from_csv(cls, path):
        """
        Loads a headerless 'seconds,MW' CSV file.
        Raises FileNotFoundError, IsADirectoryError or PermissionError if the
        file cannot be opened, WindDataError if its content is malformed.
        """
        if not os.path.exists(path):
            raise FileNotFoundError(f"Wind data file not found: {path}")
        if not os.path.isfile(path):
            raise IsADirectoryError(f"Wind data path is not a file: {path}")
        if not os.access(path, os.R_OK):
            raise PermissionError(f"Wind data file is not readable: {path}")
        try:
            df = pd.read_csv(path, header=None, names=["step_sec", "power_mw"],
                             usecols=[0, 1], skipinitialspace=True)
            df = df.astype({"step_sec": "int64", "power_mw": "float64"})
        except (ValueError, pd.errors.ParserError) as e:
            raise WindDataError(f"Malformed wind data in {path}: {e}") from e
        if df.empty:
            raise WindDataError(f"No wind data in {path}")
        logger.info(f"Loaded {len(df)} wind samples from {path}")
        return cls(df)

    def read_next_wind(self):
        """
        Moves to the next sample and returns its power in Watts.
        At the end of the series the last sample is held.
        """
        if self._row + 1 >= len(self.series):
            if not self._exhausted:
                logger.warning(f"Wind series exhausted at {self.step_sec} s, holding last value")
                self._exhausted = True
            return self.wind_power
        self._row += 1
        row = self.series.iloc[self._row]
        self.step_sec = int(row["step_sec"])
        self.wind_power = float(row["power_mw"]) * 1e6
        return self.wind_power

    def power_at(self, t):
        """Returns wind power (W) at simulation time t, reading ahead as needed."""
        if self._row < 0:
            self.read_next_wind()
        while t > self.step_sec and not self._exhausted:
            self.read_next_wind()
        return self.wind_power
