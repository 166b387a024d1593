import pandas as pd

from dwgrid.models.dishwasher import MAX_DELAY_TIME

STATUTORY_MIN_FREQ = 49.5  # Hz

# --- ANALYTICS FUNCTIONS ---

def find_frequency_nadir(df):
    """
    Identify the lowest grid frequency of a run.
    Returns (time_s, frequency_hz).
    """
    idx = df['frequency_hz'].idxmin()
    return df.loc[idx, 'time_s'], df.loc[idx, 'frequency_hz']


def time_below(df, threshold_hz, dt):
    """
    Returns the total time (s) the frequency spent below threshold_hz.
    """
    return int((df['frequency_hz'] < threshold_hz).sum()) * dt


def dishwasher_power_range(df):
    """
    Returns (min, max) aggregate dishwasher power in MW.
    """
    return df['dishwasher_mw'].min(), df['dishwasher_mw'].max()


def peak_delayed(df):
    """
    Returns the largest percentage of the fleet delayed at once, and the
    dishwasher power (MW) that represents.
    """
    idx = df['pct_delayed'].idxmax()
    return df.loc[idx, 'pct_delayed'], df.loc[idx, 'delayed_mw']


def flag_events(df, dt):
    """
    Flags notable grid events like statutory frequency breaches.
    Returns list of warnings.
    """
    warnings = []
    below = time_below(df, STATUTORY_MIN_FREQ, dt)
    if below > 0:
        warnings.append(f"Frequency below {STATUTORY_MIN_FREQ} Hz for {below:.1f} s.")
    if (df['max_total_delay_s'] >= MAX_DELAY_TIME).any():
        warnings.append("Some dishwashers reached the maximum delay and were forced back on.")
    if df['frequency_hz'].isna().any():
        warnings.append("Frequency became undefined (nan); reduce the time step.")
    return warnings


def summarise(df, dt):
    """
    Collects the headline figures of a run into a Series.
    """
    nadir_time, nadir_freq = find_frequency_nadir(df)
    dw_min, dw_max = dishwasher_power_range(df)
    pct_delayed, delayed_mw = peak_delayed(df)
    return pd.Series({
        'Nadir frequency (Hz)': nadir_freq,
        'Nadir time (s)': nadir_time,
        'Final frequency (Hz)': df['frequency_hz'].iloc[-1],
        f'Time below {STATUTORY_MIN_FREQ} Hz (s)': time_below(df, STATUTORY_MIN_FREQ, dt),
        'Min dishwasher power (MW)': dw_min,
        'Max dishwasher power (MW)': dw_max,
        'Peak delayed (%)': pct_delayed,
        'Peak delayed power (MW)': delayed_mw,
        'Longest delay (s)': df['max_total_delay_s'].max(),
    })
