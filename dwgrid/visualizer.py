import plotly.graph_objs as go
import plotly.io as pio
from plotly.subplots import make_subplots

pio.templates.default = "plotly_dark"

POWER_COLUMNS = {
    'base_mw': "Base generation",
    'reserve_mw': "Spinning reserve",
    'released_mw': "Released demand",
    'dishwasher_mw': "Dishwashers",
    'wind_mw': "Wind",
    'deficit_mw': "Deficit",
}

# --- VISUALIZATION FUNCTIONS ---

def get_frequency_fig(df, turn_off_freq=None, turn_on_freq=None):
    """
    Returns a Plotly Figure of grid frequency against time,
    with the fleet's turn-off and turn-on thresholds marked.
    """
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=df['time_s'], y=df['frequency_hz'], mode='lines', name="Frequency"))
    if turn_off_freq is not None:
        fig.add_hline(y=turn_off_freq, line_dash="dash", line_color="red", annotation_text="turn-off")
    if turn_on_freq is not None:
        fig.add_hline(y=turn_on_freq, line_dash="dash", line_color="green", annotation_text="turn-on")
    fig.update_layout(title="Grid Frequency", xaxis_title="Time (s)", yaxis_title="Hz")
    return fig

def get_power_fig(df):
    """
    Returns a Plotly Figure of each power component (MW) over time.
    Columns that stay at zero for the whole run (e.g. no wind) are left out.
    """
    fig = go.Figure()
    for col, label in POWER_COLUMNS.items():
        if col in df.columns and (df[col] != 0).any():
            fig.add_trace(go.Scatter(x=df['time_s'], y=df[col], mode='lines', name=label))
    fig.update_layout(title="Power Components", xaxis_title="Time (s)", yaxis_title="MW")
    return fig

def get_fleet_fig(df):
    """
    Returns a Plotly Figure of fleet telemetry: % heating and % delayed on the
    left axis, longest accumulated delay (s) on the right.
    """
    fig = make_subplots(specs=[[{"secondary_y": True}]])
    fig.add_trace(go.Scatter(x=df['time_s'], y=df['pct_heating'], mode='lines', name="% heating"))
    fig.add_trace(go.Scatter(x=df['time_s'], y=df['pct_delayed'], mode='lines', name="% delayed"))
    fig.add_trace(go.Scatter(x=df['time_s'], y=df['max_total_delay_s'], mode='lines',
                             name="Longest delay (s)"), secondary_y=True)
    fig.update_layout(title="Dishwasher Fleet", xaxis_title="Time (s)")
    fig.update_yaxes(title_text="%", secondary_y=False)
    fig.update_yaxes(title_text="s", secondary_y=True)
    return fig
