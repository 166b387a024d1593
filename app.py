import dash
from dash import dcc, html, Output, Input, State
import dash_bootstrap_components as dbc

from dwgrid.analytics import summarise, flag_events
from dwgrid.config import get_scenario
from dwgrid.models.dishwasher import DEFAULT_TURN_OFF_FREQ, DelayPolicy
from dwgrid.simulation import GridSimulation
from dwgrid.visualizer import get_frequency_fig, get_power_fig, get_fleet_fig

# Dash app with dark theme
app = dash.Dash(__name__, external_stylesheets=[dbc.themes.DARKLY])
app.title = "Dynamic Demand Grid Simulator"


def run_simulation(num_washers=200, pct_eco=40.0, policy="prop_freq_random",
                   reserve_gw=0.0, duration_s=600, dt=0.1):
    """
    Runs the loss-of-generation scenario with the chosen fleet settings.
    The fleet is scaled so the dishwashers always stand for the same national load.
    """
    config = get_scenario("step_load")
    config.dw_multiplier = int(config.num_washers * config.dw_multiplier / num_washers)
    config.num_washers = num_washers
    config.pct_eco = pct_eco
    config.policy = policy
    # each policy sheds load at its own threshold
    config.turn_off_freq = DEFAULT_TURN_OFF_FREQ[DelayPolicy(policy)]
    config.reserve_gen = reserve_gw * 1e9
    config.dt = dt
    config.start_time = -20.0
    config.start_index = -int(20 / dt)
    config.num_ticks = int((duration_s + 20) / dt)
    sim = GridSimulation(config)
    return sim.run(), config


# --- DASH APP LAYOUT ---
# Controls on the left, analytics on the right, plots below.
app.layout = dbc.Container([
    html.H2("Dynamic Demand Grid Simulator", className="text-center my-4"),
    dbc.Row([
        dbc.Col([
            dbc.Card([
                dbc.CardHeader("Simulation Controls"),
                dbc.CardBody([
                    dbc.Label("Dishwashers simulated"),
                    dbc.Input(id="washers-input", type="number", min=10, max=5000, step=10, value=200),
                    html.Br(),
                    dbc.Label("'Eco' programme (%)"),
                    dcc.Slider(id="eco-slider", min=0, max=100, step=5, value=40,
                               marks={0: "0", 50: "50", 100: "100"}),
                    html.Br(),
                    dbc.Label("Delay policy"),
                    dbc.RadioItems(
                        options=[{"label": p.value.replace("_", " ").title(), "value": p.value}
                                 for p in DelayPolicy],
                        value=DelayPolicy.PROP_FREQ_RANDOM.value,
                        id="policy-radio",
                    ),
                    html.Br(),
                    dbc.Label("Spinning reserve (GW)"),
                    dcc.Slider(id="reserve-slider", min=0, max=3.3, step=0.33, value=0,
                               marks={0: "0", 1.65: "1.65", 3.3: "3.3"}),
                    html.Br(),
                    dbc.RadioItems(
                        options=[
                            {"label": "10 min", "value": 600},
                            {"label": "1 hour", "value": 3600},
                        ],
                        value=600,
                        id="duration-radio",
                        inline=True,
                        labelClassName="me-3"
                    ),
                    html.Br(),
                    dbc.Button("Run Simulation", id="run-btn", color="primary", className="me-2"),
                ])
            ])
        ], width=3),
        dbc.Col([
            dbc.Card([
                dbc.CardHeader("Analytics"),
                dbc.CardBody([
                    html.Div(id="analytics-output"),
                    html.Div(id="warnings-output", className="text-warning mt-2"),
                ])
            ])
        ], width=9)
    ], className="mb-4"),
    dbc.Row([
        dbc.Col(dcc.Graph(id="frequency-plot", figure={}), width=12)
    ]),
    dbc.Row([
        dbc.Col(dcc.Graph(id="power-plot", figure={}), width=6),
        dbc.Col(dcc.Graph(id="fleet-plot", figure={}), width=6),
    ])
], fluid=True)


# --- MAIN DASH CALLBACK ---
# Runs the simulation and updates all plots and analytics when the user clicks 'Run Simulation'.
@app.callback(
    [Output("frequency-plot", "figure"),
     Output("power-plot", "figure"),
     Output("fleet-plot", "figure"),
     Output("analytics-output", "children"),
     Output("warnings-output", "children")],
    [Input("run-btn", "n_clicks")],
    [State("washers-input", "value"), State("eco-slider", "value"), State("policy-radio", "value"),
     State("reserve-slider", "value"), State("duration-radio", "value")]
)
def update_dashboard(n_clicks, washers_value, eco_value, policy_value, reserve_value, duration_value):
    if not n_clicks:
        raise dash.exceptions.PreventUpdate
    df, config = run_simulation(num_washers=int(washers_value or 200), pct_eco=float(eco_value),
                                policy=policy_value, reserve_gw=float(reserve_value),
                                duration_s=int(duration_value))
    summary = summarise(df, config.dt)
    analytics = [html.Li(f"{k}: {v:.3f}") for k, v in summary.items()]
    warnings = flag_events(df, config.dt)
    warnings_div = [html.Div(w) for w in warnings] if warnings else ""
    return (
        get_frequency_fig(df, config.turn_off_freq, config.turn_on_freq),
        get_power_fig(df),
        get_fleet_fig(df),
        html.Ul(analytics),
        warnings_div
    )

if __name__ == "__main__":
    app.run(debug=True)
