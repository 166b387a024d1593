# Lumped grid model: released demand and swing-equation frequency update
import numpy as np

INERTIA_CONSTANT = 4.0  # H, seconds of full-output energy stored at nominal frequency
DAMPING_CONSTANT = 1.0  # load self-regulation


class Grid:
    """
    A single-bus power grid. The rotating mass of the whole grid is lumped into
    one moment of inertia; frequency is its only evolving state.
    """
    def __init__(self, max_power, inertia_constant=INERTIA_CONSTANT, nominal_freq=50.0):
        """
        max_power: float, grid maximum capacity (W)
        inertia_constant: float, H in seconds
        nominal_freq: float, nominal frequency (Hz)
        """
        self.max_power = max_power
        self.inertia_constant = inertia_constant
        self.nominal_freq = nominal_freq
        omega = 2 * np.pi * nominal_freq
        self.inertia = (2 * max_power * inertia_constant) / (omega * omega)
        self.frequency = nominal_freq
        self.delta_f = 0.0

    def get_released_power(self, load, freq, nominal_freq):
        """
        Power released by motor loads slowing down as frequency sags
        (negative when frequency is above nominal).
        """
        return -DAMPING_CONSTANT * load * ((freq - nominal_freq) / nominal_freq)

    def get_surplus_power(self, generated, released, load):
        """Accelerating power: generation plus released demand minus load."""
        return generated + released - load

    def get_new_frequency(self, freq, surplus_power, dt):
        """
        Integrates the rotational kinetic energy over dt with constant
        accelerating power:
            omega' = sqrt(omega^2 + 2 * Ps * dt / I)
        evaluated as omega * sqrt(1 + 2 * Ps * dt / (I * omega^2)) so that zero
        surplus leaves the frequency bit-for-bit unchanged. A large deficit over
        a long dt can drive the radicand negative, which yields nan.
        """
        omega = 2 * np.pi * np.float64(freq)
        ratio = np.sqrt(1 + (2 * surplus_power * dt) / (self.inertia * omega * omega))
        new_freq = float(freq * ratio)
        self.delta_f = new_freq - freq
        self.frequency = new_freq
        return new_freq
