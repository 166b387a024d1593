# Droop-controlled generator model for the dishwasher/grid simulation


class Generator:
    """
    A generator with a droop characteristic and a first-order governor.
    Output moves toward the droop target at a rate set by the governor gain.
    Callers must keep gain * dt < 1 for a stable response; this is not checked.
    """
    def __init__(self, max_power, setpoint, nominal_freq, droop, gain, initial_power=0.0):
        """
        max_power: float, maximum power output (W)
        setpoint: float, zero-output frequency set point (Hz)
        nominal_freq: float, nominal grid frequency (Hz)
        droop: float, droop characteristic in percent (4.0 = 4%)
        gain: float, governor gain (1/s)
        initial_power: float, power output at creation (W)
        """
        self.max_power = max_power
        self.setpoint = setpoint
        self.nominal_freq = nominal_freq
        self.droop = droop / 100
        self.gain = gain
        self.current_power = initial_power
        self.target_power = initial_power

    def get_target_power(self, freq):
        """
        Returns the droop target, bounded to [0, max_power]:
        target = ((setpoint - freq) / (droop * nominal_freq)) * max_power
        """
        target = ((self.setpoint - freq) / (self.droop * self.nominal_freq)) * self.max_power
        if target > self.max_power:
            target = self.max_power
        if target < 0:
            target = 0.0
        return target

    def get_current_power(self, freq, dt):
        """
        Advances the governor by dt seconds (explicit Euler) and returns the new output.
        """
        self.target_power = self.get_target_power(freq)
        self.current_power += (self.target_power - self.current_power) * self.gain * dt
        return self.current_power

    # --- OPERATOR ACTIONS ---

    def set_max_power(self, max_power):
        self.max_power = max_power

    def set_setpoint(self, freq):
        self.setpoint = freq

    def set_gain(self, gain):
        self.gain = gain

    def override_current_power(self, power):
        """Instantaneously changes the output, e.g. a unit tripping offline."""
        self.current_power = power


# Example: a 1.32 GW unit responding to a raised power limit
if __name__ == "__main__":
    g = Generator(1.32e9, 52.0, 50.0, 4.0, 0.3)
    g.set_max_power(1.0e9)
    t = 0.0
    dt = 0.5
    for i in range(1, 1000):
        pout = g.get_current_power(50.0, dt)
        t += dt
        if i == 500:
            g.set_max_power(1.32e9)
        print(t, pout)
