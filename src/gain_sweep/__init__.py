from gain_sweep.physics import integrate_beam
from gain_sweep.sweep import sweep_laser

__all__ = ["integrate_beam", "sweep_laser"]
