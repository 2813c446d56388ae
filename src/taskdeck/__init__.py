"""taskdeck: single-user task tracker with auth, derived task views and a weather readout."""

__version__ = "0.1.0"
