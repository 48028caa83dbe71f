"""
battmon
=======

Flight battery monitor: remaining-capacity estimation and audible alerts
for an RC transmitter telemetry widget.

The monitor fuses a lithium voltage curve with coulomb counting, keeps
per-session extrema, persists a session record on every reset and plays
warnings for undercharged, inconsistent or missing cells.

Components:
    - scheduler: Debounced / delayed / periodic named tasks
    - history: Telemetry aggregation and session persistence
    - estimation: Voltage curve and capacity estimator
    - alerts: Warning and announcement policy
    - agent: LangGraph tick pipeline and reset switch monitor
    - render: Layout classes and display frames
    - host: Host service protocol and simulated host

Example:
    from battmon.host import SimulatedHost
    from battmon.widget import BatteryWidget

    widget = BatteryWidget().initialize(SimulatedHost())
    status = widget.on_tick()
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
