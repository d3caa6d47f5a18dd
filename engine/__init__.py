"""
LC Meter Compute Engine

Equivalent-circuit extraction for capacitors and inductors measured with an
oscilloscope, a signal generator and a reference resistor, plus engineering
notation formatting for the results.

All functions are pure: no instrument I/O and no shared state.
"""

from engine.notation import format_eng, DomainError, SI_PREFIXES
from engine.impedance import (
    Measurement,
    MeasurementError,
    SolvedCircuit,
    InductiveBranch,
    CapacitiveBranch,
    PhaseClampWarning,
    solve,
    solve_measurement,
    solve_batch,
    parse_measurement_csv,
)
from engine.report import render_report, formatted_fields, format_quantity, export_csv

__version__ = "0.1.0"
