"""
Text and CSV rendering of solved circuits.

Every numeric field goes through engineering notation. Fields that came
out infinite or NaN are shown as 'undefined' and exact zeros as '0',
since neither has an engineering-notation form.
"""

import csv
import io
import math
from typing import Dict, List

from engine.impedance import SolvedCircuit, InductiveBranch
from engine.notation import DEFAULT_DIGITS, format_eng

UNDEFINED = 'undefined'

# Output field → (label, unit)
_OUTPUT_UNITS = {
    'impedance': ('Z', 'Ohms'),
    'ls': ('Ls', 'H'),
    'lp': ('Lp', 'H'),
    'cs': ('Cs', 'F'),
    'cp': ('Cp', 'F'),
    'resr': ('Rs (Resr)', 'Ohms'),
    'rp': ('Rp', 'Ohms'),
    'reactance': ('X', 'Ohms'),
}


def format_quantity(value: float, unit: str = '', digits: int = DEFAULT_DIGITS, numeric: bool = False) -> str:
    """
    Format a value with its unit, e.g. 0.0010412 H → '1.041 mH'.

    Non-finite values become 'undefined'; zero becomes '0 <unit>'.
    """
    if not math.isfinite(value):
        return UNDEFINED
    if value == 0:
        return f"0 {unit}".rstrip()
    return f"{format_eng(value, digits, numeric)}{unit}"


def formatted_fields(circuit: SolvedCircuit, digits: int = DEFAULT_DIGITS, numeric: bool = False) -> Dict[str, str]:
    """Engineering-notation strings for every output that carries a unit."""
    values = circuit.values()
    return {
        name: format_quantity(values[name], unit, digits, numeric)
        for name, (_, unit) in _OUTPUT_UNITS.items()
        if name in values
    }


def _angle(value: float) -> str:
    if not math.isfinite(value):
        return UNDEFINED
    return f"{value:f} rad ({math.degrees(value):f} deg)"


def _plain(value: float) -> str:
    return f"{value:f}" if math.isfinite(value) else UNDEFINED


def warning_lines(circuit: SolvedCircuit) -> List[str]:
    """The phase-clamp notice, if any, as two display lines."""
    if circuit.warning is None:
        return []
    return [f"**Warning: {circuit.warning.message}", f"** {circuit.warning.action}"]


def render_report(
    circuit: SolvedCircuit,
    digits: int = DEFAULT_DIGITS,
    numeric: bool = False,
    include_warnings: bool = True,
) -> str:
    """
    Render the Inputs/Outputs report for one solved measurement.

    Example (1 mH inductor at 1 kHz, Rref = 327.8 Ω):

        Inputs:
          Rref: 327.8 Ohms
          freq: 1.000 kHz
          delta_t: 217.0 µSec
          V_in: 8.810 V
          V_dut: 178.3 mV
        Outputs:
          theta: 1.363451 rad (78.120000 deg)
          phi: 1.383333 rad (79.259141 deg)
          Z: 6.659 Ohms
          Ls: 1.041 mH
          Lp: 1.079 mH
          Rs (Resr): 1.241 Ohms
          Rp: 35.73 Ohms
          X: 6.543 Ohms
          Q: 5.271741
    """
    m = circuit.measurement

    def q(value, unit):
        return format_quantity(value, unit, digits, numeric)

    lines = [
        "Inputs:",
        f"  Rref: {q(m.reference_resistance, 'Ohms')}",
        f"  freq: {q(m.frequency, 'Hz')}",
        f"  delta_t: {q(m.delta_t, 'Sec')}",
        f"  V_in: {q(m.v_in, 'V')}",
        f"  V_dut: {q(m.v_dut, 'V')}",
        "Outputs:",
    ]

    if include_warnings:
        lines.extend(f"  {line}" for line in warning_lines(circuit))

    lines.append(f"  theta: {_angle(circuit.theta)}")
    lines.append(f"  phi: {_angle(circuit.phi)}")

    fields = formatted_fields(circuit, digits, numeric)
    branch_keys = ('ls', 'lp') if isinstance(circuit.branch, InductiveBranch) else ('cs', 'cp')
    for key in ('impedance',) + branch_keys + ('resr', 'rp', 'reactance'):
        label = _OUTPUT_UNITS[key][0]
        lines.append(f"  {label}: {fields[key]}")

    lines.append(f"  Q: {_plain(circuit.q)}")
    return "\n".join(lines)


def export_csv(circuits: List[SolvedCircuit]) -> str:
    """Export solved circuits as CSV string, one row per measurement (raw SI values)."""
    output = io.StringIO()
    writer = csv.writer(output)

    # Header
    writer.writerow([
        'rref', 'frequency', 'delta_t', 'v_in', 'v_dut',
        'theta', 'phi', 'impedance', 'resr', 'reactance', 'q', 'rp',
        'branch', 'series', 'parallel', 'warning',
    ])

    for c in circuits:
        m = c.measurement
        if isinstance(c.branch, InductiveBranch):
            series, parallel = c.branch.ls, c.branch.lp
        else:
            series, parallel = c.branch.cs, c.branch.cp
        writer.writerow([
            m.reference_resistance, m.frequency, m.delta_t, m.v_in, m.v_dut,
            c.theta, c.phi, c.impedance, c.resr, c.reactance, c.q, c.rp,
            c.branch.kind, series, parallel,
            c.warning.message if c.warning else '',
        ])

    return output.getvalue()
