"""
Equivalent-circuit extraction from oscilloscope measurements.

Test setup: a signal generator drives a known reference resistor in series
with the device under test (DUT) to ground.

                         Vin        Vdut
                          |          |
    signal generator ----- Rref ----- DUT ----- GND

Measured: the amplitudes of Vin and Vdut and the time delta_t between
their rising zero crossings (negative for capacitors, positive for
inductors). Peak-to-peak amplitudes are fine as long as both use the same
convention.

Treating Vin and Vdut as phasors separated by theta:
    theta = 2π·f·Δt
    phi   = theta − atan2(−Vdut·sin θ, Vin − Vdut·cos θ)     (DUT impedance angle)
    |Z|   = Vdut·Rref / sqrt(Vin² − 2·Vin·Vdut·cos θ + Vdut²)

Series/parallel equivalents:
    Resr = |Z|·cos φ,   X = |Z|·sin φ,   Q = |X| / Resr,   Rp = Resr·(1 + Q²)
    inductive:  Ls = X / (2πf),        Lp = Ls·(1 + 1/Q²)
    capacitive: Cs = −1 / (2πf·X),     Cp = Cs / (1 + 1/Q²)

Based on the Tektronix application note "Capacitance and Inductance
Measurements Using an Oscilloscope and a Function Generator".
"""

import csv
import io
import math
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

# Reference resistor used when the caller doesn't supply one (Ohms)
DEFAULT_REFERENCE_RESISTANCE = 992.3

# Keeps a clamped phi strictly inside ±π/2 so Resr never reaches exactly zero
PHASE_EPSILON = 1e-15


class MeasurementError(ValueError):
    """Raised when a measurement violates its input contract."""


@dataclass(frozen=True)
class Measurement:
    """One set of scope readings. SI units: Ohms, Hz, seconds, volts."""
    reference_resistance: float
    frequency: float
    delta_t: float
    v_in: float
    v_dut: float

    def __post_init__(self):
        for name in ('reference_resistance', 'frequency', 'delta_t', 'v_in', 'v_dut'):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise MeasurementError(f"{name} must be finite, got {value}")
        for name in ('reference_resistance', 'frequency', 'v_in', 'v_dut'):
            value = getattr(self, name)
            if value <= 0:
                raise MeasurementError(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class PhaseClampWarning:
    """phi fell outside ±π/2 and was clamped to the nearest bound."""
    bound: str          # 'upper' or 'lower'
    raw_phi: float      # radians, before clamping
    deviation: float    # radians past the bound; negative below -π/2

    @property
    def message(self) -> str:
        if self.bound == 'upper':
            return f"phi > pi/2 by {self.deviation:e} rad."
        return f"phi < -pi/2 by {self.deviation:e} rad."

    @property
    def action(self) -> str:
        return "Setting it to pi/2" if self.bound == 'upper' else "Setting it to -pi/2"


@dataclass(frozen=True)
class InductiveBranch:
    ls: float   # series inductance (H)
    lp: float   # parallel inductance (H)

    kind = 'inductive'


@dataclass(frozen=True)
class CapacitiveBranch:
    cs: float   # series capacitance (F)
    cp: float   # parallel capacitance (F)

    kind = 'capacitive'


Branch = Union[InductiveBranch, CapacitiveBranch]


@dataclass(frozen=True)
class SolvedCircuit:
    """Equivalent circuit derived from a single Measurement."""
    measurement: Measurement
    theta: float            # rad
    phi: float              # rad, within [-π/2, π/2]
    impedance: float        # |Z|, Ohms
    resr: float             # equivalent series resistance, Ohms
    reactance: float        # X, Ohms (signed)
    q: float
    rp: float               # equivalent parallel resistance, Ohms
    branch: Branch
    warning: Optional[PhaseClampWarning] = None

    @property
    def theta_deg(self) -> float:
        return math.degrees(self.theta)

    @property
    def phi_deg(self) -> float:
        return math.degrees(self.phi)

    @property
    def is_inductive(self) -> bool:
        return isinstance(self.branch, InductiveBranch)

    def values(self) -> Dict[str, float]:
        """Numeric outputs keyed by field name, branch values included."""
        out = {
            'theta': self.theta,
            'phi': self.phi,
            'impedance': self.impedance,
            'resr': self.resr,
            'reactance': self.reactance,
            'q': self.q,
            'rp': self.rp,
        }
        out.update(asdict(self.branch))
        return out

    def undefined_fields(self) -> List[str]:
        """Names of outputs that came out infinite or NaN."""
        return [name for name, value in self.values().items() if not math.isfinite(value)]


def _clamp_phase(phi: float) -> Tuple[float, Optional[PhaseClampWarning]]:
    """Clamp phi into (-π/2, π/2). Returns (phi, warning_or_None)."""
    half_pi = np.pi / 2
    if phi < -half_pi:
        return -half_pi + PHASE_EPSILON, PhaseClampWarning('lower', phi, phi + half_pi)
    if phi > half_pi:
        return half_pi - PHASE_EPSILON, PhaseClampWarning('upper', phi, phi - half_pi)
    return phi, None


def solve_measurement(measurement: Measurement) -> SolvedCircuit:
    """
    Derive the DUT's equivalent circuit from one measurement.

    Never raises on measurement-derived anomalies: an out-of-range phi is
    clamped and reported through ``SolvedCircuit.warning``, and degenerate
    arithmetic (Resr or X of zero) leaves inf/NaN in the affected fields.
    """
    m = measurement
    R = np.float64(m.reference_resistance)
    f = np.float64(m.frequency)
    V_in = np.float64(m.v_in)
    V_dut = np.float64(m.v_dut)
    omega = 2 * np.pi * f

    theta = omega * np.float64(m.delta_t)
    phi = theta - np.arctan2(-V_dut * np.sin(theta), V_in - V_dut * np.cos(theta))
    phi, warning = _clamp_phase(phi)

    with np.errstate(divide='ignore', invalid='ignore'):
        Z = V_dut * R / np.sqrt(V_in ** 2 - 2 * V_in * V_dut * np.cos(theta) + V_dut ** 2)
        Resr = Z * np.cos(phi)
        X = Z * np.sin(phi)
        Q = np.abs(X) / Resr
        Rp = Resr * (1 + Q * Q)

        if phi > 0:
            Ls = X / omega
            branch = InductiveBranch(ls=float(Ls), lp=float(Ls * (1 + 1 / Q / Q)))
        else:
            Cs = -1 / (omega * X)
            branch = CapacitiveBranch(cs=float(Cs), cp=float(Cs / (1 + 1 / Q / Q)))

    return SolvedCircuit(
        measurement=m,
        theta=float(theta),
        phi=float(phi),
        impedance=float(Z),
        resr=float(Resr),
        reactance=float(X),
        q=float(Q),
        rp=float(Rp),
        branch=branch,
        warning=warning,
    )


def solve(
    rref: float,
    freq: float,
    delta_t: float,
    v_in: float,
    v_dut: float,
) -> SolvedCircuit:
    """
    Solve for the equivalent circuit of the DUT.

    Args:
        rref: Reference resistance (Ohms), > 0
        freq: Test frequency (Hz), > 0
        delta_t: Time from the Vdut to the Vin zero crossing (s), any sign
        v_in: Drive amplitude (V), > 0
        v_dut: DUT amplitude (V), > 0

    Raises:
        MeasurementError: if an argument is out of range or non-finite.
    """
    return solve_measurement(Measurement(rref, freq, delta_t, v_in, v_dut))


def solve_batch(measurements: List[Measurement]) -> List[SolvedCircuit]:
    """Solve a list of independent measurements."""
    return [solve_measurement(m) for m in measurements]


def parse_measurement_csv(
    csv_content: str,
    default_rref: float = DEFAULT_REFERENCE_RESISTANCE,
) -> List[Measurement]:
    """
    Parse a CSV of scope readings.

    Expects columns: frequency (Hz), delta_t (s), v_in (V), v_dut (V),
    [rref (Ohms)]. Header row is auto-detected. Supports comma and tab
    delimiters. Rows that don't parse or fail validation are skipped.

    Returns list of Measurement.
    """
    delimiter = ',' if ',' in csv_content else '\t'

    reader = csv.reader(io.StringIO(csv_content), delimiter=delimiter)
    rows = [row for row in reader if row]

    if not rows:
        raise MeasurementError("Empty CSV content")

    # Skip header if first row contains non-numeric data
    start = 0
    try:
        float(rows[0][0])
    except (ValueError, IndexError):
        start = 1

    measurements = []
    for row in rows[start:]:
        if len(row) < 4:
            continue
        try:
            freq, delta_t, v_in, v_dut = (float(x) for x in row[:4])
            rref = float(row[4]) if len(row) >= 5 and row[4].strip() else default_rref
            measurements.append(Measurement(rref, freq, delta_t, v_in, v_dut))
        except ValueError:
            continue

    if not measurements:
        raise MeasurementError("CSV must contain at least 1 valid measurement")

    return measurements
