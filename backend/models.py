"""Pydantic models for LC Meter API requests and responses."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# --- Enums ---

class BranchKind(str, Enum):
    INDUCTIVE = "inductive"
    CAPACITIVE = "capacitive"


class ClampBound(str, Enum):
    UPPER = "upper"
    LOWER = "lower"


# --- Measurement ---

class MeasurementRequest(BaseModel):
    """One set of oscilloscope readings."""
    frequency: float = Field(..., gt=0, allow_inf_nan=False, description="Test frequency (Hz)")
    delta_t: float = Field(..., allow_inf_nan=False, description="Time from Vdut to Vin zero crossing (s); negative for capacitors")
    v_in: float = Field(..., gt=0, allow_inf_nan=False, description="Drive amplitude (V)")
    v_dut: float = Field(..., gt=0, allow_inf_nan=False, description="DUT amplitude (V)")
    rref: Optional[float] = Field(None, gt=0, allow_inf_nan=False, description="Reference resistance (Ohms); server default if omitted")
    digits: Optional[int] = Field(None, ge=1, le=15, description="Significant digits for formatted output")
    numeric: bool = Field(False, description="Exponent output (1.041e-3) instead of SI prefixes")


# --- Results ---

class PhaseWarning(BaseModel):
    bound: ClampBound
    raw_phi: float = Field(..., description="phi before clamping (rad)")
    deviation: float = Field(..., description="Distance past ±π/2 (rad)")
    message: str


class SolveResponse(BaseModel):
    """Equivalent circuit of the DUT. Non-finite values are reported as null."""
    rref: float
    theta: Optional[float] = Field(None, description="rad")
    theta_deg: Optional[float] = None
    phi: Optional[float] = Field(None, description="rad, clamped to ±π/2")
    phi_deg: Optional[float] = None
    impedance: Optional[float] = Field(None, description="|Z| (Ohms)")
    resr: Optional[float] = Field(None, description="Equivalent series resistance (Ohms)")
    rp: Optional[float] = Field(None, description="Equivalent parallel resistance (Ohms)")
    reactance: Optional[float] = Field(None, description="X (Ohms)")
    q: Optional[float] = None
    branch: BranchKind
    series: Optional[float] = Field(None, description="Ls (H) or Cs (F)")
    parallel: Optional[float] = Field(None, description="Lp (H) or Cp (F)")
    formatted: dict[str, str] = Field(default_factory=dict, description="Engineering-notation strings with units")
    warning: Optional[PhaseWarning] = None
    undefined: list[str] = Field(default_factory=list, description="Fields that came out infinite or NaN")


class BatchSolveResponse(BaseModel):
    results: list[SolveResponse]
    total: int
    warnings: int


# --- Formatting ---

class FormatRequest(BaseModel):
    value: float
    digits: int = Field(4, ge=1, le=15)
    numeric: bool = False
    unit: str = Field("", max_length=16)


class FormatResponse(BaseModel):
    formatted: str
