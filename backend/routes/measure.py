"""Measurement routes: scope readings → equivalent circuit, engineering notation."""

import logging
import math
import os
from typing import Optional

from fastapi import APIRouter, HTTPException, UploadFile, File

from backend.models import (
    BatchSolveResponse,
    FormatRequest,
    FormatResponse,
    MeasurementRequest,
    PhaseWarning,
    SolveResponse,
)
from engine.impedance import (
    DEFAULT_REFERENCE_RESISTANCE,
    InductiveBranch,
    MeasurementError,
    SolvedCircuit,
    parse_measurement_csv,
    solve,
    solve_batch,
)
from engine.notation import DEFAULT_DIGITS, DomainError, format_eng
from engine.report import formatted_fields

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_UPLOAD_BYTES = 1024 * 1024  # 1MB
MAX_ROWS = 10000


def get_default_rref() -> float:
    return float(os.getenv("LCMETER_RREF", DEFAULT_REFERENCE_RESISTANCE))


def get_default_digits() -> int:
    return int(os.getenv("LCMETER_DIGITS", DEFAULT_DIGITS))


def _finite(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def _to_response(circuit: SolvedCircuit, digits: int, numeric: bool) -> SolveResponse:
    if isinstance(circuit.branch, InductiveBranch):
        series, parallel = circuit.branch.ls, circuit.branch.lp
    else:
        series, parallel = circuit.branch.cs, circuit.branch.cp

    warning = None
    if circuit.warning is not None:
        warning = PhaseWarning(
            bound=circuit.warning.bound,
            raw_phi=circuit.warning.raw_phi,
            deviation=circuit.warning.deviation,
            message=circuit.warning.message,
        )

    return SolveResponse(
        rref=circuit.measurement.reference_resistance,
        theta=_finite(circuit.theta),
        theta_deg=_finite(circuit.theta_deg),
        phi=_finite(circuit.phi),
        phi_deg=_finite(circuit.phi_deg),
        impedance=_finite(circuit.impedance),
        resr=_finite(circuit.resr),
        rp=_finite(circuit.rp),
        reactance=_finite(circuit.reactance),
        q=_finite(circuit.q),
        branch=circuit.branch.kind,
        series=_finite(series),
        parallel=_finite(parallel),
        formatted=formatted_fields(circuit, digits, numeric),
        warning=warning,
        undefined=circuit.undefined_fields(),
    )


def _log_warning(circuit: SolvedCircuit, label: str = "") -> None:
    if circuit.warning is not None:
        logger.warning("%s%s %s", label, circuit.warning.message, circuit.warning.action)


@router.post("/solve", response_model=SolveResponse)
async def solve_measurement(request: MeasurementRequest):
    """Compute the equivalent circuit of a capacitor or inductor from one measurement."""
    rref = request.rref if request.rref is not None else get_default_rref()
    digits = request.digits if request.digits is not None else get_default_digits()

    try:
        circuit = solve(rref, request.frequency, request.delta_t, request.v_in, request.v_dut)
    except MeasurementError as e:
        raise HTTPException(status_code=400, detail=str(e))

    _log_warning(circuit)
    return _to_response(circuit, digits, request.numeric)


@router.post("/solve/batch", response_model=BatchSolveResponse)
async def solve_measurement_batch(file: UploadFile = File(...), numeric: bool = False):
    """Solve every row of an uploaded measurement CSV.

    Expected CSV format: frequency(Hz), delta_t(s), v_in(V), v_dut(V), rref(Ohms, optional)
    Maximum 10,000 rows, 1MB file size.
    """
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are accepted.")

    chunks = []
    total_size = 0
    while True:
        chunk = await file.read(8192)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=413, detail="File too large. Maximum 1MB.")
        chunks.append(chunk)
    contents = b"".join(chunks)

    try:
        measurements = parse_measurement_csv(contents.decode("utf-8"), default_rref=get_default_rref())
    except (UnicodeDecodeError, MeasurementError):
        raise HTTPException(
            status_code=400,
            detail="Invalid CSV format. Expected columns: frequency, delta_t, v_in, v_dut, rref (optional).",
        )

    if len(measurements) > MAX_ROWS:
        raise HTTPException(status_code=400, detail="Too many measurements. Maximum 10,000 rows.")

    digits = get_default_digits()
    circuits = solve_batch(measurements)
    for index, circuit in enumerate(circuits, start=1):
        _log_warning(circuit, label=f"row {index}: ")

    results = [_to_response(c, digits, numeric) for c in circuits]
    return BatchSolveResponse(
        results=results,
        total=len(results),
        warnings=sum(1 for c in circuits if c.warning is not None),
    )


@router.post("/format", response_model=FormatResponse)
async def format_value(request: FormatRequest):
    """Format a single value in engineering notation."""
    try:
        text = format_eng(request.value, request.digits, request.numeric)
    except DomainError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return FormatResponse(formatted=f"{text}{request.unit}")
