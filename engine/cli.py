"""
Command-line front end.

    lcmeter [-r resistor_val] freq delta_t V_in V_dut
    lcmeter --batch measurements.csv

delta_t is the time from the V_dut to the V_in zero crossing: negative for
capacitors, positive for inductors. Exit status is 0 on success and 1 on
usage or input errors.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from engine.impedance import (
    DEFAULT_REFERENCE_RESISTANCE,
    parse_measurement_csv,
    solve,
    solve_batch,
)
from engine.notation import DEFAULT_DIGITS
from engine.report import export_csv, render_report

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1

# Options whose value is a number and may legitimately start with '-'
_NUMERIC_OPTIONS = ('-r', '--rref', '--digits')

# Same range the HTTP API accepts
MAX_CLI_DIGITS = 15


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def _guard_negative_numbers(argv: List[str]) -> List[str]:
    """Pad negative numbers with a space so argparse reads them as positionals, not flags."""
    guarded = []
    for i, arg in enumerate(argv):
        if arg.startswith('-') and _is_number(arg) and (i == 0 or argv[i - 1] not in _NUMERIC_OPTIONS):
            arg = ' ' + arg
        guarded.append(arg)
    return guarded


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog='lcmeter',
        description='Compute the equivalent circuit of a capacitor or inductor '
                    'from oscilloscope measurements.',
    )
    parser.add_argument(
        '-r', '--rref', type=float,
        default=float(os.getenv('LCMETER_RREF', DEFAULT_REFERENCE_RESISTANCE)),
        help='reference resistor value in Ohms (default: %(default)s)',
    )
    parser.add_argument(
        '--digits', type=int, default=DEFAULT_DIGITS,
        help='significant digits in the output (default: %(default)s)',
    )
    parser.add_argument(
        '--numeric', action='store_true',
        help='print exponents (1.041e-3) instead of SI prefixes (1.041 m)',
    )
    parser.add_argument(
        '--batch', metavar='CSV',
        help='solve every row of a CSV file (frequency, delta_t, v_in, v_dut[, rref]) '
             'and print the results as CSV',
    )
    parser.add_argument(
        'values', type=float, nargs='*', metavar='VALUE',
        help='freq (Hz), delta_t from V_dut to V_in zero crossings (s), '
             'V_in and V_dut amplitudes, in that order',
    )
    return parser


def _run_batch(path: str, rref: float) -> int:
    with open(path, encoding='utf-8') as fh:
        measurements = parse_measurement_csv(fh.read(), default_rref=rref)

    circuits = solve_batch(measurements)
    for index, circuit in enumerate(circuits, start=1):
        if circuit.warning is not None:
            logger.warning("  **row %d: %s %s", index, circuit.warning.message, circuit.warning.action)
    sys.stdout.write(export_csv(circuits))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format='%(message)s', stream=sys.stderr)

    parser = build_parser()
    args = parser.parse_args(_guard_negative_numbers(list(sys.argv[1:] if argv is None else argv)))

    if not 1 <= args.digits <= MAX_CLI_DIGITS:
        parser.error(f"--digits must be between 1 and {MAX_CLI_DIGITS}")
    if args.batch and args.values:
        parser.error("--batch does not take freq, delta_t, V_in or V_dut")

    try:
        if args.batch:
            return _run_batch(args.batch, args.rref)

        if len(args.values) != 4:
            parser.error("expected freq, delta_t, V_in and V_dut")

        circuit = solve(args.rref, *args.values)
        if circuit.warning is not None:
            logger.warning("  **Warning: %s", circuit.warning.message)
            logger.warning("  ** %s", circuit.warning.action)

        print(render_report(circuit, digits=args.digits, numeric=args.numeric, include_warnings=False))
    except (ValueError, OSError) as e:
        logger.error("error: %s", e)
        return EXIT_FAILURE

    return 0


if __name__ == '__main__':
    sys.exit(main())
