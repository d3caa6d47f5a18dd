"""
Tests for the command-line front end.
"""

import logging
import math
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from engine.cli import main, _guard_negative_numbers, EXIT_FAILURE


class TestMain:

    def test_worked_example(self, capsys):
        code = main(['-r', '327.8', '1e3', '217e-6', '8.81', '0.17827'])
        out = capsys.readouterr().out

        assert code == 0
        assert "  Rref: 327.8 Ohms" in out
        assert "  Ls: 1.041 mH" in out
        assert "  Q: 5.271741" in out

    def test_default_reference_resistor(self, capsys, monkeypatch):
        monkeypatch.delenv('LCMETER_RREF', raising=False)
        assert main(['1e3', '217e-6', '8.81', '0.17827']) == 0
        assert "  Rref: 992.3 Ohms" in capsys.readouterr().out

    def test_negative_delta_t(self, capsys):
        assert main(['-r', '1000', '1e3', '-100e-6', '5', '2']) == 0
        out = capsys.readouterr().out
        assert "  Cs: " in out
        assert "delta_t: -100.0 µSec" in out

    def test_numeric_flag(self, capsys):
        assert main(['--numeric', '-r', '327.8', '1e3', '217e-6', '8.81', '0.17827']) == 0
        assert "  Ls: 1.041e-3H" in capsys.readouterr().out

    def test_clamp_warning_logged(self, capsys, caplog):
        delta_t = 1.7 / (2 * math.pi * 1000.0)
        with caplog.at_level(logging.WARNING, logger='engine.cli'):
            code = main(['-r', '1000', '1000', repr(delta_t), '1', '0.01'])

        assert code == 0
        assert any("phi > pi/2 by" in r.getMessage() for r in caplog.records)
        assert "Warning" not in capsys.readouterr().out

    def test_wrong_argument_count_exits_1(self):
        with pytest.raises(SystemExit) as exc:
            main(['1e3', '217e-6', '8.81'])
        assert exc.value.code == EXIT_FAILURE

    @pytest.mark.parametrize("digits", ['0', '16', '400'])
    def test_digits_out_of_range_exits_1(self, digits):
        with pytest.raises(SystemExit) as exc:
            main(['-r', '327.8', '--digits', digits, '1e3', '217e-6', '8.81', '0.17827'])
        assert exc.value.code == EXIT_FAILURE

    def test_max_digits_accepted(self, capsys):
        assert main(['-r', '327.8', '--digits', '15', '1e3', '217e-6', '8.81', '0.17827']) == 0
        assert "  Rref: 327.800000000000 Ohms" in capsys.readouterr().out

    def test_batch_with_values_exits_1(self, tmp_path):
        path = tmp_path / "readings.csv"
        path.write_text("1000,217e-6,8.81,0.17827\n")
        with pytest.raises(SystemExit) as exc:
            main(['--batch', str(path), '1e3', '217e-6', '8.81', '0.17827'])
        assert exc.value.code == EXIT_FAILURE

    def test_bad_option_exits_1(self):
        with pytest.raises(SystemExit) as exc:
            main(['-x', '1', '1e3', '217e-6', '8.81', '0.17827'])
        assert exc.value.code == EXIT_FAILURE

    def test_invalid_measurement_returns_1(self, caplog):
        with caplog.at_level(logging.ERROR, logger='engine.cli'):
            assert main(['0', '217e-6', '8.81', '0.17827']) == EXIT_FAILURE
        assert any("frequency" in r.getMessage() for r in caplog.records)

    def test_batch(self, tmp_path, capsys):
        path = tmp_path / "readings.csv"
        path.write_text("frequency,delta_t,v_in,v_dut,rref\n1000,217e-6,8.81,0.17827,327.8\n1000,-100e-6,5,2,1000\n")

        assert main(['--batch', str(path)]) == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 3
        assert ',inductive,' in lines[1]
        assert ',capacitive,' in lines[2]

    def test_batch_missing_file_returns_1(self, tmp_path):
        assert main(['--batch', str(tmp_path / "missing.csv")]) == EXIT_FAILURE


class TestGuardNegativeNumbers:

    def test_pads_negative_positionals(self):
        assert _guard_negative_numbers(['1e3', '-217e-6', '1', '2']) == ['1e3', ' -217e-6', '1', '2']

    def test_leaves_options_alone(self):
        assert _guard_negative_numbers(['-r', '100', '--numeric']) == ['-r', '100', '--numeric']

    def test_leaves_option_values_alone(self):
        assert _guard_negative_numbers(['-r', '-5']) == ['-r', '-5']
