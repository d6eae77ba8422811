"""
Smoke tests for the demo entry point.

Run with: pytest tests/test_main.py -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from spectral_filter import RecurrenceEngine
from spectral_filter_main import DEFAULT_CONFIG, main, run_filter


def small_config(**overrides):
    cfg = dict(DEFAULT_CONFIG)
    cfg.update(nodes=20, impulse=10, num_scales=3, max_order=10)
    cfg.update(overrides)
    return cfg


class TestRunFilter:

    def test_sequential_run(self, capsys):
        assert run_filter(small_config(), lambda_max=4.0) == 0
        out = capsys.readouterr().out
        assert "lambda_max: 4.0000" in out
        # Bias + 3 wavelets
        assert out.count("|g(L) x|") == 4

    def test_estimated_lambda_max(self, capsys):
        assert run_filter(small_config(dtype="float64")) == 0
        assert "lambda_max:" in capsys.readouterr().out

    def test_accelerated_run(self, capsys):
        assert run_filter(small_config(backend="accelerated"), lambda_max=4.0) == 0

    def test_accelerated_falls_back_when_inputs_do_not_fit(self, monkeypatch, capsys):
        monkeypatch.setattr(RecurrenceEngine, "check_fits_in_device_memory",
                            lambda self, matrix_size, signal_size: False)
        assert run_filter(small_config(backend="accelerated"), lambda_max=4.0) == 0
        out = capsys.readouterr().out
        assert "falling back to sequential" in out
        assert out.count("|g(L) x|") == 4
        assert "sequential on cpu" in out

    def test_accelerated_falls_back_when_run_fails(self, monkeypatch, capsys):
        monkeypatch.setattr(RecurrenceEngine, "check_fits_in_device_memory",
                            lambda self, matrix_size, signal_size: True)
        monkeypatch.setattr(RecurrenceEngine, "apply_accelerated",
                            lambda self, laplacian, signal, coeffs: None)
        assert run_filter(small_config(backend="accelerated"), lambda_max=4.0) == 0
        out = capsys.readouterr().out
        assert "accelerated recurrence failed, falling back to sequential" in out
        assert out.count("|g(L) x|") == 4

    def test_invalid_bounds_fail(self, capsys):
        assert run_filter(small_config(), lambda_max=0.0) == 1
        assert "Could not build filter bank" in capsys.readouterr().err


class TestMain:

    def test_cli_defaults(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["spectral_filter_main.py", "-n", "16", "-k", "8"])
        assert main() == 0

    def test_cli_rejects_bad_impulse(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["spectral_filter_main.py", "-n", "8", "--impulse", "8"])
        with pytest.raises(SystemExit):
            main()
