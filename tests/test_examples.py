"""Smoke tests for example scripts.

These tests ensure that the example scripts run their main execution paths
without raising exceptions.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

# Determine the repo root
ROOT = Path(__file__).resolve().parents[1]


def test_convex_optimization_demo_runs() -> None:
    """Test that examples/convex_optimization_demo.py runs successfully."""
    script = ROOT / "examples" / "convex_optimization_demo.py"
    assert script.exists(), f"Example script not found: {script}"

    result = subprocess.run(
        [sys.executable, str(script)],
        capture_output=True,
        text=True,
        check=False,
        timeout=60,
    )

    assert result.returncode == 0, (
        f"Example script failed with return code {result.returncode}.\n"
        f"STDOUT:\n{result.stdout}\n"
        f"STDERR:\n{result.stderr}"
    )

    assert "Distance: 1.70" in result.stdout
    assert "[interior_point] unbounded along" in result.stdout
    assert "Primal residual:" in result.stdout
    assert "All convex optimization examples completed." in result.stdout
