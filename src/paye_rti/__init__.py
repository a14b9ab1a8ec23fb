"""PAYE RTI compliance engine.

Builds HMRC Real Time Information filings (FPS, EPS, EAS, NVR) from payroll
output, validates them and drives their submission lifecycle.
"""

__version__ = "0.1.0"
