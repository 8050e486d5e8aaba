"""Test suites for the AxisRoute engine."""
