"""
Test runner for the AxisRoute engine.

Runs every suite's run_all_tests() in order; use `python -m axisroute.tests.run_tests`.
"""

import importlib
import logging
import sys
import traceback
from datetime import datetime

TEST_MODULES = [
    ("test_config", "Configuration"),
    ("test_geo_validation", "GeoJSON Validation & Geometry"),
    ("test_stops", "Stop Set Model"),
    ("test_routing_client", "Routing Service Client"),
    ("test_readiness", "Readiness Poller"),
    ("test_axis_preset", "Axis Presets"),
    ("test_route_orchestrator", "Route Orchestrator"),
    ("test_blockages", "Blockages & Convergence"),
    ("test_engine", "Routing Engine"),
    ("test_api", "API Routes"),
]


def run_test_module(module_name: str, description: str) -> bool:
    """Import one test module and run its suite."""
    print(f"\n{'=' * 80}")
    print(f"Running: {description} ({module_name})")
    print(f"{'=' * 80}")

    try:
        module = importlib.import_module(f"{__package__}.{module_name}")
        module.run_all_tests()
        return True

    except Exception as e:
        print(f"\n❌ TEST FAILED: {module_name}")
        print(f"Error: {str(e)}")
        print("\nTraceback:")
        traceback.print_exc()
        return False


def main():
    """Run all test suites."""
    logging.basicConfig(level=logging.WARNING)

    print("\n" + "=" * 80)
    print("AXISROUTE ROUTING ENGINE")
    print("COMPREHENSIVE TEST SUITE")
    print("=" * 80)
    print(f"Test started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 80)

    results = {}
    for module_name, description in TEST_MODULES:
        results[description] = run_test_module(module_name, description)

    # Print summary
    print("\n" + "=" * 80)
    print("TEST SUMMARY")
    print("=" * 80)

    passed = sum(1 for v in results.values() if v)
    total = len(results)

    for test_name, success in results.items():
        status = "✅ PASSED" if success else "❌ FAILED"
        print(f"{status}: {test_name}")

    print("=" * 80)
    print(f"Results: {passed}/{total} test suites passed")

    if passed == total:
        print("🎉 ALL TESTS PASSED!")
        print("=" * 80)
        return 0
    else:
        print("⚠️  SOME TESTS FAILED")
        print("=" * 80)
        return 1


if __name__ == "__main__":
    sys.exit(main())
