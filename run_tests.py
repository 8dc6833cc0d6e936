#!/usr/bin/env python
"""
Quick reference: running the anomaly engine test suites.

Execute this file or use the commands below directly.
"""

import subprocess


def run_tests():
    """Run every test group in order."""

    print("=" * 70)
    print("RUNNING FLEET ANOMALY TEST SUITE")
    print("=" * 70)
    print()

    commands = [
        ("Unit Tests - Schema & Ingestion", "pytest tests/unit/test_schema.py tests/unit/test_ingestion.py -v"),
        ("Unit Tests - Config", "pytest tests/unit/test_config.py -v"),
        ("Unit Tests - Baselines", "pytest tests/unit/test_anomaly_baselines.py -v"),
        ("Unit Tests - Detectors", "pytest tests/unit/test_anomaly_detectors.py tests/unit/test_anomaly_classifier.py -v"),
        ("Unit Tests - Store & Statistics", "pytest tests/unit/test_anomaly_store.py tests/unit/test_anomaly_statistics.py -v"),
        ("Unit Tests - Engine", "pytest tests/unit/test_anomaly_engine.py tests/unit/test_anomaly_catalog.py -v"),
        ("Integration Tests - Fleet Pipeline", "pytest tests/integration/test_fleet_pipeline.py -v"),
        ("Integration Tests - Backend", "pytest tests/integration/test_backend.py -v"),
    ]

    for name, cmd in commands:
        print(f"\n{'='*70}")
        print(f"{name}")
        print(f"{'='*70}")
        print(f"Command: {cmd}\n")
        result = subprocess.run(cmd, shell=True)
        if result.returncode != 0:
            print(f"❌ {name} failed")
        else:
            print(f"✓ {name} passed")


def run_specific_tests():
    """Print quick commands for ad-hoc runs."""

    print("\nQuick test commands:")
    print("  pytest tests/unit/ -v               # All unit tests")
    print("  pytest tests/ -v -m integration     # Integration tests only")
    print("  pytest tests/ -v -k detector        # Tests matching 'detector'")
    print("  pytest tests/ --co                  # List test collection (no run)")


if __name__ == "__main__":
    run_tests()
    run_specific_tests()
