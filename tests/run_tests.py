#!/usr/bin/env python3
"""Test runner for the EBS snapshot rotator."""
import pytest
import sys
from pathlib import Path
import argparse

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Run EBS snapshot rotator tests")
    parser.add_argument(
        "--unit", action="store_true",
        help="Skip the end-to-end backup scenarios"
    )
    parser.add_argument(
        "--scenarios", action="store_true",
        help="Run only the end-to-end backup scenarios"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Increase verbosity"
    )
    parser.add_argument(
        "-k", "--filter",
        help="Only run tests which match the given substring expression"
    )
    return parser.parse_args()

def main():
    """Main entry point for test runner."""
    args = parse_args()

    pytest_args = [str(PROJECT_ROOT / "tests")]

    if args.unit:
        pytest_args.extend(["-m", "not scenario"])
    elif args.scenarios:
        pytest_args.extend(["-m", "scenario"])

    if args.verbose:
        pytest_args.append("-v")
        pytest_args.append("-s")  # Show print statements

    if args.filter:
        pytest_args.extend(["-k", args.filter])

    # Always show test summary
    pytest_args.append("-ra")

    exit_code = pytest.main(pytest_args)
    sys.exit(exit_code)

if __name__ == "__main__":
    main()
