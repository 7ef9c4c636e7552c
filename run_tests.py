#!/usr/bin/env python3
"""
Test Runner Script for the Cashier Returns Service
==================================================

Usage:
    python run_tests.py                    # Run all tests
    python run_tests.py --api              # Run HTTP endpoint tests only
    python run_tests.py --coverage         # Run with coverage report
    python run_tests.py --module service   # Run specific module tests
    python run_tests.py --test "lot"       # Run tests matching pattern
"""

import argparse
import subprocess
import sys
import os


def get_test_command(args):
    """Build the pytest command based on arguments."""
    cmd = [sys.executable, '-m', 'pytest']

    # Test selection
    if args.api:
        cmd.extend(['-m', 'api'])
    elif args.auth:
        cmd.extend(['-m', 'auth'])

    # Specific module
    if args.module:
        module_map = {
            'service': 'tests/test_return_service.py',
            'routes': 'tests/test_returns_routes.py',
            'validators': 'tests/test_validators.py',
            'auth': 'tests/test_auth.py',
            'errors': 'tests/test_error_logger.py',
        }
        if args.module in module_map:
            cmd.extend(module_map[args.module].split())
        else:
            cmd.append(f'tests/test_{args.module}.py')

    # Coverage
    if args.coverage:
        cmd.extend([
            '--cov=cashier',
            '--cov-report=term-missing',
            '--cov-report=html:coverage_report',
            '--cov-fail-under=80'
        ])

    # Verbosity
    if args.verbose:
        cmd.append('-vv')
    else:
        cmd.append('-v')

    # Stop on first failure
    if args.fail_fast:
        cmd.append('-x')

    # Specific test
    if args.test:
        cmd.extend(['-k', args.test])

    return cmd


def run_tests(cmd):
    """Execute the test command."""
    print("=" * 70)
    print("CASHIER RETURNS - TEST RUNNER")
    print("=" * 70)
    print(f"Command: {' '.join(cmd)}")
    print("=" * 70)
    print()

    result = subprocess.run(cmd, cwd=os.path.dirname(os.path.abspath(__file__)))

    print()
    print("=" * 70)
    if result.returncode == 0:
        print("ALL TESTS PASSED!")
    else:
        print(f"TESTS FAILED (exit code: {result.returncode})")
    print("=" * 70)

    return result.returncode


def main():
    parser = argparse.ArgumentParser(
        description='Run tests for the cashier returns service',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    test_type = parser.add_mutually_exclusive_group()
    test_type.add_argument('--api', action='store_true', help='Run HTTP endpoint tests only')
    test_type.add_argument('--auth', action='store_true', help='Run authentication tests only')

    parser.add_argument('--module', '-m', type=str,
                        help='Run specific module (service, routes, validators, auth, errors)')
    parser.add_argument('--test', '-t', type=str, help='Run tests matching pattern')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    parser.add_argument('--coverage', '-c', action='store_true', help='Generate coverage report')
    parser.add_argument('--fail-fast', '-x', action='store_true', help='Stop on first failure')

    args = parser.parse_args()
    sys.exit(run_tests(get_test_command(args)))


if __name__ == '__main__':
    main()
