# run_tests.py
"""
Test runner for the whole project.
Runs the Django test suites app by app with detailed reporting.
"""
import os
import sys
import django

# Setup Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.test')
django.setup()

from django.core.management import call_command
from django.test.utils import get_runner
from django.conf import settings

TEST_APPS = [
    'apps.core',
    'apps.locations',
    'apps.groups',
    'apps.clients',
    'apps.dashboard',
]

# Association sync, classification and reconciliation
CRITICAL_APPS = [
    'apps.clients',
]


def _run(labels, title):
    print("=" * 80)
    print(title)
    print("=" * 80)
    print()

    TestRunner = get_runner(settings)
    test_runner = TestRunner(verbosity=2, interactive=False)
    failures = test_runner.run_tests(labels)

    print()
    print("=" * 80)
    if failures:
        print(f"TESTS FAILED: {failures} failure(s)")
    else:
        print("ALL TESTS PASSED")
    print("=" * 80)
    return failures


def run_all_tests():
    """Run the suites of every local app"""
    return _run(TEST_APPS, "FULL TEST SUITE")


def run_specific_app(app_name):
    """Run tests for a specific app"""
    print(f"Running tests for {app_name}...")
    call_command('test', f'apps.{app_name}', verbosity=2)


def run_critical_tests_only():
    return _run(CRITICAL_APPS, "CRITICAL TESTS - Client sync & payment status")


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Run tests for the application')
    parser.add_argument(
        '--app',
        type=str,
        help='Run tests for a specific app (e.g., clients, locations, groups)'
    )
    parser.add_argument(
        '--critical',
        action='store_true',
        help='Run only critical tests (clients)'
    )

    args = parser.parse_args()

    if args.critical:
        sys.exit(run_critical_tests_only())
    elif args.app:
        run_specific_app(args.app)
    else:
        sys.exit(run_all_tests())
