"""
ReplayGuard CLI

Command-line interface for running and baselining regression test cases.

Commands:
    generate    - Generate baselines (templates) for test cases
    verify      - Verify test cases against their baselines
    list        - List discovered test cases

Examples:
    # Generate baselines for every test case into target/regression-baseline
    replayguard generate

    # Generate baselines for one client only
    replayguard generate petstore --output /tmp/baselines

    # Verify all test cases
    replayguard verify --config replayguard.yaml
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .common.errors import ReplayGuardError
from .engine import PlanRunner
from .harness import RegressionHarness, HarnessSettings, DEFAULT_SETTINGS_FILE
from .recorder import RecordingProxy


def configure_logging(log_level: str, verbose: bool = False):
    """Set up logging from the settings' log level; --verbose forces debug."""
    level = logging.DEBUG if verbose else getattr(logging, str(log_level).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )


def load_settings(args) -> HarnessSettings:
    config_path = Path(args.config)
    if config_path.exists():
        settings = HarnessSettings.from_yaml(config_path)
    elif args.config != DEFAULT_SETTINGS_FILE:
        print(f"❌ Config file not found: {config_path}")
        sys.exit(1)
    else:
        settings = HarnessSettings()

    if args.root:
        settings.regression_root = Path(args.root)

    configure_logging(settings.log_level, args.verbose)
    return settings


def create_harness(settings: HarnessSettings) -> RegressionHarness:
    return RegressionHarness(settings, recorder=RecordingProxy(), runner=PlanRunner())


def search_root(settings: HarnessSettings, subdir: Optional[str]) -> Path:
    return settings.regression_root / subdir if subdir else settings.regression_root


def cmd_generate(args) -> int:
    """Generate baselines, continuing past failing test cases."""
    settings = load_settings(args)
    output = Path(args.output) if args.output else settings.baseline_root

    print(f"📼 ReplayGuard baseline generation")
    print(f"   Regression root: {settings.regression_root}")
    print(f"   Output: {output}")
    print()

    harness = create_harness(settings)
    try:
        report = harness.generate_baselines(output, search_root(settings, args.subdir))
    except FileNotFoundError as e:
        print(f"❌ {e}")
        return 1

    for outcome in report.outcomes:
        if outcome.passed:
            print(f"✅ {outcome.test_case.name}")
        else:
            print(f"❌ {outcome.test_case.name}: {outcome.error}")

    print()
    print(f"📊 {len(report.succeeded)} generated, {len(report.failed)} failed")
    if report.succeeded:
        print("   Review the generated templates before copying them into the regression root")
    return 1 if report.failed else 0


def cmd_verify(args) -> int:
    """Verify every test case, one independent pass/fail per case."""
    settings = load_settings(args)
    harness = create_harness(settings)

    try:
        test_cases = harness.find_test_cases(search_root(settings, args.subdir))
    except FileNotFoundError as e:
        print(f"❌ {e}")
        return 1

    print(f"🔍 Verifying {len(test_cases)} test case(s) under {settings.regression_root}")
    print()

    failures = 0
    for test_case in test_cases:
        try:
            harness.verify(test_case)
            print(f"✅ {test_case.name}")
        except ReplayGuardError as e:
            failures += 1
            print(f"❌ {test_case.name}: {e}")

    print()
    print(f"📊 {len(test_cases) - failures} passed, {failures} failed")
    return 1 if failures else 0


def cmd_list(args) -> int:
    settings = load_settings(args)
    try:
        test_cases = create_harness(settings).find_test_cases(search_root(settings, args.subdir))
    except FileNotFoundError as e:
        print(f"❌ {e}")
        return 1

    for test_case in test_cases:
        print(test_case.name)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="ReplayGuard - record/replay regression harness",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate baselines for all test cases
  %(prog)s generate --output target/regression-baseline

  # Verify the test cases of one client
  %(prog)s verify petstore

  # List discovered test cases
  %(prog)s list
        """
    )
    parser.add_argument('-c', '--config', default=DEFAULT_SETTINGS_FILE,
                        help=f'Harness settings YAML (default: {DEFAULT_SETTINGS_FILE})')
    parser.add_argument('--root', help='Regression root directory (overrides settings)')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    generate_parser = subparsers.add_parser('generate', help='Generate baselines')
    generate_parser.add_argument('subdir', nargs='?', help='Subdirectory of the regression root')
    generate_parser.add_argument('-o', '--output', help='Baseline output root')

    verify_parser = subparsers.add_parser('verify', help='Verify test cases against baselines')
    verify_parser.add_argument('subdir', nargs='?', help='Subdirectory of the regression root')

    list_parser = subparsers.add_parser('list', help='List test cases')
    list_parser.add_argument('subdir', nargs='?', help='Subdirectory of the regression root')

    args = parser.parse_args(argv)

    if args.command == 'generate':
        return cmd_generate(args)
    elif args.command == 'verify':
        return cmd_verify(args)
    elif args.command == 'list':
        return cmd_list(args)

    parser.print_help()
    return 1


if __name__ == '__main__':
    sys.exit(main())
