#!/usr/bin/env python3
"""
Test runner script for PyFastImg.

Shortcuts for the test suites and for a quick benchmark smoke run.
"""
import argparse
import subprocess
import sys

SUITES = {
    "imports": ("tests/test_imports.py", "Import tests"),
    "unit": ("tests/unit/", "Unit tests"),
    "integration": ("tests/integration/", "Integration tests"),
}


def run_command(cmd, description=None):
    """Run a shell command; True on success."""
    if description:
        print(f"→ {description}")
    result = subprocess.run(cmd, shell=True)
    return result.returncode == 0


def main():
    parser = argparse.ArgumentParser(
        description="PyFastImg test runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_tests.py --imports          # Import tests only
  python run_tests.py --unit             # Unit tests only
  python run_tests.py --integration      # Integration tests only
  python run_tests.py --all              # Every suite, one after the other
  python run_tests.py --fast             # Everything but the slow tests
  python run_tests.py --gpu              # Only the tests needing a GPU arch
  python run_tests.py --bench            # pfi-bench smoke run on the CPU arch
        """,
    )
    for key, (_, label) in SUITES.items():
        parser.add_argument(f"--{key}", action="store_true", help=f"{label} only")
    parser.add_argument("--all", action="store_true", help="Run all suites")
    parser.add_argument("--fast", action="store_true", help="Exclude slow tests")
    parser.add_argument("--gpu", action="store_true", help="Run GPU-marked tests")
    parser.add_argument("--bench", action="store_true", help="Small benchmark smoke run")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--coverage", action="store_true", help="Coverage report")

    args = parser.parse_args()

    base_cmd = "PYTHONPATH=. python -m pytest"
    base_cmd += " -v" if args.verbose else " -q"
    if args.coverage:
        base_cmd += " --cov=pyfastimg --cov-report=html --cov-report=term"
    base_cmd += " --disable-warnings"

    success = True
    selected = [key for key in SUITES if getattr(args, key)]

    if selected:
        for key in selected:
            path, label = SUITES[key]
            success &= run_command(f"{base_cmd} {path}", label)

    elif args.fast:
        success = run_command(f"{base_cmd} -m 'not slow'", "Running fast tests")

    elif args.gpu:
        success = run_command(f"{base_cmd} -m gpu", "Running GPU tests")

    elif args.bench:
        success = run_command(
            "PYTHONPATH=. python -m pyfastimg.cli.bench_commands "
            "--arch cpu --width 64 --height 64 --samples 3",
            "Benchmark smoke run",
        )

    elif args.all:
        print("Running complete test suite...")
        for path, label in SUITES.values():
            if not run_command(f"{base_cmd} {path}", label):
                success = False

    else:
        paths = f"{SUITES['imports'][0]} {SUITES['unit'][0]}"
        success = run_command(f"{base_cmd} {paths}", "Running basic test suite (imports + unit tests)")

    if success:
        print("\n✅ All tests passed!")
        return 0
    print("\n❌ Some tests failed!")
    return 1


if __name__ == "__main__":
    sys.exit(main())
