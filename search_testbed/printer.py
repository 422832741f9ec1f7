"""Console status output for the run_*.py scripts."""

import sys

WIDTH = 60


class Printer:
    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def info(self, message: str) -> None:
        print(f"ℹ️  {message}")

    def success(self, message: str) -> None:
        print(f"✅ {message}")

    def warning(self, message: str) -> None:
        print(f"⚠️  {message}")

    def error(self, message: str) -> None:
        print(f"❌ {message}", file=sys.stderr)

    def debug(self, message: str) -> None:
        if self.verbose:
            print(f"🔍 {message}")

    def section(self, title: str) -> None:
        print()
        print("=" * WIDTH)
        print(f"  {title}")
        print("=" * WIDTH)
        print()

    def celebrate(self, message: str) -> None:
        print()
        print("=" * WIDTH)
        print(f"🎉 {message}")
        print("=" * WIDTH)
        print()
