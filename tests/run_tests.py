"""Run the grantaudit unittest suite from a source checkout without installing the package."""
import sys
import unittest
from pathlib import Path

TESTS_DIR = Path(__file__).parent
# fakes.py lives beside the tests; the package lives under src/
sys.path[:0] = [str(TESTS_DIR.parent / "src"), str(TESTS_DIR)]


def main() -> int:
    suite = unittest.TestLoader().discover(str(TESTS_DIR), pattern="test_*.py")
    result = unittest.TextTestRunner(verbosity=2).run(suite)
    return 0 if result.wasSuccessful() else 1


if __name__ == "__main__":
    sys.exit(main())
