import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1].parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def pytest_runtest_setup():
    # Ratings are memoized per process; start every test from an empty cache.
    from usage_billing.pricing import cache as rating_cache

    rating_cache.clear_rating_cache()
