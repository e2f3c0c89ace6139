import os

from dotenv import load_dotenv

# Optional overrides for local test runs; CI relies on the defaults below.
env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

# Must be set before anything imports libs.common.config.get_settings().
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("SEED_DEMO_USERS", "false")
os.environ.setdefault("TOTAL_POLICY", "flag")

from libs.common.config import get_settings  # noqa: E402

get_settings.cache_clear()
