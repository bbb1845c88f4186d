from pathlib import Path

FIXTURES_DIR = Path(__file__).parent / "fixtures"

BASE_URL = "http://bitbucket.test:7990"
API_URL = f"{BASE_URL}/rest/api/1.0"


def read_fixture(name: str) -> str:
    """Return the text of a named JSON fixture, raising FileNotFoundError if it does not exist."""
    path = FIXTURES_DIR / name
    if not path.is_file():
        raise FileNotFoundError(name)
    return path.read_text(encoding="utf-8")
