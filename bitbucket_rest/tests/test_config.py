import pytest
import structlog

from bitbucket_rest.adapters.bitbucket_client import BitbucketClient
from bitbucket_rest.config.config import Settings
from bitbucket_rest.config.logging_setup import configure_logging


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("BASE_URL", "USERNAME", "PASSWORD", "TOKEN", "TIMEOUT_SECONDS", "PAGE_SIZE", "VERIFY_SSL", "LOG_JSON"):
        monkeypatch.delenv(f"BITBUCKET_{name}", raising=False)
    # Keep a developer's .env out of the tests.
    monkeypatch.chdir(tmp_path)


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.base_url == "http://localhost:7990"
        assert settings.token is None
        assert settings.page_size == 25
        assert settings.timeout_seconds == 30.0
        assert settings.verify_ssl is True

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("BITBUCKET_BASE_URL", "https://git.example.com")
        monkeypatch.setenv("BITBUCKET_TOKEN", "pat-xyz")
        monkeypatch.setenv("BITBUCKET_PAGE_SIZE", "100")
        settings = Settings()
        assert settings.base_url == "https://git.example.com"
        assert settings.token == "pat-xyz"
        assert settings.page_size == 100

    def test_reads_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("BITBUCKET_USERNAME=admin\nBITBUCKET_PASSWORD=secret\n")
        settings = Settings()
        assert settings.username == "admin"
        assert settings.password == "secret"

    async def test_client_from_settings(self):
        settings = Settings(base_url="https://git.example.com/", timeout_seconds=5.0, page_size=100)
        async with BitbucketClient.from_settings(settings) as client:
            assert str(client._http.base_url) == "https://git.example.com/rest/api/1.0/"
            assert client._http.timeout.read == 5.0
            assert client.page_size == 100


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_json_output(self, capsys):
        configure_logging(json=True)
        structlog.get_logger("test").info("hello", key="value")
        line = capsys.readouterr().out.strip()
        assert '"event": "hello"' in line
        assert '"key": "value"' in line
        assert '"level": "info"' in line
        assert '"timestamp"' in line

    def test_console_output(self, capsys):
        configure_logging(json=False)
        structlog.get_logger("test").warning("page_missing_next_start", start=0)
        out = capsys.readouterr().out
        assert "page_missing_next_start" in out
        assert "start" in out

    def test_renderer_follows_log_json_setting(self, monkeypatch, capsys):
        monkeypatch.setenv("BITBUCKET_LOG_JSON", "false")
        configure_logging()
        structlog.get_logger("test").info("hello", key="value")
        out = capsys.readouterr().out
        assert "hello" in out
        assert '"event": "hello"' not in out

    def test_log_json_setting_defaults_to_json(self, capsys):
        configure_logging()
        structlog.get_logger("test").info("hello")
        assert '"event": "hello"' in capsys.readouterr().out
