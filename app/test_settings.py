"""Unit tests for environment configuration."""
from settings import Settings


class TestSettings:
    """Test cases for settings loading."""

    def test_defaults(self, monkeypatch):
        for var in ("DB_HOST", "DB_PORT", "PORT", "DB_CONNECTION_LIMIT", "DB_POOL_TIMEOUT"):
            monkeypatch.delenv(var, raising=False)

        s = Settings(_env_file=None)

        assert s.db_port == 3306
        assert s.port == 3000
        assert s.db_connection_limit == 10
        assert s.db_pool_timeout is None
        assert s.service_name == "student-backend"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DB_HOST", "mysql")
        monkeypatch.setenv("DB_PORT", "3307")
        monkeypatch.setenv("DB_USER", "app")
        monkeypatch.setenv("DB_PASSWORD", "secret")
        monkeypatch.setenv("DB_NAME", "school")
        monkeypatch.setenv("PORT", "8080")

        s = Settings(_env_file=None)

        assert s.port == 8080
        url = s.database_url
        assert url.drivername == "mysql+pymysql"
        assert (url.host, url.port, url.username, url.password, url.database) == (
            "mysql",
            3307,
            "app",
            "secret",
            "school",
        )

    def test_cors_origin_list(self):
        s = Settings(_env_file=None, cors_origins="http://a.test, http://b.test,")

        assert s.cors_origin_list == ["http://a.test", "http://b.test"]
