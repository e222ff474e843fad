from sqlalchemy import create_engine, inspect

import manage


def _tables(url):
    engine = create_engine(url)
    try:
        return set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


class TestManageCommands:
    def test_setup_and_drop(self, tmp_path, monkeypatch):
        monkeypatch.setattr(manage, "configure_logging", lambda settings: None)
        url = f"sqlite:///{tmp_path / 'managed.db'}"

        assert manage.main(["--database-url", url, "setup-db"]) == 0
        assert "orders" in _tables(url)

        assert manage.main(["--database-url", url, "drop-db"]) == 0
        assert _tables(url) == set()

    def test_database_url_from_environment(self, tmp_path, monkeypatch):
        url = f"sqlite:///{tmp_path / 'from_env.db'}"
        monkeypatch.setenv("DATABASE_URL", url)

        manage.setup_database()

        assert "order_items" in _tables(url)

    def test_logging_uses_the_same_settings_as_the_database(self, tmp_path, monkeypatch):
        configured = []
        monkeypatch.setattr(manage, "configure_logging", configured.append)
        monkeypatch.setenv("ENV", "production")
        monkeypatch.delenv("ORDERDESK_ENV", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        url = f"sqlite:///{tmp_path / 'cli.db'}"
        monkeypatch.setenv("DATABASE_URL", url)

        assert manage.main(["setup-db"]) == 0

        (settings,) = configured
        assert settings.env == "production"
        assert settings.log_level == "INFO"
        assert settings.database_url == url
        assert "orders" in _tables(url)
