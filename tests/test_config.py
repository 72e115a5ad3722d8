from config import Settings, env_flag


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ["DATABASE_URL", "DATABASE_NAME", "MONGO_TRANSACTIONS", "STRIPE_SECRET", "SITE_DOMAIN"]:
            monkeypatch.delenv(name, raising=False)
        settings = Settings.from_env()
        assert settings.database_url == "mongodb://localhost:27017"
        assert settings.database_name == "garmentsDB"
        assert settings.use_transactions is True
        assert settings.stripe_secret is None

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DATABASE_NAME", "shop")
        monkeypatch.setenv("MONGO_TRANSACTIONS", "off")
        monkeypatch.setenv("SITE_DOMAIN", "https://shop.example.com/")
        monkeypatch.setenv("DATABASE_TIMEOUT_MS", "250")
        settings = Settings.from_env()
        assert settings.database_name == "shop"
        assert settings.use_transactions is False
        assert settings.site_domain == "https://shop.example.com"
        assert settings.database_timeout_ms == 250

    def test_env_flag(self, monkeypatch):
        monkeypatch.setenv("SOME_FLAG", "Yes")
        assert env_flag("SOME_FLAG", False) is True
        monkeypatch.delenv("SOME_FLAG")
        assert env_flag("SOME_FLAG", True) is True
