from pathlib import Path

import pytest

from src.platform.config.core_setting import Settings


PROJECT_ROOT = Path(__file__).resolve().parents[2]


@pytest.mark.unit
class TestCorsOrigins:
    def test_shipped_env_example_loads(self, monkeypatch):
        monkeypatch.delenv('BACKEND_CORS_ORIGINS', raising=False)

        settings = Settings(_env_file=PROJECT_ROOT / '.env.example')

        assert settings.BACKEND_CORS_ORIGINS == ['http://localhost:3000']

    def test_comma_separated_dotenv_value(self, tmp_path, monkeypatch):
        monkeypatch.delenv('BACKEND_CORS_ORIGINS', raising=False)
        env_file = tmp_path / '.env'
        env_file.write_text('BACKEND_CORS_ORIGINS=http://a.test, http://b.test\n')

        settings = Settings(_env_file=env_file)

        assert settings.BACKEND_CORS_ORIGINS == ['http://a.test', 'http://b.test']

    def test_json_list_from_environment(self, monkeypatch):
        monkeypatch.setenv('BACKEND_CORS_ORIGINS', '["http://a.test","http://b.test"]')

        settings = Settings(_env_file=None)

        assert settings.BACKEND_CORS_ORIGINS == ['http://a.test', 'http://b.test']
