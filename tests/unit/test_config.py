import pytest
from rowcopy.config import Config, apply_env_overrides, load_config, validate_config

VALID_CONFIG = """
database:
  host: localhost
  port: 5432
  database: app
  user: migrator
  password: secret

copy:
  chunk_size: 50000
  batch_size: 2000
  id_column: order_id

notifications:
  enabled: true
  smtp_host: smtp.example.com
  recipients:
    - dev@example.com

translations:
  orders_v2:
    status:
      - [pending, open]
      - [done, closed]
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep ROWCOPY_* variables from the environment out of the tests."""
    for name in ("ROWCOPY_DB_HOST", "ROWCOPY_DB_PORT", "ROWCOPY_DB_NAME",
                 "ROWCOPY_DB_USER", "ROWCOPY_DB_PASSWORD", "ROWCOPY_SMTP_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("rowcopy.config.load_dotenv", lambda: None)


def test_load_valid_config(tmp_path):
    """Test loading a valid YAML config file."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(VALID_CONFIG)

    config = Config.load(str(config_file))

    assert config.database.host == "localhost"
    assert config.database.port == 5432
    assert config.copy.chunk_size == 50000
    assert config.copy.batch_size == 2000
    assert config.copy.id_column == "order_id"
    assert config.notifications.recipients == ["dev@example.com"]
    assert config.translations["orders_v2"]["status"][0] == ["pending", "open"]
    assert config.logging.level == "INFO"


def test_defaults(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("""
database:
  host: localhost
  port: 5432
  database: app
  user: migrator
  password: secret
""")

    config = Config.load(str(config_file))

    assert config.copy.chunk_size == 100000
    assert config.copy.batch_size == 5000
    assert config.copy.id_column == "id"
    assert config.notifications.enabled is False
    assert config.translations == {}


def test_load_missing_required_field(tmp_path):
    """Test loading config with missing required field."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("""
database:
  host: localhost
""")

    with pytest.raises(ValueError, match="Missing required field"):
        Config.load(str(config_file))


def test_load_nonexistent_file():
    """Test loading a non-existent config file."""
    with pytest.raises(FileNotFoundError):
        Config.load("/nonexistent/config.yaml")


def test_validate_config_reports_missing_fields():
    errors = validate_config({"database": {"host": "localhost"}})

    assert "Missing required field: database.port" in errors
    assert "Missing required field: database.password" in errors


def test_validate_config_missing_section():
    assert validate_config({}) == ["Missing required field: database"]


def test_validate_config_rejects_bad_chunk_size():
    data = {
        "database": {"host": "h", "port": 1, "database": "d", "user": "u", "password": "p"},
        "copy": {"chunk_size": 0},
    }

    errors = validate_config(data)

    assert len(errors) == 1
    assert errors[0].startswith("Invalid value for copy.chunk_size")


def test_validate_config_rejects_bad_translation_rule():
    data = {
        "database": {"host": "h", "port": 1, "database": "d", "user": "u", "password": "p"},
        "translations": {"x": {"status": [["only-one"]]}},
    }

    assert validate_config(data)


def test_env_overrides(monkeypatch):
    """Test ROWCOPY_* variables override file values."""
    monkeypatch.setenv("ROWCOPY_DB_PASSWORD", "from-env")
    monkeypatch.setenv("ROWCOPY_DB_PORT", "6543")

    data = apply_env_overrides({"database": {"password": "from-file", "port": 5432}})

    assert data["database"]["password"] == "from-env"
    assert data["database"]["port"] == 6543


def test_load_config_applies_env(tmp_path, monkeypatch):
    monkeypatch.setenv("ROWCOPY_DB_HOST", "db.internal")
    config_file = tmp_path / "config.yaml"
    config_file.write_text(VALID_CONFIG)

    assert load_config(str(config_file))["database"]["host"] == "db.internal"
