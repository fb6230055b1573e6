from pathlib import Path

import pytest

from utils.config_manager import ConfigManager


EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / 'config.example.yaml'


def test_example_config_is_valid():
    config = ConfigManager(str(EXAMPLE_CONFIG))

    assert config.validate() is True
    assert config.get('sensor.notification_interval_degrees') == 2
    assert config.get('sensor.keep_listening_in_background') is True
    assert config.get('notifications.permission_granted') is False
    assert len(config.get('conversation.messages')) > 0


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigManager(str(tmp_path / 'missing.yaml'))


def test_invalid_yaml_raises(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("sensor: [unclosed", encoding='utf-8')

    with pytest.raises(ValueError):
        ConfigManager(str(path))


def test_dotted_get_with_default(config):
    assert config.get('sensor.ambient.name') == 'Кімната'
    assert config.get('sensor.missing.key', 'fallback') == 'fallback'
    assert config.get('sensor.delay.nested', 1) == 1


def test_missing_section_fails_validation(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("sensor: {}\napi: {}\n", encoding='utf-8')

    config = ConfigManager(str(path))

    with pytest.raises(ValueError, match="notifications"):
        config.validate()


def test_notification_url_required_outside_test_mode(make_config):
    config = make_config(notifications={'url': None}, test_mode={'enabled': False})

    with pytest.raises(ValueError, match="notifications.url"):
        config.validate()


def test_negative_threshold_rejected(make_config):
    config = make_config(sensor={'notification_interval_degrees': -1})

    with pytest.raises(ValueError):
        config.validate()


def test_test_mode_flags(make_config):
    config = make_config(test_mode={'enabled': True, 'scenario': 'cooling'})

    assert config.is_test_mode() is True
    assert config.get_test_scenario() == 'cooling'
