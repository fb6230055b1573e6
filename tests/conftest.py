from typing import Any, Callable, Dict

import pytest

from database.db import Database
from database.user_store import UserStore
from sensors.sensor_manager import SensorManager
from tests.test_notifications import TestNotificationDispatcher
from utils.config_manager import ConfigManager


def base_config() -> Dict[str, Dict[str, Any]]:
    return {
        'sensor': {
            'notification_interval_degrees': 2,
            'delay': 0.01,
            'keep_listening_in_background': True,
            'reset_state_on_restart': False,
            'ambient': {'enabled': True, 'name': 'Кімната'},
        },
        'notifications': {
            'enabled': True,
            'url': 'http://notify.test/notify',
            'permission_granted': True,
        },
        'database': {},
        'api': {'write_timeout': 5.0},
        'logging': {},
        'conversation': {
            'messages': [
                {'author': 'Lexi', 'body': 'Test...Test...Test...'},
                {'author': 'Lexi', 'body': 'Hey, take a look at Jetpack Compose'},
            ]
        },
        'test_mode': {'enabled': True, 'scenario': 'steady', 'base_temperature': 21.0},
    }


@pytest.fixture
def make_config() -> Callable[..., ConfigManager]:
    """Конфігурація зі зміненими секціями: make_config(sensor={'delay': 0.05})."""

    def _make(**sections: Dict[str, Any]) -> ConfigManager:
        data = base_config()
        for name, values in sections.items():
            data.setdefault(name, {}).update(values)
        return ConfigManager.from_dict(data)

    return _make


@pytest.fixture
def config(make_config) -> ConfigManager:
    return make_config()


@pytest.fixture
def database(tmp_path) -> Database:
    return Database(str(tmp_path / 'profile.db'))


@pytest.fixture
def store(database):
    user_store = UserStore(database)
    yield user_store
    user_store.close()


@pytest.fixture
def dispatcher(config) -> TestNotificationDispatcher:
    return TestNotificationDispatcher(config)


@pytest.fixture
def sensor_manager(config):
    manager = SensorManager(config)
    yield manager
    manager.shutdown()

