"""
Модуль для управління конфігурацією сервісу.
"""

import yaml
from typing import Dict, Any, Optional
from pathlib import Path


REQUIRED_SECTIONS = ['sensor', 'notifications', 'database', 'api']


class ConfigManager:
    """Клас для завантаження та управління конфігурацією."""

    def __init__(self, config_path: Optional[str] = "config.yaml", data: Optional[Dict[str, Any]] = None):
        """
        Ініціалізація ConfigManager.

        Args:
            config_path: Шлях до файлу конфігурації
            data: Готовий словник конфігурації (файл тоді не читається)
        """
        self.config_path = Path(config_path) if config_path else None
        self.config: Dict[str, Any] = {}
        if data is not None:
            self.config = data
        else:
            self.load_config()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConfigManager':
        """Створити конфігурацію зі словника (для тестів і вбудовування)."""
        return cls(config_path=None, data=data)

    def load_config(self) -> None:
        """Завантажити конфігурацію з файлу."""
        if self.config_path is None:
            raise ValueError("Шлях до файлу конфігурації не вказано")

        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Файл конфігурації не знайдено: {self.config_path}\n"
                f"Скопіюйте config.example.yaml як config.yaml та налаштуйте його."
            )

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self.config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Помилка парсингу YAML: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Отримати значення з конфігурації за ключем.

        Args:
            key: Ключ у форматі 'section.subsection.key' або просто 'key'
            default: Значення за замовчуванням, якщо ключ не знайдено

        Returns:
            Значення з конфігурації або default
        """
        value = self.config

        try:
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Отримати всю секцію конфігурації.

        Args:
            section: Назва секції

        Returns:
            Словник з налаштуваннями секції або порожній словник
        """
        value = self.config.get(section)
        if value is None:
            value = {}
            self.config[section] = value
        return value

    def is_test_mode(self) -> bool:
        """Перевірити, чи увімкнено тестовий режим."""
        return bool(self.get_section('test_mode').get('enabled', False))

    def get_test_scenario(self) -> Optional[str]:
        """Отримати тестовий сценарій."""
        return self.get_section('test_mode').get('scenario')

    def validate(self) -> bool:
        """
        Валідація конфігурації.

        Returns:
            True якщо конфігурація валідна
        """
        for section in REQUIRED_SECTIONS:
            if section not in self.config:
                raise ValueError(f"Відсутня обов'язкова секція: {section}")

        interval = self.get('sensor.notification_interval_degrees', 2)
        if not isinstance(interval, (int, float)) or interval < 0:
            raise ValueError("sensor.notification_interval_degrees має бути невід'ємним числом")

        delay = self.get('sensor.delay', 0.2)
        if not isinstance(delay, (int, float)) or delay <= 0:
            raise ValueError("sensor.delay має бути додатним числом")

        notifications = self.get_section('notifications')
        if notifications.get('enabled', True) and not self.is_test_mode() and not notifications.get('url'):
            raise ValueError("Не вказано URL для відправки сповіщень (notifications.url)")

        return True

    def reload(self) -> None:
        """Перезавантажити конфігурацію з файлу."""
        self.load_config()
