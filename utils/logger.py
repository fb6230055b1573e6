"""
Модуль для логування подій сервісу.
"""

import logging
from pathlib import Path
from typing import Optional


LOGGER_NAME = 'ambient_profile'


class Logger:
    """Налаштування спільного логера сервісу."""

    _instance: Optional['Logger'] = None
    _initialized = False

    def __new__(cls):
        """Один екземпляр на процес."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not Logger._initialized:
            self.logger: Optional[logging.Logger] = None
            Logger._initialized = True

    def setup(
        self,
        log_file: Optional[str] = "logs/ambient_profile.log",
        log_level: int = logging.INFO,
        enable_console: bool = True
    ) -> None:
        """
        Налаштувати логування.

        Args:
            log_file: Шлях до файлу логів (None - без файлу)
            log_level: Рівень логування
            enable_console: Чи виводити логи в консоль
        """
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        date_format = '%Y-%m-%d %H:%M:%S'
        formatter = logging.Formatter(log_format, date_format)

        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(log_level)

        # Повторний setup не повинен дублювати обробники
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding='utf-8')
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        if enable_console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(log_level)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

    def get_logger(self) -> logging.Logger:
        """
        Отримати об'єкт logger.

        Якщо setup ще не викликали, повертається логер без власних
        обробників (повідомлення йдуть до root logger).

        Returns:
            Logger об'єкт
        """
        if self.logger is None:
            self.logger = logging.getLogger(LOGGER_NAME)
        return self.logger


def get_logger() -> logging.Logger:
    """Отримати глобальний logger."""
    return Logger().get_logger()
