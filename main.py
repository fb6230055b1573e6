"""
Головний файл сервісу: профіль користувача та сповіщення про температуру повітря.
"""

import argparse
import signal
import sys
from threading import Event

from utils.config_manager import ConfigManager
from utils.exceptions import StorageError
from utils.image_resolver import ImageResolver
from utils.logger import Logger
from sensors.sensor_manager import SensorManager
from controllers.notification_controller import NotificationDispatcher
from controllers.temperature_watcher import AmbientTemperatureWatcher
from tests.test_notifications import TestNotificationDispatcher
from tests.test_sensors import SCENARIOS
from database.db import Database
from database.user_store import UserStore
from api.server import APIServer


class AmbientProfileApp:
    """Головний клас програми. Всі компоненти створюються тут один раз."""

    def __init__(self, config_path: str = "config.yaml", test_mode: bool = False, test_scenario: str = None):
        """
        Ініціалізація програми.

        Args:
            config_path: Шлях до файлу конфігурації
            test_mode: Чи запускати в тестовому режимі
            test_scenario: Сценарій тестового датчика
        """
        self.config = ConfigManager(config_path)

        if test_mode:
            test_mode_config = self.config.get_section('test_mode')
            test_mode_config['enabled'] = True
            if test_scenario:
                test_mode_config['scenario'] = test_scenario

        log_config = self.config.get_section('logging')
        logger = Logger()
        logger.setup(
            log_file=log_config.get('log_file', 'logs/ambient_profile.log'),
            log_level=10 if self.config.get('api.debug', False) else 20,
            enable_console=True
        )
        self.logger = logger.get_logger()

        try:
            self.config.validate()
        except ValueError as e:
            self.logger.error(f"Помилка валідації конфігурації: {e}")
            sys.exit(1)

        self.logger.info("Ініціалізація компонентів...")

        db_config = self.config.get_section('database')
        try:
            self.database = Database(db_config.get('db_file', 'data/ambient_profile.db'))
            self.user_store = UserStore(self.database)
        except StorageError as e:
            self.logger.critical(f"Сховище профілю недоступне: {e}")
            sys.exit(1)

        self.sensor_manager = SensorManager(self.config)

        if self.config.is_test_mode():
            self.dispatcher = TestNotificationDispatcher(self.config)
        else:
            self.dispatcher = NotificationDispatcher(self.config)

        self.watcher = AmbientTemperatureWatcher(
            self.sensor_manager,
            self.dispatcher,
            self.config
        )

        api_config = self.config.get_section('api')
        if api_config.get('enabled', True):
            self.api_server = APIServer(
                self.sensor_manager,
                self.watcher,
                self.user_store,
                self.dispatcher,
                self.config,
                ImageResolver(
                    api_config.get('default_avatar'),
                    api_config.get('media_dir')
                )
            )
        else:
            self.api_server = None

        self.shutdown_event = Event()

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        self.logger.info("Ініціалізація завершена")

    def _signal_handler(self, signum, frame):
        """Обробник сигналів для коректного завершення."""
        self.logger.info(f"Отримано сигнал {signum}, завершення роботи...")
        self.shutdown_event.set()

    def run(self) -> None:
        """Запустити сервіс і чекати сигналу завершення."""
        self.logger.info("Запуск сервісу")

        if self.config.is_test_mode():
            self.logger.info(
                f"⚠️  ТЕСТОВИЙ РЕЖИМ - симульований датчик (сценарій: {self.config.get_test_scenario() or 'steady'}), "
                f"сповіщення не відправляються"
            )

        self.dispatcher.request_permission()

        if self.api_server:
            self.api_server.start()

        self.watcher.on_resume()

        status_interval = self.config.get('logging.status_interval', 300)

        try:
            while not self.shutdown_event.wait(status_interval):
                status = self.watcher.get_status()
                last = status['last_reading']
                last_str = f"{last:.1f}°C" if last is not None else "N/A"
                self.logger.info(
                    f"Статус: температура={last_str}, "
                    f"сповіщень={status['notification_count']}, "
                    f"слухач={'активний' if status['listening'] else 'зупинений'}"
                )
        except KeyboardInterrupt:
            self.logger.info("Отримано сигнал переривання")
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Коректне завершення програми."""
        self.logger.info("Завершення роботи програми...")

        self.watcher.stop()
        self.sensor_manager.shutdown()

        if self.api_server:
            self.api_server.stop()

        self.user_store.close()

        self.logger.info("Програма завершена")


def main():
    """Головна функція."""
    parser = argparse.ArgumentParser(description='Профіль користувача та сповіщення про температуру повітря')
    parser.add_argument('--config', '-c', default='config.yaml', help='Шлях до файлу конфігурації')
    parser.add_argument('--test-mode', action='store_true', help='Запустити в тестовому режимі')
    parser.add_argument('--scenario', choices=SCENARIOS,
                        help='Сценарій тестового датчика (тільки для тестового режиму)')

    args = parser.parse_args()

    app = AmbientProfileApp(
        config_path=args.config,
        test_mode=args.test_mode,
        test_scenario=args.scenario
    )

    app.run()


if __name__ == '__main__':
    main()
