"""
Модуль для відстеження температури повітря та сповіщення про її зміну.
"""

import threading
from typing import Optional, Dict, Any

from controllers.notification_controller import NotificationDispatcher
from database.models import SensorState
from sensors.base import BaseSensor
from sensors.sensor_manager import SensorManager
from utils.config_manager import ConfigManager
from utils.logger import get_logger


NOTIFICATION_TITLE = "Temperature changed"
DEFAULT_NOTIFICATION_INTERVAL_DEGREES = 2

STATE_IDLE = 'idle'
STATE_TRACKING = 'tracking'


class AmbientTemperatureWatcher:
    """
    Перетворює потік показників датчика на рідкісні сповіщення.

    Перше значення після старту тільки запам'ятовується. Далі сповіщення
    надсилається, якщо сповіщень ще не було або температура відрізняється
    від останньої повідомленої щонайменше на поріг.
    """

    def __init__(
        self,
        sensor_manager: SensorManager,
        dispatcher: NotificationDispatcher,
        config: ConfigManager
    ):
        """
        Ініціалізація спостерігача.

        Args:
            sensor_manager: Менеджер датчиків
            dispatcher: Відправник сповіщень
            config: Об'єкт ConfigManager
        """
        self.sensor_manager = sensor_manager
        self.dispatcher = dispatcher
        self.config = config
        self.logger = get_logger()

        sensor_config = config.get_section('sensor')
        self.threshold = sensor_config.get('notification_interval_degrees', DEFAULT_NOTIFICATION_INTERVAL_DEGREES)
        self.delay = sensor_config.get('delay')
        self.keep_listening_in_background = sensor_config.get('keep_listening_in_background', True)
        self.reset_state_on_restart = sensor_config.get('reset_state_on_restart', False)

        self.state = SensorState()
        self.is_listening = False
        self.accuracy: Optional[str] = None
        self.notification_count = 0
        self._was_stopped = False
        self._lifecycle_lock = threading.Lock()
        self._state_lock = threading.Lock()

        self.sensor: Optional[BaseSensor] = sensor_manager.get_default_sensor()
        if self.sensor is not None:
            self.logger.info(f"Датчик температури повітря знайдено: {self.sensor.name}")
        else:
            self.logger.info("Датчик температури повітря НЕ знайдено")

    @property
    def phase(self) -> str:
        """'idle' до першого показника, далі 'tracking'."""
        with self._state_lock:
            return STATE_IDLE if self.state.last_reading is None else STATE_TRACKING

    def start(self) -> bool:
        """
        Почати слухати датчик. Повторний виклик нічого не робить.

        Returns:
            True якщо слухач зареєстрований
        """
        with self._lifecycle_lock:
            if self.is_listening:
                return True

            if self.sensor is None:
                self.logger.info("Немає датчика температури повітря, сповіщень не буде")
                return False

            if self._was_stopped and self.reset_state_on_restart:
                with self._state_lock:
                    self.state.reset()
                self.logger.debug("Стан спостерігача скинуто після перезапуску")

            self.sensor_manager.register_listener(self, self.sensor, self.delay)
            self.is_listening = True
            self.logger.info("Слухач датчика температури запущено")
            return True

    def stop(self) -> None:
        """Перестати слухати датчик. Записаний стан зберігається."""
        with self._lifecycle_lock:
            if not self.is_listening:
                return
            self.sensor_manager.unregister_listener(self)
            self.is_listening = False
            self._was_stopped = True
            self.logger.info("Слухач датчика температури зупинено")

    def on_resume(self) -> None:
        """Клієнт повернувся на передній план."""
        self.logger.info("Відновлення слухача датчика")
        self.start()

    def on_pause(self) -> None:
        """Клієнт пішов у фон."""
        if self.keep_listening_in_background:
            self.logger.info("Слухач датчика НЕ призупиняється (сповіщення працюють у фоні)")
            return
        self.logger.info("Призупинення слухача датчика")
        self.stop()

    def on_sensor_changed(self, value: float) -> None:
        self.on_reading(value)

    def on_accuracy_changed(self, sensor: BaseSensor, accuracy: str) -> None:
        self.accuracy = accuracy
        self.logger.info(f"Точність датчика {sensor.sensor_id} змінилась на: {accuracy}")

    def on_reading(self, value: float) -> None:
        """
        Обробити новий показник датчика.

        Args:
            value: Температура в градусах
        """
        with self._state_lock:
            previous = self.state.last_reading
            last_notified = self.state.last_notified_reading

            # Перший показник після старту не порівнюється ні з чим
            do_notify = previous is not None and (
                last_notified is None or abs(last_notified - value) >= self.threshold
            )

            self.state.last_reading = value
            if do_notify:
                self.state.last_notified_reading = value
                self.notification_count += 1

        self.logger.debug(f"Отримано показник: {value}")

        if do_notify:
            self.dispatcher.send_notification(
                NOTIFICATION_TITLE,
                f"Current ambient temperature is {value} C"
            )

    def get_status(self) -> Dict[str, Any]:
        """Стан спостерігача для API."""
        with self._state_lock:
            state = self.state.to_dict()
        return {
            'phase': self.phase,
            'listening': self.is_listening,
            'sensor_available': self.sensor is not None,
            'sensor': self.sensor.get_status() if self.sensor is not None else None,
            'accuracy': self.accuracy,
            'threshold': self.threshold,
            'keep_listening_in_background': self.keep_listening_in_background,
            'reset_state_on_restart': self.reset_state_on_restart,
            'notification_count': self.notification_count,
            **state
        }
