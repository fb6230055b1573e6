"""
Менеджер датчика температури повітря та підписок на його показники.
"""

import threading
from typing import Dict, List, Optional, Any, Tuple

from sensors.base import BaseSensor
try:
    from sensors.ds18b20 import DS18B20Sensor, W1_AVAILABLE
except Exception:
    W1_AVAILABLE = False

from tests.test_sensors import TestAmbientSensor
from utils.config_manager import ConfigManager
from utils.logger import get_logger


# Інтервал опитування "normal" у секундах
SENSOR_DELAY_NORMAL = 0.2

ACCURACY_HIGH = 'high'
ACCURACY_UNRELIABLE = 'unreliable'


class SensorManager:
    """
    Джерело показників температури.

    Слухач реєструється через register_listener() і отримує значення в
    методі on_sensor_changed(value) в порядку зчитування. Для кожного
    слухача працює окремий потік опитування.
    """

    def __init__(self, config: ConfigManager):
        """
        Ініціалізація менеджера датчиків.

        Args:
            config: Об'єкт ConfigManager
        """
        self.config = config
        self.logger = get_logger()
        self.sensors: Dict[str, BaseSensor] = {}
        self.is_test_mode = config.is_test_mode()
        self.default_delay = config.get('sensor.delay', SENSOR_DELAY_NORMAL)
        self._listeners: Dict[Any, Tuple[threading.Thread, threading.Event]] = {}
        self._lock = threading.Lock()
        self._initialize_sensors()

    def _initialize_sensors(self) -> None:
        """Створити датчик температури повітря з конфігурації."""
        sensor_config = self.config.get_section('sensor').get('ambient', {})
        if not sensor_config.get('enabled', True):
            self.logger.info("Датчик температури повітря вимкнено в конфігурації")
            return

        sensor_id = sensor_config.get('id', 'ambient')
        name = sensor_config.get('name', 'Температура повітря')

        if self.is_test_mode:
            test_config = self.config.get_section('test_mode')
            sensor = TestAmbientSensor(
                sensor_id,
                name,
                sensor_config,
                base_temp=test_config.get('base_temperature', 21.0),
                scenario=test_config.get('scenario') or 'steady'
            )
        elif W1_AVAILABLE:
            sensor = DS18B20Sensor(sensor_id, name, sensor_config)
        else:
            self.logger.info("Датчик температури повітря недоступний (немає w1thermsensor)")
            return

        if sensor.initialize():
            self.sensors[sensor_id] = sensor
            self.logger.info(f"Датчик {sensor_id} ({name}) ініціалізовано")
        else:
            self.logger.info(f"Датчик {sensor_id} не знайдено")

    def add_sensor(self, sensor: BaseSensor) -> None:
        """Додати вже ініціалізований датчик."""
        self.sensors[sensor.sensor_id] = sensor

    def get_default_sensor(self) -> Optional[BaseSensor]:
        """
        Отримати датчик температури повітря.

        Returns:
            Датчик або None, якщо на пристрої його немає
        """
        for sensor in self.sensors.values():
            if sensor.sensor_type == 'ambient_temperature':
                return sensor
        return None

    def register_listener(self, listener, sensor: BaseSensor, delay: Optional[float] = None) -> bool:
        """
        Почати доставку показників слухачу.

        Args:
            listener: Об'єкт з методами on_sensor_changed / on_accuracy_changed
            sensor: Датчик
            delay: Інтервал опитування в секундах

        Returns:
            False якщо слухач вже зареєстрований
        """
        with self._lock:
            if listener in self._listeners:
                return False

            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._poll,
                args=(listener, sensor, delay or self.default_delay, stop_event),
                name=f"sensor-{sensor.sensor_id}",
                daemon=True
            )
            self._listeners[listener] = (thread, stop_event)

        thread.start()
        self.logger.debug(f"Слухача зареєстровано для датчика {sensor.sensor_id}")
        return True

    def unregister_listener(self, listener) -> None:
        """Зупинити доставку показників слухачу (без помилки, якщо його немає)."""
        with self._lock:
            entry = self._listeners.pop(listener, None)
        if entry is None:
            return

        thread, stop_event = entry
        stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=5)
        self.logger.debug("Слухача відписано від датчика")

    def is_registered(self, listener) -> bool:
        with self._lock:
            return listener in self._listeners

    def _poll(self, listener, sensor: BaseSensor, delay: float, stop_event: threading.Event) -> None:
        """Цикл опитування датчика для одного слухача."""
        available = True

        while not stop_event.is_set():
            if sensor.is_available():
                if not available:
                    available = True
                    listener.on_accuracy_changed(sensor, ACCURACY_HIGH)

                value = sensor.read_temperature()
                # Після відписки показники більше не доставляються
                if value is not None and not stop_event.is_set():
                    try:
                        listener.on_sensor_changed(value)
                    except Exception as e:
                        self.logger.error(f"Помилка обробки показника {value}: {e}", exc_info=True)
            elif available:
                available = False
                listener.on_accuracy_changed(sensor, ACCURACY_UNRELIABLE)

            stop_event.wait(delay)

    def get_all_status(self) -> List[Dict[str, Any]]:
        """Статуси всіх датчиків."""
        return [sensor.get_status() for sensor in self.sensors.values()]

    def shutdown(self) -> None:
        """Відписати всіх слухачів."""
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            self.unregister_listener(listener)
