"""
Модуль для роботи з датчиком температури повітря DS18B20 (1-Wire).
"""

from typing import Optional, Dict, Any
from datetime import datetime

try:
    from w1thermsensor import W1ThermSensor, Sensor
    W1_AVAILABLE = True
except ImportError:
    W1_AVAILABLE = False

from sensors.base import BaseSensor
from utils.logger import get_logger


class DS18B20Sensor(BaseSensor):
    """Датчик DS18B20, що вимірює температуру повітря в приміщенні."""

    def __init__(self, sensor_id: str, name: str, config: Dict[str, Any]):
        """
        Ініціалізація датчика DS18B20.

        Args:
            sensor_id: Унікальний ідентифікатор датчика
            name: Назва датчика
            config: Конфігурація датчика (device_id, enabled, name)
        """
        super().__init__(sensor_id, name, config)
        self.device_id = config.get('device_id')
        self.sensor = None
        self.logger = get_logger()

    def initialize(self) -> bool:
        """
        Знайти датчик на 1-Wire шині.

        Якщо device_id не вказано, береться перший знайдений датчик.

        Returns:
            True якщо датчик знайдено і тестове зчитування вдалося
        """
        if not W1_AVAILABLE:
            self.logger.warning(
                "DS18B20: w1thermsensor не встановлено. "
                "Встановіть: pip install w1thermsensor"
            )
            return False

        if not self.enabled:
            self.logger.info(f"DS18B20 {self.name}: вимкнено в конфігурації")
            return False

        try:
            if self.device_id:
                self.sensor = W1ThermSensor(sensor_type=Sensor.DS18B20, sensor_id=self.device_id)
            else:
                sensors = W1ThermSensor.get_available_sensors([Sensor.DS18B20])
                if not sensors:
                    self.logger.info(f"DS18B20 {self.name}: датчики не знайдено на 1-Wire шині")
                    return False

                if len(sensors) > 1:
                    self.logger.warning(
                        f"DS18B20 {self.name}: знайдено {len(sensors)} датчиків, використовую перший. "
                        f"Вкажіть device_id в конфігурації."
                    )
                self.sensor = sensors[0]
                self.device_id = self.sensor.id

            temp = self.sensor.get_temperature()
            self.logger.info(
                f"DS18B20 {self.name}: ініціалізовано (ID: {self.device_id}, тест: {temp:.2f}°C)"
            )
            return True

        except Exception as e:
            self.logger.error(f"DS18B20 {self.name}: помилка ініціалізації - {e}")
            return False

    def read_temperature(self) -> Optional[float]:
        """
        Зчитати температуру з датчика DS18B20.

        Returns:
            Температура в градусах Цельсія або None при помилці
        """
        if not self.enabled or not self.sensor:
            return None

        try:
            temperature = self.sensor.get_temperature()
        except Exception as e:
            self.logger.error(f"DS18B20 {self.name}: помилка зчитування - {e}")
            self.record_error()
            return None

        self.last_reading = temperature
        self.last_update = datetime.now()
        self.reset_errors()
        return temperature
