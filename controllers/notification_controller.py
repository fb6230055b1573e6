"""
Модуль для відправки сповіщень користувачу через HTTP (ntfy/webhook).
"""

import threading
from typing import Optional, Dict, Any
from datetime import datetime
import requests

from utils.config_manager import ConfigManager
from utils.exceptions import PermissionDenied
from utils.logger import get_logger


# Сталий ідентифікатор: нове сповіщення замінює попереднє
NOTIFICATION_ID = 1
DEFAULT_CHANNEL_ID = 'ambient-temperature'


class NotificationDispatcher:
    """
    Відправник сповіщень.

    Сповіщення доставляється тільки якщо користувач надав дозвіл. Без
    дозволу запит відкидається і записується в лог. Черги та повторних
    спроб немає.
    """

    def __init__(self, config: ConfigManager):
        """
        Ініціалізація відправника.

        Args:
            config: Об'єкт ConfigManager
        """
        self.config = config
        self.logger = get_logger()

        notifications_config = config.get_section('notifications')
        self.enabled = notifications_config.get('enabled', True)
        self.url: Optional[str] = notifications_config.get('url')
        self.channel_id = notifications_config.get('channel_id', DEFAULT_CHANNEL_ID)
        self.timeout = max(1.0, min(30.0, notifications_config.get('timeout', 5.0)))
        self.headers: Dict[str, str] = dict(notifications_config.get('headers') or {})
        self.permission_granted = bool(notifications_config.get('permission_granted', False))

        self._lock = threading.Lock()
        self.sent_count = 0
        self.dropped_count = 0
        self.last_sent: Optional[datetime] = None
        self.last_error: Optional[str] = None

    def has_permission(self) -> bool:
        """Чи надано дозвіл на сповіщення."""
        return self.permission_granted

    def request_permission(self) -> bool:
        """
        Запросити дозвіл на сповіщення.

        Сам діалог показує клієнт; результат надходить через
        on_permission_result().

        Returns:
            True якщо дозвіл вже є
        """
        self.logger.info("Запит дозволу на сповіщення...")
        if self.has_permission():
            self.logger.info("Дозвіл на сповіщення вже надано")
            return True
        self.logger.info("Дозвіл на сповіщення очікує підтвердження користувача")
        return False

    def on_permission_result(self, granted: bool) -> None:
        """Зберегти відповідь користувача на запит дозволу."""
        self.permission_granted = bool(granted)
        if self.permission_granted:
            self.logger.info("Дозвіл на сповіщення надано")
        else:
            self.logger.info("Дозвіл на сповіщення не надано")

    def _check_permission(self) -> None:
        if not self.has_permission():
            raise PermissionDenied("Немає дозволу на сповіщення")

    def _build_payload(self, title: str, body: str) -> Dict[str, Any]:
        return {
            'id': NOTIFICATION_ID,
            'channel_id': self.channel_id,
            'title': title,
            'message': body,
            'auto_cancel': True
        }

    def _post(self, payload: Dict[str, Any]) -> bool:
        """
        Відправити сповіщення одним HTTP запитом.

        Returns:
            True якщо сервер прийняв сповіщення
        """
        if not self.url:
            self.last_error = "URL для сповіщень не вказано"
            self.logger.warning(self.last_error)
            return False

        try:
            response = requests.post(self.url, json=payload, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            return True

        except requests.exceptions.Timeout:
            self.last_error = f"Таймаут при відправці сповіщення ({self.url})"
        except requests.exceptions.ConnectionError:
            self.last_error = f"Помилка з'єднання з сервером сповіщень ({self.url})"
        except requests.exceptions.HTTPError as e:
            self.last_error = f"HTTP помилка від сервера сповіщень: {e}"
        except requests.exceptions.RequestException as e:
            self.last_error = f"Несподівана помилка при відправці сповіщення: {e}"

        self.logger.warning(f"{self.last_error}. Сповіщення відкинуто")
        return False

    def send_notification(self, title: str, body: str) -> bool:
        """
        Показати сповіщення користувачу.

        Args:
            title: Заголовок
            body: Текст сповіщення

        Returns:
            True якщо сповіщення відправлено
        """
        try:
            self._check_permission()
        except PermissionDenied:
            self.logger.info("Не вдалося відправити сповіщення - немає дозволу")
            with self._lock:
                self.dropped_count += 1
            return False

        if not self.enabled:
            self.logger.debug(f"Сповіщення вимкнено в конфігурації: {title}")
            return False

        sent = self._post(self._build_payload(title, body))
        with self._lock:
            if sent:
                self.sent_count += 1
                self.last_sent = datetime.now()
            else:
                self.dropped_count += 1

        if sent:
            self.logger.info(f"Сповіщення відправлено: {title} - {body}")
        return sent

    def get_info(self) -> Dict[str, Any]:
        """Інформація про відправника для API."""
        with self._lock:
            return {
                'enabled': self.enabled,
                'url': self.url,
                'channel_id': self.channel_id,
                'permission_granted': self.permission_granted,
                'sent_count': self.sent_count,
                'dropped_count': self.dropped_count,
                'last_sent': self.last_sent.isoformat() if self.last_sent else None,
                'last_error': self.last_error,
                'test_mode': False
            }
