"""
REST API сервер: дані для екранів розмови та профілю, стан датчика.
"""

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from typing import Optional, Dict, Any
import threading
from concurrent.futures import TimeoutError as FutureTimeoutError

from controllers.notification_controller import NotificationDispatcher
from controllers.temperature_watcher import AmbientTemperatureWatcher
from database.models import DISPLAY_NAME_MAX_LENGTH
from database.user_store import UserStore
from sensors.sensor_manager import SensorManager
from utils.config_manager import ConfigManager
from utils.exceptions import StorageError
from utils.image_resolver import ImageResolver
from utils.logger import get_logger


def normalize_display_name(text: Optional[str]) -> str:
    """
    Підготувати ім'я користувача до збереження.

    Args:
        text: Введене ім'я

    Returns:
        Ім'я без пробілів на краях

    Raises:
        ValueError: Ім'я порожнє або довше за DISPLAY_NAME_MAX_LENGTH
    """
    if not isinstance(text, str):
        raise ValueError("Ім'я має бути рядком")
    name = text.strip()
    if not name:
        raise ValueError("Ім'я не може бути порожнім")
    if len(name) > DISPLAY_NAME_MAX_LENGTH:
        raise ValueError(f"Ім'я довше за {DISPLAY_NAME_MAX_LENGTH} символів")
    return name


class APIServer:
    """Клас для REST API сервера."""

    def __init__(
        self,
        sensor_manager: SensorManager,
        watcher: AmbientTemperatureWatcher,
        user_store: UserStore,
        dispatcher: NotificationDispatcher,
        config: ConfigManager,
        image_resolver: Optional[ImageResolver] = None
    ):
        """
        Ініціалізація API сервера.

        Args:
            sensor_manager: Менеджер датчиків
            watcher: Спостерігач температури
            user_store: Сховище профілю
            dispatcher: Відправник сповіщень
            config: Конфігурація
            image_resolver: Завантажувач аватарів
        """
        self.sensor_manager = sensor_manager
        self.watcher = watcher
        self.user_store = user_store
        self.dispatcher = dispatcher
        self.config = config
        self.image_resolver = image_resolver or ImageResolver()
        self.logger = get_logger()

        api_config = config.get_section('api')
        self.host = api_config.get('host', '0.0.0.0')
        self.port = api_config.get('port', 8080)
        self.debug = api_config.get('debug', False)
        self.write_timeout = api_config.get('write_timeout', 10.0)

        self.app = Flask(__name__)
        CORS(self.app)

        self._register_routes()

        self.server_thread: Optional[threading.Thread] = None
        self.is_running = False

    def _profile_json(self) -> Optional[Dict[str, Any]]:
        profile = self.user_store.current()
        return profile.to_dict() if profile is not None else None

    def _save_profile(self, display_name: Optional[str], avatar_reference: Optional[str]):
        future = self.user_store.upsert(display_name, avatar_reference)
        return future.result(timeout=self.write_timeout)

    def _register_routes(self) -> None:
        """Зареєструвати всі маршрути API."""

        @self.app.errorhandler(StorageError)
        def storage_error(e):
            self.logger.error(f"Помилка сховища: {e}")
            return jsonify({'error': 'storage_unavailable', 'message': str(e)}), 503

        @self.app.errorhandler(FutureTimeoutError)
        def storage_timeout(e):
            self.logger.error(f"Запис профілю не завершився за {self.write_timeout} с")
            return jsonify({
                'error': 'storage_timeout',
                'message': f"Запис не завершився за {self.write_timeout} с"
            }), 504

        @self.app.route('/api/status')
        def api_status():
            """Загальний статус сервісу."""
            return jsonify({
                'status': 'running',
                'sensor': self.watcher.phase,
                'sensor_available': self.watcher.sensor is not None,
                'listening': self.watcher.is_listening,
                'notifications_permission': self.dispatcher.has_permission(),
                'test_mode': self.config.is_test_mode()
            })

        @self.app.route('/api/conversation')
        def api_conversation():
            """Дані для екрану розмови."""
            profile = self.user_store.current()
            messages = self.config.get('conversation.messages', []) or []
            return jsonify({
                'title': 'Conversation',
                'profile_button': profile.title() if profile is not None else 'Profile',
                'avatar_reference': profile.avatar_reference if profile is not None else None,
                'messages': [
                    {'author': m.get('author', ''), 'body': m.get('body', '')}
                    for m in messages
                ]
            })

        @self.app.route('/api/profile', methods=['GET'])
        def api_profile():
            """Поточний профіль (null, якщо його ще не створено)."""
            return jsonify({'profile': self._profile_json()})

        @self.app.route('/api/profile/username', methods=['PUT'])
        def api_profile_username():
            """Зберегти нове ім'я, аватар залишається."""
            data = request.get_json(silent=True) or {}
            try:
                name = normalize_display_name(data.get('username'))
            except ValueError as e:
                return jsonify({'error': 'invalid_username', 'message': str(e)}), 400

            current = self.user_store.current()
            avatar = current.avatar_reference if current is not None else None
            profile = self._save_profile(name, avatar)
            return jsonify({'profile': profile.to_dict()})

        @self.app.route('/api/profile/avatar', methods=['PUT'])
        def api_profile_avatar_update():
            """Зберегти посилання на новий аватар, ім'я залишається."""
            data = request.get_json(silent=True) or {}
            reference = data.get('avatar_reference')
            if not isinstance(reference, str) or not reference:
                self.logger.debug("Аватар не вибрано")
                return jsonify({'error': 'invalid_avatar', 'message': 'Не вказано avatar_reference'}), 400

            current = self.user_store.current()
            name = current.display_name if current is not None else None
            profile = self._save_profile(name, reference)
            return jsonify({'profile': profile.to_dict()})

        @self.app.route('/api/profile/avatar', methods=['GET'])
        def api_profile_avatar():
            """Зображення аватара або аватар за замовчуванням."""
            current = self.user_store.current()
            reference = current.avatar_reference if current is not None else None
            content, mimetype = self.image_resolver.resolve(reference)
            return Response(content, mimetype=mimetype)

        @self.app.route('/api/sensor')
        def api_sensor():
            """Стан спостерігача температури."""
            return jsonify(self.watcher.get_status())

        @self.app.route('/api/sensors')
        def api_sensors():
            """Статуси всіх датчиків."""
            return jsonify({'sensors': self.sensor_manager.get_all_status()})

        @self.app.route('/api/notifications')
        def api_notifications():
            """Стан відправника сповіщень."""
            return jsonify(self.dispatcher.get_info())

        @self.app.route('/api/notifications/permission', methods=['POST'])
        def api_notifications_permission():
            """Результат запиту дозволу від клієнта."""
            data = request.get_json(silent=True) or {}
            granted = data.get('granted')
            if not isinstance(granted, bool):
                return jsonify({'error': 'invalid_permission', 'message': 'granted має бути true/false'}), 400
            self.dispatcher.on_permission_result(granted)
            return jsonify({'permission_granted': self.dispatcher.has_permission()})

        @self.app.route('/api/lifecycle/<event>', methods=['POST'])
        def api_lifecycle(event: str):
            """Клієнт перейшов на передній план (resume) або у фон (pause)."""
            if event == 'resume':
                self.watcher.on_resume()
            elif event == 'pause':
                self.watcher.on_pause()
            else:
                return jsonify({'error': 'unknown_event'}), 404
            return jsonify({'event': event, 'listening': self.watcher.is_listening})

    def start(self) -> None:
        """Запустити API сервер в окремому потоці."""
        if self.is_running:
            self.logger.warning("API сервер вже запущений")
            return

        def run_server():
            self.logger.info(f"Запуск API сервера на {self.host}:{self.port}")
            self.app.run(host=self.host, port=self.port, debug=self.debug, use_reloader=False)

        self.server_thread = threading.Thread(target=run_server, daemon=True)
        self.server_thread.start()
        self.is_running = True
        self.logger.info("API сервер запущено")

    def stop(self) -> None:
        """Зупинити API сервер."""
        # Flask не має прямого способу зупинки, потік завершиться з процесом
        self.is_running = False
        self.logger.info("API сервер зупинено")
