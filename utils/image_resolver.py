"""
Отримання зображення аватара за посиланням.
"""

import mimetypes
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlparse, unquote

import requests

from utils.logger import get_logger


DEFAULT_AVATAR_PATH = Path(__file__).resolve().parent / 'assets' / 'profile_icon.svg'


class ImageResolver:
    """
    Перетворює посилання на аватар у байти зображення.

    Локальні файли віддаються тільки з каталогу media_dir. Все, що не є
    зображенням або не вдалося отримати, замінюється аватаром за
    замовчуванням.
    """

    def __init__(
        self,
        default_image_path: Optional[str] = None,
        media_dir: Optional[str] = None,
        timeout: float = 5.0
    ):
        """
        Args:
            default_image_path: Зображення за замовчуванням
            media_dir: Каталог, з якого дозволено віддавати локальні файли
                (None - локальні файли не віддаються)
            timeout: Таймаут HTTP запиту в секундах
        """
        self.logger = get_logger()
        self.timeout = timeout
        self.default_image_path = DEFAULT_AVATAR_PATH

        if default_image_path:
            path = Path(default_image_path)
            if path.is_file():
                self.default_image_path = path
            else:
                self.logger.warning(
                    f"Аватар за замовчуванням не знайдено: {path}. Використовую вбудований"
                )

        self.media_dir = Path(media_dir).resolve() if media_dir else None

    def default_image(self) -> Tuple[bytes, str]:
        """Зображення за замовчуванням."""
        try:
            return self.default_image_path.read_bytes(), self._guess_type(self.default_image_path.name)
        except OSError as e:
            self.logger.error(f"Не вдалося прочитати {self.default_image_path}: {e}. Використовую вбудований")
            return DEFAULT_AVATAR_PATH.read_bytes(), self._guess_type(DEFAULT_AVATAR_PATH.name)

    @staticmethod
    def _guess_type(name: str) -> str:
        mimetype, _ = mimetypes.guess_type(name)
        return mimetype or 'application/octet-stream'

    def _is_allowed(self, path: Path) -> bool:
        if self.media_dir is None:
            return False
        try:
            path.resolve().relative_to(self.media_dir)
        except ValueError:
            return False
        return True

    def _fetch(self, reference: str) -> Tuple[bytes, str]:
        parsed = urlparse(reference)

        if parsed.scheme in ('http', 'https'):
            response = requests.get(reference, timeout=self.timeout)
            response.raise_for_status()
            mimetype = response.headers.get('Content-Type') or self._guess_type(parsed.path)
            return response.content, mimetype.split(';')[0].strip()

        path = Path(unquote(parsed.path)) if parsed.scheme == 'file' else Path(reference)
        if not self._is_allowed(path):
            raise PermissionError(f"Файл поза каталогом медіа: {path}")
        return path.read_bytes(), self._guess_type(path.name)

    def resolve(self, reference: Optional[str]) -> Tuple[bytes, str]:
        """
        Отримати зображення.

        Args:
            reference: Шлях, file:// або http(s):// посилання; None - аватар
                за замовчуванням

        Returns:
            Кортеж (байти, mimetype). При будь-якій помилці повертається
            зображення за замовчуванням.
        """
        if not reference:
            return self.default_image()

        self.logger.debug(f"Завантаження зображення з {reference!r}")

        try:
            content, mimetype = self._fetch(reference)
        except (OSError, ValueError, requests.exceptions.RequestException) as e:
            self.logger.warning(
                f"Не вдалося завантажити зображення {reference!r}: {e}. Використовую аватар за замовчуванням"
            )
            return self.default_image()

        if not mimetype.startswith('image/'):
            self.logger.warning(f"{reference!r} не є зображенням ({mimetype}). Використовую аватар за замовчуванням")
            return self.default_image()

        return content, mimetype
