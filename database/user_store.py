"""
Сховище єдиного профілю користувача з підпискою на зміни.
"""

import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional

from database.db import Database
from database.models import UserProfile
from utils.exceptions import StorageError, SubscriptionClosed
from utils.logger import get_logger


_CLOSED = object()


class ProfileSubscription:
    """
    Підписка на профіль.

    Першим значенням завжди приходить поточний профіль (None, якщо його ще
    немає), далі кожна зміна. Ітерація блокується до наступного значення і
    завершується після close().
    """

    def __init__(self, store: 'UserStore'):
        self._store = store
        self._queue: queue.Queue = queue.Queue()
        self.closed = False

    def _push(self, value) -> None:
        self._queue.put(value)

    def get(self, timeout: Optional[float] = None) -> Optional[UserProfile]:
        """
        Отримати наступне значення.

        Args:
            timeout: Скільки чекати (None - без обмеження)

        Returns:
            Профіль або None, якщо профілю ще немає

        Raises:
            queue.Empty: Значення не надійшло за timeout
            SubscriptionClosed: Підписку закрито
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Залишити маркер для наступних викликів
            self._queue.put(_CLOSED)
            raise SubscriptionClosed("Підписку закрито")
        return item

    def close(self) -> None:
        """Відписатися від змін."""
        if self.closed:
            return
        self.closed = True
        self._store._unsubscribe(self)
        self._queue.put(_CLOSED)

    def __iter__(self):
        return self

    def __next__(self) -> Optional[UserProfile]:
        try:
            return self.get()
        except SubscriptionClosed:
            raise StopIteration

    def __enter__(self) -> 'ProfileSubscription':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class UserStore:
    """
    Сховище єдиного профілю.

    Запис виконується в окремому робочому потоці, тому записи впорядковані
    і не блокують потік, що їх викликав. Екземпляр створюється один раз при
    запуску програми і передається компонентам явно.
    """

    def __init__(self, database: Database):
        """
        Ініціалізація сховища.

        Args:
            database: База даних
        """
        self.database = database
        self.logger = get_logger()
        self._lock = threading.Lock()
        self._subscribers: List[ProfileSubscription] = []
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='user-store')
        self._closed = False
        self._current = self._load()

    def _load(self) -> Optional[UserProfile]:
        users = self.database.get_all_users()
        return users[0] if users else None

    def current(self) -> Optional[UserProfile]:
        """Поточний профіль або None."""
        with self._lock:
            return self._current

    def get(self) -> ProfileSubscription:
        """
        Підписатися на профіль.

        Returns:
            Нова підписка, яка одразу містить поточне значення
        """
        subscription = ProfileSubscription(self)
        with self._lock:
            if self._closed:
                subscription.closed = True
                subscription._push(_CLOSED)
                return subscription
            subscription._push(self._current)
            self._subscribers.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: ProfileSubscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)

    def _publish(self, profile: Optional[UserProfile]) -> None:
        with self._lock:
            if profile == self._current:
                return
            self._current = profile
            for subscription in self._subscribers:
                subscription._push(profile)

    def upsert(self, display_name: Optional[str], avatar_reference: Optional[str]) -> 'Future[UserProfile]':
        """
        Замінити поля профілю.

        Значення не перевіряються і не обрізаються: це робить той, хто
        викликає. Підписники бачать новий профіль раніше, ніж завершиться
        повернутий Future.

        Args:
            display_name: Ім'я користувача
            avatar_reference: Посилання на зображення аватара

        Returns:
            Future зі збереженим профілем; при помилці сховища
            future.result() піднімає StorageError
        """
        profile = UserProfile(display_name=display_name, avatar_reference=avatar_reference)
        try:
            return self._executor.submit(self._write, profile)
        except RuntimeError as e:
            raise StorageError(f"Сховище профілю закрите: {e}") from e

    def _write(self, profile: UserProfile) -> UserProfile:
        try:
            self.database.upsert_user(profile)
            stored = self._load()
        except StorageError as e:
            self.logger.error(f"Не вдалося зберегти профіль: {e}")
            raise

        self._publish(stored)
        self.logger.info(
            f"Профіль оновлено: ім'я={stored.display_name!r}, аватар={stored.avatar_reference!r}"
        )
        return stored

    def close(self) -> None:
        """Дочекатися завершення записів і закрити всі підписки."""
        self._executor.shutdown(wait=True)
        with self._lock:
            self._closed = True
            subscribers = list(self._subscribers)
        for subscription in subscribers:
            subscription.close()
