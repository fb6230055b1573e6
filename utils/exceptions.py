"""
Винятки сервісу.
"""


class AmbientProfileError(Exception):
    """Базовий виняток сервісу."""


class StorageError(AmbientProfileError):
    """Сховище профілю недоступне або переповнене."""


class PermissionDenied(AmbientProfileError):
    """Немає дозволу на показ сповіщень."""


class SubscriptionClosed(AmbientProfileError):
    """Підписку на профіль закрито."""
