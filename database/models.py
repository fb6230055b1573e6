"""
Моделі даних сервісу.
"""

from dataclasses import dataclass
from typing import Optional


# Профіль завжди один, тому ідентифікатор сталий
USER_PROFILE_ID = 1
DISPLAY_NAME_MAX_LENGTH = 20


@dataclass(frozen=True)
class UserProfile:
    """Профіль користувача (єдиний рядок таблиці user)."""
    display_name: Optional[str] = None
    avatar_reference: Optional[str] = None  # None - аватар за замовчуванням
    id: int = USER_PROFILE_ID

    def title(self) -> str:
        """Заголовок сторінки профілю."""
        if self.display_name is not None:
            return f"{self.display_name}'s Profile"
        return "Profile"

    def to_dict(self) -> dict:
        """Конвертувати в словник."""
        return {
            'id': self.id,
            'display_name': self.display_name,
            'avatar_reference': self.avatar_reference
        }


@dataclass
class SensorState:
    """Стан спостерігача температури (тільки в пам'яті)."""
    last_reading: Optional[float] = None
    last_notified_reading: Optional[float] = None

    def reset(self) -> None:
        """Скинути стан до початкового."""
        self.last_reading = None
        self.last_notified_reading = None

    def to_dict(self) -> dict:
        """Конвертувати в словник."""
        return {
            'last_reading': self.last_reading,
            'last_notified_reading': self.last_notified_reading
        }
