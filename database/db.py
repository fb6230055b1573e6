"""
Модуль для роботи з базою даних SQLite.
"""

import sqlite3
from typing import List
from pathlib import Path

from database.models import UserProfile
from utils.exceptions import StorageError
from utils.logger import get_logger


# При зміні схеми збільшити версію: стара база буде перестворена
SCHEMA_VERSION = 3
USER_COLUMNS = {'id', 'display_name', 'avatar_reference'}


class Database:
    """Клас для роботи з базою даних SQLite."""

    def __init__(self, db_file: str = "data/ambient_profile.db"):
        """
        Ініціалізація бази даних.

        Args:
            db_file: Шлях до файлу бази даних
        """
        self.db_file = Path(db_file)
        self.logger = get_logger()
        try:
            self.db_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Не вдалося створити каталог бази даних: {e}") from e
        self._initialize_database()

    def _get_connection(self) -> sqlite3.Connection:
        """Отримати з'єднання з базою даних."""
        conn = sqlite3.connect(self.db_file)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize_database(self) -> None:
        """Ініціалізувати структуру бази даних."""
        try:
            conn = self._get_connection()
            try:
                cursor = conn.cursor()
                version = cursor.execute("PRAGMA user_version").fetchone()[0]

                columns = {row[1] for row in cursor.execute("PRAGMA table_info(user)").fetchall()}

                # Міграцій немає - стара схема просто перестворюється
                if version not in (0, SCHEMA_VERSION):
                    self.logger.warning(
                        f"Версія схеми бази {version} != {SCHEMA_VERSION}, базу буде перестворено"
                    )
                    cursor.execute("DROP TABLE IF EXISTS user")
                elif columns and columns != USER_COLUMNS:
                    self.logger.warning(
                        f"Таблиця user має невідомі колонки {sorted(columns)}, базу буде перестворено"
                    )
                    cursor.execute("DROP TABLE IF EXISTS user")

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS user (
                        id INTEGER PRIMARY KEY,
                        display_name TEXT,
                        avatar_reference TEXT
                    )
                """)
                cursor.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Помилка ініціалізації бази даних: {e}") from e

        self.logger.info(f"База даних ініціалізована: {self.db_file}")

    def get_all_users(self) -> List[UserProfile]:
        """
        Отримати всі профілі (0 або 1 запис).

        Returns:
            Список профілів
        """
        try:
            conn = self._get_connection()
            try:
                rows = conn.execute(
                    "SELECT id, display_name, avatar_reference FROM user ORDER BY id"
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Помилка читання профілю: {e}") from e

        return [
            UserProfile(
                id=row['id'],
                display_name=row['display_name'],
                avatar_reference=row['avatar_reference']
            )
            for row in rows
        ]

    def upsert_user(self, profile: UserProfile) -> None:
        """
        Записати профіль за первинним ключем (вставка або оновлення).

        Args:
            profile: Профіль для збереження
        """
        try:
            conn = self._get_connection()
            try:
                conn.execute("""
                    INSERT INTO user (id, display_name, avatar_reference)
                    VALUES (?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        display_name = excluded.display_name,
                        avatar_reference = excluded.avatar_reference
                """, (profile.id, profile.display_name, profile.avatar_reference))
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Помилка збереження профілю: {e}") from e

        self.logger.debug(f"Профіль {profile.id} збережено")
