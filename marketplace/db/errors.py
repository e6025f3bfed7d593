import functools

from marketplace.core.logging_config import logger


class DatabaseError(Exception):
    """Ошибка слоя доступа к данным, возвращается клиенту как ошибка валидации."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def try_db(func):
    """Оборачивает CRUD-функцию: логирует исключение, откатывает сессию и поднимает DatabaseError.

    Первым аргументом обёрнутой функции всегда идёт AsyncSession.
    """

    @functools.wraps(func)
    async def wrapper(db, *args, **kwargs):
        try:
            return await func(db, *args, **kwargs)
        except DatabaseError:
            await db.rollback()
            raise
        except Exception as e:
            logger.error(f"Database operation {func.__name__} failed: {str(e)}")
            await db.rollback()
            raise DatabaseError(str(e)) from e

    return wrapper
