from pydantic import BaseModel
from typing import Optional
from marketplace.schemas.user import User, UserType


class Session(BaseModel):
    """Контекст запроса: пользователь или анонимный доступ."""
    user: Optional[User] = None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.type == UserType.ADMIN

    @property
    def is_government(self) -> bool:
        return self.user is not None and self.user.type == UserType.GOVERNMENT

    @property
    def is_vendor(self) -> bool:
        return self.user is not None and self.user.type == UserType.VENDOR
