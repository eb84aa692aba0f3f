# sessapi/schemas/forms.py
"""
頁面欄位驗證。

長度限制來自 Settings（PASSWORD_MIN_LENGTH / PASSWORD_MAX_LENGTH /
EMAIL_MAX_LENGTH），屬於部署時的政策而不是寫死的常數。
"""
from typing import Any, Mapping, Optional

from pydantic import BaseModel, EmailStr, TypeAdapter, ValidationError

from sessapi.core.config import settings

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(raw: Optional[str]) -> Optional[str]:
    """合法 email 回傳去空白、小寫後的值；不合法回傳 None。"""
    if raw is None:
        return None
    value = str(raw).strip()
    if not value or len(value) > settings.EMAIL_MAX_LENGTH:
        return None
    try:
        return str(_email_adapter.validate_python(value)).lower()
    except ValidationError:
        return None


def valid_password(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    value = str(raw)
    if len(value) < max(1, settings.PASSWORD_MIN_LENGTH):
        return None
    if len(value) > settings.PASSWORD_MAX_LENGTH:
        return None
    return value


class LoginForm(BaseModel):
    email: str
    password: str

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> Optional["LoginForm"]:
        email = normalize_email(fields.get("email"))
        password = valid_password(fields.get("pass"))
        if email is None or password is None:
            return None
        return cls(email=email, password=password)


class EmailForm(BaseModel):
    email: str

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> Optional["EmailForm"]:
        email = normalize_email(fields.get("email"))
        return cls(email=email) if email is not None else None


class PasswordForm(BaseModel):
    password: str

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> Optional["PasswordForm"]:
        password = valid_password(fields.get("pass"))
        return cls(password=password) if password is not None else None
