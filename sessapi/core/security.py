# sessapi/core/security.py
import secrets
from functools import lru_cache
from typing import Iterable, List, Optional

from passlib.context import CryptContext

from sessapi.core.config import settings

# 允許的雜湊方案：皆為 per-hash salt + 可調 work factor
SECURE_SCHEMES = frozenset({
    "bcrypt",
    "bcrypt_sha256",
    "argon2",
    "scrypt",
    "pbkdf2_sha256",
    "pbkdf2_sha512",
    "sha256_crypt",
    "sha512_crypt",
})

# session token 存成有號 BIGINT，所以取 63 bits
TOKEN_BITS = 63


class InsecurePasswordHashing(RuntimeError):
    """部署設定錯誤：沒有可用的安全密碼雜湊。"""


def build_password_context(schemes: Iterable[str], bcrypt_rounds: int = 12) -> CryptContext:
    """
    建立 passlib CryptContext。
    任何不在 SECURE_SCHEMES 的方案（例如 plaintext）都直接拒絕，不做降級。
    """
    schemes: List[str] = [s.strip().lower() for s in schemes if s and s.strip()]
    if not schemes:
        raise InsecurePasswordHashing("No password hashing scheme configured")
    rejected = [s for s in schemes if s not in SECURE_SCHEMES]
    if rejected:
        raise InsecurePasswordHashing(
            f"Refusing insecure password hashing scheme(s): {', '.join(rejected)}"
        )

    kwargs = {}
    if "bcrypt" in schemes:
        kwargs.update(
            bcrypt__ident="2b",
            bcrypt__rounds=bcrypt_rounds,
            # 若密碼超過 72 bytes，不拋錯
            bcrypt__truncate_error=False,
        )
    return CryptContext(schemes=schemes, deprecated="auto", **kwargs)


def probe_password_context(ctx: CryptContext) -> None:
    """啟動時實際雜湊 / 驗證一次，確認 backend 存在。"""
    try:
        probe = ctx.hash("probe-secret")
        ok = ctx.verify("probe-secret", probe) and not ctx.verify("probe-wrong", probe)
    except Exception as e:  # passlib 缺 backend 時拋 MissingBackendError 等
        raise InsecurePasswordHashing(f"Password hashing backend unavailable: {e}") from e
    if not ok:
        raise InsecurePasswordHashing("Password hashing backend failed self-check")


@lru_cache
def get_password_context() -> CryptContext:
    return build_password_context(settings.PASSWORD_SCHEMES, settings.BCRYPT_ROUNDS)


def _sanitize_password(p: str) -> str:
    # bcrypt 只吃前 72 bytes，避免極長密碼在某些環境報錯
    if isinstance(p, str) and "bcrypt" in settings.PASSWORD_SCHEMES[:1]:
        return p.encode("utf-8")[:72].decode("utf-8", "ignore")
    return p


def hash_password(plain: str) -> str:
    return get_password_context().hash(_sanitize_password(plain))


def verify_password(plain: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        # 沒有可比對的雜湊（例如無此帳號）：照樣付出一次雜湊成本
        get_password_context().dummy_verify()
        return False
    if not plain:
        return False
    try:
        return get_password_context().verify(_sanitize_password(plain), password_hash)
    except ValueError:
        # 雜湊格式無法辨識（例如資料庫裡是舊的明文），視為驗證失敗
        return False


def new_session_token() -> int:
    return secrets.randbits(TOKEN_BITS)
