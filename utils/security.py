import secrets

import bcrypt

# bcrypt 는 앞 72바이트만 사용 (그 이상은 라이브러리에서 오류)
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        # 해시 형식이 아닌 값이 저장된 경우
        return False


def new_session_token() -> str:
    """불투명 세션 토큰 (Authorization: Bearer <token>)"""
    return secrets.token_urlsafe(48)
