"""
Symmetric encryption for secrets stored in the database (OAuth tokens).
"""
from cryptography.fernet import Fernet, InvalidToken

from app.config import get_settings


class TokenCipherError(Exception):
    pass


class TokenCipher:
    """
    Fernet wrapper. Key: SHEETS_TOKEN_KEY (urlsafe base64, 32 bytes).

    Generate one with:
        python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
    """

    def __init__(self, key: str | bytes | None = None):
        key = key if key is not None else get_settings().SHEETS_TOKEN_KEY
        if not key:
            raise TokenCipherError("SHEETS_TOKEN_KEY is not configured")
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as exc:
            raise TokenCipherError(f"Invalid SHEETS_TOKEN_KEY: {exc}") from exc

    def encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        try:
            return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")
        except InvalidToken as exc:
            raise TokenCipherError("Stored token cannot be decrypted") from exc
