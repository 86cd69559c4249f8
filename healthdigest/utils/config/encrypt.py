import logging

from cryptography.fernet import Fernet, InvalidToken

#-----------------------------------------------------------------------------

class AbstractEncrypter:
    def decrypt(self, s: str) -> str: ...
    def encrypt(self, s: str) -> str: ...
    def is_encrypted(self, s: str) -> bool: ...

#-----------------------------------------------------------------------------

class FernetEncrypter(AbstractEncrypter):
    """
    Symmetric encrypter for secrets stored in YAML files and for
    health values written to log records.

    A blank or malformed key disables the encrypter: values pass through
    `decrypt` unchanged and `encrypt` returns an empty string.
    """

    TOKEN_PREFIX = "gAAAA"

    def __init__(self, key: str):
        self._key = key.strip() if key else ""

        self._fernet = None
        if self._key:
            try:
                self._fernet = Fernet(self._key)
            except ValueError as e:
                logging.error(f"Invalid Fernet key: {str(e)}")

    @property
    def enabled(self) -> bool:
        return self._fernet is not None

    #-----------------------------------------------------

    def decrypt(self, s: str) -> str:
        if not s or not self._fernet:
            return s

        if not self.is_encrypted(s):
            return s

        try:
            return self._fernet.decrypt(s.encode()).decode()

        except InvalidToken:
            logging.error("Failed to decrypt value, keeping it as is.")
            return s

    #-----------------------------------------------------

    def encrypt(self, s: str) -> str:
        if not s or not self._fernet:
            return ""

        return self._fernet.encrypt(s.encode()).decode()

    #-----------------------------------------------------

    def is_encrypted(self, s: str) -> bool:
        return s.startswith(self.TOKEN_PREFIX)

#-----------------------------------------------------------------------------
