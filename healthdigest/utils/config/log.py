import logging

#-----------------------------------------------------------------------------

class LogConfig:
    """
    Where digest logs go and whether health values in them are encrypted.

    `level` accepts a level number or a name such as "debug"; unknown
    names fall back to INFO.
    """

    def __init__(
        self,
        name        : str = "",
        dir         : str = "",
        level       : int | str = logging.INFO,
        secret_key  : str = ""
    ):
        self.name       = name.strip() if name else ""
        self.dir        = dir.strip() if dir else ""
        self.level      = self.parse_level(level)
        self.secret_key = secret_key

    #-----------------------------------------------------

    @staticmethod
    def parse_level(level: int | str) -> int:
        if isinstance(level, int) and not isinstance(level, bool):
            return level

        if isinstance(level, str):
            return logging.getLevelNamesMapping().get(level.strip().upper(), logging.INFO)

        return logging.INFO


    @property
    def to_file(self) -> bool:
        return bool(self.name)


    @property
    def encrypts_health_values(self) -> bool:
        return bool(self.secret_key)

    #-----------------------------------------------------

    def print(self):
        target = f"{self.dir or '.'}/{self.name}" if self.to_file else "console"
        print(f"log             : {target}:{logging.getLevelName(self.level)}")
        print(f"log encryption  : {'on' if self.encrypts_health_values else 'off'}")

#-----------------------------------------------------------------------------
