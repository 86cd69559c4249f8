from .config import (
    Config,

    global_config,
    safe_read_cfg
)

from .digest import DigestConfig
from .encrypt import AbstractEncrypter, FernetEncrypter
from .log import LogConfig
