import aiohttp, base64, binascii, dotenv, io, json, logging, os, re

from ruamel.yaml import YAML
from typing import Any

from .digest import DigestConfig, DEFAULT_SLEEP_BOUNDARY_HOUR, DEFAULT_TIMEZONE
from .encrypt import AbstractEncrypter, FernetEncrypter
from .log import LogConfig

#-----------------------------------------------------------------------------

_global_config = None

#-----------------------------------------------------------------------------

class Config:

    yaml = YAML(typ="safe")

    #-------------------------------------------------

    def __init__(
        self,
        yaml_filenames: str | io.StringIO | list[str | io.StringIO] | None = None,
        encrypter: AbstractEncrypter | None = None
    ):
        if isinstance(yaml_filenames, str | io.StringIO):
            self._yaml_filenames = [yaml_filenames]
        elif isinstance(yaml_filenames, list):
            self._yaml_filenames = yaml_filenames
        else:
            self._yaml_filenames = []

        self._raw = {}

        self._encrypter = encrypter
        if not self._encrypter:
            self._encrypter = FernetEncrypter(self.get_fernet_key("CONFIG_ENCRYPTION_KEY"))

        for yaml_filename in self._yaml_filenames:
            self.load_yaml(yaml_filename)

        self.refresh()

        global _global_config
        _global_config = self

    #-----------------------------------------------------

    def refresh(self, data: dict | None = None):
        if data:
            self._raw.update({str(k).upper(): v for k, v in data.items()})

        self.log = LogConfig(
            name        = self.get_str("LOG_NAME"),
            dir         = self.get_str("LOG_DIR"),
            level       = self.get_str("LOG_LEVEL", "INFO"),
            secret_key  = self.get_fernet_key("LOG_ENCRYPTION_KEY")
        )

        self.digest = DigestConfig(
            timezone            = self.get_str("HEALTH_TIMEZONE", DEFAULT_TIMEZONE),
            sleep_boundary_hour = self.get_int("SLEEP_DAY_BOUNDARY_HOUR", DEFAULT_SLEEP_BOUNDARY_HOUR),
            zero_fill_average   = self.get_bool("ZERO_FILL_AVERAGE_METRICS", False),
            export_file         = self.get_str("HEALTH_EXPORT_FILE")
        )


    def load_yaml(self, file: str | io.StringIO):
        if not file:
            return

        stream = None

        if isinstance(file, str):
            try:
                with open(file, "r", encoding="utf-8") as f:
                    stream = io.StringIO(f.read())

            except OSError as e:
                logging.warning(f"Failed to load YAML file '{file}': {str(e)}")
                return

        elif isinstance(file, io.StringIO):
            # Content of a remote config.
            stream = file

        if stream is None:
            return

        #-------------------------------------------------

        data = Config.yaml.load(stream)
        if not isinstance(data, dict):
            return

        for key, value in data.items():
            if not isinstance(key, str):
                continue

            upper_key = key.upper()

            if self._encrypter and isinstance(value, str) and value and self._encrypter.is_encrypted(value):
                self._raw[upper_key] = self._encrypter.decrypt(value)
                continue

            self._raw[upper_key] = value

    #-----------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        stripped_key = key.strip()
        if not stripped_key:
            return default

        # Environment variables win over files.
        s = os.environ.get(stripped_key)
        if s is not None:
            return s

        upper_key = stripped_key.upper()
        s = os.environ.get(upper_key)
        if s is not None:
            return s

        return self._raw.get(upper_key, default)


    def get_str(self, key: str, default: str = "") -> str:
        s = self.get(key, default)
        if s is None:
            return default

        return s if isinstance(s, str) else str(s)


    def get_int(self, key: str, default: int = 0) -> int:
        obj = self.get(key)

        if isinstance(obj, bool):
            return default

        if isinstance(obj, int):
            return obj

        try:
            return int(obj)
        except (TypeError, ValueError):
            return default


    def get_bool(self, key: str, default: bool = False) -> bool:
        obj = self.get(key)

        if isinstance(obj, bool):
            return obj

        if isinstance(obj, str):
            return obj.strip().upper() in ("TRUE", "YES", "1")

        if isinstance(obj, int):
            return obj != 0

        return default


    def get_dict(self, key: str, default: dict | None = None) -> dict | None:
        obj = self.get(key)

        if isinstance(obj, dict):
            return obj

        if isinstance(obj, str | bytes | bytearray):
            try:
                d = json.loads(obj)
            except ValueError:
                return default

            if isinstance(d, dict):
                return d

        return default


    def get_list(self, key: str, default: list | None = None) -> list | None:
        obj = self.get(key)

        if isinstance(obj, list):
            return obj

        if isinstance(obj, str | bytes | bytearray):
            try:
                l = json.loads(obj)
            except ValueError:
                return default

            if isinstance(l, list):
                return l

        return default


    def get_fernet_key(self, key: str) -> str:
        s = self.get_str(key).strip()
        if not s:
            return ""

        if len(s) > 32:
            s = s[:32]

        try:
            return base64.urlsafe_b64encode(s.encode().ljust(32, b"0")).decode()

        except (UnicodeError, binascii.Error) as e:
            logging.error(str(e), extra={"key": key})
            return ""

    #-----------------------------------------------------

    def print(self):
        print(f"Configuration loaded from {[f if isinstance(f, str) else '<remote>' for f in self._yaml_filenames]}:")
        print("----------------------------------------------------------")
        print(f"env             : {os.environ.get('ENV', '').strip().lower()}")
        print(f"debug           : {self.log.level <= logging.DEBUG}")

        self.log.print()
        self.digest.print()

        print("----------------------------------------------------------")

    #-------------------------------------------------------------------------

    @staticmethod
    def load_dotenv(filenames: str | list[str] | None = None):
        if isinstance(filenames, str):
            l = [filenames]
        elif isinstance(filenames, list):
            l = filenames
        else:
            return

        for filename in l:
            filename = filename.strip()
            if not filename:
                continue

            for key, value in dotenv.dotenv_values(filename).items():
                if value:
                    value = value.strip()
                if not value:
                    continue

                key = key.strip()
                if not key:
                    continue

                os.environ.setdefault(key.upper(), value)

    #-------------------------------------------------------------------------

    @staticmethod
    async def load_remote_config(server: str, token: str, env: str) -> tuple[str | None, str | None]:
        if not server:
            return None, "Empty 'server'."

        if not token:
            return None, "Empty 'token'."

        if not env:
            return None, "Empty 'env'."

        #-----------------------------------------------------

        try:
            async with aiohttp.ClientSession() as session:
                url = f"{server}/api/v1/config/environments/{env}/configs/resolved?is_yaml=true"
                headers = {
                    "X-Config-Token": token
                }

                async with session.get(url=url, headers=headers) as resp:
                    resp_text = await resp.text()
                    if not resp_text:
                        return None, "Empty HTTP response body."

                    if not resp.ok:
                        return None, f"{resp.status}: {resp_text}"

                    return resp_text, None

        except (aiohttp.ClientError, TimeoutError) as e:
            return None, str(e)

    #-------------------------------------------------------------------------

    @staticmethod
    def expand_yaml_filenames(yaml_filenames: str | list[str] | None, env: str = "") -> list[str]:
        """
        Expand user supplied YAML names with their `.key.yaml` companions
        and, when `env` is set, the `.{env}.yaml` / `.{env}.key.yaml` variants.
        """

        if isinstance(yaml_filenames, str):
            candidates = [yaml_filenames]
        elif isinstance(yaml_filenames, list):
            candidates = yaml_filenames
        else:
            candidates = []

        result = []

        def append(name: str):
            if name not in result:
                result.append(name)

        for yaml_filename in candidates:
            if not isinstance(yaml_filename, str):
                continue

            yaml_filename = yaml_filename.strip()
            if not yaml_filename:
                continue

            if re.match(".*\\.key\\.yaml$", yaml_filename, re.IGNORECASE):
                stems = [(yaml_filename[:-9], ".key.yaml")]
            elif re.match(".*\\.yaml$", yaml_filename, re.IGNORECASE):
                stems = [(yaml_filename[:-5], ".yaml"), (yaml_filename[:-5], ".key.yaml")]
            else:
                continue

            for stem, suffix in stems:
                append(f"{stem}{suffix}")
                if env:
                    append(f"{stem}.{env}{suffix}")

        if env and not result:
            result = [f"config.{env}.yaml", f"config.{env}.key.yaml"]

        return result

    #-------------------------------------------------------------------------

    @staticmethod
    async def init(
        yaml_filenames  : str | list[str] | None = None,
        dotenv_filenames: str | list[str] | None = None,
        log_extra       : dict | None = None
    ) -> "Config":
        from ..log import init_log, init_log_console

        if log_extra is None:
            log_extra = {}

        init_log_console(extra=log_extra)

        Config.load_dotenv(dotenv_filenames if dotenv_filenames is not None else [".env"])

        env = os.environ.get("ENV", "").strip().lower()
        if env:
            log_extra["env"] = env

        yaml_file_list = Config.expand_yaml_filenames(yaml_filenames, env)

        #-------------------------------------------------

        final_yaml_file_list = []

        default_yaml = "config.yaml"
        if os.path.exists(default_yaml) and default_yaml not in yaml_file_list:
            final_yaml_file_list.append(default_yaml)
            logging.info("Default config has been loaded.")

        remote_yaml, err = await Config.load_remote_config(
            server  = os.environ.get("CONFIG_SERVER", ""),
            token   = os.environ.get("CONFIG_TOKEN", ""),
            env     = env
        )
        if not err:
            final_yaml_file_list.append(io.StringIO(remote_yaml))
            logging.info("Remote config has been loaded.")

        for yaml_filename in yaml_file_list:
            if os.path.exists(yaml_filename):
                final_yaml_file_list.append(yaml_filename)

        config = Config(yaml_filenames=final_yaml_file_list)

        init_log(
            name        = config.log.name,
            dir         = config.log.dir,
            level       = config.log.level,
            extra       = log_extra,
            secret_key  = config.log.secret_key
        )

        return config

#-----------------------------------------------------------------------------

def global_config() -> Config | None:
    return _global_config

#-----------------------------------------------------------------------------

def safe_read_cfg(key: str, default: str = "") -> str:
    if not _global_config:
        return default

    return _global_config.get_str(key, default)

#-----------------------------------------------------------------------------
