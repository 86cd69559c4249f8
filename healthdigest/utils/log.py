import base64, datetime, json, logging, os

from .config import FernetEncrypter
from .req_ctx import get_req_ctx

#-----------------------------------------------------------------------------

_fernet_encryptor: FernetEncrypter | None = None

# Encrypted payloads longer than this are shortened to head and tail.
MAX_ENCRYPTED_INFO_LEN = 200

#-----------------------------------------------------------------------------

class JsonEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, datetime.datetime | datetime.date):
            return o.isoformat()

        if isinstance(o, bytes):
            return base64.urlsafe_b64encode(o).decode()

        if isinstance(o, set | frozenset):
            return sorted(o, key=str)

        if hasattr(o, "model_dump"):
            return o.model_dump(mode="json")

        return super().default(o)

#-----------------------------------------------------------------------------

class JsonFormatter(logging.Formatter):
    """
    Render each record as one JSON line.

    Besides the usual fields, `extra={"encrypted_info": ...}` carries
    personal health values. They are Fernet-encrypted when a log
    encryption key is configured, and always shortened to
    `MAX_ENCRYPTED_INFO_LEN` characters.
    """

    _predefined_fields = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "encrypted_info",
        "exception"
    }

    def __init__(self, extra: dict | None = None):
        super().__init__()

        self._extra = extra

    #-----------------------------------------------------

    def format(self, record: logging.LogRecord) -> str:
        json_record = {
            "time"  : self.formatTime(record, self.datefmt),
            "level" : getattr(record, "levelname", "INFO"),
            "msg"   : record.getMessage()
        }

        if record.exc_info:
            json_record["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            json_record["stack_info"] = record.stack_info

        #-------------------------------------------------

        function = getattr(record, "funcName", None)
        if function and function != "<module>":
            json_record["function"] = function

        if record.pathname:
            filename = record.pathname.removeprefix(os.getcwd()).removeprefix(os.sep)
            json_record["file"] = f"{filename}:{record.lineno}"

        if record.module:
            json_record["module"] = record.module

        #-------------------------------------------------

        encrypted_info = getattr(record, "encrypted_info", None)
        if encrypted_info:
            json_record["encrypted_info"] = self.format_encrypted_info(encrypted_info)

        #-------------------------------------------------

        for k, v in record.__dict__.items():
            if k not in self._predefined_fields:
                json_record[k] = v

        if self._extra:
            json_record.update(self._extra)

        if "trace_id" not in json_record:
            trace_id = get_req_ctx("trace_id")
            if trace_id:
                json_record["trace_id"] = trace_id

        return json.dumps(json_record, ensure_ascii=False, separators=(",", ":"), cls=JsonEncoder)

    #-----------------------------------------------------

    @staticmethod
    def format_encrypted_info(info) -> str:
        plain = json.dumps(info, ensure_ascii=False, separators=(",", ":"), cls=JsonEncoder)

        if _fernet_encryptor and _fernet_encryptor.enabled:
            text = _fernet_encryptor.encrypt(plain)
        else:
            text = plain

        if len(text) <= MAX_ENCRYPTED_INFO_LEN:
            return text

        half = MAX_ENCRYPTED_INFO_LEN // 2
        return f"{text[:half]}**********{text[-half:]}"

#-----------------------------------------------------------------------------

def _set_encryptor(secret_key: str):
    global _fernet_encryptor
    _fernet_encryptor = FernetEncrypter(secret_key) if secret_key else None

#-----------------------------------------------------------------------------

def init_log_console(level: int = logging.INFO, extra: dict | None = None, secret_key: str = ""):
    _set_encryptor(secret_key)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(JsonFormatter(extra))

    logging.root.handlers = [stream_handler]
    logging.root.setLevel(level=level)

#-----------------------------------------------------------------------------

def init_log_file(name: str, dir: str, level: int = logging.INFO, extra: dict | None = None, secret_key: str = ""):
    _set_encryptor(secret_key)

    if dir:
        os.makedirs(dir, exist_ok=True)

    formatter = JsonFormatter(extra)

    now = datetime.datetime.now()
    file_handler = logging.FileHandler(
        os.path.join(dir, f"{now.strftime('%Y-%m-%d')}_{name}_{now.strftime('%H%M%S_%f')}.log"),
        mode="w+"
    )
    file_handler.setFormatter(formatter)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    logging.root.handlers = [file_handler, stream_handler]
    logging.root.setLevel(level=level)

#-----------------------------------------------------------------------------

def init_log(name: str = "", dir: str = "", level: int = logging.INFO, extra: dict | None = None, secret_key: str = ""):
    if name:
        init_log_file(name, dir, level, extra, secret_key)
    else:
        init_log_console(level, extra, secret_key)

#-----------------------------------------------------------------------------
