from .config import (
    Config,
    DigestConfig,

    global_config,
    safe_read_cfg
)

from .log import (
    init_log_console,
    init_log_file,

    init_log
)

from .req_ctx import (
    get_req_ctx,
    new_trace_id,
    set_req_ctx,
    update_req_ctx
)
