from __future__ import annotations

import uvicorn

from LINEDASH.server.utils.types import coerce_int
from LINEDASH.server.utils.variables import env_variables


###############################################################################
if __name__ == "__main__":
    host = env_variables.get("FASTAPI_HOST", "127.0.0.1") or "127.0.0.1"
    port = coerce_int(env_variables.get("FASTAPI_PORT"), 8000, minimum=1, maximum=65535)
    uvicorn.run("LINEDASH.server.app:app", host=host, port=port, reload=False)
