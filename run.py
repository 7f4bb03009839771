import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    # The flow-sync store lives in process memory, so each worker keeps
    # its own sessions. Keep a single worker unless sessions are sticky.
    workers = int(os.environ.get("WEB_CONCURRENCY", 1))
    uvicorn.run(
        "ramp_fitment.main:app",
        host="0.0.0.0",
        port=port,
        workers=workers,
    )
