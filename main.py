#!/usr/bin/env python3
import logging
import os

import uvicorn

from reportable.app import create_app

logging.basicConfig(
    level=os.getenv("REPORTABLE_LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Create the FastAPI app
app = create_app()


if __name__ == "__main__":
    host = os.getenv("REPORTABLE_HOST", "0.0.0.0")
    port = int(os.getenv("REPORTABLE_PORT", "8000"))
    reload_enabled = os.getenv("REPORTABLE_DEV_MODE", "false").lower() == "true"

    print(f"Starting export API on {host}:{port}")
    uvicorn.run("main:app", host=host, port=port, reload=reload_enabled)
