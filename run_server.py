import logging
import os

import uvicorn

if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    port = int(os.environ.get("PORT", "8000"))

    print("Starting Butterfly Ratings API Server...")
    print(f"Docs available at: http://localhost:{port}/docs")

    uvicorn.run(
        "butterfly_backend.api.server:app",
        host="0.0.0.0",
        port=port,
        reload=os.environ.get("RELOAD", "0") == "1"
    )
