"""Development entry point.

Runs the FastAPI application defined in ``app.main`` with auto-reload.
"""

import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=os.getenv("HOST", "localhost"),
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
