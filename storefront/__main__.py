"""
Lance la boutique avec uvicorn: `python -m storefront`.

Variables lues: HOST (0.0.0.0), PORT (8000), UVICORN_RELOAD (1/true/yes), LOG_LEVEL (info).
"""
import os

import uvicorn

def main() -> None:
    uvicorn.run(
        "storefront.asgi:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        reload=os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes"),
        log_level=os.environ.get("LOG_LEVEL", "info"),
        proxy_headers=True,
    )

if __name__ == "__main__":
    main()
