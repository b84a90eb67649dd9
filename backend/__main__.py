"""
Lancement local: `python -m backend`.

Variables lues:
- PORT (8000 par défaut)
- UVICORN_RELOAD: "1"/"true"/"yes" pour le rechargement auto
- LOG_LEVEL: niveau de logs uvicorn
"""
import os

import uvicorn


def main() -> None:
    reload_flag = os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes")
    uvicorn.run(
        "backend.asgi:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8000)),
        reload=reload_flag,
        log_level=os.environ.get("LOG_LEVEL", "info"),
    )


if __name__ == "__main__":
    main()
