from __future__ import annotations

from private_reader.config import _env, _env_bool


def main() -> None:
    import uvicorn

    uvicorn.run(
        "private_reader.main:app",
        host=_env("HOST", "0.0.0.0") or "0.0.0.0",
        port=int(_env("PORT", "8080") or "8080"),
        log_level=(_env("LOG_LEVEL", "info") or "info").lower(),
        reload=_env_bool("RELOAD"),
    )


if __name__ == "__main__":
    main()
