"""Run the Idle Vault API with uvicorn: ``python -m idle_vault`` or ``idle-vault``."""

import uvicorn

from idle_vault.config import get_settings


def main():
    """Serve idle_vault.main:app on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "idle_vault.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
        access_log=settings.log_level.upper() == "DEBUG",
    )


if __name__ == "__main__":
    main()
