from __future__ import annotations

import uvicorn

from chatrelay.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "chatrelay.main:app",
        host=settings.chatrelay_host,
        port=settings.chatrelay_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
