"""Entrypoint to run the wardrobe stylist API locally."""

import uvicorn

from stylist_app.config import StylistConfig


def main() -> None:
    config = StylistConfig.from_env()
    uvicorn.run(
        "server.api:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
