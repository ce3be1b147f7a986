"""Run the gateway with uvicorn: python -m gateway"""

import uvicorn

from gateway.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "gateway.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        # Client identity comes from gateway.client_ip and the trust_proxy setting
        proxy_headers=False,
    )


if __name__ == "__main__":
    main()
