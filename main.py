from market.bootstrap import build_app
from loguru import logger


def main() -> None:
    app = build_app()
    logger.info("Service started (env={}, api={})", app["settings"].app_env, app["settings"].api_base_url)
    app["runner"].run_forever()


if __name__ == "__main__":
    main()
