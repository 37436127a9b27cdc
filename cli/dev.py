"""Jobly API dev server (`jobly-dev`)."""


def main() -> None:
    """Serve the Jobly API on SERVER_HOST:SERVER_PORT, reloading on change when APP_ENV=local."""
    from app.main import run

    run()


if __name__ == "__main__":
    main()
