"""Dev entry point: python -m push_sender."""
from push_sender.app import build_pipeline, create_app
from push_sender.config import PushSenderConfig


def main() -> None:
    config = PushSenderConfig()
    app = create_app(build_pipeline(config), config)
    app.run(host=config.host, port=config.port)


if __name__ == "__main__":
    main()
