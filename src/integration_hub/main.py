import uvicorn

from . import settings
from .logging_config import configure_logging


def main() -> None:
	configure_logging()

	host = settings.get_hub_host()
	port = settings.get_hub_port()
	reload = settings.get_hub_reload()

	uvicorn.run(
		"integration_hub.api:app",
		host=host,
		port=port,
		reload=reload,
		log_config=None,
	)


if __name__ == "__main__":
	main()
