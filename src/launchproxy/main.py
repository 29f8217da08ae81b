"""Main entry point - runs the API server."""

import asyncio
import logging
import signal

import uvicorn

from launchproxy.api.app import create_app
from launchproxy.config import get_settings

logger = logging.getLogger(__name__)


class Application:
    """Runs the API until a shutdown signal arrives."""

    def __init__(self):
        self.settings = get_settings()
        self.server = None
        self._shutdown_event = asyncio.Event()

    def configure_logging(self):
        log_level = logging.DEBUG if self.settings.debug else logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
        # web3 and httpx are noisy at debug level
        logging.getLogger("web3").setLevel(logging.INFO)
        logging.getLogger("httpx").setLevel(logging.WARNING)

    async def start(self):
        """Start the API and wait for shutdown."""
        self.configure_logging()

        logger.info("Starting launchproxy...")
        logger.info(f"Environment: {self.settings.environment}")
        logger.info(
            f"Funding: {self.settings.funding_mode.value}, sweep: {self.settings.sweep_mode.value}"
        )
        if not self.settings.clanker_factory_address:
            logger.warning("CLANKER_FACTORY_ADDRESS not set - direct fallback deployment disabled")
        if self.settings.escrow_burner_keys and not self.settings.master_key:
            logger.warning("ESCROW_BURNER_KEYS set without MASTER_KEY - burner keys will not be escrowed")

        api_task = asyncio.create_task(self._run_api())

        # Wait for shutdown signal or the server exiting on its own
        shutdown_task = asyncio.create_task(self._shutdown_event.wait())
        await asyncio.wait({api_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)

        if self.server is not None:
            # Let uvicorn run the lifespan shutdown (drains background sweeps)
            self.server.should_exit = True
        await asyncio.gather(api_task, return_exceptions=True)
        shutdown_task.cancel()
        logger.info("Shutdown complete")

    async def _run_api(self):
        """Run the FastAPI server."""
        try:
            app = create_app()
            config = uvicorn.Config(
                app,
                host=self.settings.api_host,
                port=self.settings.api_port,
                log_level="debug" if self.settings.debug else "info",
            )
            self.server = uvicorn.Server(config)
            logger.info(f"Starting API server on {self.settings.api_host}:{self.settings.api_port}")
            await self.server.serve()
        except asyncio.CancelledError:
            logger.info("API server cancelled")
        except Exception as e:
            logger.error(f"API error: {e}")
            raise

    def shutdown(self):
        """Signal shutdown."""
        logger.info("Shutdown requested")
        self._shutdown_event.set()


def main():
    """Main entry point."""
    app = Application()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, app.shutdown)

    try:
        loop.run_until_complete(app.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        loop.close()


if __name__ == "__main__":
    main()
