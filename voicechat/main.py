"""Main application entry point for VoiceChat."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from aiohttp import web

from . import __version__
from .capabilities import Capabilities
from .config import VoiceChatConfig
from .proxy.server import create_app
from .ui.console_view import ConsoleChatView
from .widget import ChatWidget

logger = logging.getLogger(__name__)


class Server:
    """Runs the chat proxy or the terminal chat host."""

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = VoiceChatConfig(config_path)
        # Set up logging (override config with command line if specified)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)

    def serve(self, host: Optional[str] = None, port: Optional[int] = None) -> None:
        """Serve the proxy until interrupted."""
        host = host or self.config.get('server.host', '127.0.0.1')
        port = port or int(self.config.get('server.port', 8080))
        app = create_app(self.config)
        logger.info(f"Serving chat proxy on http://{host}:{port}{self.config.get('server.path')}")
        web.run_app(app, host=host, port=port, print=None)

    def chat(self, endpoint: Optional[str] = None) -> None:
        """Chat with the proxy from the terminal."""
        if endpoint:
            self.config.set('client.endpoint_url', endpoint)
        asyncio.run(self._chat_loop())

    async def _chat_loop(self) -> None:
        loop = asyncio.get_running_loop()
        widget = ChatWidget(self.config, Capabilities.unavailable())
        widget.install_error_handler(loop)
        view = ConsoleChatView(widget.message_log, widget.notifier)
        view.console.print("[bold blue]VoiceChat[/]  type a message, /clear to clear, /quit to exit")

        try:
            while True:
                try:
                    line = await loop.run_in_executor(None, view.console.input, "[bold green]> [/]")
                except EOFError:
                    break
                command = line.strip()
                if command == "/quit":
                    break
                if command == "/clear":
                    widget.handle_clear()
                    view.console.clear()
                    continue

                widget.input_field.value = line
                view.print_new()
                await asyncio.wait({widget.dispatch(widget.handle_submit())})
                view.print_new()
        finally:
            widget.shutdown()


def setup_logging(config, level: str = "INFO") -> None:

    """Set up logging configuration from YAML config."""
    # Get log file path from config
    log_file_path = config.get('logging.file_path', 'data/logs/voicechat.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    # Set up handlers
    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    # Log startup
    logger = logging.getLogger(__name__)
    logger.info("="*50)
    logger.info("VoiceChat starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


def main() -> None:
    """Main entry point for VoiceChat."""
    parser = argparse.ArgumentParser(
        description="VoiceChat - voice-enabled chat widget proxy and terminal host",
        epilog="Commands: serve=run the chat proxy, chat=talk to a running proxy"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"VoiceChat v{__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the chat proxy")
    serve_parser.add_argument("--host", type=str, help="Bind address (overrides config)")
    serve_parser.add_argument("--port", type=int, help="Port (overrides config)")

    chat_parser = subparsers.add_parser("chat", help="Chat with a running proxy from the terminal")
    chat_parser.add_argument("--endpoint", type=str, help="Proxy chat URL (overrides config)")

    args = parser.parse_args()

    try:
        server = Server(args.config, args.log_level)
        if args.command == "serve":
            server.serve(args.host, args.port)
        else:
            server.chat(args.endpoint)
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
