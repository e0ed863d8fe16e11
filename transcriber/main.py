"""Main application entry point for Transcriber."""

import sys
import argparse
import logging
from pathlib import Path

from .config import TranscriberConfig
from .errors import TranscriberError
from .services.session_manager import SessionManager
from .services.snapshot_publisher import SnapshotPublisher
from .ui.keyboard_input import KeyboardInputHandler
from .ui.session_screen import SessionScreen

logger = logging.getLogger(__name__)


def setup_logging(config: TranscriberConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path')
    console_output = config.get('logging.console_output')

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Transcriber starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def run_session(config: TranscriberConfig) -> int:
    """Record one session interactively; returns the process exit code."""
    manager = SessionManager(config)
    session = manager.new_session()
    topic = "session.snapshot"
    screen = SessionScreen(session, topic=topic)
    publisher = SnapshotPublisher(session, topic=topic,
                                  interval=config.get('ui.refresh_interval_seconds'))
    keyboard = KeyboardInputHandler(screen.handle_key)

    try:
        session.start()
    except TranscriberError as e:
        screen.console.print(f"Could not start recording: {e}", style="bold red")
        manager.cleanup()
        return 1

    publisher.start()
    keyboard.start()
    try:
        screen.run()
    except KeyboardInterrupt:
        screen.handle_key("q")
    finally:
        keyboard.stop()
        publisher.stop()
        screen.close()
        info_path = manager.save_session(session)
        manager.cleanup()

    snapshot = session.snapshot()
    if snapshot.recording_path:
        screen.console.print(f"Recording saved to: {snapshot.recording_path}")
    if info_path:
        screen.console.print(f"Session info saved to: {info_path}")
    return 0


def main() -> None:
    """Main entry point for Transcriber."""
    parser = argparse.ArgumentParser(
        description="Transcriber - live recording with streaming transcription",
        epilog="Keys: space=pause/resume, s=stop, d=discard, q=quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        default="transcriber.yaml",
        help="Path to configuration YAML file (default: transcriber.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="Transcriber v0.1.0"
    )

    args = parser.parse_args()

    try:
        config = TranscriberConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    setup_logging(config, args.log_level or config.get('logging.level'))

    try:
        sys.exit(run_session(config))
    except Exception as e:
        logger.error(f"Application error: {e}", exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
