"""Reload the bridge directory when its config file changes."""

import logging
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from slackline.adapters.storage.bridge_file import load_bridge_config
from slackline.domain.directory import BridgeDirectory

logger = logging.getLogger(__name__)


class BridgeConfigHandler(FileSystemEventHandler):
    """Watches one file and swaps the directory snapshot on change."""

    def __init__(self, directory: BridgeDirectory, config_path: str):
        self._directory = directory
        self._config_path = Path(config_path).resolve()

    def _is_target(self, path: str) -> bool:
        return Path(path).resolve() == self._config_path

    def reload(self) -> bool:
        try:
            snapshot = load_bridge_config(str(self._config_path))
        except (OSError, ValueError) as e:
            logger.error("Bridge config reload failed, keeping previous: %s", e)
            return False
        self._directory.reload(snapshot)
        logger.info(
            "Bridge config reloaded: %d slack channel(s), %d line channel(s), %d bridge(s)",
            len(snapshot.slack_channels),
            len(snapshot.line_channels),
            len(snapshot.bridges),
        )
        return True

    def on_modified(self, event):
        if event.is_directory or not self._is_target(event.src_path):
            return
        self.reload()

    def on_created(self, event):
        if event.is_directory or not self._is_target(event.src_path):
            return
        self.reload()

    def on_moved(self, event):
        # Editors that save via rename
        if event.is_directory or not self._is_target(event.dest_path):
            return
        self.reload()


def start_config_watcher(directory: BridgeDirectory, config_path: str) -> Optional[Observer]:
    """Start a watchdog observer on the config file's directory."""
    watch_dir = Path(config_path).resolve().parent
    if not watch_dir.is_dir():
        logger.warning("Bridge config directory %s does not exist, hot reload disabled", watch_dir)
        return None
    handler = BridgeConfigHandler(directory, config_path)
    observer = Observer()
    observer.schedule(handler, str(watch_dir), recursive=False)
    observer.daemon = True
    observer.start()
    logger.info("Bridge config watcher started: %s", config_path)
    return observer
