import logging
import threading
import time
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer


class ContentChangeHandler(FileSystemEventHandler):
    """Rebuild the site when a content file changes.

    Events for files outside ``suffixes`` or under one of the ``ignored``
    output directories are dropped.  The first change rebuilds at once;
    changes arriving within ``debounce`` seconds of the end of a rebuild
    are held back and collapsed into a single follow-up rebuild when the
    window closes, so the last edit of a burst is always built.
    """

    def __init__(self, rebuild, suffixes, ignored=(), debounce=0.5):
        self.rebuild = rebuild
        self.suffixes = tuple(suffixes)
        self.ignored = [Path(j).resolve() for j in ignored]
        self.debounce = debounce
        self._last_build = None
        self._pending = None
        self._timer = None
        self._lock = threading.Lock()
        self._build_lock = threading.Lock()

    def is_content(self, path):
        path = Path(path).resolve()
        if path.suffix not in self.suffixes:
            return False
        for directory in self.ignored:
            if directory == path or directory in path.parents:
                return False
        return True

    def handle(self, path, is_directory=False):
        if is_directory or not self.is_content(path):
            return
        with self._lock:
            now = time.monotonic()
            if (
                self._last_build is not None
                and now - self._last_build < self.debounce
            ):
                logging.debug("holding change to %s until window closes", path)
                self._pending = path
                if self._timer is None:
                    self._timer = threading.Timer(
                        self.debounce - (now - self._last_build), self._flush
                    )
                    self._timer.daemon = True
                    self._timer.start()
                return
        self._run(path)

    def _run(self, path):
        with self._build_lock:
            print(f"Change detected: {path}")
            self.rebuild(path)
            # the window starts when the build ends
            with self._lock:
                self._last_build = time.monotonic()

    def _flush(self):
        with self._lock:
            path, self._pending, self._timer = self._pending, None, None
        if path is not None:
            self._run(path)

    def wait(self, timeout=None):
        """Block until a scheduled follow-up rebuild has run."""
        timer = self._timer
        if timer is not None:
            timer.join(timeout)

    def cancel(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending, self._timer = None, None

    def on_modified(self, event):
        self.handle(event.src_path, getattr(event, "is_directory", False))

    def on_created(self, event):
        self.handle(event.src_path, getattr(event, "is_directory", False))

    def on_moved(self, event):
        self.handle(event.dest_path, getattr(event, "is_directory", False))


def start_watching(handler, directories):
    observer = Observer()
    for directory in directories:
        observer.schedule(handler, str(directory), recursive=True)
    observer.start()
    return observer
