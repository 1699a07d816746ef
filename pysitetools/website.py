import errno
import functools
import logging
import signal
import subprocess
import sys
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from .command_registry import register_command
from .config import load_config
from .ports import free_port
from .watch import ContentChangeHandler, start_watching

DEFAULT_PORT = 8000
# how long to wait for a killed port holder to release the port
BIND_GRACE = 2.0


class ServeError(Exception):
    """Raised when the preview server cannot start."""


def run_build(command, root="."):
    """Run the site generator and hand back its exit status."""
    logging.debug("running: %s", " ".join(command))
    try:
        result = subprocess.run(command, cwd=root)
    except FileNotFoundError:
        print(
            f"error: site generator '{command[0]}' not found", file=sys.stderr
        )
        return 127
    return result.returncode


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt


def serve_directory(directory, port=DEFAULT_PORT, server_class=None):
    """Serve ``directory`` over HTTP on ``port`` until interrupted.

    Whatever holds the port beforehand is killed.  SIGINT and SIGTERM stop
    the server cleanly; the port is freed again on the way out.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise ServeError(
            f"{directory} does not exist; build the website first"
        )
    if server_class is None:
        server_class = ThreadingHTTPServer
    killed = free_port(port)
    handler = functools.partial(
        SimpleHTTPRequestHandler, directory=str(directory)
    )
    print(f"Serving website on http://localhost:{port}")
    deadline = time.monotonic() + (BIND_GRACE if killed else 0)
    while True:
        try:
            httpd = server_class(("", port), handler)
            break
        except OSError as exc:
            # SIGKILL is asynchronous; the old holder may not be gone yet
            if exc.errno != errno.EADDRINUSE or time.monotonic() >= deadline:
                raise ServeError(
                    f"Could not start server on port {port}: {exc}"
                )
            time.sleep(0.05)
    previous = {}
    # signal handlers can only be installed from the main thread
    if threading.current_thread() is threading.main_thread():
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, _raise_interrupt)
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        print("")
        print("Shutting down server...")
    finally:
        httpd.server_close()
        for signum, old_handler in previous.items():
            signal.signal(signum, old_handler)
        free_port(port)
    return 0


@register_command("Build the website (release mode)")
def build():
    cfg = load_config()
    return run_build(cfg["build_command"], cfg["root"])


@register_command(
    "Kill any process using the specified port",
    help={"port": "TCP port to free"},
)
def kill_port(port=DEFAULT_PORT):
    free_port(port)
    return 0


@register_command(
    "Serve the built website on a local port; blocks until interrupted",
    help={"port": "TCP port to serve on"},
)
def serve(port=DEFAULT_PORT):
    cfg = load_config()
    return serve_directory(cfg["root"] / cfg["dist_dir"], port)


@register_command(
    "Build and serve in one command",
    help={
        "port": "TCP port to serve on",
        "watch": "Rebuild whenever a content file changes",
    },
)
def preview(port=DEFAULT_PORT, watch=False):
    cfg = load_config()
    print("Building website...")
    returncode = run_build(cfg["preview_command"], cfg["root"])
    if returncode != 0:
        return returncode
    if not watch:
        return serve_directory(cfg["root"] / cfg["dist_dir"], port)

    def rebuild(path):
        if run_build(cfg["preview_command"], cfg["root"]) != 0:
            print("Warning: rebuild failed; still serving the previous build")

    handler = ContentChangeHandler(
        rebuild,
        cfg["content_suffixes"],
        ignored=[
            cfg["root"] / cfg["dist_dir"],
            cfg["root"] / cfg["assets_dir"],
        ],
    )
    observer = start_watching(
        handler, [cfg["root"] / j for j in cfg["content_dirs"]]
    )
    try:
        return serve_directory(cfg["root"] / cfg["dist_dir"], port)
    finally:
        observer.stop()
        observer.join()
        handler.cancel()
