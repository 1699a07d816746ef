import logging
import os
import signal
import subprocess


def port_owners(port):
    """Return the pids of processes holding ``port``, excluding our own.

    Uses ``lsof -ti:<port>``.  A missing lsof, or one that finds nothing,
    yields an empty list.
    """
    try:
        result = subprocess.run(
            ["lsof", "-ti:%d" % int(port)],
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        logging.debug("could not run lsof: %s", exc)
        return []
    pids = []
    for line in result.stdout.split():
        try:
            pid = int(line)
        except ValueError:
            continue
        if pid != os.getpid() and pid not in pids:
            pids.append(pid)
    return pids


def free_port(port):
    """Kill every process bound to ``port``.  Never raises.

    Returns the pids that were signalled.
    """
    killed = []
    for pid in port_owners(port):
        logging.debug("killing pid %d holding port %s", pid, port)
        try:
            os.kill(pid, signal.SIGKILL)
        except OSError as exc:
            # already gone, or not ours to kill
            logging.debug("could not kill %d: %s", pid, exc)
            continue
        killed.append(pid)
    return killed
