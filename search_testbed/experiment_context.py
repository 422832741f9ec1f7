"""Capture run provenance: where and with what a run was produced."""

import platform
import socket
import sys
from datetime import datetime, timezone
from importlib import metadata

# distribution name -> label shown in metadata.txt
TRACKED_PACKAGES = {
    "requests": "requests",
    "PyYAML": "yaml",
    "python-dotenv": "dotenv",
}


def _get_library_versions() -> dict:
    """Capture versions of key dependencies."""
    versions = {}
    for dist, label in TRACKED_PACKAGES.items():
        try:
            versions[label] = metadata.version(dist)
        except metadata.PackageNotFoundError:
            versions[label] = "not installed"
    return versions


def collect_run_context() -> dict:
    """Collect machine and library metadata for one run.

    Call once at the start of a run. Returns a dict suitable for
    metadata.txt.
    """
    return {
        "run_start_utc": utcnow_iso(),
        "machine": {
            "hostname": socket.gethostname(),
            "platform": platform.platform(),
            "python_version": sys.version.split()[0],
        },
        "library_versions": _get_library_versions(),
    }


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    """Return current UTC time as ISO 8601 string."""
    return utcnow().isoformat()
