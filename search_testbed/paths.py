"""Locate run folders (``<base_dir>/run_YYYY-MM-DD_HH-MM-SS``) and their files.

Folder names sort chronologically, so "latest" for results means the
lexically greatest path.
"""

from datetime import datetime
from pathlib import Path

from search_testbed.errors import RunNotFoundError

RUN_PREFIX = "run_"
RUN_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
RESULTS_FILE = "results.json"
INDEX_FILE = "index.json"


def create_run_folder(base_dir: str | Path, now: datetime | None = None) -> Path:
    """Create and return a new timestamped run folder."""
    now = now or datetime.now()
    run_folder = Path(base_dir) / f"{RUN_PREFIX}{now.strftime(RUN_TIMESTAMP_FORMAT)}"
    run_folder.mkdir(parents=True, exist_ok=True)
    return run_folder


def _run_files(base_dir: str | Path, filename: str) -> list[Path]:
    return list(Path(base_dir).glob(f"{RUN_PREFIX}*/{filename}"))


def find_latest_index(base_dir: str | Path) -> Path:
    """Most recently modified index.json across all run folders."""
    matches = _run_files(base_dir, INDEX_FILE)
    if not matches:
        raise RunNotFoundError(f"no index files found in {base_dir}")
    return max(matches, key=lambda p: p.stat().st_mtime)


def find_latest_results(base_dir: str | Path) -> Path:
    matches = sorted(_run_files(base_dir, RESULTS_FILE), reverse=True)
    if not matches:
        raise RunNotFoundError(f"no results files found in {base_dir}")
    return matches[0]


def find_previous_results(base_dir: str | Path, current_path: str | Path) -> Path:
    """Newest results.json that is not ``current_path``."""
    current = Path(current_path)
    matches = sorted(_run_files(base_dir, RESULTS_FILE), reverse=True)
    for match in matches:
        if match != current:
            return match
    raise RunNotFoundError("no previous results found")


def list_run_folders(base_dir: str | Path) -> list[Path]:
    """Run folders, newest first."""
    folders = [p for p in Path(base_dir).glob(f"{RUN_PREFIX}*") if p.is_dir()]
    return sorted(folders, reverse=True)


def extract_timestamp(run_folder: str | Path) -> datetime:
    name = Path(run_folder).name
    if not name.startswith(RUN_PREFIX):
        raise ValueError(f"invalid run folder name: {name}")
    return datetime.strptime(name[len(RUN_PREFIX):], RUN_TIMESTAMP_FORMAT)
