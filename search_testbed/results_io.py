import csv
import json
from pathlib import Path

from search_testbed.models import QueryResults, StoredIndex
from search_testbed.paths import INDEX_FILE, RESULTS_FILE

CSV_FILE = "results.csv"
METADATA_FILE = "metadata.txt"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

FOLDER_LISTING = """
Files in this folder:
- index.json        : Generated test index
- results.csv       : Query results in CSV format
- results.json      : Query results in JSON format
- metadata.txt      : This file
- comparison*.txt   : Comparison reports (if comparison run)
"""


def _write_json(data, path: Path) -> Path:
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    print(f"  Saved JSON: {path}")
    return path


def save_results(results: list[QueryResults], path: str | Path) -> Path:
    """Save a run's query results as a JSON array."""
    return _write_json([qr.to_dict() for qr in results], path)


def load_results(path: str | Path) -> list[QueryResults]:
    """Load query results written by save_results."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of query results")
    return [QueryResults.from_dict(item) for item in data]


def results_to_csv(results: list[QueryResults], path: str | Path) -> Path:
    """Flatten per-query results to CSV, one row per ranked hit.

    Columns: query, algorithm, rank, title, uri, date, content_type, score
    """
    path = Path(path)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([
            "query", "algorithm", "rank", "title", "uri",
            "date", "content_type", "score",
        ])
        for qr in results:
            for r in qr.results:
                writer.writerow([
                    qr.query, r.algorithm, r.rank, r.title, r.uri,
                    r.date, r.content_type, f"{r.score:.4f}",
                ])
    print(f"  Saved CSV: {path}")
    return path


def save_index(index: StoredIndex, run_folder: str | Path) -> Path:
    """Write index.json plus a generation metadata.txt into ``run_folder``."""
    run_folder = Path(run_folder)
    path = _write_json(index.to_dict(), run_folder / INDEX_FILE)

    metadata = (
        "Search Test Bed - Index Generation\n"
        f"Generated: {index.generated_at.strftime(TIMESTAMP_FORMAT)}\n"
        f"Version: {index.version}\n"
        "\n"
        "Index Information:\n"
        f"- Source Index: {index.source_index}\n"
        f"- Document Count: {len(index.documents)}\n"
        + FOLDER_LISTING
    )
    write_text(run_folder / METADATA_FILE, metadata)
    return path


def load_index(path: str | Path) -> StoredIndex:
    with open(path, "r", encoding="utf-8") as f:
        return StoredIndex.from_dict(json.load(f))


def extract_algorithms(results: list[QueryResults]) -> str:
    """Distinct algorithm names in first-seen order, comma separated."""
    algorithms = list(dict.fromkeys(qr.algorithm for qr in results))
    return ", ".join(algorithms) if algorithms else "none"


def write_metadata(
    run_folder: str | Path,
    results: list[QueryResults],
    index: StoredIndex | None = None,
    context: dict | None = None,
) -> Path:
    """Describe a query run in metadata.txt.

    Without an index, an existing metadata.txt (from generation) is kept
    and the query information is appended to it.
    """
    if not results:
        raise ValueError("no results to write metadata for")

    path = Path(run_folder) / METADATA_FILE
    existing = path.read_text(encoding="utf-8") if path.exists() else ""

    lines = [
        "Search Test Bed - Query Results",
        f"Generated: {results[0].run_at.strftime(TIMESTAMP_FORMAT)}",
        "",
        "Query Results:",
        f"- Total Queries: {len(results)}",
        f"- Algorithms Used: {extract_algorithms(results)}",
        "",
        "Queries:",
    ]
    for i, qr in enumerate(results, 1):
        lines.append(f"  {i}. {qr.query} ({qr.algorithm}) - {len(qr.results)} results")

    if index is not None:
        lines += [
            "",
            "Index Information:",
            f"- Source: {index.source_index}",
            f"- Document Count: {len(index.documents)}",
            f"- Version: {index.version}",
        ]

    if context:
        machine = context.get("machine", {})
        versions = context.get("library_versions", {})
        lines += [
            "",
            "Run Context:",
            f"- Started (UTC): {context.get('run_start_utc', '')}",
            f"- Host: {machine.get('hostname', '')}",
            f"- Platform: {machine.get('platform', '')}",
            f"- Python: {machine.get('python_version', '')}",
        ]
        lines += [f"- {name}: {version}" for name, version in versions.items()]

    metadata = "\n".join(lines) + "\n" + FOLDER_LISTING
    if index is None and existing:
        metadata = existing + "\n" + metadata

    return write_text(path, metadata)


def write_all(
    run_folder: str | Path,
    results: list[QueryResults],
    index: StoredIndex | None = None,
    context: dict | None = None,
) -> dict:
    """Write results.csv, results.json, metadata.txt and (optionally) index.json."""
    run_folder = Path(run_folder)
    written = {
        "csv": results_to_csv(results, run_folder / CSV_FILE),
        "json": save_results(results, run_folder / RESULTS_FILE),
        "metadata": write_metadata(run_folder, results, index, context),
    }
    if index is not None:
        written["index"] = _write_json(index.to_dict(), run_folder / INDEX_FILE)
    return written


def write_text(path: str | Path, content: str) -> Path:
    path = Path(path)
    path.write_text(content, encoding="utf-8")
    return path
