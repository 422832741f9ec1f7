"""Test corpus: seeded synthetic documents or a JSON document file."""

import json
import random
from datetime import datetime
from pathlib import Path

from search_testbed.models import Document, StoredIndex

INDEX_VERSION = "2.0.0"

TECHNOLOGIES = ["Go", "Python", "Java", "Rust", "TypeScript", "Elasticsearch", "Kubernetes", "Docker"]
TOPICS = ["best practices", "tutorial", "guide", "advanced", "beginner", "performance", "security", "testing"]
CONTENT_TYPES = ["article", "tutorial"]
BASE_URIS = ["/go-", "/python-", "/java-", "/rust-", "/ts-"]
ADJECTIVES = ["Guide", "Handbook", "Reference", "Tips", "Tricks", "Essentials", "Masterclass"]

BODY_TEMPLATES = [
    "Learn about {tech} {topic} including best practices, patterns, and real-world examples.",
    "Comprehensive guide to {tech} {topic} with detailed explanations and code samples.",
    "Master {tech} {topic} through this hands-on tutorial with step-by-step instructions.",
    "Advanced techniques for {tech} {topic} optimization, performance tuning, and scaling.",
]


def generate_documents(seed: int = 42, count: int = 50) -> list[Document]:
    """Generate ``count`` documents. The same seed always yields the same corpus."""
    rng = random.Random(seed)
    docs = []
    for i in range(1, count + 1):
        tech = rng.choice(TECHNOLOGIES)
        topic = rng.choice(TOPICS)
        content_type = rng.choice(CONTENT_TYPES)
        base_uri = rng.choice(BASE_URIS)
        adjective = rng.choice(ADJECTIVES)
        body = rng.choice(BODY_TEMPLATES).format(tech=tech, topic=topic)

        docs.append(Document(
            id=str(i),
            title=f"{tech} {topic} {adjective}",
            uri=f"{base_uri}{topic}-{i}",
            body=body,
            content_type=content_type,
            date=f"2024-01-0{(i % 9) + 1}T10:00:00Z",
        ))
    return docs


def load_documents(path: str | Path) -> list[Document]:
    """Load a JSON array of documents (id, title, uri, body, content_type, date)."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of documents")
    return [Document.from_dict(d) for d in data]


def configured_documents(source_file: str = "", seed: int = 42, count: int = 50) -> list[Document]:
    """Documents from ``source_file`` when set, otherwise generated from ``seed``."""
    if source_file:
        return load_documents(source_file)
    return generate_documents(seed, count)


def build_stored_index(
    documents: list[Document],
    source_index: str,
    now: datetime | None = None,
) -> StoredIndex:
    return StoredIndex(
        generated_at=now or datetime.now().astimezone(),
        version=INDEX_VERSION,
        source_index=source_index,
        documents=tuple(documents),
    )
