import json
from datetime import datetime

import pytest

from search_testbed.corpus import (
    BASE_URIS,
    CONTENT_TYPES,
    INDEX_VERSION,
    TECHNOLOGIES,
    TOPICS,
    build_stored_index,
    configured_documents,
    generate_documents,
    load_documents,
)


class TestGenerateDocuments:

    def test_same_seed_same_corpus(self):
        assert generate_documents(42, 50) == generate_documents(42, 50)

    def test_different_seed_different_corpus(self):
        assert generate_documents(1, 20) != generate_documents(2, 20)

    def test_shape(self):
        docs = generate_documents(seed=3, count=12)

        assert [d.id for d in docs] == [str(i) for i in range(1, 13)]
        for i, doc in enumerate(docs, 1):
            tech, _, rest = doc.title.partition(" ")
            assert tech in TECHNOLOGIES
            assert doc.content_type in CONTENT_TYPES
            assert any(doc.uri.startswith(base) for base in BASE_URIS)
            assert doc.uri.endswith(f"-{i}")
            assert any(topic in doc.uri for topic in TOPICS)
            assert doc.date == f"2024-01-0{(i % 9) + 1}T10:00:00Z"
            assert tech in doc.body

    def test_count(self):
        assert len(generate_documents(count=7)) == 7
        assert generate_documents(count=0) == []


class TestLoadDocuments:

    def test_load(self, tmp_path, sample_documents):
        path = tmp_path / "docs.json"
        path.write_text(json.dumps([d.to_dict() for d in sample_documents]))

        assert load_documents(path) == sample_documents

    def test_rejects_non_list(self, tmp_path):
        path = tmp_path / "docs.json"
        path.write_text('{"id": "1"}')
        with pytest.raises(ValueError):
            load_documents(path)

    def test_configured_prefers_file(self, tmp_path, sample_documents):
        path = tmp_path / "docs.json"
        path.write_text(json.dumps([d.to_dict() for d in sample_documents]))

        assert configured_documents(str(path), seed=1, count=99) == sample_documents

    def test_configured_generates_without_file(self):
        assert configured_documents("", seed=5, count=4) == generate_documents(5, 4)


class TestStoredIndex:

    def test_build(self, sample_documents):
        now = datetime(2024, 1, 1, 0, 0, 0)
        stored = build_stored_index(sample_documents, "prod", now=now)

        assert stored.version == INDEX_VERSION == "2.0.0"
        assert stored.source_index == "prod"
        assert stored.generated_at == now
        assert stored.documents == tuple(sample_documents)
