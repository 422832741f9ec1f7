import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

from search_testbed.errors import ConfigError
from search_testbed.formatter import Options

# Load .env.local from project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env.local")

DEFAULT_ES_URL = "http://localhost:9200"
DEFAULT_ES_INDEX = "search_test"
DEFAULT_BASE_DIR = "data"
DEFAULT_QUERIES_FILE = Path("config") / "queries.json"
DEFAULT_TIMEOUT = 30

# Config files tried in order when --config is not given
HOME_CONFIG = Path.home() / ".search-testbed" / "config.yaml"
LOCAL_CONFIG = Path("config") / "config.yaml"


@dataclass
class ElasticsearchConfig:
    url: str = DEFAULT_ES_URL
    index: str = DEFAULT_ES_INDEX
    timeout: int = DEFAULT_TIMEOUT


@dataclass
class GenerationConfig:
    source_index: str = ""
    document_count: int = 50


@dataclass
class OutputConfig:
    base_dir: str = DEFAULT_BASE_DIR


@dataclass
class ComparisonConfig:
    show_unchanged: bool = False
    highlight_new: bool = True
    show_scores: bool = True
    max_rank_display: int = 20


@dataclass
class TestDataConfig:
    __test__ = False

    mode: str = "random"  # "random" or "file"
    source_file: str = ""
    seed: int = 42
    document_count: int = 50
    description: str = ""


@dataclass
class Config:
    elasticsearch: ElasticsearchConfig = field(default_factory=ElasticsearchConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    comparison: ComparisonConfig = field(default_factory=ComparisonConfig)
    test_data: TestDataConfig = field(default_factory=TestDataConfig)
    path: Path | None = None

    def comparison_options(self) -> Options:
        c = self.comparison
        return Options(
            show_unchanged=c.show_unchanged,
            highlight_new=c.highlight_new,
            show_scores=c.show_scores,
            max_rank_display=c.max_rank_display,
        )

    @property
    def source_index(self) -> str:
        """Index documents are fetched from; falls back to the scratch index."""
        return self.generation.source_index or self.elasticsearch.index


def resolve_config_path(explicit: str | None = None) -> Path | None:
    """Pick the config file: explicit path, then ~/.search-testbed, then ./config."""
    if explicit:
        return Path(explicit)
    for candidate in (HOME_CONFIG, LOCAL_CONFIG):
        if candidate.is_file():
            return candidate
    return None


_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


def _coerce(section: str, key: str, value, kind):
    try:
        if kind is bool:
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if text in _TRUE:
                return True
            if text in _FALSE:
                return False
            raise ValueError(value)
        if kind is int:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(value)
            return int(value)
        return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(
            f"invalid value for {section}.{key}: {value!r} (expected {kind.__name__})",
            original_error=e,
        ) from e


def _section(cls, name: str, raw: dict | None):
    """Build a section dataclass from a YAML mapping, ignoring unknown keys.

    Blank values keep the field default; others are coerced to the field type.
    """
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"config section '{name}' must be a mapping")
    fields = cls.__dataclass_fields__
    known = {
        k: _coerce(name, k, v, fields[k].type)
        for k, v in raw.items()
        if k in fields and v is not None
    }
    return cls(**known)


def load_config(path: str | None = None) -> Config:
    """Load the YAML config, then apply environment overrides and defaults.

    A missing file is only an error when the path was given explicitly.
    """
    config_path = resolve_config_path(path)
    raw = {}

    if config_path is not None:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise ConfigError(f"config file not found: {config_path}", original_error=e) from e
        except yaml.YAMLError as e:
            raise ConfigError(f"failed to parse config {config_path}", original_error=e) from e

    if not isinstance(raw, dict):
        raise ConfigError(f"config root must be a mapping: {config_path}")

    cfg = Config(
        elasticsearch=_section(ElasticsearchConfig, "elasticsearch", raw.get("elasticsearch")),
        generation=_section(GenerationConfig, "generation", raw.get("generation")),
        output=_section(OutputConfig, "output", raw.get("output")),
        comparison=_section(ComparisonConfig, "comparison", raw.get("comparison")),
        test_data=_section(TestDataConfig, "test_data", raw.get("test_data")),
        path=config_path,
    )
    _apply_env_overrides(cfg)
    _apply_defaults(cfg)
    return cfg


def _apply_env_overrides(cfg: Config) -> None:
    if url := os.getenv("ES_URL"):
        cfg.elasticsearch.url = url
    if index := os.getenv("ES_INDEX"):
        cfg.elasticsearch.index = index
    if seed := os.getenv("TESTBED_SEED"):
        try:
            cfg.test_data.seed = int(seed)
        except ValueError:
            pass
    if source_file := os.getenv("TESTBED_SOURCE_FILE"):
        cfg.test_data.source_file = source_file


def _apply_defaults(cfg: Config) -> None:
    """Fill zero/empty values left by a sparse YAML file."""
    if not cfg.elasticsearch.url:
        cfg.elasticsearch.url = DEFAULT_ES_URL
    if not cfg.elasticsearch.index:
        cfg.elasticsearch.index = DEFAULT_ES_INDEX
    if not cfg.elasticsearch.timeout:
        cfg.elasticsearch.timeout = DEFAULT_TIMEOUT
    if not cfg.generation.document_count:
        cfg.generation.document_count = 50
    if not cfg.output.base_dir:
        cfg.output.base_dir = DEFAULT_BASE_DIR
    if not cfg.test_data.mode:
        cfg.test_data.mode = "random"
    if not cfg.test_data.document_count:
        cfg.test_data.document_count = 50
    if not cfg.test_data.seed:
        cfg.test_data.seed = 42
