"""
Configuration management using Pydantic Settings with optional YAML overrides
"""
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application settings
    app_name: str = "Semantic Entity Resolution"
    version: str = "1.0.0"
    environment: str = "production"

    # Worker pool (the overseer invoking the resolution layer)
    worker_pool_size: int = 20

    # Class hierarchy: flattened (file, encoding, base URI) triples
    class_hierarchy_files: List[str] = []

    # Same-as retrieval
    same_as_cache_file: Optional[str] = None
    # Kept raw so that an invalid value can be reported and replaced at startup
    same_as_in_memory_cache_size: Optional[Union[int, str]] = None
    same_as_crawl_max_depth: int = 3
    same_as_crawl_max_uris: int = 100
    http_same_as_domains: List[str] = []
    wikipedia_domains: List[str] = ["en.wikipedia.org", "de.wikipedia.org", "fr.wikipedia.org"]
    bridged_wikipedia_languages: List[str] = ["en", "de", "fr"]

    # Annotator output writer (external collaborator)
    print_annotator_results: bool = False
    annotator_output_directory: Optional[str] = None

    # Entity existence checking
    entity_checker_namespaces: List[str] = []

    # Knowledge base whitelist
    well_known_kbs: List[str] = ["http://dbpedia.org/resource/"]

    # Network settings
    http_timeout_seconds: float = 10.0
    http_user_agent: str = "semantic-entity-resolution/1.0"
    circuit_breaker_threshold: int = 5
    circuit_breaker_timeout: int = 60

    # Logging settings
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_file_max_bytes: int = 10485760
    log_file_backup_count: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"   # allow unknown env vars without error
        frozen = True

    @property
    def annotator_output_writer_enabled(self) -> bool:
        """Whether the external result dumper should be created"""
        return self.print_annotator_results and bool(self.annotator_output_directory)


def load_settings(config_file: Optional[str] = None, **overrides) -> Settings:
    """
    Build the immutable settings value used to wire all components.

    Values from the YAML file take precedence over environment variables,
    explicit keyword overrides take precedence over both.
    """
    values = {}
    if config_file:
        path = Path(config_file)
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        values.update(data)
    values.update(overrides)
    return Settings(**values)


settings = Settings()
