"""
Configuration management for the blog engine.

Settings come from environment variables, optionally loaded from a ``.env``
file in the working directory:

- ``BLOG_STORE``        - ``local`` (default) or ``rest``
- ``BLOG_API_URL``      - Data API project URL (rest store)
- ``BLOG_API_KEY``      - Publishable API key (rest store)
- ``BLOG_TABLE``        - Table name (default: ``posts``)
- ``BLOG_DATA_DIR``     - Directory for the local store (default: ``~/.blog_engine``)
- ``BLOG_TIMEOUT``      - HTTP timeout in seconds (default: 10)
- ``BLOG_MAX_RETRIES``  - Retry attempts for the rest store (default: 3)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .paths import DEFAULT_DATA_DIR
from .store import LocalPostStore, PostStore, RestPostStore

STORE_KINDS = ("local", "rest")


@dataclass
class BlogConfig:
    """Configuration for post storage."""
    store: str = "local"
    api_url: str = ""
    api_key: str = ""
    table: str = "posts"
    data_dir: str = str(DEFAULT_DATA_DIR)
    timeout: float = 10.0
    max_retries: int = 3

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BlogConfig":
        """
        Build a config from environment variables.

        Raises:
            ValueError: If a numeric setting cannot be parsed
        """
        env = os.environ if environ is None else environ
        return cls(
            store=env.get("BLOG_STORE", "local").strip().lower() or "local",
            api_url=env.get("BLOG_API_URL", "").strip(),
            api_key=env.get("BLOG_API_KEY", "").strip(),
            table=env.get("BLOG_TABLE", "posts").strip() or "posts",
            data_dir=env.get("BLOG_DATA_DIR", "").strip() or str(DEFAULT_DATA_DIR),
            timeout=float(env.get("BLOG_TIMEOUT") or 10),
            max_retries=int(env.get("BLOG_MAX_RETRIES") or 3),
        )

    def validate(self):
        """
        Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.store not in STORE_KINDS:
            raise ValueError(f"BLOG_STORE must be one of {STORE_KINDS}, got '{self.store}'")
        if self.store == "rest":
            if not self.api_url:
                raise ValueError("BLOG_API_URL cannot be empty for the rest store")
            if not self.api_key:
                raise ValueError("BLOG_API_KEY cannot be empty for the rest store")
        if not self.table:
            raise ValueError("BLOG_TABLE cannot be empty")
        if self.timeout <= 0:
            raise ValueError("BLOG_TIMEOUT must be positive")
        if self.max_retries < 0:
            raise ValueError("BLOG_MAX_RETRIES must be non-negative")


def load_config(environ: Optional[Mapping[str, str]] = None, *, dotenv: bool = True) -> BlogConfig:
    """
    Load and validate configuration.

    Args:
        environ: Mapping to read instead of ``os.environ``
        dotenv: Load a ``.env`` file into ``os.environ`` first (ignored when
            *environ* is given)

    Returns:
        BlogConfig: Validated configuration

    Raises:
        ValueError: If configuration is invalid
    """
    if dotenv and environ is None:
        load_dotenv(find_dotenv(usecwd=True))
    config = BlogConfig.from_env(environ)
    config.validate()
    return config


def create_store(config: BlogConfig) -> PostStore:
    """Construct the post store described by *config*."""
    if config.store == "rest":
        return RestPostStore(
            config.api_url,
            config.api_key,
            table=config.table,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )
    return LocalPostStore(config.data_dir)
