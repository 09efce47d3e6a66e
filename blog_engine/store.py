"""
Post stores: where blog posts live.

Two backends share the :class:`PostStore` interface:

- :class:`RestPostStore` talks to a PostgREST-style data API
  (``{base_url}/rest/v1/{table}``) over HTTP.
- :class:`LocalPostStore` keeps every post under a single key of a JSON file,
  the on-disk equivalent of browser local storage.

The renderer never touches a store; presentation code fetches a
:class:`~blog_engine.models.Post` and hands its ``body`` to
:func:`~blog_engine.markdown_parser.render_markdown`.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import time
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .models import Post
from .paths import resolve_store_file

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({'title', 'body', 'date', 'published'})
STORAGE_KEY = 'blog_posts'


class PostStoreError(Exception):
    """A backend failed to read or write posts."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def _validate_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update post fields: {sorted(unknown)}")
    if 'published' in fields:
        fields = {**fields, 'published': bool(fields['published'])}
    return fields


def sort_posts(posts: List[Post], include_drafts: bool = False) -> List[Post]:
    """Drop drafts unless requested and order newest first."""
    if not include_drafts:
        posts = [p for p in posts if p.published]
    return sorted(posts, key=lambda p: p.date, reverse=True)


class PostStore(ABC):
    """Interface shared by every post backend."""

    @abstractmethod
    def list_posts(self, include_drafts: bool = False) -> List[Post]:
        """Return posts ordered by date, newest first; drafts only on request."""

    @abstractmethod
    def get_post(self, post_id: str) -> Optional[Post]:
        """Return the post with *post_id*, or ``None``."""

    @abstractmethod
    def create_post(self, title: str, body: str, published: bool = False) -> Post:
        """Store a new post dated now and return it with its assigned id."""

    @abstractmethod
    def update_post(self, post_id: str, fields: Dict[str, Any]) -> Optional[Post]:
        """Patch *fields* of a post; ``None`` when the post does not exist."""

    @abstractmethod
    def delete_post(self, post_id: str) -> None:
        """Remove a post. Deleting a missing post is not an error."""


class RestPostStore(PostStore):
    """
    Post store backed by a PostgREST-style HTTP data API.

    Retry Logic:
        - 429 (Rate Limit): Waits for Retry-After header duration
        - 5xx (Server Error): Exponential backoff (1s, 3s, 7s)
        - Connection errors / timeouts: Exponential backoff
        - Other 4xx: No retry, raised as PostStoreError
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        table: str = "posts",
        timeout: float = 10.0,
        max_retries: int = 3,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            base_url: Project URL, e.g. ``https://xyz.supabase.co``
            api_key: Publishable API key, sent as ``apikey`` and bearer token
            table: Table holding the posts
            timeout: Per-request timeout in seconds
            max_retries: Retry attempts for rate limits, 5xx and network errors
            session: Optional pre-configured ``requests.Session``
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.table = table
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    def _headers(self, write: bool = False) -> Dict[str, str]:
        headers = {
            'apikey': self.api_key,
            'Authorization': f'Bearer {self.api_key}',
        }
        if write:
            headers['Content-Type'] = 'application/json'
            headers['Prefer'] = 'return=representation'
        return headers

    def _request(self, method: str, params: Dict[str, str], json_data: Any = None) -> List[Dict]:
        """
        Send one request with retries and decode the JSON array it returns.

        Returns:
            Decoded records; an empty body decodes to ``[]``

        Raises:
            PostStoreError: On a non-success status or when retries run out
        """
        headers = self._headers(write=method != 'GET')

        for attempt in range(self.max_retries + 1):
            try:
                response = self.session.request(
                    method,
                    self.endpoint,
                    headers=headers,
                    params=params,
                    json=json_data,
                    timeout=self.timeout,
                )
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                if attempt < self.max_retries:
                    wait_seconds = (2 ** attempt) + 1
                    logger.warning(f"{method} {self.endpoint} failed ({e}). Retrying in {wait_seconds}s ({attempt + 1}/{self.max_retries})")
                    time.sleep(wait_seconds)
                    continue
                raise PostStoreError(f"{method} {self.endpoint} failed after {self.max_retries} retries") from e
            except requests.exceptions.RequestException as e:
                raise PostStoreError(f"{method} {self.endpoint} failed: {e}") from e

            logger.debug(f"{method} {response.url} -> {response.status_code}")

            if response.status_code == 429 and attempt < self.max_retries:
                retry_after = response.headers.get('Retry-After', '60')
                try:
                    wait_seconds = int(retry_after)
                except ValueError:
                    wait_seconds = 60  # Malformed header
                logger.warning(f"Rate limited (429). Waiting {wait_seconds}s before retry {attempt + 1}/{self.max_retries}")
                time.sleep(wait_seconds)
                continue

            if 500 <= response.status_code < 600 and attempt < self.max_retries:
                wait_seconds = (2 ** attempt) + 1  # 1, 3, 7 seconds
                logger.warning(f"Server error ({response.status_code}). Retrying in {wait_seconds}s ({attempt + 1}/{self.max_retries})")
                time.sleep(wait_seconds)
                continue

            if not response.ok:
                raise PostStoreError(
                    f"{method} {self.endpoint} returned {response.status_code}: {response.text[:300]}",
                    status_code=response.status_code,
                    body=response.text,
                )

            text = response.text
            if not text:
                return []
            try:
                return response.json()
            except ValueError as e:
                raise PostStoreError(f"Invalid JSON from {self.endpoint}", status_code=response.status_code, body=text) from e

        # Only reachable with max_retries < 0
        raise PostStoreError(f"{method} {self.endpoint} was never attempted")

    def list_posts(self, include_drafts: bool = False) -> List[Post]:
        params = {'order': 'date.desc'}
        if not include_drafts:
            params['published'] = 'eq.true'
        return [Post.from_record(r) for r in self._request('GET', params)]

    def get_post(self, post_id: str) -> Optional[Post]:
        records = self._request('GET', {'id': f'eq.{post_id}'})
        return Post.from_record(records[0]) if records else None

    def create_post(self, title: str, body: str, published: bool = False) -> Post:
        records = self._request('POST', {}, {
            'title': title,
            'body': body,
            'date': utc_now_iso(),
            'published': bool(published),
        })
        if not records:
            raise PostStoreError("Create returned no representation; check the Prefer header is honoured")
        post = Post.from_record(records[0])
        logger.info(f"Created post {post.id}: {post.title}")
        return post

    def update_post(self, post_id: str, fields: Dict[str, Any]) -> Optional[Post]:
        fields = _validate_fields(fields)
        records = self._request('PATCH', {'id': f'eq.{post_id}'}, fields)
        return Post.from_record(records[0]) if records else None

    def delete_post(self, post_id: str) -> None:
        self._request('DELETE', {'id': f'eq.{post_id}'})
        logger.info(f"Deleted post {post_id}")


class LocalPostStore(PostStore):
    """
    Post store kept in a local JSON file.

    The file holds one JSON object whose ``blog_posts`` key maps to the list
    of post records.  Every write replaces the file atomically.
    """

    def __init__(self, data_dir, filename: str = "posts.json"):
        self.path: Path = resolve_store_file(data_dir, filename)

    def _load(self) -> List[Dict]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PostStoreError(f"Could not read post storage {self.path}: {e}") from e
        records = data.get(STORAGE_KEY, []) if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise PostStoreError(f"Malformed post storage {self.path}: '{STORAGE_KEY}' is not a list")
        return records

    def _save(self, records: List[Dict]) -> None:
        fd, tmp_name = tempfile.mkstemp(prefix='.posts_', suffix='.json', dir=self.path.parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump({STORAGE_KEY: records}, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise PostStoreError(f"Could not write post storage {self.path}: {e}") from e

    def list_posts(self, include_drafts: bool = False) -> List[Post]:
        posts = [Post.from_record(r) for r in self._load()]
        return sort_posts(posts, include_drafts)

    def get_post(self, post_id: str) -> Optional[Post]:
        for record in self._load():
            if str(record.get('id')) == str(post_id):
                return Post.from_record(record)
        return None

    def create_post(self, title: str, body: str, published: bool = False) -> Post:
        post = Post(
            id=uuid.uuid4().hex,
            title=title,
            body=body,
            date=utc_now_iso(),
            published=bool(published),
        )
        records = self._load()
        records.append(post.to_record())
        self._save(records)
        logger.info(f"Created post {post.id}: {post.title}")
        return post

    def update_post(self, post_id: str, fields: Dict[str, Any]) -> Optional[Post]:
        fields = _validate_fields(fields)
        records = self._load()
        for index, record in enumerate(records):
            if str(record.get('id')) == str(post_id):
                records[index] = {**record, **fields}
                self._save(records)
                return Post.from_record(records[index])
        return None

    def delete_post(self, post_id: str) -> None:
        records = self._load()
        remaining = [r for r in records if str(r.get('id')) != str(post_id)]
        if len(remaining) != len(records):
            self._save(remaining)
            logger.info(f"Deleted post {post_id}")
