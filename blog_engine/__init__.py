"""Blog Engine – top-level package

Exposes the public API (`render_markdown`, `get_excerpt`, the post stores)
**and** sets up a minimal logging configuration so that every sub-module can
call

```python
import logging
logger = logging.getLogger(__name__)
```

and honour a single environment variable `BLOG_LOG_LEVEL`.
"""

from __future__ import annotations

import logging
import os

# ------------------------------------------------------------------
# Default logging – honour env var, otherwise INFO.
# ------------------------------------------------------------------
LOG_LEVEL = os.getenv("BLOG_LOG_LEVEL", "INFO").upper()
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

from .chunks import PlaceholderError  # noqa: E402
from .excerpt import get_excerpt  # noqa: E402
from .formatting import format_date  # noqa: E402
from .inline import render_inline  # noqa: E402
from .markdown_parser import render_markdown  # noqa: E402
from .models import Post  # noqa: E402
from .store import LocalPostStore, PostStore, PostStoreError, RestPostStore  # noqa: E402

__version__ = "1.0.0"

__all__ = [
    "render_markdown",
    "render_inline",
    "get_excerpt",
    "format_date",
    "Post",
    "PostStore",
    "RestPostStore",
    "LocalPostStore",
    "PostStoreError",
    "PlaceholderError",
]
