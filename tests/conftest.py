import os
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so `import blog_engine` works
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture(autouse=True)
def isolated_blog_env(monkeypatch):
    """Keep BLOG_* settings from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("BLOG_"):
            monkeypatch.delenv(name)
