#!/usr/bin/env python3
"""
Main blog engine module that ties together a post store and the markdown renderer.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

from .excerpt import DEFAULT_EXCERPT_LENGTH, get_excerpt
from .formatting import format_date
from .markdown_parser import render_markdown
from .models import Post, RenderedPost
from .store import PostStore, PostStoreError

logger = logging.getLogger(__name__)


class BlogEngine:
    """
    Fetches posts from a store and renders them for display.
    """

    def __init__(self, store: PostStore, *, excerpt_length: int = DEFAULT_EXCERPT_LENGTH, debug: bool = False):
        """Create a new :class:`BlogEngine`.

        Parameters
        ----------
        store
            Backend the posts are read from and written to.
        excerpt_length
            Maximum excerpt length used for listings.
        debug
            Enable verbose logging.
        """
        self.store = store
        self.excerpt_length = excerpt_length
        self.debug = debug

    def render_post(self, post: Post) -> RenderedPost:
        """
        Render a post's body, excerpt and date.

        Args:
            post: Post fetched from the store

        Returns:
            RenderedPost ready for a template
        """
        try:
            date = format_date(post.date)
        except ValueError:
            logger.warning(f"Post {post.id} has an unparseable date: {post.date!r}")
            date = post.date

        rendered = RenderedPost(
            id=post.id,
            title=post.title,
            date=date,
            html=render_markdown(post.body),
            excerpt=get_excerpt(post.body, self.excerpt_length),
            published=post.published,
        )
        if self.debug:
            logger.info(f"Rendered post {post.id} ({len(rendered.html)} chars of HTML)")
        return rendered

    def render_post_by_id(self, post_id: str) -> RenderedPost:
        """
        Fetch and render a single post.

        Raises:
            LookupError: If no post has *post_id*
        """
        post = self.store.get_post(post_id)
        if post is None:
            raise LookupError(f"Post '{post_id}' not found")
        return self.render_post(post)

    def published_feed(self, include_drafts: bool = False) -> List[RenderedPost]:
        """Render every listed post, newest first."""
        return [self.render_post(p) for p in self.store.list_posts(include_drafts)]


def _read_body(args) -> str:
    if args.body_file is not None:
        return args.body_file.read_text(encoding="utf-8")
    return args.body or ""


def main(argv: Optional[List[str]] = None):
    """Command-line entry point for the blog engine."""
    import argparse

    from .config import create_store, load_config

    def _build_parser() -> argparse.ArgumentParser:
        p = argparse.ArgumentParser(prog="blogengine", description="Render markdown posts and manage the post store.")
        p.add_argument("--debug", action="store_true", help="Enable verbose logging")
        sub = p.add_subparsers(dest="command", required=True)

        render = sub.add_parser("render", help="Render a markdown file to HTML on stdout")
        render.add_argument("markdown", type=Path, help="Markdown file to render")

        excerpt = sub.add_parser("excerpt", help="Print a plain-text excerpt of a markdown file")
        excerpt.add_argument("markdown", type=Path, help="Markdown file to summarise")
        excerpt.add_argument("--max-len", type=int, default=DEFAULT_EXCERPT_LENGTH, help="Maximum excerpt length")

        listing = sub.add_parser("list", help="List posts, newest first")
        listing.add_argument("--drafts", action="store_true", help="Include unpublished posts")

        show = sub.add_parser("show", help="Render a stored post to HTML on stdout")
        show.add_argument("post_id")

        new = sub.add_parser("new", help="Create a post")
        new.add_argument("--title", required=True)
        body = new.add_mutually_exclusive_group(required=True)
        body.add_argument("--body-file", type=Path, help="Markdown file holding the body")
        body.add_argument("--body", help="Body text")
        new.add_argument("--publish", action="store_true", help="Publish immediately")

        for name, help_text in (("publish", "Publish a post"), ("unpublish", "Turn a post back into a draft"), ("delete", "Delete a post")):
            cmd = sub.add_parser(name, help=help_text)
            cmd.add_argument("post_id")
        return p

    logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")

    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    # Local file commands need no store
    if args.command in ("render", "excerpt"):
        md_path: Path = args.markdown
        if not md_path.exists():
            logger.error(f"Markdown file '{md_path}' not found")
            return 1
        markdown_text = md_path.read_text(encoding="utf-8")
        if args.command == "render":
            print(render_markdown(markdown_text))
        else:
            print(get_excerpt(markdown_text, args.max_len))
        return 0

    try:
        config = load_config()
        engine = BlogEngine(create_store(config), debug=args.debug)
        store = engine.store

        if args.command == "list":
            for rendered in engine.published_feed(include_drafts=args.drafts):
                marker = "" if rendered.published else " [draft]"
                print(f"{rendered.id}\t{rendered.date}\t{rendered.title}{marker}")
        elif args.command == "show":
            print(engine.render_post_by_id(args.post_id).html)
        elif args.command == "new":
            post = store.create_post(args.title, _read_body(args), published=args.publish)
            print(post.id)
        elif args.command in ("publish", "unpublish"):
            post = store.update_post(args.post_id, {"published": args.command == "publish"})
            if post is None:
                logger.error(f"Post '{args.post_id}' not found")
                return 1
            logger.info("✅ %s is now %s", post.id, "published" if post.published else "a draft")
        elif args.command == "delete":
            store.delete_post(args.post_id)
    except LookupError as e:
        logger.error(str(e))
        return 1
    except (ValueError, OSError, PostStoreError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
