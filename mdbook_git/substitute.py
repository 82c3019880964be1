"""Replace ``{{ #git ... }}`` directives in markdown with rendered content.

Directives are evaluated left to right and independently: a failing
directive becomes an inline error marker and its siblings still render.
Text outside directive spans is copied unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor

from .config import PreprocessorSettings
from .diff import DEFAULT_CONTEXT_LINES, hunks_from_diff_lines
from .directive import Command, Directive, ShowCommand, find_directives, parse_directive
from .errors import DirectiveError
from .fetch import ContentFetcher, FetchCache, RevisionStore
from .git_store import GitRevisionStore, find_repository_root
from .render import render_diff, render_error, render_show

logger = logging.getLogger(__name__)


def evaluate_command(command: Command, fetcher: ContentFetcher) -> str:
    """Fetch and render one parsed command."""
    if isinstance(command, ShowCommand):
        lines = fetcher.fetch_lines(command.revision, command.path)
        return render_show(lines, command.ranges)

    aligned = fetcher.fetch_diff(command.revision_a, command.revision_b, command.path)
    hunks = hunks_from_diff_lines(aligned, command.context_lines)
    return render_diff(hunks, command.path, command.hide_header_and_deletions, command.ranges)


def render_directive(
    directive: Directive,
    fetcher: ContentFetcher,
    default_context_lines: int = DEFAULT_CONTEXT_LINES,
) -> str:
    """Render a directive, or an inline error marker if it fails."""
    try:
        command = parse_directive(directive.body, default_context_lines)
        return evaluate_command(command, fetcher)
    except DirectiveError as exc:
        logger.warning("%s failed: %s", directive.text, exc)
        return render_error(str(exc))


def replace_all(
    text: str,
    fetcher: ContentFetcher,
    default_context_lines: int = DEFAULT_CONTEXT_LINES,
) -> str:
    parts: list[str] = []
    previous_end = 0
    for directive in find_directives(text):
        parts.append(text[previous_end : directive.start])
        parts.append(render_directive(directive, fetcher, default_context_lines))
        previous_end = directive.end
    parts.append(text[previous_end:])
    return "".join(parts)


class GitPreprocessor:
    """One documentation build pass sharing a single fetch cache.

    Without a store (no repository configured) text passes through
    untouched, directives included.
    """

    def __init__(
        self,
        store: RevisionStore | None,
        cache: FetchCache | None = None,
        context_lines: int = DEFAULT_CONTEXT_LINES,
        max_workers: int = 1,
    ) -> None:
        self.fetcher = ContentFetcher(store, cache) if store is not None else None
        self.context_lines = context_lines
        self.max_workers = max(1, max_workers)

    @classmethod
    def from_settings(cls, settings: PreprocessorSettings) -> GitPreprocessor:
        store: GitRevisionStore | None = None
        if settings.repository is not None:
            repo_root = find_repository_root(settings.repository)
            if repo_root is None:
                logger.warning("no git repository found at %s; leaving #git directives as-is", settings.repository)
            else:
                store = GitRevisionStore(repo_root)
        return cls(store, context_lines=settings.context_lines, max_workers=settings.max_workers)

    def process(self, text: str) -> str:
        if self.fetcher is None:
            return text
        return replace_all(text, self.fetcher, self.context_lines)

    def process_chapters(self, chapters: Mapping[str, str]) -> dict[str, str]:
        """Process independent documents, concurrently when ``max_workers > 1``."""
        names = list(chapters)
        if self.max_workers == 1 or len(names) < 2:
            return {name: self.process(chapters[name]) for name in names}
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="mdbook-git") as executor:
            processed = list(executor.map(self.process, (chapters[name] for name in names)))
        return dict(zip(names, processed))


__all__ = [
    "GitPreprocessor",
    "evaluate_command",
    "render_directive",
    "replace_all",
]
