"""Public package surface for mdbook_git.

Embeds git-tracked file content and diffs into markdown via
``{{ #git show ... }}`` and ``{{ #git diff ... }}`` directives.
"""

from __future__ import annotations

from .substitute import GitPreprocessor, replace_all

__all__ = ["GitPreprocessor", "replace_all"]
