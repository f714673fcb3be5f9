"""Repository context: manifest, file listing and route sources for the code investigator."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from uxpilot.config import settings

logger = logging.getLogger("uxpilot.enrichment")

_SOURCE_SUFFIXES = {".tsx", ".ts", ".jsx", ".js", ".vue", ".svelte", ".css", ".scss"}
_ROUTE_SUFFIXES = {".tsx", ".ts", ".jsx", ".vue"}
_ROUTE_DIRS = {"pages", "app", "views", "routes"}
_EXCLUDED_DIRS = {"node_modules", ".next", "dist", ".git"}

NO_ROUTE_FILES = "(no repo available)"
UNREADABLE_ROUTE_FILES = "(could not read route files)"


class RepositoryContext:
    """Read-only view of the target repository. Never modifies the checkout."""

    def __init__(
        self,
        repo: str,
        clone_dir: str | Path,
        github_token: str = "",
        manifest_budget: int | None = None,
        listing_budget: int | None = None,
        max_route_files: int | None = None,
        full_file_size: int | None = None,
        head_lines: int | None = None,
    ) -> None:
        self.repo = repo
        self.root = Path(clone_dir)
        self._token = github_token
        self._manifest_budget = manifest_budget or settings.manifest_char_budget
        self._listing_budget = listing_budget or settings.file_listing_char_budget
        self._max_route_files = max_route_files or settings.max_route_files
        self._full_file_size = full_file_size or settings.route_file_full_size
        self._head_lines = head_lines or settings.route_file_head_lines
        self.available = self.root.is_dir()

    def ensure_cloned(self) -> bool:
        """Shallow-clone the repository if absent. Failure leaves the run without code context."""
        if self.root.is_dir():
            logger.info("Target repo already cloned at %s", self.root)
            self.available = True
            return True

        clone_url = (
            f"https://{self._token}@github.com/{self.repo}.git"
            if self._token
            else f"https://github.com/{self.repo}.git"
        )
        logger.info("Cloning %s to %s", self.repo, self.root)
        try:
            subprocess.run(
                ["git", "clone", clone_url, str(self.root), "--depth", "1"],
                check=True,
                capture_output=True,
                text=True,
                timeout=300,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning(
                "Could not clone %s (%s), continuing without code mapping",
                self.repo, type(exc).__name__,
            )
            self.available = False
            return False

        self.available = True
        return True

    def _walk(self, suffixes: set[str]) -> list[Path]:
        files = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = [d for d in dirnames if d not in _EXCLUDED_DIRS]
            base = Path(dirpath).relative_to(self.root)
            files.extend(base / name for name in filenames if Path(name).suffix in suffixes)
        return sorted(files)

    def describe(self) -> str:
        """Markdown summary: package manifest and source file listing, both truncated."""
        if not self.available:
            return (
                f"## Target Repository: {self.repo}\n\n"
                "_Repository not available locally. Code mapping will be based on URL patterns only._"
            )

        manifest = ""
        manifest_path = self.root / "package.json"
        if manifest_path.is_file():
            manifest = manifest_path.read_text(encoding="utf-8", errors="replace")

        try:
            listing = "\n".join(f"./{p.as_posix()}" for p in self._walk(_SOURCE_SUFFIXES))
        except OSError:
            logger.warning("Could not list files in %s", self.root, exc_info=True)
            listing = "(could not list files)"

        return (
            f"## Target Repository: {self.repo}\n\n"
            f"### package.json\n```json\n{manifest[:self._manifest_budget]}\n```\n\n"
            f"### Source Files\n```\n{listing[:self._listing_budget]}\n```"
        )

    def route_files(self) -> str:
        """Concatenated route/page sources; long files are cut to their first lines."""
        if not self.available:
            return NO_ROUTE_FILES

        try:
            candidates = [
                p for p in self._walk(_ROUTE_SUFFIXES)
                if any(part in _ROUTE_DIRS for part in p.parts[:-1])
            ][: self._max_route_files]
        except OSError:
            logger.warning("Could not list route files in %s", self.root, exc_info=True)
            return UNREADABLE_ROUTE_FILES

        sections = []
        for rel in candidates:
            try:
                content = (self.root / rel).read_text(encoding="utf-8", errors="replace")
            except OSError:
                logger.warning("Could not read route file %s, skipping", rel, exc_info=True)
                continue
            if len(content) < self._full_file_size:
                sections.append(f"\n### ./{rel.as_posix()}\n```tsx\n{content}\n```\n")
            else:
                head = "\n".join(content.split("\n")[: self._head_lines])
                sections.append(
                    f"\n### ./{rel.as_posix()} (first {self._head_lines} lines)\n```tsx\n{head}\n```\n"
                )

        logger.info("Read %d route/page files from %s", len(sections), self.root)
        if candidates and not sections:
            return UNREADABLE_ROUTE_FILES
        return "".join(sections)
