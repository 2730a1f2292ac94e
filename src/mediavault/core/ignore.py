"""Traversal ignore rules.

Rules decide which directory entries the traversal stage never emits. A
directory rule also hides the directory's whole subtree.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from mediavault.core.models import FileEntry
from mediavault.shared.constants import ExclusionPatterns

logger = logging.getLogger(__name__)


class IgnoreRule(ABC):
    """A single ignore rule."""

    name: str = "ignore_rule"

    def should_ignore_directory(
        self,
        directory: FileEntry,
        contents: Sequence[FileEntry],
    ) -> bool:
        """Return True to skip ``directory`` and everything below it.

        Args:
            directory: The directory being considered
            contents: Its unfiltered listing
        """
        return False

    @abstractmethod
    def should_ignore_file(self, file: FileEntry) -> bool:
        """Return True to skip ``file``."""


class CoreIgnoreRule(IgnoreRule):
    """Built-in junk names: NAS metadata folders, OS files, samples, trickplay."""

    name = "core"

    _hidden = re.compile(ExclusionPatterns.HIDDEN_FILE_PATTERN)
    _sample = re.compile(ExclusionPatterns.SAMPLE_PATTERN, re.IGNORECASE)
    _trickplay = re.compile(ExclusionPatterns.TRICKPLAY_PATTERN, re.IGNORECASE)
    _small_image = re.compile(ExclusionPatterns.SMALL_IMAGE_PATTERN, re.IGNORECASE)

    def __init__(
        self,
        extra_directories: Iterable[str] = (),
        extra_files: Iterable[str] = (),
    ) -> None:
        self._directories = ExclusionPatterns.DIRECTORY_NAMES | {
            name.lower() for name in extra_directories
        }
        self._files = ExclusionPatterns.FILE_NAMES | {name.lower() for name in extra_files}

    def should_ignore_directory(
        self,
        directory: FileEntry,
        contents: Sequence[FileEntry],
    ) -> bool:
        return directory.name.lower() in self._directories

    def should_ignore_file(self, file: FileEntry) -> bool:
        name = file.name
        if name.lower() in self._files:
            return True
        if self._hidden.match(name):
            return True
        if self._sample.search(name) or self._trickplay.search(name):
            return True
        return bool(self._small_image.search(name))


class DotIgnoreRule(IgnoreRule):
    """Skip a directory that contains an empty ``.ignore`` marker file."""

    name = "dot_ignore"

    def should_ignore_directory(
        self,
        directory: FileEntry,
        contents: Sequence[FileEntry],
    ) -> bool:
        for entry in contents:
            if (
                not entry.is_directory
                and entry.name == ExclusionPatterns.DOT_IGNORE_FILE
                and entry.size == 0
            ):
                return True
        return False

    def should_ignore_file(self, file: FileEntry) -> bool:
        return False


class IgnoreRuleSet:
    """Ordered collection of ignore rules; any rule may veto an entry."""

    def __init__(self, rules: Iterable[IgnoreRule] | None = None) -> None:
        self._rules = list(rules) if rules is not None else [CoreIgnoreRule(), DotIgnoreRule()]

    @property
    def rules(self) -> list[IgnoreRule]:
        return list(self._rules)

    def is_directory_ignored(self, directory: FileEntry, contents: Sequence[FileEntry]) -> bool:
        for rule in self._rules:
            if rule.should_ignore_directory(directory, contents):
                logger.debug("Directory %s ignored by rule '%s'", directory.path, rule.name)
                return True
        return False

    def is_file_ignored(self, file: FileEntry) -> bool:
        return any(rule.should_ignore_file(file) for rule in self._rules)

    def is_name_ignored(self, entry: FileEntry) -> bool:
        """Name-only check used while filtering a listing.

        Directory content rules (like ``.ignore``) need the directory's own
        listing and are applied by the traversal when it descends.
        """
        if entry.is_directory:
            return any(rule.should_ignore_directory(entry, ()) for rule in self._rules)
        return self.is_file_ignored(entry)

    @classmethod
    def from_settings(
        cls,
        extra_directories: Iterable[str] = (),
        extra_files: Iterable[str] = (),
        *,
        honor_dot_ignore: bool = True,
    ) -> IgnoreRuleSet:
        rules: list[IgnoreRule] = [CoreIgnoreRule(extra_directories, extra_files)]
        if honor_dot_ignore:
            rules.append(DotIgnoreRule())
        return cls(rules)
