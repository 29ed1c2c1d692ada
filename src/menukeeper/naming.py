"""Display-name normalization used to match shortcuts across versions."""

from __future__ import annotations

import re
from typing import Iterable

from menukeeper.config.models import DEFAULT_QUALIFIERS

_VERSION_TOKEN = re.compile(r"(?:(?<=\s)|^)v?\d+(?:\.\d+)*(?=\s|$)", re.IGNORECASE)
_SETUP_SUFFIX = re.compile(r"\s*-\s*Setup\s*$", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


class NameNormalizer:
    """Collapse version and architecture variants of a name into one canonical key.

    `Chrome v120.lnk`, `Chrome (64-bit).lnk` and `Chrome.lnk` all normalize to
    `Chrome.lnk`. Normalization is lossy; distinct programs can share a key and
    the reconciler is responsible for telling them apart.

    Results are memoized per instance, so one normalizer should be shared for
    the duration of a run.
    """

    def __init__(
        self,
        qualifiers: Iterable[str] = DEFAULT_QUALIFIERS,
        suffix: str = ".lnk",
    ) -> None:
        names = [re.escape(value) for value in qualifiers if value]
        self._qualifier_pattern = (
            re.compile(r"\s*\((?:" + "|".join(names) + r")\)", re.IGNORECASE) if names else None
        )
        self._suffix = suffix
        self._cache: dict[str, str] = {}

    @property
    def suffix(self) -> str:
        return self._suffix

    def normalize(self, name: str) -> str:
        """Return the canonical matching key for `name`."""
        cached = self._cache.get(name)
        if cached is not None:
            return cached
        result = self._compute(name)
        self._cache[name] = result
        return result

    def cache_size(self) -> int:
        return len(self._cache)

    def _compute(self, name: str) -> str:
        stem, suffix = self._split_suffix(name)

        value = stem
        if self._qualifier_pattern is not None:
            value = self._qualifier_pattern.sub("", value)
        value = _VERSION_TOKEN.sub("", value)
        value = _SETUP_SUFFIX.sub("", value)
        value = _WHITESPACE.sub(" ", value).strip()

        if not value:
            return name
        if suffix and not value.lower().endswith(suffix.lower()):
            value += suffix
        return value

    def _split_suffix(self, name: str) -> tuple[str, str]:
        if self._suffix and name.lower().endswith(self._suffix.lower()):
            return name[: -len(self._suffix)], name[-len(self._suffix) :]
        return name, ""


__all__ = ["NameNormalizer"]
