"""Site configuration for Folio.

Configuration lives in an optional ``folio.yaml`` at the project root. Values
found there are merged over :data:`DEFAULT_CONFIG`; unknown keys are ignored
and a file that does not hold a mapping leaves the defaults in place.

Key names:
- DEFAULT_CONFIG: Default values for every setting.
- SiteConfig: Frozen, typed view of the merged settings.
- load_config: Reads ``folio.yaml`` from a project root.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

CONFIG_FILENAME = "folio.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "content_dir": "site",
    "posts_dir": "_posts",
    "extensions": [".md", ".markdown", ".html"],
    "front_matter_delimiter": "---",
    "post_permalink": "/:categories/:year/:month/:day/:title/",
    "default_layouts": {"post": "post", "page": "default"},
    "timezone": "UTC",
    "date_formats": [
        "%Y-%m-%d",
        "%Y-%m-%d %H:%M",
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d %H:%M:%S %z",
        "%Y-%m-%dT%H:%M:%S%z",
        "%d %B %Y",
        "%B %d, %Y",
    ],
    "date_from_filename": True,
    "display_date_format": "%b %d, %Y",
    "excerpt_separator": "\n\n",
}


@dataclass(frozen=True)
class SiteConfig:
    """Settings that control how sources are discovered and parsed.

    Attributes:
        content_dir: Directory (relative to the project root) holding sources.
        posts_dir: Top-level folder inside content_dir whose files are posts.
        extensions: Source file extensions.
        front_matter_delimiter: Line fencing the front-matter block.
        post_permalink: Placeholder pattern for posts without a permalink.
        default_layouts: Layout per kind ("post"/"page") when none is given.
        timezone: IANA zone name used for date-only and naive dates.
        date_formats: strptime formats tried for string dates.
        date_from_filename: Whether posts may take their date from the filename.
        display_date_format: strftime format used by ContentItem.display_date.
        excerpt_separator: Separator that ends the excerpt.
    """

    content_dir: str = DEFAULT_CONFIG["content_dir"]
    posts_dir: str = DEFAULT_CONFIG["posts_dir"]
    extensions: tuple[str, ...] = tuple(DEFAULT_CONFIG["extensions"])
    front_matter_delimiter: str = DEFAULT_CONFIG["front_matter_delimiter"]
    post_permalink: str = DEFAULT_CONFIG["post_permalink"]
    default_layouts: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_CONFIG["default_layouts"]),
        hash=False,
    )
    timezone: str = DEFAULT_CONFIG["timezone"]
    date_formats: tuple[str, ...] = tuple(DEFAULT_CONFIG["date_formats"])
    date_from_filename: bool = DEFAULT_CONFIG["date_from_filename"]
    display_date_format: str = DEFAULT_CONFIG["display_date_format"]
    excerpt_separator: str = DEFAULT_CONFIG["excerpt_separator"]

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> SiteConfig:
        """Build a config from a mapping, ignoring unknown keys.

        Args:
            values: Raw settings, typically parsed from folio.yaml.

        Returns:
            SiteConfig with defaults for anything not given.

        Raises:
            ValueError: If a setting has the wrong type or an unusable value.
        """
        merged = dict(DEFAULT_CONFIG)
        if values:
            merged.update(values)
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in merged.items() if k in known}
        for name in _STRING_SETTINGS:
            kwargs[name] = _string_setting(name, kwargs[name])
        if not kwargs["excerpt_separator"]:
            raise ValueError("Setting 'excerpt_separator' must not be empty")
        kwargs["extensions"] = tuple(
            ext if ext.startswith(".") else f".{ext}"
            for ext in _string_list_setting("extensions", kwargs["extensions"])
        )
        kwargs["date_formats"] = _string_list_setting("date_formats", kwargs["date_formats"])
        if not isinstance(kwargs["date_from_filename"], bool):
            raise ValueError("Setting 'date_from_filename' must be true or false")
        layouts = dict(DEFAULT_CONFIG["default_layouts"])
        overrides = kwargs.get("default_layouts")
        if overrides is not None and not isinstance(overrides, Mapping):
            raise ValueError("Setting 'default_layouts' must be a mapping of kind to layout")
        for kind, layout in (overrides or {}).items():
            layouts[str(kind)] = _string_setting(f"default_layouts.{kind}", layout)
        kwargs["default_layouts"] = layouts
        config = cls(**kwargs)
        try:
            config.zone()
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone in config: {config.timezone!r}") from exc
        return config

    def zone(self) -> tzinfo:
        """Return the tzinfo for the configured timezone name."""
        if self.timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.timezone)

    def layout_for(self, kind: str) -> str:
        """Return the default layout name for a kind ("post" or "page")."""
        return self.default_layouts.get(kind, "default")


_STRING_SETTINGS = (
    "content_dir",
    "posts_dir",
    "front_matter_delimiter",
    "post_permalink",
    "timezone",
    "display_date_format",
    "excerpt_separator",
)


def _string_setting(name: str, value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValueError(f"Setting '{name}' must be a string, got {type(value).__name__}")
    return str(value)


def _string_list_setting(name: str, value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Setting '{name}' must be a list, got {type(value).__name__}")
    return tuple(_string_setting(name, item) for item in value)


def load_config(project_root: Path) -> SiteConfig:
    """Load site configuration from folio.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        SiteConfig with file values applied over the defaults.

    Raises:
        ValueError: If a setting in folio.yaml is invalid.
        yaml.YAMLError: If folio.yaml is not valid YAML.
    """
    config_path = project_root / CONFIG_FILENAME
    loaded: Any = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        loaded = {}
    return SiteConfig.from_mapping(loaded)
