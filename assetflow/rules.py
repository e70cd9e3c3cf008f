"""Path rules: which sources each asset category reads and where it writes.

A PathRule is defined once per category at configuration time and never
changes afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple


class Category(Enum):
    """Asset categories, each owned by exactly one task."""
    STYLE = "styles"
    SCRIPT = "scripts"
    FONT = "fonts"
    IMAGE = "images"
    SVG = "svg"
    HTML = "html"

    @property
    def task_id(self) -> str:
        """Canonical name of the task building this category."""
        return self.value

    @classmethod
    def from_name(cls, name: str) -> 'Category':
        """Look up a category by task name or enum name (case-insensitive).

        Raises:
            ValueError: If no category has that name.
        """
        lowered = name.lower()
        for category in cls:
            if lowered in (category.value, category.name.lower()):
                return category
        raise ValueError(f"Unknown category: {name}")


@dataclass(frozen=True)
class PathRule:
    """Source globs and destination directory for one category.

    Attributes:
        category: The asset category this rule describes
        source_globs: Patterns selecting the files the transform reads
        dest_dir: Output directory, relative to the project base path
        watch_globs: Patterns that trigger a rebuild; defaults to
                     source_globs. HTML watches partials it never emits.
    """
    category: Category
    source_globs: Tuple[str, ...]
    dest_dir: Path
    watch_globs: Optional[Tuple[str, ...]] = field(default=None)

    def __post_init__(self):
        # Accept lists and plain strings from configuration
        object.__setattr__(self, 'source_globs', _as_tuple(self.source_globs))
        object.__setattr__(self, 'dest_dir', Path(self.dest_dir))
        if self.watch_globs is not None:
            object.__setattr__(self, 'watch_globs', _as_tuple(self.watch_globs))

    @property
    def watched(self) -> Tuple[str, ...]:
        """Globs that should trigger this rule's task."""
        if self.watch_globs:
            return self.watch_globs
        return self.source_globs


def _as_tuple(globs) -> Tuple[str, ...]:
    if isinstance(globs, str):
        return (globs,)
    return tuple(globs)


DEFAULT_RULES: Dict[Category, PathRule] = {
    Category.STYLE: PathRule(
        Category.STYLE,
        ('src/assets/sass/*.sass',),
        Path('build/assets/css'),
    ),
    Category.SCRIPT: PathRule(
        Category.SCRIPT,
        ('src/assets/js/*.js',),
        Path('build/assets/js'),
    ),
    Category.FONT: PathRule(
        Category.FONT,
        ('src/assets/webfonts/**/*.{woff,WOFF,woff2,WOFF2,ttf,TTF,otf,OTF,eot,EOT}',),
        Path('build/assets/webfonts'),
    ),
    Category.IMAGE: PathRule(
        Category.IMAGE,
        ('src/assets/images/**/*.{jpg,jpeg,png,gif}',),
        Path('build/assets/images'),
    ),
    Category.SVG: PathRule(
        Category.SVG,
        ('src/assets/svg/**/*.svg',),
        Path('build/assets/svg'),
    ),
    Category.HTML: PathRule(
        Category.HTML,
        ('src/*.html',),
        Path('build'),
        watch_globs=('src/**/*.html',),
    ),
}


def default_rules(categories: Sequence[Category] = None) -> Tuple[PathRule, ...]:
    """Return the built-in rules in category order."""
    if categories is None:
        categories = list(Category)
    return tuple(DEFAULT_RULES[category] for category in categories)
