"""Convert parsed project files into rules, settings and vendor assets."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..fetch import DEFAULT_VENDOR, VendorAsset
from ..reload import ServeOptions
from ..rules import Category, DEFAULT_RULES, PathRule
from .parser import ProjectConfig, parse_project_file

PROJECT_FILE = 'assetflow.yaml'


@dataclass
class Settings:
    """Session settings from the ``config`` section."""

    base_path: Path = field(default_factory=Path.cwd)
    build_dir: Path = Path('build')
    debounce: float = 0.0
    concurrent_chains: bool = False
    serve: ServeOptions = field(default_factory=ServeOptions)

    @property
    def build_path(self) -> Path:
        return self.base_path / self.build_dir


@dataclass
class Project:
    """Everything needed to set up a session."""

    settings: Settings
    rules: Tuple[PathRule, ...]
    vendor: List[VendorAsset] = field(default_factory=list)
    source: Optional[Path] = None


def project_from_config(
    project_config: ProjectConfig,
    base_path: Union[str, Path, None] = None,
) -> Project:
    """Build a Project from a parsed file.

    Args:
        project_config: Parsed project file
        base_path: Override base path (defaults to config.base_path,
                   resolved against the file's directory, or cwd)
    """
    config = project_config.config
    if base_path is None:
        anchor = project_config.source.parent if project_config.source else Path.cwd()
        base_path = anchor / config.get('base_path', '.')
    base_path = Path(base_path).resolve()

    defaults = ServeOptions()
    settings = Settings(
        base_path=base_path,
        build_dir=Path(config.get('build_dir', 'build')),
        debounce=float(config.get('debounce', 0.0)),
        concurrent_chains=config.get('concurrent_chains', False),
        serve=ServeOptions(
            host=config.get('host', defaults.host),
            port=config.get('port', defaults.port),
            liveport=config.get('liveport'),
            open_browser=config.get('open', defaults.open_browser),
            live_css=config.get('live_css', defaults.live_css),
        ),
    )

    rules = tuple(_rules_from_paths(project_config.paths))

    if project_config.vendor is None:
        vendor = list(DEFAULT_VENDOR)
    else:
        vendor = [VendorAsset(item['url'], Path(item['path'])) for item in project_config.vendor]

    return Project(settings, rules, vendor, source=project_config.source)


def _rules_from_paths(paths) -> List[PathRule]:
    """Merge ``paths`` overrides into the default table, in category order."""
    overrides = {Category.from_name(name): spec for name, spec in paths.items()}
    rules = []
    for category in Category:
        default = DEFAULT_RULES[category]
        if category not in overrides:
            rules.append(default)
            continue
        spec = overrides[category]
        if spec is None:
            continue
        src = spec.get('src', default.source_globs)
        if 'watch' in spec:
            watch = spec['watch']
        elif 'src' in spec:
            watch = None
        else:
            watch = default.watch_globs
        rules.append(PathRule(
            category,
            src,
            Path(spec.get('dest', default.dest_dir)),
            watch_globs=watch,
        ))
    return rules


def default_project(base_path: Union[str, Path, None] = None) -> Project:
    """Project with the built-in path table and vendor assets."""
    return project_from_config(ProjectConfig(), base_path)


def load_project(
    path: Union[str, Path, None] = None,
    base_path: Union[str, Path, None] = None,
) -> Project:
    """Load ``path``, or ``assetflow.yaml`` in the current directory.

    An explicitly named file must exist; without one, a missing default
    file means the built-in defaults.
    """
    if path is None:
        candidate = Path.cwd() / PROJECT_FILE
        if not candidate.exists():
            return default_project(base_path)
        path = candidate
    return project_from_config(parse_project_file(path), base_path)
