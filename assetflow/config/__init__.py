"""Project configuration.

Example assetflow.yaml:
    config:
      build_dir: build
      port: 3000

    paths:
      styles:
        src: "src/assets/scss/*.scss"
        dest: "build/assets/css"
      fonts: false          # no font task

    vendor:
      - url: "https://code.jquery.com/jquery-3.6.4.min.js"
        path: "src/assets/js/jquery.min.js"

Usage:
    from assetflow.config import load_project
    project = load_project('assetflow.yaml')
"""

from .parser import ProjectConfig, parse_project_file, parse_project_string
from .converter import (
    PROJECT_FILE,
    Project,
    Settings,
    default_project,
    load_project,
    project_from_config,
)

__all__ = [
    'ProjectConfig',
    'parse_project_file',
    'parse_project_string',
    'PROJECT_FILE',
    'Project',
    'Settings',
    'default_project',
    'load_project',
    'project_from_config',
]
