"""
HTML and text output: the shuffled index page and robots.txt.
"""

import logging
import posixpath
import random
from pathlib import Path
from typing import Any, Mapping, Sequence

from jinja2 import Environment, FileSystemLoader, PackageLoader, TemplateError

from gal.config import GalConfig
from gal.errors import FileSystemError, RenderError
from gal.fsutil import write_text_atomic

logger = logging.getLogger(__name__)

LAYOUT_TEMPLATE = "layout.html"
INDEX_TEMPLATE = "index.html"

ROBOTS_TXT = """\
User-agent: *
Disallow: /
"""


def size_variant(path: str, suffix: str) -> str:
    """photos/a.jpg + "@2x" -> photos/a@2x.jpg, matching the resizer's file names."""
    root, ext = posixpath.splitext(path)
    return f"{root}{suffix}{ext}"


def make_environment(config: GalConfig) -> Environment:
    # In production, use the views bundled with the package. In development,
    # read from the checkout so template changes show up on the next build.
    if config.is_production:
        loader = PackageLoader("gal", "views")
    else:
        loader = FileSystemLoader(str(Path(config.project_dir) / "views"))

    env = Environment(
        loader=loader,
        autoescape=True,
        auto_reload=not config.is_production,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["size_variant"] = size_variant
    return env


def render_file(env: Environment, layout: str, content: str, target: Path,
                data: Mapping[str, Any]) -> None:
    """Render ``content`` (which extends ``layout``) to ``target``."""
    try:
        template = env.get_template(content)
        html = template.render(layout=layout, **data)
    except TemplateError as e:
        raise RenderError(f"error rendering '{content}' to '{target}': {e}", path=target) from e

    try:
        write_text_atomic(target, html)
    except FileSystemError as e:
        raise RenderError(str(e), path=target) from e


def render_index(env: Environment, target_dir: Path, photo_paths: Sequence[str],
                 rng: random.Random | None = None) -> bool:
    # Randomize how images show up, fresh on every run
    paths = list(photo_paths)
    (rng or random.Random()).shuffle(paths)

    target = Path(target_dir) / "index.html"
    render_file(env, LAYOUT_TEMPLATE, INDEX_TEMPLATE, target, {"all_photo_paths": paths})
    logger.debug("Wrote %s (%d photos)", target, len(paths))
    return True


def render_robots_txt(target_dir: Path) -> bool:
    write_text_atomic(Path(target_dir) / "robots.txt", ROBOTS_TXT)
    return True
