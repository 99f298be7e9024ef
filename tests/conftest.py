import threading
from pathlib import Path

import pytest
from PIL import Image

from gal.config import GalConfig
from gal.errors import ImageError

ENV_VARS = (
    "GAL_ENV", "GAL_CONCURRENCY", "GAL_VERBOSE", "GAL_TARGET_DIR", "GAL_SOURCE_DIRS",
    "GAL_PROJECT_DIR", "MAGICK_BIN", "MOZJPEG_BIN",
)


def make_test_image(path, width=640, height=480, color="blue"):
    """Create a small JPEG with Pillow."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (width, height), color).save(path, "JPEG")
    return path


def make_source_tree(base_dir):
    """Create the example source root used across the tests.

    Structure:
        base_dir/
            photos/
                2023/
                    a.jpg
                    b.JPG
                    notes.txt
                    trip/
                        c.jpg

    Returns the source root (base_dir/photos/2023).
    """
    root = Path(base_dir) / "photos" / "2023"
    make_test_image(root / "a.jpg")
    make_test_image(root / "b.JPG", 480, 640, "red")
    (root / "notes.txt").write_text("not a photo")
    make_test_image(root / "trip" / "c.jpg", 500, 500, "green")
    return root


def make_config(tmp_path, source_dirs=(), **overrides):
    """GalConfig for tests: production mode, fake binaries, output in tmp_path/public."""
    settings = dict(
        target_dir=Path(tmp_path) / "public",
        source_dirs=list(source_dirs),
        magick_bin="magick",
        mozjpeg_bin="cjpeg",
        concurrency=4,
    )
    settings.update(overrides)
    return GalConfig(**settings)


class FakeResizer:
    """Stands in for PhotoResizer: records calls and writes placeholder variants.

    Photos whose file name is listed in ``fail`` raise ImageError instead.
    """

    def __init__(self, fail=()):
        self.fail = set(fail)
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, input_path, target_dir):
        input_path = Path(input_path)
        with self._lock:
            self.calls.append((input_path, Path(target_dir)))
        if input_path.name in self.fail:
            raise ImageError(f"error resizing '{input_path}': boom", path=input_path)
        target_dir = Path(target_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
        for suffix in ("", "@2x"):
            (target_dir / f"{input_path.stem}{suffix}{input_path.suffix}").write_bytes(b"jpeg")
        return True


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's environment out of GalConfig."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def source_root(tmp_path):
    return make_source_tree(tmp_path / "src")


@pytest.fixture
def fake_resizer():
    return FakeResizer()
