from __future__ import annotations

import numpy as np
import pytest
from PySide6.QtCore import QCoreApplication

from regionkit.core.image import SourceImage
from regionkit.settings import EngineSettings, reset_settings_cache


@pytest.fixture(scope="session", autouse=True)
def qt_core_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for name in ("BRUSH_WIDTH", "CLOSE_THRESHOLD_PX", "MIN_BOX_SIZE", "EDGE_BLEND", "SELECTION_MODE"):
        monkeypatch.delenv(f"REGIONKIT_{name}", raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings(_env_file=None)


def make_image(width: int, height: int, channels: int = 3, value: int = 0) -> SourceImage:
    shape = (height, width) if channels == 1 else (height, width, channels)
    return SourceImage(np.full(shape, value, dtype=np.uint8))


def gradient_image(width: int, height: int) -> SourceImage:
    xs = np.linspace(0, 255, width, dtype=np.float32)
    ys = np.linspace(0, 255, height, dtype=np.float32)
    blue = np.tile(xs, (height, 1))
    green = np.tile(ys[:, None], (1, width))
    red = np.full((height, width), 128, dtype=np.float32)
    return SourceImage(np.dstack([blue, green, red]).astype(np.uint8))


@pytest.fixture
def image_512() -> SourceImage:
    return make_image(512, 512)


@pytest.fixture
def small_image() -> SourceImage:
    return gradient_image(120, 100)


class SignalRecorder:
    """Collects the arguments of every emission of a Qt signal."""

    def __init__(self, signal) -> None:
        self.calls = []
        signal.connect(self._record)

    def _record(self, *args) -> None:
        self.calls.append(args[0] if len(args) == 1 else args)

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture
def recorder():
    return SignalRecorder
