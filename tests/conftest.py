"""Shared fixtures: images generated on the fly with Pillow."""

import pytest
from PIL import Image


@pytest.fixture
def make_image(tmp_path):
    """Return a factory writing a solid-colour image and returning its path as str."""

    def _make_image(file_name, size, pillow_format, mode="RGB", color=(90, 140, 200)):
        image_path = tmp_path / file_name
        image_path.parent.mkdir(parents=True, exist_ok=True)
        Image.new(mode, size, color).save(image_path, format=pillow_format)
        return str(image_path)

    return _make_image
