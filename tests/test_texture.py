import pytest
from PIL import Image

from cascadeview.texture import ImageData, TextureLoadError, TextureManager, load_image_data

RED = (255, 0, 0)
BLUE = (0, 0, 255)


def _write_image(path, mode, size, fill, top_row=None):
    img = Image.new(mode, size, fill)
    if top_row is not None:
        for x in range(size[0]):
            img.putpixel((x, 0), top_row)
    img.save(path)
    return path


def test_rgb_image_is_flipped_vertically(tmp_path):
    path = _write_image(tmp_path / "a.png", "RGB", (2, 3), BLUE, top_row=RED)
    image = load_image_data(path)
    assert (image.width, image.height, image.components) == (2, 3, 3)
    assert len(image.pixels) == 2 * 3 * 3
    assert image.pixels[:3] == bytes(BLUE)
    assert image.pixels[-3:] == bytes(RED)


def test_rgba_image_keeps_alpha(tmp_path):
    path = _write_image(tmp_path / "b.png", "RGBA", (4, 4), (10, 20, 30, 40))
    image = load_image_data(path)
    assert image.components == 4
    assert image.pixels[:4] == bytes((10, 20, 30, 40))
    assert image.rgba() == image.pixels


def test_gray_image_expands_to_rgba(tmp_path):
    path = _write_image(tmp_path / "c.png", "L", (3, 2), 77)
    image = load_image_data(path)
    assert image.components == 1
    rgba = image.rgba()
    assert len(rgba) == 3 * 2 * 4
    assert rgba[:4] == bytes((77, 77, 77, 255))


def test_rgb_expands_with_opaque_alpha():
    image = ImageData(1, 1, 3, bytes((1, 2, 3)))
    assert image.rgba() == bytes((1, 2, 3, 255))


def test_paletted_image_becomes_rgb(tmp_path):
    img = Image.new("RGB", (2, 2), RED).convert("P")
    img.save(tmp_path / "d.png")
    image = load_image_data(tmp_path / "d.png")
    assert image.components == 3
    assert image.pixels[:3] == bytes(RED)


def test_missing_file_raises(tmp_path):
    with pytest.raises(TextureLoadError):
        load_image_data(tmp_path / "missing.png")


def test_non_image_raises(tmp_path):
    path = tmp_path / "bad.png"
    path.write_bytes(b"not an image")
    with pytest.raises(TextureLoadError) as info:
        load_image_data(path)
    assert isinstance(info.value, OSError)


def test_manager_loads_each_path_once():
    calls = []

    def loader(path):
        calls.append(path)
        return len(calls) + 10

    manager = TextureManager(loader=loader, deleter=lambda _id: None)
    first = manager.get_or_load("tex/a.png")
    second = manager.get_or_load("tex/a.png")
    other = manager.get_or_load("tex/b.png")
    assert first == second
    assert other != first
    assert calls == ["tex/a.png", "tex/b.png"]
    assert len(manager) == 2


def test_manager_does_not_cache_failures():
    attempts = []

    def loader(path):
        attempts.append(path)
        if len(attempts) == 1:
            raise TextureLoadError(path)
        return 5

    manager = TextureManager(loader=loader, deleter=lambda _id: None)
    with pytest.raises(TextureLoadError):
        manager.get_or_load("x.png")
    assert len(manager) == 0
    assert manager.get_or_load("x.png") == 5
    assert len(attempts) == 2


def test_cleanup_deletes_all_and_clears():
    deleted = []
    ids = iter([3, 4])
    manager = TextureManager(loader=lambda _p: next(ids), deleter=deleted.append)
    manager.get_or_load("a")
    manager.get_or_load("b")
    manager.cleanup()
    assert sorted(deleted) == [3, 4]
    assert len(manager) == 0