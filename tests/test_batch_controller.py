import io

import pytest
from PIL import Image

from ppm2png.controllers.batch_controller import BatchController, destination_name
from ppm2png.models.pixmap_model import BatchConfig, ConversionStage
from ppm2png.services.convert_service import ConvertService

GOOD = "P3\n2 1\n255\n255 0 0\n0 255 0\n"
FILES = {
    "a.ppm": GOOD,
    "b.ppm": "P6\n2 1\n255\n",
    "c.ppm": GOOD,
    "d.ppm": "P3\n2 2\n255\n1 2 3\n",
    "e.txt": GOOD,
}


@pytest.mark.parametrize(
    "name,expected",
    [
        ("name.ppm", "name.png"),
        ("name.txt", "name.txt.png"),
        ("name", "name.png"),
        ("name.ppm.ppm", "name.ppm.png"),
        ("name.PPM", "name.PPM.png"),
        (".ppm", ".png"),
    ],
)
def test_destination_name(name, expected):
    assert destination_name(name) == expected


@pytest.fixture
def input_dir(tmp_path):
    src = tmp_path / "in"
    src.mkdir()
    for name, text in FILES.items():
        (src / name).write_text(text)
    (src / "nested").mkdir()
    return src


def _controller(input_dir, output_dir, parallel, workers=None):
    config = BatchConfig(input_dir=input_dir, output_dir=output_dir, parallel=parallel, workers=workers)
    return BatchController(config=config, _convert_service=ConvertService(stream=io.StringIO()))


def test_list_tasks_skips_directories_in_name_order(input_dir, tmp_path):
    tasks = _controller(input_dir, tmp_path / "out", parallel=False).list_tasks()
    assert [t.source.name for t in tasks] == ["a.ppm", "b.ppm", "c.ppm", "d.ppm", "e.txt"]
    assert [t.destination.name for t in tasks] == ["a.png", "b.png", "c.png", "d.png", "e.txt.png"]
    assert all(t.destination.parent == tmp_path / "out" for t in tasks)


@pytest.mark.parametrize("parallel,workers", [(False, None), (True, None), (True, 2)])
def test_run_result_set_is_mode_independent(input_dir, tmp_path, parallel, workers):
    out = tmp_path / "out"
    summary = _controller(input_dir, out, parallel, workers).run()

    assert [r.task.source.name for r in summary.results] == sorted(FILES)
    assert len(summary.converted) == 3
    assert {r.task.source.name: r.error.stage for r in summary.failed} == {
        "b.ppm": ConversionStage.HEADER,
        "d.ppm": ConversionStage.PIXELS,
    }
    assert sorted(p.name for p in out.iterdir()) == ["a.png", "c.png", "e.txt.png"]


def test_run_creates_nested_output_dir(input_dir, tmp_path):
    out = tmp_path / "deep" / "out"
    summary = _controller(input_dir, out, parallel=True).run()
    assert out.is_dir()
    assert len(summary.converted) == 3


def test_run_empty_directory(tmp_path):
    src = tmp_path / "in"
    src.mkdir()
    for parallel in (False, True):
        assert _controller(src, tmp_path / "out", parallel).run().results == []


def test_run_missing_input_dir_raises(tmp_path):
    with pytest.raises(OSError):
        _controller(tmp_path / "missing", tmp_path / "out", parallel=False).run()
    assert not (tmp_path / "out").exists()


@pytest.mark.parametrize("parallel", [False, True])
def test_oversized_header_does_not_stop_siblings(tmp_path, parallel):
    src = tmp_path / "in"
    src.mkdir()
    (src / "a_huge.ppm").write_text("P3\n99999999999999999999 99999999999999999999\n255\n1 2 3\n")
    (src / "b_ok.ppm").write_text(GOOD)
    out = tmp_path / "out"

    summary = _controller(src, out, parallel).run()

    assert [r.ok for r in summary.results] == [False, True]
    assert summary.results[0].error.stage is ConversionStage.HEADER
    assert [p.name for p in out.iterdir()] == ["b_ok.png"]


@pytest.mark.parametrize("parallel", [False, True])
def test_colliding_destinations_keep_first_in_listing_order(tmp_path, parallel):
    src = tmp_path / "in"
    src.mkdir()
    (src / "a").write_text(GOOD)
    (src / "a.ppm").write_text("P3\n1 1\n255\n0 0 0\n")
    out = tmp_path / "out"

    summary = _controller(src, out, parallel).run()

    first, second = summary.results
    assert first.ok and first.task.source.name == "a"
    assert second.error.stage is ConversionStage.CREATE
    assert second.error.file.name == "a.ppm"
    assert [p.name for p in out.iterdir()] == ["a.png"]
    with Image.open(out / "a.png") as img:
        assert img.size == (2, 1)
