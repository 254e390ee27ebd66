"""Tests for the batch orchestrator."""

import logging
from pathlib import Path

import pytest
from PIL import Image

from cutout.batch import plan_work, run_batch
from cutout.codec import PillowCodec
from cutout.errors import DecodeError
from cutout.models import CaptureSpec, ErrorKind, NormalizedRect, Origin
from cutout.parsing import parse_capture_specs

from .conftest import gradient_image


class RecordingCodec(PillowCodec):
    """PillowCodec that records calls and can fail to decode chosen files."""

    def __init__(self, undecodable: tuple[str, ...] = ()):
        super().__init__()
        self.undecodable = undecodable
        self.decoded: list[Path] = []
        self.encoded: list[str] = []
        self.written: list[Path] = []

    def decode(self, path: Path) -> Image.Image:
        self.decoded.append(path)
        if path.name in self.undecodable:
            raise DecodeError(f"Unable to open image '{path}'", path=path)
        return super().decode(path)

    def encode(self, image: Image.Image, format_hint: str) -> bytes:
        self.encoded.append(format_hint)
        return super().encode(image, format_hint)

    def write(self, data: bytes, path: Path) -> None:
        self.written.append(path)
        super().write(data, path)


@pytest.fixture
def two_specs() -> list[CaptureSpec]:
    return parse_capture_specs(["s1:0x0:4x4", "s2:2x3:5x5"])


@pytest.mark.unit
def test_plan_work_order(two_specs):
    """Test that work items are ordered by input, then by spec."""
    items = plan_work([Path("a.png"), Path("b.png")], two_specs)

    assert [(item.input_path.name, item.spec.name) for item in items] == [
        ("a.png", "s1"),
        ("a.png", "s2"),
        ("b.png", "s1"),
        ("b.png", "s2"),
    ]
    assert [item.file_index for item in items] == [0, 0, 1, 1]


@pytest.mark.integration
class TestRunBatch:
    """Tests for run_batch."""

    def test_writes_outputs(self, make_image, two_specs):
        path = make_image("page.png", size=(10, 10))

        report = run_batch([path], two_specs)

        assert report.success
        assert [r.output_path for r in report.results] == [
            path.parent / "page_s1.png",
            path.parent / "page_s2.png",
        ]
        with Image.open(path.parent / "page_s2.png") as out, Image.open(path) as src:
            assert out.size == (5, 5)
            assert out.format == "PNG"
            assert out.getpixel((0, 0)) == src.getpixel((2, 3))

    def test_result_order(self, make_image, two_specs):
        """Test (a,s1), (a,s2), (b,s1), (b,s2) ordering."""
        a = make_image("a.png")
        b = make_image("b.png")

        report = run_batch([a, b], two_specs)

        assert [(r.input_path.name, r.capture_name) for r in report.results] == [
            ("a.png", "s1"),
            ("a.png", "s2"),
            ("b.png", "s1"),
            ("b.png", "s2"),
        ]

    @pytest.mark.parametrize("jobs", [2, 4])
    def test_parallel_keeps_order(self, make_image, two_specs, jobs):
        paths = [make_image(f"img{i}.png", size=(8 + i, 8 + i)) for i in range(6)]

        report = run_batch(paths, two_specs, jobs=jobs)

        assert report.success
        assert [(r.input_path, r.capture_name) for r in report.results] == [
            (path, name) for path in paths for name in ("s1", "s2")
        ]

    def test_invalid_jobs(self, make_image, two_specs):
        with pytest.raises(ValueError):
            run_batch([make_image()], two_specs, jobs=0)

    def test_decode_failure_is_isolated(self, make_image, bad_image, two_specs):
        """Test one decode failure for the bad file, then two successes."""
        good = make_image("good.png")

        report = run_batch([bad_image, good], two_specs)

        assert not report.success
        assert len(report.results) == 3
        failure = report.results[0]
        assert failure.input_path == bad_image
        assert failure.capture_name is None
        assert failure.error_kind is ErrorKind.DECODE
        assert [r.ok for r in report.results[1:]] == [True, True]
        assert (good.parent / "good_s1.png").exists()
        assert (good.parent / "good_s2.png").exists()

    def test_missing_file_is_decode_failure(self, tmp_path, make_image, two_specs):
        report = run_batch([tmp_path / "nope.png", make_image()], two_specs)

        assert report.results[0].error_kind is ErrorKind.DECODE
        assert len(report.failures) == 1

    def test_out_of_bounds_is_isolated(self, make_image):
        """Test that an out-of-bounds capture does not stop later captures."""
        path = make_image("page.png", size=(10, 10))
        specs = parse_capture_specs(["wide:5x5:6x1", "ok:0x0:10x10"])

        report = run_batch([path], specs)

        assert not report.success
        wide, ok = report.results
        assert wide.error_kind is ErrorKind.OUT_OF_BOUNDS
        assert wide.capture_name == "wide"
        assert wide.image_size == (10, 10)
        assert "wide" in wide.message
        assert ok.ok
        assert not (path.parent / "page_wide.png").exists()
        assert (path.parent / "page_ok.png").exists()

    def test_out_of_bounds_depends_on_image(self, make_image):
        """Test that the same spec can fit one image and not another."""
        small = make_image("small.png", size=(5, 5))
        large = make_image("large.png", size=(20, 20))
        specs = parse_capture_specs(["box:2x2:8x8"])

        report = run_batch([small, large], specs)

        assert [r.ok for r in report.results] == [False, True]

    def test_bottom_left_origin(self, make_image):
        path = make_image("chart.png", size=(10, 12))
        specs = parse_capture_specs(["footer:1x0:3x2"])

        report = run_batch([path], specs, Origin.BOTTOM_LEFT)

        result = report.results[0]
        assert result.rect == NormalizedRect(left=1, top=10, width=3, height=2)
        with Image.open(result.output_path) as out, Image.open(path) as src:
            assert out.getpixel((0, 1)) == src.getpixel((1, 11))

    def test_bottom_left_underflow(self, make_image):
        path = make_image("chart.png", size=(10, 10))
        specs = parse_capture_specs(["tall:0x5:2x6"])

        report = run_batch([path], specs, Origin.BOTTOM_LEFT)

        assert report.results[0].error_kind is ErrorKind.OUT_OF_BOUNDS

    def test_output_format_follows_input_extension(self, make_image):
        path = make_image("photo.jpg", size=(16, 16))

        report = run_batch([path], parse_capture_specs(["crop:0x0:8x8"]))

        output = report.results[0].output_path
        assert output.name == "photo_crop.jpg"
        with Image.open(output) as out:
            assert out.format == "JPEG"

    def test_encode_failure_is_isolated(self, tmp_path, make_image):
        """Test that an RGBA image named .jpg fails to encode but the batch continues."""
        rgba = tmp_path / "alpha.jpg"
        gradient_image(6, 6, mode="RGBA").save(rgba, format="PNG")
        rgb = make_image("plain.png", size=(6, 6))

        report = run_batch([rgba, rgb], parse_capture_specs(["c:0x0:2x2"]))

        assert report.results[0].error_kind is ErrorKind.ENCODE
        assert report.results[1].ok
        assert not (tmp_path / "alpha_c.jpg").exists()

    def test_output_dir(self, tmp_path, make_image, two_specs):
        path = make_image("page.png")
        out_dir = tmp_path / "out" / "nested"

        report = run_batch([path], two_specs, output_dir=out_dir)

        assert report.success
        assert (out_dir / "page_s1.png").exists()
        assert not (path.parent / "page_s1.png").exists()

    def test_overwrites_existing_output(self, make_image, caplog):
        path = make_image("page.png", size=(10, 10))
        existing = path.parent / "page_c.png"
        existing.write_bytes(b"stale")

        with caplog.at_level(logging.WARNING, logger="cutout.batch"):
            report = run_batch([path], parse_capture_specs(["c:0x0:3x3"]))

        assert report.success
        with Image.open(existing) as out:
            assert out.size == (3, 3)
        assert "Overwriting" in caplog.text

    def test_dry_run_never_encodes(self, make_image, bad_image):
        """Test that a dry run validates without encoding or writing, for valid and invalid specs."""
        path = make_image("page.png", size=(10, 10))
        specs = parse_capture_specs(["ok:0x0:5x5", "wide:5x5:6x1"])
        codec = RecordingCodec()

        report = run_batch([path, bad_image], specs, dry_run=True, codec=codec)

        assert codec.encoded == []
        assert codec.written == []
        assert codec.decoded == [path, bad_image]
        assert [r.error_kind for r in report.results] == [None, ErrorKind.OUT_OF_BOUNDS, ErrorKind.DECODE]
        assert report.results[0].output_path == path.parent / "page_ok.png"
        assert list(path.parent.glob("page_*")) == []

    def test_decodes_each_file_once(self, make_image, two_specs):
        codec = RecordingCodec()
        a = make_image("a.png")
        b = make_image("b.png")

        run_batch([a, b], two_specs, codec=codec)

        assert codec.decoded == [a, b]
        assert codec.encoded == [".png"] * 4

    def test_injected_decode_failure(self, make_image, two_specs):
        """Test the first-file-fails scenario with an injected codec."""
        a = make_image("a.png")
        b = make_image("b.png")
        codec = RecordingCodec(undecodable=("a.png",))

        report = run_batch([a, b], two_specs, codec=codec)

        assert not report.success
        assert [(r.input_path.name, r.capture_name, r.ok) for r in report.results] == [
            ("a.png", None, False),
            ("b.png", "s1", True),
            ("b.png", "s2", True),
        ]

    def test_repeated_input_is_processed_twice(self, make_image):
        path = make_image("page.png")
        codec = RecordingCodec()

        report = run_batch([path, path], parse_capture_specs(["c:0x0:2x2"]), codec=codec)

        assert len(report.results) == 2
        assert codec.decoded == [path, path]

    def test_verbose_timings(self, make_image, two_specs):
        report = run_batch([make_image()], two_specs, verbose=True)

        for result in report.results:
            assert result.timings is not None
            assert result.timings.decode_ms >= 0
            assert result.timings.crop_encode_ms is not None
            assert result.timings.crop_encode_ms >= 0
        assert report.results[0].timings.decode_ms == report.results[1].timings.decode_ms

    def test_no_timings_without_verbose(self, make_image, two_specs):
        report = run_batch([make_image()], two_specs)

        assert all(result.timings is None for result in report.results)

    def test_progress_callback(self, make_image, two_specs):
        calls = []
        paths = [make_image("a.png"), make_image("b.png"), make_image("c.png")]

        run_batch(paths, two_specs, progress_callback=lambda current, total: calls.append((current, total)))

        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_origin_alias_string(self, make_image):
        path = make_image("chart.png", size=(10, 12))

        report = run_batch([path], parse_capture_specs(["footer:1x0:3x2"]), "bottom-left", dry_run=True)

        assert report.results[0].rect.top == 10

    def test_corrupt_chunk_does_not_abort_batch(self, corrupt_png, make_image, two_specs):
        """Test that a PNG failing mid-load is one decode failure and later files still run."""
        good = make_image("good.png")

        report = run_batch([corrupt_png, good], two_specs)

        assert [(r.input_path.name, r.capture_name, r.ok) for r in report.results] == [
            ("corrupt.png", None, False),
            ("good.png", "s1", True),
            ("good.png", "s2", True),
        ]
        assert report.results[0].error_kind == ErrorKind.DECODE
        assert "Unable to decode image" in report.results[0].message
        assert (good.parent / "good_s1.png").exists()

    def test_separator_in_name_is_an_encode_failure(self, make_image):
        """Test that a directly built spec cannot write outside the output directory."""
        path = make_image("a.png")
        spec = CaptureSpec(name="../escape", x=0, y=0, width=1, height=1)

        report = run_batch([path], [spec])

        assert report.results[0].error_kind == ErrorKind.ENCODE
        assert not (path.parent.parent / "escape.png").exists()
        assert list(path.parent.glob("a_*")) == []
