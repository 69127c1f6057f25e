import io
import json
import zlib
from concurrent.futures import ThreadPoolExecutor

import cv2 as cv
import numpy as np
import pytest

from captcha_fingerprint import (
    CaptchaSolver,
    DecodeError,
    EncodingError,
    FingerprintDictionary,
    SegmentationConfig,
    SolverConfig,
    extract_fingerprint,
    solve,
)
from captcha_fingerprint.recognition import shared_dictionary
from captcha_fingerprint.segmentation import GlyphSegmenter, merge_horizontally


def test_solves_known_captcha(six_glyph_mask, png_bytes, make_dictionary, to_bgr):
    dictionary = make_dictionary(six_glyph_mask, "AABTRE")
    solver = CaptchaSolver(dictionary=dictionary)
    assert solver.solve(png_bytes(to_bgr(six_glyph_mask))) == "AABTRE"


def test_solve_accepts_streams_and_files(tmp_path, six_glyph_mask, png_bytes, make_dictionary):
    data = png_bytes(six_glyph_mask)
    solver = CaptchaSolver(dictionary=make_dictionary(six_glyph_mask, "MYKYAN"))
    assert solver.solve(io.BytesIO(data)) == "MYKYAN"

    path = tmp_path / "MYKYAN.png"
    path.write_bytes(data)
    assert solver.solve_file(path) == "MYKYAN"


def test_grey_noise_is_ignored(six_glyph_mask, png_bytes, make_dictionary, to_bgr):
    noisy = to_bgr(six_glyph_mask)
    noisy[0, :] = (2, 2, 2)
    noisy[-1, ::3] = (90, 90, 90)
    solver = CaptchaSolver(dictionary=make_dictionary(six_glyph_mask, "AABTRE"))
    assert solver.solve(png_bytes(noisy)) == "AABTRE"


def test_unknown_glyphs_resolve_to_sentinels(six_glyph_mask, png_bytes, make_dictionary):
    dictionary = make_dictionary(six_glyph_mask, "AABTRE")
    partial = FingerprintDictionary.from_mapping(
        {key: value for key, value in dictionary.as_mapping().items() if value != "A"}
    )
    assert CaptchaSolver(dictionary=partial).solve(png_bytes(six_glyph_mask)) == "--BTRE"


def test_three_glyph_image_yields_six_sentinels(make_mask, png_bytes):
    image = png_bytes(make_mask([20, 22, 24]))
    result = CaptchaSolver(dictionary=FingerprintDictionary.empty()).run(image)
    assert result.text == "------"
    assert not result.segmentation_valid
    assert len(result.fingerprints) == 6
    assert len(set(result.fingerprints)) == 1


def test_blank_image_yields_six_sentinels(png_bytes):
    blank = np.full((70, 200, 3), 255, dtype=np.uint8)
    assert solve(png_bytes(blank), dictionary=FingerprintDictionary.empty()) == "------"


def test_wrapped_glyph_resolves_into_first_slot(wrapped_mask, png_bytes):
    segmenter = GlyphSegmenter(SegmentationConfig())
    boxes = segmenter.find_boxes(wrapped_mask)
    crops = [wrapped_mask[:, box.x1:box.x2] for box in boxes]
    merged = merge_horizontally(crops[6], crops[0])

    entries = {extract_fingerprint(merged): "W"}
    for crop, char in zip(crops[1:6], "XYZUV"):
        entries[extract_fingerprint(crop)] = char
    solver = CaptchaSolver(dictionary=FingerprintDictionary.from_mapping(entries))

    result = solver.run(png_bytes(wrapped_mask))
    assert result.wrapped
    assert result.text == "WXYZUV"


def test_wrapped_glyph_can_be_placed_last(wrapped_mask, png_bytes):
    config = SolverConfig(segmentation=SegmentationConfig(wrap_merge_slot="last"))
    glyphs = CaptchaSolver(config, FingerprintDictionary.empty()).find_glyphs(png_bytes(wrapped_mask))
    assert len(glyphs) == 6
    assert glyphs[-1].shape[1] == 18


def test_jpeg_input_is_supported(six_glyph_mask):
    ok, buffer = cv.imencode(".jpg", six_glyph_mask, [cv.IMWRITE_JPEG_QUALITY, 100])
    assert ok
    text = CaptchaSolver(dictionary=FingerprintDictionary.empty()).solve(buffer.tobytes())
    assert len(text) == 6
    assert set(text) == {"-"}


@pytest.mark.parametrize("payload", [b"", b"definitely not an image", b"\x89PNG\r\n\x1a\n\x00\x00"])
def test_undecodable_input_raises_decode_error(payload):
    with pytest.raises(DecodeError):
        CaptchaSolver(dictionary=FingerprintDictionary.empty()).solve(payload)


def test_text_stream_is_rejected():
    with pytest.raises(TypeError):
        CaptchaSolver(dictionary=FingerprintDictionary.empty()).solve(io.StringIO("abc"))


def test_missing_dictionary_path_still_solves(tmp_path, six_glyph_mask, png_bytes):
    config = SolverConfig()
    config.resolver.dictionary_path = tmp_path / "missing.json"
    assert CaptchaSolver(config).solve(png_bytes(six_glyph_mask)) == "------"


def test_concurrent_solves_share_one_dictionary(six_glyph_mask, wrapped_mask, png_bytes, make_dictionary):
    solver = CaptchaSolver(dictionary=make_dictionary(six_glyph_mask, "AABTRE"))
    images = [png_bytes(six_glyph_mask), png_bytes(wrapped_mask)] * 8
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(solver.solve, images))
    assert results[0::2] == ["AABTRE"] * 8
    assert all(len(text) == 6 for text in results[1::2])


def test_module_solve_loads_the_dictionary_file_once(tmp_path, six_glyph_mask, png_bytes, make_dictionary):
    path = tmp_path / "training_data.json"
    path.write_text(json.dumps(dict(make_dictionary(six_glyph_mask, "AABTRE").as_mapping())), encoding="utf-8")
    config = SolverConfig()
    config.resolver.dictionary_path = path
    data = png_bytes(six_glyph_mask)

    assert solve(data, config=config) == "AABTRE"
    path.write_text("{}", encoding="utf-8")
    assert solve(data, config=config) == "AABTRE"
    assert shared_dictionary(path) is shared_dictionary(str(path))


def test_compressor_failure_propagates_from_run(monkeypatch, six_glyph_mask, png_bytes):
    def _broken(*args, **kwargs):
        raise zlib.error("stream state inconsistent")

    monkeypatch.setattr(zlib, "compressobj", _broken)
    with pytest.raises(EncodingError):
        CaptchaSolver(dictionary=FingerprintDictionary.empty()).run(png_bytes(six_glyph_mask))
