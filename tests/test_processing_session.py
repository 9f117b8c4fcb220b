import logging

import numpy as np
import pytest

from pixeltone.exceptions import DecodeFailure, NoImageLoaded, UnknownOperation
from pixeltone.models.operation import Operation
from pixeltone.services.console_log import ConsoleLogHandler
from pixeltone.services.processing_session import ProcessingSession


@pytest.fixture
def session():
    s = ProcessingSession()
    yield s
    s.close()


def test_load_logs_file_name(session, png_file, quadrant_pixels):
    img = session.load(png_file)
    assert np.array_equal(img.pixels, quadrant_pixels)
    assert session.source_image is img
    assert session.console_lines() == ["Image loaded: quadrants.png"]


def test_apply_without_image(session):
    with pytest.raises(NoImageLoaded):
        session.apply(Operation.SEPIA)
    assert session.console_lines() == ["No image selected"]
    assert session.current_image is None


def test_apply_updates_current_and_console(session, png_file):
    session.load(png_file)
    result = session.apply("grayscale")
    assert session.current_image is result
    assert session.last_operation is Operation.GRAYSCALE
    assert session.console_lines()[-1] == "Image processed: Grayscale"


def test_operations_are_not_chained(session, png_file, quadrant_pixels):
    session.load(png_file)
    session.apply(Operation.INVERT)
    second = session.apply(Operation.INVERT)
    assert np.array_equal(second.pixels, 255 - quadrant_pixels)
    assert np.array_equal(session.source_image.pixels, quadrant_pixels)


def test_failed_load_keeps_previous_image(session, png_file, corrupt_file):
    first = session.load(png_file)
    with pytest.raises(DecodeFailure):
        session.load(corrupt_file)
    assert session.source_image is first
    assert session.console_lines() == [
        "Image loaded: quadrants.png",
        "Failed to load image file: broken.png",
    ]


def test_unknown_operation_leaves_state(session, png_file):
    session.load(png_file)
    with pytest.raises(UnknownOperation):
        session.apply("posterize")
    assert session.last_operation is None
    assert session.current_image is session.source_image


def test_failed_transform_is_logged(session, png_file, monkeypatch):
    session.load(png_file)

    def boom(image, op):
        raise RuntimeError("kaput")

    monkeypatch.setattr(session.transform_service, "apply", boom)
    with pytest.raises(RuntimeError):
        session.apply(Operation.SEPIA)
    assert session.console_lines()[-1] == "Image processing failed: Sepia"
    assert session.last_operation is None


def test_sessions_have_separate_consoles(png_file):
    a, b = ProcessingSession(), ProcessingSession()
    try:
        a.load(png_file)
        assert b.console_lines() == []
    finally:
        a.close()
        b.close()


def test_console_messages_reach_process_log(session, png_file, caplog):
    with caplog.at_level(logging.INFO):
        session.load(png_file)
    assert "Image loaded: quadrants.png" in caplog.text


def test_clear(session, png_file):
    session.load(png_file)
    session.clear()
    assert session.source_image is None
    assert session.console_lines() == []


def test_console_handler_trims_to_max_lines():
    logger = logging.getLogger("pixeltone.tests.console")
    logger.setLevel(logging.INFO)
    handler = ConsoleLogHandler(max_lines=2)
    handler.attach_to_logger(logger)
    try:
        for i in range(5):
            logger.info(f"line {i}")
        logger.debug("hidden")
        assert handler.lines() == ["line 3", "line 4"]
    finally:
        handler.detach_from_logger(logger)


def test_closed_sessions_register_no_loggers(png_file):
    before = len(logging.Logger.manager.loggerDict)
    module_logger = logging.getLogger("pixeltone.services.processing_session")
    handlers_before = len(module_logger.handlers)

    for _ in range(50):
        s = ProcessingSession()
        s.load(png_file)
        s.close()

    assert len(logging.Logger.manager.loggerDict) == before
    assert len(module_logger.handlers) == handlers_before


def test_load_uses_display_name(session, png_file):
    session.load(png_file, display_name="my photo.png")
    assert session.console_lines() == ["Image loaded: my photo.png"]
