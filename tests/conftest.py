"""Shared fixtures: in-memory images, PDFs and stub processors."""

import io

import fitz  # PyMuPDF
import pytest
from PIL import Image

from filecompress import SourceFile, Workspace
from filecompress.models import CompressedImageResult


def make_image_bytes(size=(64, 48), mode="RGB", fmt="JPEG", noise=False) -> bytes:
    if noise:
        image = Image.effect_noise(size, 120).convert(mode)
    else:
        color = {"RGB": (200, 80, 40), "RGBA": (200, 80, 40, 128), "L": 128}[mode]
        image = Image.new(mode, size, color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def make_pdf_bytes(pages=1, text="Hello, world") -> bytes:
    doc = fitz.open()
    for number in range(pages):
        page = doc.new_page()
        page.insert_text((72, 72), f"{text} {number + 1}")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def jpeg_source():
    return SourceFile(make_image_bytes(), "image/jpeg", "photo.jpg")


@pytest.fixture
def png_source():
    return SourceFile(make_image_bytes(mode="RGBA", fmt="PNG"), "image/png", "logo.png")


@pytest.fixture
def pdf_source():
    return SourceFile(make_pdf_bytes(), "application/pdf", "report.pdf")


@pytest.fixture
def broken_pdf_source():
    return SourceFile(b"this is definitely not a pdf", "application/pdf", "broken.pdf")


class StubCompressor:
    """Records calls and returns a fixed result, or raises."""

    def __init__(self, data=b"compressed", error=None):
        self.data = data
        self.error = error
        self.calls = []

    def compress(self, source, config):
        self.calls.append((source, config))
        if self.error:
            raise self.error
        return CompressedImageResult(data=self.data, mime_type="image/jpeg", original_size=source.size)


class StubOptimizer:
    def __init__(self, data=b"%PDF-optimized", error=None):
        self.data = data
        self.error = error
        self.calls = []

    def optimize(self, data):
        self.calls.append(data)
        if self.error:
            raise self.error
        return self.data


@pytest.fixture
def stub_compressor():
    return StubCompressor()


@pytest.fixture
def stub_optimizer():
    return StubOptimizer()


@pytest.fixture
def workspace(stub_compressor, stub_optimizer):
    return Workspace(compressor=stub_compressor, optimizer=stub_optimizer)


@pytest.fixture
def real_workspace():
    return Workspace()
