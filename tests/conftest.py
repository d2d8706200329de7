"""Shared pytest fixtures for Shouyutong tests."""

import io
import shutil
import struct
import tempfile
import zlib
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from shouyutong.api.main import create_app
from shouyutong.core.auth import CuratorGate
from shouyutong.core.config import ShouyutongConfig
from shouyutong.core.errors import GenerationError
from shouyutong.core.images import to_data_url
from shouyutong.core.models import PersistedSignEntry, SignEntry
from shouyutong.core.orchestrator import SignOrchestrator
from shouyutong.core.storage import MemoryStorage
from shouyutong.core.store import EntryStore


class FakeSignGenerator:
    """In-process stand-in for the generation provider.

    Records every call.  Set ``text_error`` / ``image_error`` to make the
    next calls fail.
    """

    def __init__(self, image: str):
        self.image = image
        self.text_calls: list[str] = []
        self.image_calls: list[tuple[str, str]] = []
        self.text_error: Exception | None = None
        self.image_error: Exception | None = None

    async def text_for(self, word: str) -> SignEntry:
        self.text_calls.append(word)
        if self.text_error is not None:
            raise self.text_error
        return SignEntry(
            word=word,
            pinyin=f"pinyin of {word}",
            definition=f"definition of {word}",
            hand_shape="open palm",
            movement="wave the hand twice",
            location="in front of the chest",
            tips="keep the wrist relaxed",
        )

    async def image_for(self, word: str, movement: str) -> str:
        self.image_calls.append((word, movement))
        if self.image_error is not None:
            raise self.image_error
        return self.image


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> ShouyutongConfig:
    """Create a test configuration with a temporary data directory."""
    return ShouyutongConfig(
        _env_file=None,
        data_dir=str(temp_dir / "data"),
        curator_username="curator",
        curator_password="secret",
        openai_api_key="test-key",
    )


@pytest.fixture
def png_bytes() -> bytes:
    """A small real PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (32, 32), color=(0, 128, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def oversized_png_bytes(png_bytes: bytes) -> bytes:
    """PNG whose header declares 30000x30000 pixels, past Pillow's bomb limit."""
    data = bytearray(png_bytes)
    data[16:24] = struct.pack(">II", 30_000, 30_000)
    data[29:33] = struct.pack(">I", zlib.crc32(bytes(data[12:29])))
    return bytes(data)


@pytest.fixture
def png_data_url(png_bytes: bytes) -> str:
    return to_data_url(png_bytes, "image/png")


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage) -> EntryStore:
    """Store that permits every mutation."""
    return EntryStore(storage)


@pytest.fixture
def fake_generator(png_data_url: str) -> FakeSignGenerator:
    return FakeSignGenerator(image=png_data_url)


@pytest.fixture
def failing_generator(png_data_url: str) -> FakeSignGenerator:
    generator = FakeSignGenerator(image=png_data_url)
    generator.text_error = GenerationError("provider unavailable")
    generator.image_error = GenerationError("provider unavailable")
    return generator


@pytest.fixture
def orchestrator(store: EntryStore, fake_generator: FakeSignGenerator) -> SignOrchestrator:
    return SignOrchestrator(store, fake_generator)


@pytest.fixture
def sample_entry() -> SignEntry:
    return SignEntry(
        word="谢谢",
        pinyin="xiè xie",
        definition="to thank",
        hand_shape="thumb up",
        movement="bend the thumb twice",
        location="in front of the body",
        tips="nod while signing",
    )


@pytest.fixture
def stored_entry(store: EntryStore, sample_entry: SignEntry) -> PersistedSignEntry:
    """Save ``sample_entry`` into the store and return the stored copy."""
    return store.save_word(sample_entry)


@pytest.fixture
def gate(test_config: ShouyutongConfig) -> CuratorGate:
    return CuratorGate(test_config.curator_username, test_config.curator_password)


@pytest.fixture
def test_client(
    test_config: ShouyutongConfig,
    storage: MemoryStorage,
    fake_generator: FakeSignGenerator,
    gate: CuratorGate,
) -> Generator[TestClient, None, None]:
    """API client backed by in-memory storage and the fake generator."""
    app = create_app(test_config, storage=storage, generator=fake_generator, gate=gate)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def curator_headers(gate: CuratorGate, test_config: ShouyutongConfig) -> dict[str, str]:
    """Headers carrying a valid curator session token."""
    token = gate.login(test_config.curator_username, test_config.curator_password)
    return {"X-Curator-Token": token}
