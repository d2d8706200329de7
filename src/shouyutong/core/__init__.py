"""Core functionality for sign lookup.

This module provides the core components of the Shouyutong service:

- **EntryStore**: durable library of curated sign entries (the override store)
- **SignOrchestrator**: store-first lookup with deferred image generation
- **OpenAISignGenerator**: text and image provider on the OpenAI API
- **CuratorGate**: curator login and per-session authorizers
- **ShouyutongConfig** / **config**: Pydantic Settings configuration

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with SHOUYUTONG_ in .env files

2. **Storage Layer** (storage.py, store.py):
   - Key-value substrates (file-backed or in-memory)
   - The library document, its validation, import and export

3. **Generation Layer** (generation.py, images.py):
   - The SignGenerator protocol and its OpenAI implementation
   - Data URL encoding and Pillow checks for uploaded images

4. **Orchestration Layer** (orchestrator.py, auth.py):
   - Provenance decisions (store vs. generated) and commits
   - Authorization predicates guarding every store mutation

Usage Example
-------------
    import asyncio

    from shouyutong.core import EntryStore, FileStorage, OpenAISignGenerator
    from shouyutong.core import SignOrchestrator, config

    store = EntryStore(FileStorage(config.data_dir), key=config.library_key)
    orchestrator = SignOrchestrator(store, OpenAISignGenerator(config))

    resolution = asyncio.run(orchestrator.resolve("你好"))
    print(resolution.provenance, resolution.entry.movement)
"""

from shouyutong.core.auth import Authorizer, CuratorGate, allow_all, deny_all
from shouyutong.core.config import ShouyutongConfig, config
from shouyutong.core.errors import (
    AuthorizationError,
    GenerationError,
    ImportFormatError,
    PersistenceError,
    ShouyutongError,
    ValidationError,
)
from shouyutong.core.generation import OpenAISignGenerator, SignGenerator
from shouyutong.core.models import (
    EditableField,
    Library,
    PersistedSignEntry,
    Provenance,
    Resolution,
    SignEntry,
)
from shouyutong.core.orchestrator import SignOrchestrator
from shouyutong.core.storage import FileStorage, KeyValueStorage, MemoryStorage
from shouyutong.core.store import EntryStore

__all__ = [
    "AuthorizationError",
    "Authorizer",
    "CuratorGate",
    "EditableField",
    "EntryStore",
    "FileStorage",
    "GenerationError",
    "ImportFormatError",
    "KeyValueStorage",
    "Library",
    "MemoryStorage",
    "OpenAISignGenerator",
    "PersistedSignEntry",
    "PersistenceError",
    "Provenance",
    "Resolution",
    "ShouyutongConfig",
    "ShouyutongError",
    "SignEntry",
    "SignGenerator",
    "SignOrchestrator",
    "ValidationError",
    "allow_all",
    "config",
    "deny_all",
]
