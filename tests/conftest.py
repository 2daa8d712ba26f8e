"""Shared fixtures for ragctx tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ragctx.config import RagctxConfig, save_config
from ragctx.project import CONFIG_FILE, RAG_DIR

if TYPE_CHECKING:
    from pathlib import Path


SAMPLE_ANALYSIS = """# Repository Analysis: payments-service

**Repository Path**: `/srv/repos/payments-service`

## Executive Summary

The payments service settles card transactions and exposes a REST API.

## API Endpoints

| Method | Path | Description |
|--------|------|-------------|
| POST | /charges | Create a charge |
| GET | /charges/{id} | Fetch a charge |

## Dependencies

- stripe-python for card processing
- sqlalchemy for persistence

## Core Functions

```python
def settle(charge_id):
    return ledger.post(charge_id)
```
"""


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A temporary directory simulating a project root."""
    return tmp_path


@pytest.fixture
def initialized_project(tmp_path: Path) -> Path:
    """A temporary project with .ragctx/ initialized for offline embeddings."""
    rag = tmp_path / RAG_DIR
    rag.mkdir()

    config = RagctxConfig()
    config.project.name = "test-project"
    config.embedding.provider = "fallback"
    save_config(config, rag / CONFIG_FILE)

    return tmp_path


@pytest.fixture
def sample_analysis() -> str:
    """A small repository analysis report in markdown."""
    return SAMPLE_ANALYSIS
