from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.go_package_builder import GoPackageBuilder


@pytest.fixture
def go_builder(tmp_path: Path) -> GoPackageBuilder:
    """Provide a Go module builder rooted at the pytest tmp_path."""
    return GoPackageBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _restore_optgen_logger() -> Iterator[None]:
    """Undo handlers installed by ``configure_logging`` so caplog keeps working."""
    logger = logging.getLogger("optgen")
    handlers = list(logger.handlers)
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
