"""Every error code and error factory is used by the package."""

from __future__ import annotations

from pathlib import Path

import pytest

import mediavault
from mediavault.shared import errors
from mediavault.shared.errors import ErrorCode

PACKAGE_DIR = Path(mediavault.__file__).parent


def _package_sources(*, skip_errors_module: bool = False) -> str:
    errors_file = Path(errors.__file__).resolve()
    return "\n".join(
        path.read_text(encoding="utf-8")
        for path in sorted(PACKAGE_DIR.rglob("*.py"))
        if not (skip_errors_module and path.resolve() == errors_file)
    )


@pytest.mark.parametrize("code", list(ErrorCode), ids=lambda code: code.name)
def test_error_code_is_raised_somewhere(code: ErrorCode) -> None:
    assert f"ErrorCode.{code.name}" in _package_sources()


def test_error_factories_are_called_outside_their_module() -> None:
    # Given
    sources = _package_sources(skip_errors_module=True)
    factories = [name for name in vars(errors) if name.startswith("create_")]

    # When
    unused = [name for name in factories if f"{name}(" not in sources]

    # Then
    assert factories
    assert unused == []
