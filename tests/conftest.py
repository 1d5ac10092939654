from __future__ import annotations

from typing import Callable

import pytest

from m3uproxy.models import FilterConfig, ModelConfig, TransformationConfig
from m3uproxy.services import CompiledModel, compile_model


def _make_model(
    *,
    name: str = "",
    filters: list[tuple[str, str]] | None = None,
    transformations: list[tuple[str, str, str]] | None = None,
) -> CompiledModel:
    return compile_model(
        ModelConfig(
            name=name,
            filters=tuple(FilterConfig(field=f, regex=r) for f, r in filters or []),
            transformations=tuple(
                TransformationConfig(field=f, regex=r, substitution=s)
                for f, r, s in transformations or []
            ),
        )
    )


@pytest.fixture
def make_model() -> Callable[..., CompiledModel]:
    return _make_model
