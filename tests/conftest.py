from typing import Any, Dict

import pytest

from figfetch.config import Credentials, FetchConfig


@pytest.fixture
def make_config(tmp_path):
    def _make(**overrides: Any) -> FetchConfig:
        values: Dict[str, Any] = dict(
            credentials=Credentials("u@x.com", "pw"),
            target_url="https://site/doc/42",
            output_dir=tmp_path / "downloads",
        )
        values.update(overrides)
        return FetchConfig(**values)

    return _make


@pytest.fixture
def config(make_config) -> FetchConfig:
    return make_config()
