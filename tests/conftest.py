import pytest

from input_model import InputModel
from sample_data import build_sample_model


@pytest.fixture
def sample_model() -> InputModel:
    return build_sample_model()
