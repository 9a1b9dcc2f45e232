import pytest

from builders import MODEL_PATH, quad_model_files, skinned_model_files, write_files
from pix_converter.model.model import Model
from pix_converter.utils.filesystem import SysFileSystem


@pytest.fixture
def base_dir(tmp_path):
    root = tmp_path / "base"
    root.mkdir()
    return root


@pytest.fixture
def export_dir(tmp_path):
    return str(tmp_path / "export")


@pytest.fixture
def quad_model(base_dir):
    write_files(base_dir, quad_model_files())
    model = Model(SysFileSystem(base_dir))
    assert model.load(MODEL_PATH)
    return model


@pytest.fixture
def skinned_model(base_dir):
    write_files(base_dir, skinned_model_files())
    model = Model(SysFileSystem(base_dir))
    assert model.load(MODEL_PATH)
    return model
