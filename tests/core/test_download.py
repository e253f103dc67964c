import pytest

from streamshare_core.errors import PermanentError
from streamshare_core.ingestion.download import download_to_path


def test_download_local_file(tmp_path):
    src = tmp_path / "sample.bin"
    src.write_bytes(b"hello")
    dest = tmp_path / "out.bin"
    size = download_to_path(str(src), str(dest), max_bytes=10)
    assert size == 5
    assert dest.read_bytes() == b"hello"


def test_download_rejects_large_file(tmp_path):
    src = tmp_path / "sample.bin"
    src.write_bytes(b"hello")
    dest = tmp_path / "out.bin"
    with pytest.raises(PermanentError):
        download_to_path(str(src), str(dest), max_bytes=2)
    assert not dest.exists()


def test_download_missing_file_is_permanent(tmp_path):
    with pytest.raises(PermanentError):
        download_to_path(str(tmp_path / "nope.bin"), str(tmp_path / "out"), max_bytes=10)
