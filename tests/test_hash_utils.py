from billsync.utils.hash_utils import hash_bytes


def test_hash_bytes_is_sha256() -> None:
    assert hash_bytes(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_hash_bytes_detects_content_changes() -> None:
    assert hash_bytes(b"Section 1. Short title.") != hash_bytes(b"Section 1. Short title")
