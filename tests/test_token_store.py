#!/usr/bin/env python3
"""Unit tests for the on-disk token cache."""
import json
import sys

import pytest

sys.path.insert(0, str(__file__).rsplit("/tests", 1)[0])
from src.dnac.api.auth import Token
from src.dnac.api.exceptions import ConfigurationError, TokenLoadError
from src.dnac.api.token_store import TokenStore


class TestTokenStore:
    """Test load/save of the token file."""

    def test_missing_file_returns_none(self, tmp_path):
        assert TokenStore(tmp_path / "absent.json").load() is None

    def test_save_writes_expected_format(self, tmp_path):
        path = tmp_path / "token.json"
        TokenStore(path).save(Token(secret="abc.def.ghi", expiry=1700000000))

        assert json.loads(path.read_text()) == {"Token": "abc.def.ghi", "exp": 1700000000}

    def test_load_returns_saved_token(self, tmp_path):
        store = TokenStore(tmp_path / "token.json")
        store.save(Token(secret="abc.def.ghi", expiry=1700000000))

        loaded = store.load()

        assert loaded == Token(secret="abc.def.ghi", expiry=1700000000)

    def test_null_exp_is_accepted(self, tmp_path):
        path = tmp_path / "token.json"
        path.write_text(json.dumps({"Token": "abc", "exp": None}))

        assert TokenStore(path).load() == Token(secret="abc", expiry=None)

    def test_save_replaces_existing_file(self, tmp_path):
        store = TokenStore(tmp_path / "token.json")
        store.save(Token(secret="old", expiry=1))
        store.save(Token(secret="new", expiry=2))

        assert store.load().secret == "new"
        # No temp files left behind
        assert [p.name for p in tmp_path.iterdir()] == ["token.json"]

    def test_save_creates_parent_directory(self, tmp_path):
        store = TokenStore(tmp_path / "cache" / "dnac" / "token.json")
        store.save(Token(secret="abc", expiry=1))

        assert store.load().secret == "abc"

    def test_save_into_unwritable_location(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")

        with pytest.raises(ConfigurationError):
            TokenStore(blocker / "token.json").save(Token(secret="abc", expiry=1))

    def test_save_over_directory_raises_configuration_error(self, tmp_path):
        target = tmp_path / "token"
        target.mkdir()

        with pytest.raises(ConfigurationError) as exc:
            TokenStore(target).save(Token(secret="abc", expiry=1))

        assert isinstance(exc.value.cause, OSError)
        # Temp file removed, directory untouched
        assert [p.name for p in tmp_path.iterdir()] == ["token"]
        assert list(target.iterdir()) == []

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            "[]",
            json.dumps({"exp": 1}),
            json.dumps({"Token": "", "exp": 1}),
            json.dumps({"Token": 42, "exp": 1}),
            json.dumps({"Token": "abc", "exp": "tomorrow"}),
        ],
    )
    def test_malformed_file_raises(self, tmp_path, content):
        path = tmp_path / "token.json"
        path.write_text(content)

        with pytest.raises(TokenLoadError):
            TokenStore(path).load()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
