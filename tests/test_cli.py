from unittest.mock import patch

import pytest

from app import cli


@pytest.fixture()
def mock_cache():
    with patch("app.cli.cache") as mocked:
        mocked.enabled = True
        mocked.KNOWN_PREFIXES = ("letters", "archives")
        yield mocked


class TestCacheClear:
    def test_disabled_cache(self, mock_cache, capsys):
        mock_cache.enabled = False
        assert cli.main(["cache", "clear", "--force"]) == 1
        assert "Cache is disabled" in capsys.readouterr().out

    def test_clear_prefix(self, mock_cache, capsys):
        mock_cache.forget_by_prefix.return_value = 4
        assert cli.main(["cache", "clear", "--prefix", "letters"]) == 0
        mock_cache.forget_by_prefix.assert_called_once_with("letters")
        assert "Cache cleared: 4 keys removed" in capsys.readouterr().out

    def test_unknown_prefix(self, mock_cache, capsys):
        assert cli.main(["cache", "clear", "--prefix", "bogus"]) == 1
        out = capsys.readouterr().out
        assert "Unknown prefix: bogus" in out
        assert "letters, archives" in out
        mock_cache.forget_by_prefix.assert_not_called()

    def test_clear_all_with_force(self, mock_cache):
        mock_cache.flush_all.return_value = 9
        assert cli.main(["cache", "clear", "--force"]) == 0
        mock_cache.flush_all.assert_called_once()

    def test_clear_all_aborted(self, mock_cache, capsys):
        with patch("builtins.input", return_value="n"):
            assert cli.main(["cache", "clear"]) == 1
        mock_cache.flush_all.assert_not_called()
        assert "Aborted" in capsys.readouterr().out

    def test_clear_all_confirmed(self, mock_cache):
        mock_cache.flush_all.return_value = 0
        with patch("builtins.input", return_value="yes"):
            assert cli.main(["cache", "clear"]) == 0
        mock_cache.flush_all.assert_called_once()


class TestCacheStats:
    def test_prints_hit_rate(self, mock_cache, capsys):
        mock_cache.stats.return_value = {
            "enabled": True,
            "redis_version": "7.2.4",
            "keyspace_hits": 75,
            "keyspace_misses": 25,
            "total_keys": 3,
            "by_prefix": {"letters": 3},
        }
        assert cli.main(["cache", "stats"]) == 0
        out = capsys.readouterr().out
        assert "7.2.4" in out
        assert "75.0%" in out
        assert "letters" in out

    def test_reports_error(self, mock_cache, capsys):
        mock_cache.stats.return_value = {"enabled": True, "error": "refused"}
        assert cli.main(["cache", "stats"]) == 1
        assert "Failed to get Redis stats: refused" in capsys.readouterr().out

    def test_disabled(self, mock_cache):
        mock_cache.stats.return_value = {"enabled": False}
        assert cli.main(["cache", "stats"]) == 1


class TestCacheKeys:
    def test_lists_keys_with_overflow_note(self, mock_cache, capsys):
        mock_cache.keys.return_value = ["corr:letters:1", "corr:letters:2", "corr:letters:3"]
        assert cli.main(["cache", "keys", "--pattern", "letters:*", "--limit", "2"]) == 0
        mock_cache.keys.assert_called_once_with("letters:*", limit=3)
        out = capsys.readouterr().out
        assert "corr:letters:2" in out
        assert "corr:letters:3" not in out
        assert "more than 2 keys" in out

    def test_no_keys(self, mock_cache, capsys):
        mock_cache.keys.return_value = []
        assert cli.main(["cache", "keys"]) == 0
        assert "No keys found" in capsys.readouterr().out


def test_missing_subcommand_exits():
    with pytest.raises(SystemExit):
        cli.main(["cache"])
