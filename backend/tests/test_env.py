from __future__ import annotations

import os

import pytest

from kanri.core.env import load_env_if_present, parse_env_text


def test_parse_env_text_handles_exports_quotes_and_junk():
    text = "\n".join(
        [
            "# comment",
            "export KANRI_ENV=production",
            "KANRI_JWT_SECRET='s3cret=with=equals'",
            'NAME="quoted value"',
            "not a pair",
            "=novalue",
        ]
    )
    assert list(parse_env_text(text)) == [
        ("KANRI_ENV", "production"),
        ("KANRI_JWT_SECRET", "s3cret=with=equals"),
        ("NAME", "quoted value"),
    ]


def test_explicit_env_file_is_loaded_without_overriding(monkeypatch: pytest.MonkeyPatch, tmp_path):
    env_file = tmp_path / "kanri.env"
    env_file.write_text("KANRI_TEST_A=from-file\nKANRI_TEST_B=from-file\n", encoding="utf-8")
    monkeypatch.setenv("KANRI_ENV_FILE", str(env_file))
    monkeypatch.setenv("KANRI_TEST_A", "from-process")
    monkeypatch.delenv("KANRI_TEST_B", raising=False)

    assert load_env_if_present() == [env_file]
    assert os.environ["KANRI_TEST_A"] == "from-process"
    assert os.environ["KANRI_TEST_B"] == "from-file"
    monkeypatch.delenv("KANRI_TEST_B")


def test_missing_explicit_env_file_is_ignored(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.setenv("KANRI_ENV_FILE", str(tmp_path / "absent.env"))
    assert load_env_if_present() == []
