import argparse

import pytest

from genflow.__main__ import main, parse_args, parse_option


def test_parse_option_decodes_json_values():
    assert parse_option("width=1024") == ("width", 1024)
    assert parse_option("raw=true") == ("raw", True)
    assert parse_option("style=film noir") == ("style", "film noir")


def test_parse_option_requires_key_value():
    with pytest.raises(argparse.ArgumentTypeError):
        parse_option("nonsense")


def test_generate_arguments():
    args = parse_args(
        ["generate", "--provider", "flux", "--prompt", "a cat", "--option", "seed=7", "--option", "raw=false"]
    )
    assert args.provider == "flux"
    assert dict(args.option) == {"seed": 7, "raw": False}
    assert args.model is None


def test_providers_command_lists_tags(capsys):
    assert main(["providers"]) == 0
    out = capsys.readouterr().out
    assert "flux" in out
    assert "seedance" in out
    assert "video" in out
