from pathlib import Path

import pytest

from steamsalebot.cli import BATCH_SIZE, STORAGE_PATH, TG_BOT_HOST, _build_consumer, main


def test_main_without_token_fails():
    assert main([]) == 1


def test_main_with_empty_token_fails():
    assert main(["-token", ""]) == 1


def test_main_help_exits_cleanly():
    with pytest.raises(SystemExit) as info:
        main(["--help"])
    assert info.value.code == 0


def test_main_rejects_unknown_option():
    with pytest.raises(SystemExit) as info:
        main(["--colour", "blue"])
    assert info.value.code == 2


def test_build_consumer_wires_processor():
    consumer = _build_consumer("token")
    assert consumer.batch_size == BATCH_SIZE
    assert consumer.fetcher is consumer.processor
    client = consumer.processor.client
    assert client.host == TG_BOT_HOST
    assert client.base_path == "bot" + "token"
    assert consumer.processor.storage.base_path == Path(STORAGE_PATH)