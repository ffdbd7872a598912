from datetime import timedelta

import pytest

from rotolog.write_mode import (
    DEFAULT_BUFFER_CAPACITY,
    DEFAULT_FLUSH_INTERVAL,
    DEFAULT_MESSAGE_CAPA,
    DEFAULT_POOL_CAPA,
    EffectiveKind,
    WriteMode,
)


def test_defaults_are_pinned():
    assert WriteMode.buffer_dont_flush().buffer_size() == 8 * 1024
    assert WriteMode.buffer_and_flush().flush_interval() == 1.0
    eff = WriteMode.async_default().effective()
    assert eff.pool_capa == 50
    assert eff.message_capa == 200


def test_default_instance_is_direct():
    assert WriteMode() == WriteMode.direct()


def test_direct_is_unbuffered():
    mode = WriteMode.direct()
    assert mode.effective().kind is EffectiveKind.DIRECT
    assert mode.buffer_size() is None
    assert mode.flush_interval() == 0
    assert not mode.is_async()


def test_buffer_and_flush_uses_defaults():
    eff = WriteMode.buffer_and_flush().effective()
    assert eff.kind is EffectiveKind.BUFFER_AND_FLUSH
    assert eff.bufsize == DEFAULT_BUFFER_CAPACITY
    assert eff.flush_interval == DEFAULT_FLUSH_INTERVAL


def test_buffer_and_flush_with_keeps_values():
    mode = WriteMode.buffer_and_flush_with(100, 3)
    assert mode.buffer_size() == 100
    assert mode.flush_interval() == 3


def test_timedelta_interval_is_accepted():
    mode = WriteMode.buffer_and_flush_with(100, timedelta(milliseconds=500))
    assert mode.flush_interval() == 0.5


def test_buffer_dont_flush_variants():
    assert WriteMode.buffer_dont_flush().buffer_size() == DEFAULT_BUFFER_CAPACITY
    assert WriteMode.buffer_dont_flush().flush_interval() == 0
    assert WriteMode.buffer_dont_flush_with(4).buffer_size() == 4
    assert WriteMode.buffer_dont_flush_with(4).effective().kind is EffectiveKind.BUFFER_DONT_FLUSH


def test_async_default_effective():
    mode = WriteMode.async_default()
    eff = mode.effective()
    assert mode.is_async()
    assert eff.kind is EffectiveKind.ASYNC
    assert eff.pool_capa == DEFAULT_POOL_CAPA
    assert eff.message_capa == DEFAULT_MESSAGE_CAPA
    assert eff.bufsize == DEFAULT_BUFFER_CAPACITY
    assert mode.flush_interval() == DEFAULT_FLUSH_INTERVAL


def test_async_with_effective():
    mode = WriteMode.async_with(6, 7, 8, 0)
    eff = mode.effective()
    assert (eff.bufsize, eff.pool_capa, eff.message_capa, eff.flush_interval) == (6, 7, 8, 0)
    assert mode.is_async()


def test_shorthand_differs_from_explicit_defaults():
    explicit = WriteMode.buffer_and_flush_with(DEFAULT_BUFFER_CAPACITY, DEFAULT_FLUSH_INTERVAL)
    assert WriteMode.buffer_and_flush() != explicit
    assert WriteMode.buffer_and_flush().effective() == explicit.effective()


def test_equality_of_same_parameters():
    assert WriteMode.async_with(6, 7, 8, 0) == WriteMode.async_with(6, 7, 8, 0)
    assert WriteMode.buffer_dont_flush_with(4) != WriteMode.buffer_dont_flush_with(5)


@pytest.mark.parametrize(
    "mode",
    [WriteMode.direct(), WriteMode.buffer_dont_flush(), WriteMode.buffer_dont_flush_with(4)],
)
def test_without_flushing_is_identity_for_non_flushing(mode):
    assert mode.without_flushing() is mode


def test_without_flushing_buffer_modes():
    assert WriteMode.buffer_and_flush().without_flushing() == WriteMode.buffer_dont_flush()
    assert (
        WriteMode.buffer_and_flush_with(33, 2).without_flushing()
        == WriteMode.buffer_dont_flush_with(33)
    )


def test_without_flushing_async_modes():
    assert WriteMode.async_default().without_flushing() == WriteMode.async_with(
        DEFAULT_BUFFER_CAPACITY, DEFAULT_POOL_CAPA, DEFAULT_MESSAGE_CAPA, 0
    )
    assert WriteMode.async_with(6, 7, 8, 5).without_flushing() == WriteMode.async_with(6, 7, 8, 0)


@pytest.mark.parametrize(
    "mode",
    [
        WriteMode.direct(),
        WriteMode.buffer_and_flush(),
        WriteMode.buffer_and_flush_with(10, 2),
        WriteMode.buffer_dont_flush_with(3),
        WriteMode.async_default(),
        WriteMode.async_with(1, 2, 3, 4),
    ],
)
def test_without_flushing_invariants(mode):
    stripped = mode.without_flushing()
    assert stripped.flush_interval() == 0
    assert stripped.buffer_size() == mode.buffer_size()
    assert stripped.is_async() == mode.is_async()


def test_negative_values_are_rejected():
    with pytest.raises(ValueError):
        WriteMode.buffer_dont_flush_with(-1)
    with pytest.raises(ValueError):
        WriteMode.buffer_and_flush_with(10, -1)
    with pytest.raises(ValueError):
        WriteMode.async_with(1, -2, 3, 0)