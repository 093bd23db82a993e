from itertools import combinations

import pytest

from watchface.core.protocol import (
    DataEvent, DataEventType, DataItem, WEATHER_PATH, WEATHER_INFO_PATH,
    KEY_HIGH, KEY_LOW, KEY_WEATHER_ID, KEY_UUID, weather_info_item,
)
from watchface.core.states import TransportError
from watchface.core.sync_channel import ChannelState, SyncChannel
from watchface.core.weather_cache import WeatherCache, WeatherSnapshot


class Updates:
    def __init__(self):
        self.count = 0

    def __call__(self):
        self.count += 1


@pytest.fixture
def cache():
    return WeatherCache()


@pytest.fixture
def updates():
    return Updates()


@pytest.fixture
def channel(transport, cache, updates):
    return SyncChannel(transport, cache, on_updated=updates)


def connected(channel, loop):
    channel.connect()
    loop.run_pending()
    assert channel.is_connected
    return channel


def test_connect_registers_and_requests_once(channel, transport, loop):
    channel.connect()
    channel.connect()
    assert channel.state == ChannelState.CONNECTING
    loop.run_pending()

    assert transport.connect_calls == 1
    assert transport.listener_count == 1
    assert len(transport.sent) == 1

    request = transport.sent[0]
    assert request.path == WEATHER_PATH
    assert request.urgent
    assert request.data[KEY_UUID]


def test_connect_while_connected_is_noop(channel, transport, loop):
    connected(channel, loop)
    channel.connect()
    loop.run_pending()
    assert transport.connect_calls == 1
    assert len(transport.sent) == 1


def test_connection_failure_is_not_fatal(channel, transport, loop, cache):
    transport.fail_connect = True
    channel.connect()
    loop.run_pending()

    assert channel.state == ChannelState.DISCONNECTED
    assert channel.stats['connect_failures'] == 1
    assert transport.sent == []
    assert cache.snapshot().high_temp == ""

    transport.fail_connect = False
    connected(channel, loop)


def test_request_failure_is_reported_and_not_retried(channel, transport, loop):
    transport.fail_puts = True
    connected(channel, loop)
    loop.run_for(10_000)

    assert channel.stats['requests_sent'] == 1
    assert channel.stats['request_failures'] == 1
    assert transport.sent == []


def test_request_refresh_uses_fresh_ids(channel, transport, loop):
    connected(channel, loop)
    channel.request_refresh()
    loop.run_pending()

    ids = [item.data[KEY_UUID] for item in transport.sent]
    assert len(ids) == 2
    assert ids[0] != ids[1]


def test_request_refresh_while_disconnected(channel, transport):
    assert channel.request_refresh() is None
    assert transport.sent == []


FIELDS = {KEY_HIGH: "72°", KEY_LOW: "55°", KEY_WEATHER_ID: 800}
SUBSETS = [subset for n in range(1, 4) for subset in combinations(FIELDS, n)]


@pytest.mark.parametrize("present", SUBSETS, ids=lambda s: "+".join(s))
def test_partial_update_only_touches_present_fields(channel, cache, updates, present):
    cache.set_high("60°")
    cache.set_low("40°")
    cache.set_weather_id(500)
    before = cache.snapshot()

    data = {key: FIELDS[key] for key in present}
    channel.on_data_changed([DataEvent(DataItem(WEATHER_INFO_PATH, data))])

    after = cache.snapshot()
    assert after.high_temp == (FIELDS[KEY_HIGH] if KEY_HIGH in present else before.high_temp)
    assert after.low_temp == (FIELDS[KEY_LOW] if KEY_LOW in present else before.low_temp)
    assert after.weather_icon_id == (
        FIELDS[KEY_WEATHER_ID] if KEY_WEATHER_ID in present else before.weather_icon_id
    )
    assert updates.count == 1


def test_malformed_fields_are_skipped_individually(channel, cache, updates):
    item = DataItem(WEATHER_INFO_PATH, {KEY_HIGH: 72, KEY_LOW: "50°", KEY_WEATHER_ID: "800"})
    channel.on_data_changed([DataEvent(item)])

    assert cache.high_temp == ""
    assert cache.low_temp == "50°"
    assert cache.weather_icon_id is None
    assert updates.count == 1


def test_update_with_nothing_usable_does_not_redraw(channel, cache, updates):
    channel.on_data_changed([DataEvent(DataItem(WEATHER_INFO_PATH, {}))])
    assert updates.count == 0
    assert cache.snapshot() == WeatherSnapshot("", "", None)


def test_other_paths_and_deletions_are_ignored(channel, cache, updates):
    channel.on_data_changed([
        DataEvent(DataItem('/settings', {KEY_HIGH: "99°"})),
        DataEvent(weather_info_item(high="99°"), DataEventType.DELETED),
    ])
    assert cache.high_temp == ""
    assert updates.count == 0
    assert channel.stats['ignored_events'] == 2


def test_last_write_wins(channel, cache):
    channel.on_data_changed([
        DataEvent(weather_info_item(high="70°")),
        DataEvent(weather_info_item(high="68°")),
    ])
    assert cache.high_temp == "68°"


def test_inbound_delivery_through_transport(channel, transport, loop, cache, updates):
    connected(channel, loop)
    transport.publish(weather_info_item(high="72°", low="55°", weather_id=801))
    loop.run_pending()

    assert cache.snapshot().high_temp == "72°"
    assert cache.snapshot().weather_icon_id == 801
    assert updates.count == 1


def test_disconnect_is_idempotent(channel, transport, loop):
    channel.disconnect()
    assert transport.disconnect_calls == 0

    connected(channel, loop)
    channel.disconnect()
    channel.disconnect()
    assert transport.disconnect_calls == 1
    assert transport.listener_count == 0
    assert channel.state == ChannelState.DISCONNECTED


def test_updates_after_disconnect_are_not_delivered(channel, transport, loop, cache):
    connected(channel, loop)
    channel.disconnect()
    transport.publish(weather_info_item(high="72°"))
    loop.run_pending()
    assert cache.high_temp == ""


def test_disconnect_while_connecting_releases_late_connection(channel, transport, loop):
    channel.connect()
    channel.disconnect()
    loop.run_pending()

    assert channel.state == ChannelState.DISCONNECTED
    assert transport.disconnect_calls == 1
    assert transport.listener_count == 0
    assert transport.sent == []


def test_listener_registration_error_releases_channel(channel, transport, loop, monkeypatch):
    def broken(listener):
        raise RuntimeError("listener registry full")

    monkeypatch.setattr(transport, 'add_listener', broken)
    channel.connect()
    loop.run_pending()

    assert channel.state == ChannelState.DISCONNECTED
    assert transport.disconnect_calls == 1


def test_transport_raising_on_connect_is_contained(transport, cache, monkeypatch):
    def explode(on_connected, on_failed):
        raise OSError("radio off")

    monkeypatch.setattr(transport, 'connect', explode)
    channel = SyncChannel(transport, cache)
    channel.connect()
    assert channel.state == ChannelState.DISCONNECTED
    assert channel.stats['connect_failures'] == 1


def test_reconnect_storm_issues_overlapping_requests(channel, transport, loop):
    for _ in range(3):
        connected(channel, loop)
        channel.disconnect()
    assert transport.connect_calls == 3
    assert len(transport.sent) == 3


def test_reconnect_before_first_completion_keeps_live_connection(channel, transport, loop, cache, updates):
    channel.connect()
    channel.disconnect()
    channel.connect()
    loop.run_pending()

    assert channel.is_connected
    assert channel.is_connected == transport.is_connected
    assert transport.listener_count == 1
    assert len(transport.sent) == 1

    transport.publish(weather_info_item(high="72°", low="50°", weather_id=800))
    loop.run_pending()
    assert cache.snapshot() == WeatherSnapshot("72°", "50°", 800)
    assert updates.count == 1


def test_toggle_storm_without_loop_turns_settles_on_last_state(channel, transport, loop):
    for _ in range(3):
        channel.connect()
        channel.disconnect()
    loop.run_pending()

    assert channel.state == ChannelState.DISCONNECTED
    assert not transport.is_connected
    assert transport.listener_count == 0
    assert transport.sent == []

    channel.connect()
    channel.disconnect()
    channel.connect()
    loop.run_pending()
    assert channel.is_connected == transport.is_connected
    assert transport.listener_count == 1


def test_stale_connection_failure_does_not_reset_new_attempt(channel, transport, monkeypatch):
    pending = []
    monkeypatch.setattr(transport, 'connect', lambda on_connected, on_failed: pending.append(on_failed))
    channel.connect()
    channel.disconnect()
    channel.connect()
    first_failed, second_failed = pending

    first_failed(TransportError("late failure"))
    assert channel.state == ChannelState.CONNECTING

    second_failed(TransportError("unreachable"))
    assert channel.state == ChannelState.DISCONNECTED
    assert channel.stats['connect_failures'] == 2
