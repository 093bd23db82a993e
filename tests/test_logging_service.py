import logging

from watchface.core.logging_service import LoggingService
from watchface.core.sync_channel import SyncChannel
from watchface.core.weather_cache import WeatherCache


def test_component_view_tags_records(caplog):
    service = LoggingService('watchface.test-tags', 'DEBUG')
    channel_log = service.for_component('channel')

    with caplog.at_level(logging.DEBUG, logger='watchface.test-tags'):
        channel_log.info("Connected to companion")
        service.info("Face created")

    assert [record.component for record in caplog.records] == ['channel', 'face']
    assert channel_log.logger is service.logger


def test_console_line_names_component(capsys):
    service = LoggingService('watchface.test-console', 'INFO')
    service.for_component('scheduler').info("Scheduler started")
    service.logger.info("plain stdlib call")

    out = capsys.readouterr().out
    assert "[INFO] watchface.test-console/scheduler: Scheduler started" in out
    assert "[INFO] watchface.test-console/face: plain stdlib call" in out


def test_component_view_shares_level(capsys):
    service = LoggingService('watchface.test-level', 'WARNING')
    service.for_component('companion').info("hidden")
    service.set_level('DEBUG')
    service.for_component('companion').debug("shown")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "companion: shown" in out


def test_sync_channel_logs_as_channel(transport, loop, caplog):
    transport.fail_connect = True
    channel = SyncChannel(transport, WeatherCache(),
                          logger=LoggingService('watchface.test-channel', 'DEBUG'))

    with caplog.at_level(logging.DEBUG, logger='watchface.test-channel'):
        channel.connect()
        loop.run_pending()

    failures = [r for r in caplog.records if 'connection failed' in r.getMessage()]
    assert failures
    assert all(r.component == 'channel' for r in failures)
