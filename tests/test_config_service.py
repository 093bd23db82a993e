import pytest

from watchface.core.config_service import ConfigService


@pytest.fixture
def service():
    service = ConfigService()
    yield service
    service.reload()


def test_is_singleton(service):
    assert ConfigService() is service


def test_defaults_present(service, monkeypatch):
    for name in ('DISPLAY_WIDTH', 'DISPLAY_ROUND', 'LOW_BIT_AMBIENT', 'WEATHER_API_KEY'):
        monkeypatch.delenv(name, raising=False)
    service.reload()
    assert service.get('display.width') == 320
    assert service.get('companion.units') == 'imperial'
    assert service.get('missing.key', 'fallback') == 'fallback'


def test_yaml_file_merges_with_defaults(service, tmp_path, monkeypatch):
    monkeypatch.delenv('DISPLAY_WIDTH', raising=False)
    path = tmp_path / "face.yaml"
    path.write_text("display:\n  width: 454\n")

    service.reload(path)
    assert service.get('display.width') == 454
    assert service.get('display.height') == 320


def test_environment_overrides(service, monkeypatch):
    monkeypatch.setenv('DISPLAY_ROUND', 'false')
    monkeypatch.setenv('LOW_BIT_AMBIENT', 'yes')
    monkeypatch.setenv('WEATHER_LOCATION', 'Oslo, NO')
    monkeypatch.setenv('DISPLAY_HEIGHT', '390')

    service.reload()
    assert service.get('display.round') is False
    assert service.get('display.low_bit_ambient') is True
    assert service.get('companion.location') == 'Oslo, NO'
    assert service.get('display.height') == 390


def test_set_with_dot_notation(service):
    service.set('companion.units', 'metric')
    assert service.get('companion.units') == 'metric'
