import pytest
import requests

from errors import NOT_FOUND, UNAUTHORIZED, UNAVAILABLE, UNEXPECTED, UNREACHABLE, CollaboratorError
from llm_bridge import LLMClient
from weather_bridge import OPENWEATHER_URL, WeatherService


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("not json")
        return self._payload


class FakeHTTP:
    """Minimal requests.Session stand-in keyed by URL prefix."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        for prefix, result in self.routes.items():
            if url.startswith(prefix):
                if isinstance(result, Exception):
                    raise result
                return result
        raise AssertionError(f"unexpected URL {url}")

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)


OWM_OSLO = {
    "name": "Oslo",
    "sys": {"country": "NO"},
    "weather": [{"description": "light snow"}],
    "main": {"temp": -3.2, "feels_like": -8.0, "humidity": 86},
    "wind": {"speed": 5.0},
}

WTTR_OSLO = {
    "current_condition": [
        {
            "temp_C": "-2",
            "FeelsLikeC": "-6",
            "humidity": "80",
            "windspeedKmph": "11",
            "weatherDesc": [{"value": "Snow"}],
        }
    ],
    "nearest_area": [{"areaName": [{"value": "Oslo"}], "country": [{"value": "Norway"}]}],
}


def test_openweather_is_primary_when_keyed():
    http = FakeHTTP({OPENWEATHER_URL: FakeResponse(200, OWM_OSLO)})
    forecast = WeatherService("k", session=http).fetch("Oslo")

    assert forecast.source == "OpenWeatherMap"
    assert forecast.wind_kph == 18.0
    assert forecast.country == "NO"
    assert http.calls[0][2]["params"]["units"] == "metric"
    assert http.calls[0][2]["timeout"] == 8.0


def test_no_key_goes_straight_to_wttr():
    http = FakeHTTP({"https://wttr.in/": FakeResponse(200, WTTR_OSLO)})
    forecast = WeatherService(None, session=http).fetch("Oslo")

    assert forecast.source == "wttr.in"
    assert forecast.temp_c == -2.0
    assert len(http.calls) == 1


def test_primary_outage_falls_back_once():
    http = FakeHTTP(
        {
            OPENWEATHER_URL: FakeResponse(503),
            "https://wttr.in/": FakeResponse(200, WTTR_OSLO),
        }
    )
    forecast = WeatherService("k", session=http).fetch("Oslo")
    assert forecast.location == "Oslo"
    assert len(http.calls) == 2


def test_primary_not_found_wins_over_fallback_error():
    http = FakeHTTP(
        {
            OPENWEATHER_URL: FakeResponse(404),
            "https://wttr.in/": requests.ConnectionError("down"),
        }
    )
    with pytest.raises(CollaboratorError) as info:
        WeatherService("k", session=http).fetch("Atlantis")
    assert info.value.category == NOT_FOUND
    assert info.value.service == "openweathermap"


def test_fallback_error_reported_otherwise():
    http = FakeHTTP(
        {
            OPENWEATHER_URL: FakeResponse(401),
            "https://wttr.in/": requests.Timeout("slow"),
        }
    )
    with pytest.raises(CollaboratorError) as info:
        WeatherService("k", session=http).fetch("Oslo")
    assert info.value.category == UNREACHABLE
    assert isinstance(info.value.original_error, requests.Timeout)


def test_wttr_plain_text_means_unknown_place():
    http = FakeHTTP({"https://wttr.in/": FakeResponse(200, None, text="Unknown location")})
    with pytest.raises(CollaboratorError) as info:
        WeatherService(None, session=http).fetch("Nowhereville")
    assert info.value.category == NOT_FOUND


def test_llm_chat_returns_content():
    http = FakeHTTP(
        {
            "https://llm.test/v1/chat/completions": FakeResponse(
                200, {"choices": [{"message": {"content": "  Hello!  "}}]}
            )
        }
    )
    client = LLMClient("https://llm.test/v1/", session=http)
    assert client.chat("key", "m", [{"role": "user", "content": "hi"}]) == "Hello!"

    method, url, kwargs = http.calls[0]
    assert method == "POST"
    assert kwargs["headers"]["Authorization"] == "Bearer key"
    assert kwargs["json"]["model"] == "m"


@pytest.mark.parametrize(
    "result,category",
    [
        (FakeResponse(401), UNAUTHORIZED),
        (FakeResponse(429), UNAVAILABLE),
        (FakeResponse(500), UNAVAILABLE),
        (FakeResponse(200, None), UNEXPECTED),
        (requests.ConnectionError("refused"), UNREACHABLE),
    ],
)
def test_llm_probe_failures_are_categorized(result, category):
    client = LLMClient("https://llm.test/v1", session=FakeHTTP({"https://llm.test/v1/models": result}))
    with pytest.raises(CollaboratorError) as info:
        client.probe("key")
    assert info.value.category == category
    assert info.value.service == "llm"


def test_llm_unexpected_completion_shape():
    http = FakeHTTP({"https://llm.test/v1/chat/completions": FakeResponse(200, {"choices": []})})
    with pytest.raises(CollaboratorError) as info:
        LLMClient("https://llm.test/v1", session=http).chat("key", "m", [])
    assert info.value.category == UNEXPECTED
