"""
Tests for the derivation engine -- alerts and weather computed from CPs.

Tests verify:
- Aggregate weather status precedence (NO_CPS, NO_DATA, ALERT, OK).
- Alert rules per CP state, heartbeat lag threshold, and weather.
- Disconnected CPs raise no heartbeat alert and no weather observation.
- Weather alert inference from temperature when the flag is absent.
- The fleet pseudo-alert when no CP reports weather data.

CHANGELOG:
- 2026-10-16: Cover fleet pseudo-alert
- 2026-10-14: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from dashboard.src.derivation import (
    FLEET_SOURCE,
    HEARTBEAT_LAG_THRESHOLD_MS,
    aggregate_weather_status,
    derive,
    derive_alerts,
    derive_weather,
    infer_weather_alert,
    weather_status_alert,
)
from dashboard.src.models import AlertKind, ChargePoint, CPState, WeatherStatus

_TS = datetime(2026, 10, 14, 9, 30, 0, tzinfo=UTC)


def _cp(cp_id: str = "A", **fields: object) -> ChargePoint:
    fields.setdefault("location", cp_id)
    return ChargePoint(id=cp_id, **fields)


# ---------------------------------------------------------------------------
# Test: aggregate weather status
# ---------------------------------------------------------------------------


class TestAggregateWeatherStatus:
    def test_no_cps(self) -> None:
        assert aggregate_weather_status([]) is WeatherStatus.NO_CPS

    def test_cps_without_weather_data(self) -> None:
        cps = [_cp("A", state=CPState.CHARGING)]
        assert aggregate_weather_status(cps) is WeatherStatus.NO_DATA

    def test_freezing_cp_raises_alert(self) -> None:
        cps = [_cp("A", temperature_c=-1)]
        assert aggregate_weather_status(cps) is WeatherStatus.ALERT

    def test_mild_cp_is_ok(self) -> None:
        cps = [_cp("A", temperature_c=5)]
        assert aggregate_weather_status(cps) is WeatherStatus.OK

    def test_any_alert_wins_over_ok(self) -> None:
        cps = [_cp("A", temperature_c=12), _cp("B", weather_alert=True)]
        assert aggregate_weather_status(cps) is WeatherStatus.ALERT

    def test_one_cp_with_data_is_enough(self) -> None:
        cps = [_cp("A"), _cp("B", temperature_c=20)]
        assert aggregate_weather_status(cps) is WeatherStatus.OK


class TestInferWeatherAlert:
    def test_negative_temperature_infers_alert(self) -> None:
        assert infer_weather_alert(_cp(temperature_c=-0.5)) is True

    def test_zero_is_not_freezing(self) -> None:
        assert infer_weather_alert(_cp(temperature_c=0)) is False

    def test_explicit_false_overrides_temperature(self) -> None:
        assert infer_weather_alert(_cp(temperature_c=-8, weather_alert=False)) is False

    def test_explicit_true_without_temperature(self) -> None:
        assert infer_weather_alert(_cp(weather_alert=True)) is True

    def test_nothing_known(self) -> None:
        assert infer_weather_alert(_cp()) is False


# ---------------------------------------------------------------------------
# Test: alert rules
# ---------------------------------------------------------------------------


class TestDeriveAlerts:
    @pytest.mark.parametrize(
        ("state", "message"),
        [
            (CPState.BROKEN, "state BROKEN"),
            (CPState.DISCONNECTED, "state DISCONNECTED (no heartbeats)"),
            (CPState.STOPPED, "CP stopped"),
        ],
    )
    def test_state_alerts(self, state: CPState, message: str) -> None:
        alerts = derive_alerts([_cp("CP-7", state=state)], _TS)

        assert len(alerts) == 1
        assert alerts[0].kind is AlertKind.CP_STATE
        assert alerts[0].source == "CP-7"
        assert alerts[0].message == message
        assert alerts[0].timestamp == _TS

    @pytest.mark.parametrize(
        "state", [CPState.AVAILABLE, CPState.CHARGING, CPState.UNKNOWN]
    )
    def test_healthy_states_raise_nothing(self, state: CPState) -> None:
        assert derive_alerts([_cp(state=state, heartbeat_lag_ms=100)], _TS) == ()

    def test_lag_at_threshold_is_not_delayed(self) -> None:
        cp = _cp(state=CPState.AVAILABLE, heartbeat_lag_ms=HEARTBEAT_LAG_THRESHOLD_MS)
        assert derive_alerts([cp], _TS) == ()

    def test_lag_above_threshold_raises_heartbeat_alert(self) -> None:
        cp = _cp(state=CPState.AVAILABLE, heartbeat_lag_ms=5001)

        alerts = derive_alerts([cp], _TS)

        assert [a.kind for a in alerts] == [AlertKind.HEARTBEAT]
        assert alerts[0].message == "heartbeat delayed (5001 ms)"

    def test_disconnected_cp_has_no_heartbeat_alert(self) -> None:
        cp = _cp(state=CPState.DISCONNECTED, heartbeat_lag_ms=60_000)

        alerts = derive_alerts([cp], _TS)

        assert [a.kind for a in alerts] == [AlertKind.CP_STATE]

    def test_broken_and_delayed_raise_both(self) -> None:
        cp = _cp(state=CPState.BROKEN, heartbeat_lag_ms=9000)

        alerts = derive_alerts([cp], _TS)

        assert [a.kind for a in alerts] == [AlertKind.CP_STATE, AlertKind.HEARTBEAT]

    def test_inferred_weather_alert_message(self) -> None:
        alerts = derive_alerts([_cp(temperature_c=-2.5)], _TS)

        assert [a.kind for a in alerts] == [AlertKind.WEATHER]
        assert alerts[0].message == "weather alert (temp=-2.50°C)"

    def test_flagged_weather_alert_without_temperature(self) -> None:
        alerts = derive_alerts([_cp(weather_alert=True)], _TS)
        assert alerts[0].message == "weather alert"

    def test_alerts_follow_cp_order(self) -> None:
        cps = [_cp("B", state=CPState.STOPPED), _cp("A", state=CPState.BROKEN)]
        assert [a.source for a in derive_alerts(cps, _TS)] == ["B", "A"]


# ---------------------------------------------------------------------------
# Test: weather observations
# ---------------------------------------------------------------------------


class TestDeriveWeather:
    def test_observation_fields(self) -> None:
        cp = _cp(
            "CP-1",
            location="Alicante",
            state=CPState.CHARGING,
            temperature_c=-1,
            weather_observed_at=datetime(2026, 1, 5, 7, 0, 9, tzinfo=UTC),
        )

        (obs,) = derive_weather([cp])

        assert obs.cp_id == "CP-1"
        assert obs.city == "Alicante"
        assert obs.state is CPState.CHARGING
        assert obs.temperature_c == -1
        assert obs.alert is True
        assert obs.observed_at == "2026-01-05 07:00:09Z"

    def test_disconnected_cp_excluded(self) -> None:
        cp = _cp(state=CPState.DISCONNECTED, temperature_c=10)
        assert derive_weather([cp]) == ()

    def test_cp_without_data_excluded(self) -> None:
        assert derive_weather([_cp()]) == ()

    def test_explicit_false_keeps_observation_without_alert(self) -> None:
        (obs,) = derive_weather([_cp(temperature_c=-3, weather_alert=False)])
        assert obs.alert is False


# ---------------------------------------------------------------------------
# Test: full derive and pseudo-alert
# ---------------------------------------------------------------------------


class TestDerive:
    def test_pseudo_alert_only_for_no_data(self) -> None:
        assert weather_status_alert(WeatherStatus.OK, _TS) is None
        assert weather_status_alert(WeatherStatus.NO_CPS, _TS) is None

        alert = weather_status_alert(WeatherStatus.NO_DATA, _TS)
        assert alert is not None
        assert alert.kind is AlertKind.WEATHER
        assert alert.source == FLEET_SOURCE

    def test_no_data_appends_pseudo_alert_last(self) -> None:
        derived = derive([_cp("A", state=CPState.BROKEN)], _TS)

        assert derived.weather_status is WeatherStatus.NO_DATA
        assert [a.source for a in derived.alerts] == ["A", FLEET_SOURCE]
        assert derived.weather == ()

    def test_empty_fleet(self) -> None:
        derived = derive([], _TS)

        assert derived.alerts == ()
        assert derived.weather == ()
        assert derived.weather_status is WeatherStatus.NO_CPS

    def test_freezing_cp_gives_alert_and_observation(self) -> None:
        derived = derive([_cp("A", state=CPState.AVAILABLE, temperature_c=-1)], _TS)

        assert derived.weather_status is WeatherStatus.ALERT
        assert [a.kind for a in derived.alerts] == [AlertKind.WEATHER]
        assert derived.weather[0].alert is True

    def test_deterministic(self) -> None:
        cps = [_cp("A", temperature_c=-1, heartbeat_lag_ms=7000)]
        assert derive(cps, _TS) == derive(cps, _TS)
