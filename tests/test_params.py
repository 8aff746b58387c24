from videoprocessor.params import (
    CropParams,
    SpeedParams,
    TextOverlayParams,
    TrimParams,
    resolve,
    resolve_bool,
    resolve_float,
    resolve_int,
    resolve_str,
)


def test_resolve_missing_key_returns_default() -> None:
    assert resolve_float({}, "brightness", 0.0) == 0.0
    assert resolve_float(None, "brightness", 3.5) == 3.5
    assert resolve_str({}, "text", "Sample Text") == "Sample Text"


def test_resolve_float_accepts_int_and_fraction() -> None:
    assert resolve_float({"v": 5}, "v", 0.0) == 5.0
    assert isinstance(resolve_float({"v": 5}, "v", 0.0), float)
    assert resolve_float({"v": 2.5}, "v", 0.0) == 2.5


def test_resolve_int_truncates_fraction() -> None:
    assert resolve_int({"x": 10.9}, "x", 0) == 10
    assert resolve_int({"x": 7}, "x", 0) == 7


def test_resolve_mistyped_values_fall_back() -> None:
    assert resolve_float({"v": "50"}, "v", 0.0) == 0.0
    assert resolve_float({"v": True}, "v", 1.0) == 1.0
    assert resolve_float({"v": None}, "v", 1.0) == 1.0
    assert resolve_float({"v": float("nan")}, "v", 1.0) == 1.0
    assert resolve_str({"t": 12}, "t", "dflt") == "dflt"
    assert resolve_bool({"b": 1}, "b", False) is False
    assert resolve_bool({"b": True}, "b", False) is True


def test_resolve_unknown_expected_type_uses_isinstance() -> None:
    assert resolve({"l": [1]}, "l", list, []) == [1]
    assert resolve({"l": "x"}, "l", list, []) == []


def test_trim_params_end_time_absent_stays_none() -> None:
    p = TrimParams.from_params({"startTime": 5})
    assert p.start_time == 5.0
    assert p.end_time is None


def test_speed_params_rejects_non_positive() -> None:
    assert SpeedParams.from_params({"speed": 0}).speed == 1.0
    assert SpeedParams.from_params({"speed": -2}).speed == 1.0
    assert SpeedParams.from_params({"speed": 2}).speed == 2.0


def test_crop_and_text_defaults() -> None:
    assert CropParams.from_params({}) == CropParams(x=0, y=0, width=1920, height=1080)
    assert TextOverlayParams.from_params({"position": "top"}) == TextOverlayParams(text="Sample Text", position="top")
