"""Tests for turning walked JSON documents into registry gauges."""
import json

from prometheus_client import CollectorRegistry, generate_latest

from json_exporter.collector import (
    GaugeCollector, ProbeMetrics, exposition_name, probe_registry
)
from json_exporter.series import SeriesPoint, gather


def probe(raw: str, prefix: str = ""):
    return probe_registry(prefix, json.loads(raw))


def families(registry):
    return {family.name: family for family in registry.collect()}


def test_float_value():
    registry = probe('{"x": 1.0}')
    assert gather(registry) == [SeriesPoint("x", {}, 1.0)]


def test_int_value():
    registry = probe('{"x": 1}')
    assert gather(registry) == [SeriesPoint("x", {}, 1.0)]


def test_bool_values():
    assert gather(probe('{"x": true}')) == [SeriesPoint("x", {}, 1.0)]
    assert gather(probe('{"x": false}')) == [SeriesPoint("x", {}, 0.0)]


def test_string_and_null_values():
    assert gather(probe('{"x": "ok"}')) == []
    assert gather(probe('{"x": null}')) == []


def test_gauge_metadata():
    family = families(probe('{"x": 1}'))["x"]
    assert family.type == "gauge"
    assert family.documentation == "Retrieved value"


def test_array_value():
    registry = probe('{"x": [1, 2, 3]}')
    assert gather(registry) == [
        SeriesPoint("x::array_0", {"array_0_index": "0"}, 1.0),
        SeriesPoint("x::array_0", {"array_0_index": "1"}, 2.0),
        SeriesPoint("x::array_0", {"array_0_index": "2"}, 3.0),
    ]


def test_nested_value():
    assert gather(probe('{"x": {"y": 1}}')) == [SeriesPoint("x::y", {}, 1.0)]
    assert gather(probe('{"x": {"y": {"z": 1}}}')) == [SeriesPoint("x::y::z", {}, 1.0)]


def test_array_in_nested_value():
    registry = probe('{"x": {"y": [1, 2, 3]}}')
    assert registry.get_sample_value("x::y::array_0", {"array_0_index": "1"}) == 2.0
    assert len(gather(registry)) == 3


def test_array_in_array_value():
    registry = probe('{"x": [[1, 2], [3, 4]]}')
    assert list(families(registry)) == ["x::array_0::array_1"]
    assert gather(registry) == [
        SeriesPoint("x::array_0::array_1", {"array_0_index": "0", "array_1_index": "0"}, 1.0),
        SeriesPoint("x::array_0::array_1", {"array_0_index": "0", "array_1_index": "1"}, 2.0),
        SeriesPoint("x::array_0::array_1", {"array_0_index": "1", "array_1_index": "0"}, 3.0),
        SeriesPoint("x::array_0::array_1", {"array_0_index": "1", "array_1_index": "1"}, 4.0),
    ]


def test_array_at_root():
    registry = probe('[1, 2, 3]')
    assert [p.labels["array_0_index"] for p in gather(registry)] == ["0", "1", "2"]
    assert registry.get_sample_value("array_0", {"array_0_index": "2"}) == 3.0


def test_prefix():
    registry = probe('{"x": 1}', prefix="svc")
    assert gather(registry) == [SeriesPoint("svc::x", {}, 1.0)]


def test_one_gauge_per_name():
    """Objects in an array that share keys feed the same gauges."""
    registry = probe('{"pods": [{"cpu": 1, "up": true}, {"cpu": 2, "up": false}]}')
    assert sorted(families(registry)) == ["pods::array_0::cpu", "pods::array_0::up"]
    assert registry.get_sample_value("pods::array_0::cpu", {"array_0_index": "1"}) == 2.0
    assert registry.get_sample_value("pods::array_0::up", {"array_0_index": "1"}) == 0.0


def test_last_write_wins():
    registry = CollectorRegistry()
    collector = GaugeCollector(registry)
    collector.receive("x::array_0", 1.0, [0])
    collector.receive("x::array_0", 5.0, [0])
    assert gather(registry) == [SeriesPoint("x::array_0", {"array_0_index": "0"}, 5.0)]


def test_label_count_mismatch_is_dropped(caplog):
    registry = CollectorRegistry()
    collector = GaugeCollector(registry)
    collector.receive("x", 1.0, [0])
    collector.receive("x", 2.0, [0, 1])
    collector.receive("x", 3.0, [])
    assert collector.label_names["x"] == ["array_0_index"]
    assert gather(registry) == [SeriesPoint("x", {"array_0_index": "0"}, 1.0)]
    assert "dropping value" in caplog.text


def test_root_scalar_without_prefix_is_skipped(caplog):
    registry = probe('1')
    assert gather(registry) == []
    assert "Cannot register gauge" in caplog.text


def test_rejected_name_does_not_stop_walk():
    registry = CollectorRegistry()
    collector = GaugeCollector(registry)
    collector.receive("", 1.0, [])
    collector.receive("", 2.0, [])
    collector.receive("ok", 3.0, [])
    assert collector.rejected == {""}
    assert gather(registry) == [SeriesPoint("ok", {}, 3.0)]


def test_exposition_name():
    assert exposition_name("x::array_0") == "x::array_0"
    assert exposition_name("a.b") == "a_b"
    assert exposition_name("cpu usage-%") == "cpu_usage__"
    assert exposition_name("0day") == "_day"


def test_names_escaping_to_the_same_family():
    """Keys differing only in escaped characters must not render one family twice."""
    registry = probe('{"a.b": 1, "a_b": 2}')
    output = generate_latest(registry).decode("utf-8")
    assert len(gather(registry)) == 1
    assert output.count("# TYPE ") == 1

    collector = GaugeCollector(CollectorRegistry())
    collector.receive("a.b", 1.0, [])
    collector.receive("a_b", 2.0, [])
    assert len(collector.gauges) == 1
    assert len(collector.rejected) == 1


def test_root_scalar_with_prefix():
    assert gather(probe('42', prefix="answer")) == [SeriesPoint("answer", {}, 42.0)]


def test_probes_are_independent():
    raw = '{"a": [[1, 2], [3]], "b": {"c": true, "d": "skip"}, "e": null}'
    first = probe(raw)
    second = probe(raw)
    assert first is not second
    assert gather(first) == gather(second)
    assert generate_latest(first) == generate_latest(second)


def test_exposition_output():
    output = generate_latest(probe('{"x": [1, 2]}')).decode("utf-8")
    assert "# HELP x::array_0 Retrieved value" in output
    assert "# TYPE x::array_0 gauge" in output
    assert 'x::array_0{array_0_index="1"} 2.0' in output


def test_probe_metrics():
    registry = CollectorRegistry()
    metrics = ProbeMetrics(registry=registry, prefix="test_")
    metrics.record_probe("success", 0.02)
    metrics.record_probe("failure", 0.5)
    metrics.record_probe("success", 0.01)
    metrics.set_probe_samples(7)

    assert registry.get_sample_value("test_probes_total", {"result": "success"}) == 2.0
    assert registry.get_sample_value("test_probes_total", {"result": "failure"}) == 1.0
    assert registry.get_sample_value("test_probe_duration_seconds_count") == 3.0
    assert registry.get_sample_value("test_probe_samples") == 7.0
