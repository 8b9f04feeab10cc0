from __future__ import annotations

from fakes import FakeEngineFactory
from sonichart import ChartModel, HostDataset, SonificationPlugin


def _empty_chart(chart_type: str = "bar", datasets=()):
    factory = FakeEngineFactory()
    plugin = SonificationPlugin(factory)
    chart = ChartModel(chart_type, datasets=datasets, plugins=[plugin])
    return chart, plugin, factory


def test_chart_without_datasets_stays_uninitialized() -> None:
    chart, plugin, factory = _empty_chart()

    chart.update()

    assert factory.requests == []
    assert chart not in plugin.registry
    assert chart.control_element is None


def test_chart_activates_on_first_update_with_data() -> None:
    chart, plugin, factory = _empty_chart()

    chart.labels = ["a", "b", "c"]
    chart.datasets.append(HostDataset(data=[1, 2, 3]))
    chart.update()

    assert len(factory.engines) == 1
    assert chart in plugin.registry
    assert [p["y"] for p in factory.requests[0].data] == [1, 2, 3]
    assert factory.engine.axes["y"]["maximum"] == 3.0


def test_dataset_with_empty_data_defers_activation() -> None:
    chart, _, factory = _empty_chart("line", datasets=[{"data": []}])
    assert factory.requests == []

    chart.datasets[0].data.extend([4, 5])
    chart.update()

    assert len(factory.engines) == 1
    assert factory.requests[0].kind == "line"


def test_multiple_updates_after_late_activation() -> None:
    chart, _, factory = _empty_chart()
    chart.labels = ["a", "b"]
    chart.datasets.append(HostDataset(data=[1, 2]))
    chart.update()
    engine = factory.engine

    chart.datasets[0].data = [5, 6]
    chart.update()
    chart.datasets[0].data = [7, 8]
    chart.update()
    chart.update()

    assert len(factory.engines) == 1
    assert len(engine.calls_named("set_data")) == 2
    assert [p["y"] for p in engine.flat] == [7, 8]


def test_emptied_chart_skips_engine_update_until_refilled() -> None:
    chart, _, factory = _empty_chart(datasets=[{"data": [1, 2]}])
    engine = factory.engine

    chart.datasets[0].data = []
    chart.update()
    assert engine.calls_named("set_data") == []

    chart.update()
    assert engine.calls_named("set_data") == []

    chart.datasets[0].data = [3]
    chart.update()
    assert len(engine.calls_named("set_data")) == 1
    assert [p["y"] for p in engine.flat] == [3]
