from __future__ import annotations

import pytest

from sonichart.chart_kinds import CHART_KIND_MAP, resolve_target_kind, series_kinds
from sonichart.contracts import HostDataset
from sonichart.errors import UnsupportedSeriesKindError


@pytest.mark.parametrize("kind, target", sorted(CHART_KIND_MAP.items()))
def test_every_host_kind_translates(kind: str, target: str) -> None:
    assert resolve_target_kind(kind, [HostDataset(data=[1])]) == target


def test_per_series_kind_overrides_chart_kind() -> None:
    datasets = [HostDataset(), HostDataset(type="line")]

    assert series_kinds("bar", datasets) == ["bar", "line"]
    assert resolve_target_kind("line", [HostDataset(type="line")]) == "line"


def test_kinds_sharing_a_target_are_compatible() -> None:
    datasets = [HostDataset(), HostDataset(type="radar"), HostDataset(type="polarArea")]

    assert resolve_target_kind("bar", datasets) == "bar"


def test_unknown_kind_is_rejected() -> None:
    with pytest.raises(UnsupportedSeriesKindError) as info:
        resolve_target_kind("sankey", [HostDataset()])

    assert info.value.invalid_kind == "sankey"
    assert "This plugin supports: bar, line" in str(info.value)


def test_mixed_targets_are_rejected() -> None:
    with pytest.raises(UnsupportedSeriesKindError, match="bar, pie"):
        resolve_target_kind("bar", [HostDataset(), HostDataset(type="pie")])


def test_chart_without_series_uses_its_own_kind() -> None:
    assert resolve_target_kind("doughnut", []) == "pie"
