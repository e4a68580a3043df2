"""
Tests for chart widgets: brushing, cross-chart filtering and click forwarding.
"""

import pytest

from interaction.chart_widget import ChartWidget


BAR_CONFIG = {
    "xAxis": {"type": "category"},
    "yAxis": {"type": "value"},
    "series": [{"type": "bar", "data": []}],
}


@pytest.fixture
def make_widget(hub):
    def make(chart_id, rows, **kwargs):
        return ChartWidget(chart_id, dict(BAR_CONFIG), rows, hub, **kwargs)
    return make


class TestBrush:

    def test_brush_range_is_inclusive(self, hub, make_widget, sales_rows):
        widget = make_widget("chart-a", sales_rows)
        assert widget.on_brush_complete([0, 1]) is True

        selection = hub.current()
        assert selection["owner_id"] == "chart-a"
        assert selection["rows"] == [{"region": "East", "sales": 10}, {"region": "West", "sales": 20}]

    def test_fractional_range_covers_whole_positions(self, hub, make_widget, sales_rows):
        widget = make_widget("chart-a", sales_rows)
        widget.on_brush_complete([0.5, 2.2])
        assert hub.current()["rows"] == sales_rows[1:3]

    def test_empty_brush_clears_own_selection(self, hub, make_widget, sales_rows):
        widget = make_widget("chart-a", sales_rows)
        widget.on_brush_complete([0, 0])

        assert widget.on_brush_complete(None) is True
        assert hub.current() is None

    def test_out_of_range_brush_by_owner_clears(self, hub, make_widget, sales_rows):
        widget = make_widget("chart-a", sales_rows)
        widget.on_brush_complete([0, 2])
        widget.on_brush_complete([10, 12])
        assert hub.current() is None

    def test_empty_brush_leaves_foreign_selection(self, hub, make_widget, sales_rows):
        owner = make_widget("chart-a", sales_rows)
        other = make_widget("chart-b", sales_rows)
        owner.on_brush_complete([0, 1])

        assert other.on_brush_complete([2, 1]) is False
        assert hub.current()["owner_id"] == "chart-a"

    def test_later_brush_on_other_chart_wins(self, hub, make_widget, sales_rows):
        first = make_widget("chart-a", sales_rows)
        second = make_widget("chart-b", sales_rows)
        first.on_brush_complete([0, 0])
        second.on_brush_complete([2, 2])

        assert hub.current() == {"owner_id": "chart-b", "rows": [sales_rows[2]]}


class TestCrossChartFiltering:

    def test_foreign_selection_narrows_rows(self, make_widget, sales_rows):
        source = make_widget("chart-a", [{"region": "East"}])
        target = make_widget("chart-b", sales_rows)
        source.on_brush_complete([0, 0])

        rows, filtered = target.visible_rows()
        assert rows == [sales_rows[0], sales_rows[2]]
        assert filtered is True

    def test_owner_renders_its_full_dataset(self, make_widget, sales_rows):
        owner = make_widget("chart-a", sales_rows)
        owner.on_brush_complete([0, 0])

        rows, filtered = owner.visible_rows()
        assert rows == sales_rows
        assert filtered is False

    def test_disjoint_rows_fall_back_to_full_data(self, make_widget, sales_rows):
        source = make_widget("chart-a", sales_rows)
        other_rows = [{"product": "Widget", "units": 3}, {"product": "Gadget", "units": 8}]
        target = make_widget("chart-b", other_rows)
        source.on_brush_complete([0, 1])

        rows, filtered = target.visible_rows()
        assert rows == other_rows
        assert filtered is False

    def test_documented_behavior_empty_intersection_shows_unfiltered(self, make_widget, sales_rows):
        # An intersection that is legitimately empty is rendered as "no filter".
        source = make_widget("chart-a", [{"region": "South"}])
        target = make_widget("chart-b", sales_rows)
        source.on_brush_complete([0, 0])

        view = target.render()
        assert view["rows"] == sales_rows
        assert view["filtered"] is False
        assert view["has_selection"] is True

    def test_full_match_is_not_marked_filtered(self, make_widget, sales_rows):
        source = make_widget("chart-a", sales_rows)
        target = make_widget("chart-b", sales_rows)
        source.on_brush_complete([0, 2])

        rows, filtered = target.visible_rows()
        assert rows == sales_rows
        assert filtered is False

    def test_missing_key_is_not_a_wildcard(self, make_widget):
        source = make_widget("chart-a", [{"region": "East", "channel": "web"}])
        target = make_widget("chart-b", [{"region": "East"}, {"region": "East", "channel": "web"}])
        source.on_brush_complete([0, 0])

        rows, filtered = target.visible_rows()
        assert rows == [{"region": "East", "channel": "web"}]
        assert filtered is True

    def test_bool_and_number_do_not_match(self, make_widget):
        source = make_widget("chart-a", [{"flag": True}])
        target = make_widget("chart-b", [{"flag": 1}, {"flag": True}, {"flag": 0}])
        source.on_brush_complete([0, 0])

        rows, _ = target.visible_rows()
        assert rows == [{"flag": True}]

    def test_int_and_float_compare_numerically(self, make_widget):
        source = make_widget("chart-a", [{"sales": 10}])
        target = make_widget("chart-b", [{"sales": 10.0}, {"sales": 11.0}])
        source.on_brush_complete([0, 0])

        rows, _ = target.visible_rows()
        assert rows == [{"sales": 10.0}]

    def test_none_matches_only_none(self, make_widget):
        source = make_widget("chart-a", [{"region": None}])
        target = make_widget("chart-b", [{"region": None}, {"region": "East"}])
        source.on_brush_complete([0, 0])

        rows, _ = target.visible_rows()
        assert rows == [{"region": None}]

    def test_clearing_restores_full_view(self, hub, make_widget, sales_rows):
        source = make_widget("chart-a", [{"region": "West"}])
        target = make_widget("chart-b", sales_rows)
        source.on_brush_complete([0, 0])
        hub.clear()

        rows, filtered = target.visible_rows()
        assert rows == sales_rows
        assert filtered is False


class TestRender:

    def test_render_adds_brush_and_tooltip(self, make_widget, sales_rows):
        view = make_widget("chart-a", sales_rows, title="Sales").render()

        option = view["option"]
        assert view["id"] == "chart-a"
        assert view["title"] == "Sales"
        assert option["brush"]["toolbox"] == ["rect", "clear"]
        assert option["toolbox"]["feature"]["brush"]["type"] == ["rect", "clear"]
        assert option["tooltip"]["trigger"] == "item"
        assert "emphasis" not in option["series"][0]

    def test_render_under_selection_rewrites_series(self, make_widget, sales_rows):
        source = make_widget("chart-a", [{"region": "West"}])
        target = make_widget("chart-b", sales_rows)
        source.on_brush_complete([0, 0])

        option = target.render()["option"]
        assert option["series"][0]["data"] == [{"region": "West", "sales": 20}]
        assert option["series"][0]["emphasis"] == {"focus": "series", "blurScope": "coordinateSystem"}

    def test_fallback_render_keeps_original_series(self, hub, sales_rows):
        config = {"xAxis": {"type": "category"}, "series": [{"type": "bar", "data": [10, 20, 5]}]}
        target = ChartWidget("chart-b", config, sales_rows, hub)
        before = target.render()["option"]

        source = ChartWidget("chart-a", {}, [{"product": "X"}], hub)
        source.on_brush_complete([0, 0])
        view = target.render()

        assert view["filtered"] is False
        assert view["option"]["series"][0]["data"] == [10, 20, 5]
        assert view["option"]["series"][0]["data"] == before["series"][0]["data"]

    def test_full_match_keeps_original_series(self, hub, sales_rows):
        config = {"series": [{"type": "bar", "data": [10, 20, 5]}]}
        target = ChartWidget("chart-b", config, sales_rows, hub)
        ChartWidget("chart-a", {}, sales_rows, hub).on_brush_complete([0, 2])

        assert target.render()["option"]["series"][0]["data"] == [10, 20, 5]

    def test_render_updates_dataset_source(self, hub, sales_rows):
        config = {"dataset": {"source": []}, "series": [{"type": "bar"}]}
        source = ChartWidget("chart-a", {}, [{"region": "West"}], hub)
        target = ChartWidget("chart-b", config, sales_rows, hub)
        source.on_brush_complete([0, 0])

        option = target.render()["option"]
        assert option["dataset"]["source"] == [{"region": "West", "sales": 20}]
        assert "data" not in option["series"][0]

    def test_render_does_not_mutate_config(self, make_widget, sales_rows):
        source = make_widget("chart-a", [{"region": "West"}])
        target = make_widget("chart-b", sales_rows)
        source.on_brush_complete([0, 0])
        target.render()

        assert "brush" not in target.config
        assert target.config["series"][0]["data"] == []

    def test_stale_flag_follows_hub_changes(self, hub, make_widget, sales_rows):
        widget = make_widget("chart-b", sales_rows)
        assert widget.is_stale is False

        hub.publish("chart-a", sales_rows[:1])
        assert widget.is_stale is True

        widget.render()
        assert widget.is_stale is False


class TestClick:

    def test_click_without_drill_path_is_noop(self, make_widget, sales_rows):
        calls = []
        widget = make_widget("chart-a", sales_rows, on_drill_request=lambda *a: calls.append(a))
        assert widget.on_click({"name": "East"}) is None
        assert calls == []

    def test_click_forwards_point_levels_and_rows(self, make_widget, sales_rows):
        calls = []
        levels = [{"field": "region", "label": "Region", "chart_type": "bar"}]
        widget = make_widget(
            "chart-a", sales_rows,
            on_drill_request=lambda *a: calls.append(a) or True,
            drill_levels=levels,
        )

        assert widget.on_click({"name": "East"}) is True
        point, forwarded_levels, rows = calls[0]
        assert point == {"name": "East"}
        assert list(forwarded_levels) == levels
        assert rows == sales_rows


class TestDispose:

    def test_dispose_releases_owned_selection(self, hub, make_widget, sales_rows):
        widget = make_widget("chart-a", sales_rows)
        widget.on_brush_complete([0, 1])
        widget.dispose()
        assert hub.current() is None

    def test_dispose_keeps_foreign_selection(self, hub, make_widget, sales_rows):
        owner = make_widget("chart-a", sales_rows)
        other = make_widget("chart-b", sales_rows)
        owner.on_brush_complete([0, 1])
        other.dispose()
        assert hub.current()["owner_id"] == "chart-a"
