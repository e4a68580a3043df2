"""
Tests for the selection broadcast hub.
"""

from interaction.selection_hub import SelectionHub


class TestPublish:

    def test_publish_then_current_returns_owner_and_rows(self, hub, sales_rows):
        assert hub.publish("chart-a", sales_rows) is True
        assert hub.current() == {"owner_id": "chart-a", "rows": sales_rows}

    def test_second_publisher_evicts_first(self, hub, sales_rows):
        hub.publish("chart-a", sales_rows[:1])
        hub.publish("chart-b", sales_rows[1:])

        selection = hub.current()
        assert selection["owner_id"] == "chart-b"
        assert selection["rows"] == sales_rows[1:]

    def test_republish_replaces_rows_without_merging(self, hub, sales_rows):
        hub.publish("chart-a", sales_rows[:2])
        hub.publish("chart-a", sales_rows[2:])
        assert hub.current()["rows"] == sales_rows[2:]

    def test_empty_publish_from_owner_clears(self, hub, sales_rows):
        hub.publish("chart-a", sales_rows)
        assert hub.publish("chart-a", []) is True
        assert hub.current() is None

    def test_empty_publish_from_other_widget_is_ignored(self, hub, sales_rows):
        hub.publish("chart-a", sales_rows)
        assert hub.publish("chart-b", []) is False
        assert hub.current()["owner_id"] == "chart-a"

    def test_empty_publish_without_selection_is_ignored(self, hub):
        assert hub.publish("chart-a", []) is False
        assert hub.current() is None


class TestClear:

    def test_clear_is_idempotent(self, hub, sales_rows):
        hub.publish("chart-a", sales_rows)
        assert hub.clear() is True
        assert hub.clear() is False
        assert hub.current() is None

    def test_owned_by(self, hub, sales_rows):
        assert hub.owned_by("chart-a") is False
        hub.publish("chart-a", sales_rows)
        assert hub.owned_by("chart-a") is True
        assert hub.owned_by("chart-b") is False


class TestSnapshots:

    def test_current_is_a_copy(self, hub, sales_rows):
        hub.publish("chart-a", sales_rows)
        snapshot = hub.current()
        snapshot["rows"].clear()
        assert len(hub.current()["rows"]) == 3

    def test_publisher_list_mutation_does_not_leak(self, hub, sales_rows):
        rows = list(sales_rows)
        hub.publish("chart-a", rows)
        rows.pop()
        assert len(hub.current()["rows"]) == 3

    def test_hubs_are_independent(self, sales_rows):
        first, second = SelectionHub(), SelectionHub()
        first.publish("chart-a", sales_rows)
        assert second.current() is None


class TestSubscriptions:

    def test_listeners_receive_each_change(self, hub, sales_rows):
        received = []
        hub.subscribe(received.append)

        hub.publish("chart-a", sales_rows)
        hub.clear()

        assert received == [{"owner_id": "chart-a", "rows": sales_rows}, None]

    def test_unsubscribe_stops_notifications(self, hub, sales_rows):
        received = []
        unsubscribe = hub.subscribe(received.append)
        unsubscribe()

        hub.publish("chart-a", sales_rows)
        assert received == []

    def test_version_only_moves_on_change(self, hub, sales_rows):
        assert hub.version == 0
        hub.publish("chart-a", sales_rows)
        hub.publish("chart-b", [])
        hub.clear()
        hub.clear()
        assert hub.version == 2
