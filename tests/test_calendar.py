"""Tests — calendar items, bucketing and view windows."""

from datetime import date

from buildtrack.domain.calendar import (
    PROJECT_COLORS,
    build_calendar_items,
    build_view,
    group_items_by_date,
    month_dates,
    week_dates,
    week_start,
)

PROJECT = {
    "id": 1,
    "name": "Riverside Dorms",
    "status": "In Progress",
    "color": None,
    "target_online_date": "2026-01-14",
    "target_offline_date": "2026-01-16",
    "delivery_date": None,
}


def _items():
    return build_calendar_items(
        projects=[PROJECT],
        tasks=[
            {"id": 5, "title": "Set modules", "status": "Not Started", "project_id": 1,
             "due_date": "2026-01-14T15:00:00+00:00"},
            {"id": 6, "title": "No date", "status": "Not Started", "project_id": 1, "due_date": None},
        ],
        rfis=[{"id": 7, "rfi_number": "P-RFI-001", "subject": "Anchors", "status": "Open",
               "project_id": 1, "due_date": "2026-01-14"}],
        submittals=[{"id": 8, "submittal_number": None, "title": "Windows", "status": "Pending",
                     "project_id": 1, "due_date": "2026-01-20"}],
        milestones=[{"id": 9, "name": "Set complete", "status": "Not Started", "project_id": 1,
                     "due_date": "2026-01-14"}],
    )


class TestBuildItems:
    def test_undated_rows_are_skipped(self):
        ids = {i["id"] for i in _items()}
        assert "task-6" not in ids
        assert ids == {"task-5", "rfi-7", "sub-8", "milestone-9", "online-1", "offline-1"}

    def test_titles_and_colors(self):
        by_id = {i["id"]: i for i in _items()}
        assert by_id["rfi-7"]["title"] == "P-RFI-001: Anchors"
        assert by_id["sub-8"]["title"] == "Windows"
        assert by_id["online-1"]["title"] == "Riverside Dorms - Online"
        assert by_id["task-5"]["color"] == PROJECT_COLORS[0]
        assert by_id["task-5"]["project_name"] == "Riverside Dorms"

    def test_project_color_override(self):
        items = build_calendar_items(projects=[{**PROJECT, "color": "#123456"}])
        assert {i["color"] for i in items} == {"#123456"}


class TestBucketing:
    def test_each_item_in_one_bucket_by_date_only(self):
        grouped = group_items_by_date(_items())
        assert sum(len(v) for v in grouped.values()) == 6
        assert [i["type"] for i in grouped["2026-01-14"]] == ["online_date", "milestone", "task", "rfi"]

    def test_items_without_a_date_are_dropped(self):
        assert group_items_by_date([{"id": "x", "type": "task", "date": ""}]) == {}


class TestViews:
    def test_week_starts_monday(self):
        assert week_start(date(2026, 1, 14)) == date(2026, 1, 12)
        assert week_start(date(2026, 1, 18)) == date(2026, 1, 12)
        assert week_dates(date(2026, 1, 14))[-1] == date(2026, 1, 18)
        assert len(week_dates(date(2026, 1, 14), include_weekends=False)) == 5

    def test_month_grid_covers_whole_weeks(self):
        dates = month_dates(date(2026, 2, 10))
        assert dates[0] == date(2026, 1, 26)
        assert dates[-1] == date(2026, 3, 1)
        assert len(dates) % 7 == 0

    def test_week_view(self):
        view = build_view(_items(), date(2026, 1, 14), "week")
        assert view["start"] == "2026-01-12"
        assert view["end"] == "2026-01-18"
        assert view["total"] == 5
        assert len(view["days"]["2026-01-14"]) == 4
        assert view["days"]["2026-01-13"] == []

    def test_workweek_view_hides_weekend(self):
        items = build_calendar_items(tasks=[
            {"id": 1, "title": "Saturday pour", "status": "Not Started", "project_id": 1,
             "due_date": "2026-01-17"},
        ])
        view = build_view(items, date(2026, 1, 14), "workweek")
        assert view["end"] == "2026-01-16"
        assert view["total"] == 0

    def test_month_view_includes_next_week(self):
        view = build_view(_items(), date(2026, 1, 14), "month")
        assert view["total"] == 6
        assert view["days"]["2026-01-20"][0]["id"] == "sub-8"
