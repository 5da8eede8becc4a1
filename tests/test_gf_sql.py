from datetime import date, datetime

import pytest

from form_graph.datafeeds.gf_sql import SqlFormDirectory, SqlSubmissionSource, SqlViewSource
from form_graph.persistence import (
    EntriesRepository,
    FormsRepository,
    FormViewsRepository,
    db,
)
from form_graph.reports.builder import ReportBuilder
from form_graph.reports.errors import DataSourceError
from form_graph.reports.periods import DateRange, Granularity, build_axis
from form_graph.reports.series import densify


JAN = DateRange(date(2024, 1, 1), date(2024, 1, 3))


@pytest.fixture()
def engine(tmp_path):
    engine = db.get_engine(f"sqlite:///{tmp_path / 'forms.sqlite'}")
    tables = db.init_db(engine, prefix="wp_")
    with db.session(engine) as conn:
        forms = FormsRepository(conn, tables)
        forms.upsert(1, "Contact Form")
        forms.upsert(2, "Old Survey", is_active=False)
        forms.upsert(3, "Deleted Form", is_trash=True)
        entries = EntriesRepository(conn, tables)
        entries.bulk_insert(
            1,
            [
                datetime(2024, 1, 1, 9, 0, 0),
                datetime(2024, 1, 1, 9, 0, 0),
                datetime(2024, 1, 3, 23, 59, 59),
                datetime(2024, 1, 4, 0, 0, 1),
            ],
        )
        entries.bulk_insert(1, [datetime(2024, 1, 2, 10)], status="spam")
        entries.bulk_insert(2, [datetime(2024, 1, 2, 11)])
        FormViewsRepository(conn, tables).bulk_insert(
            1, [(datetime(2024, 1, 1, 8), 10), (datetime(2024, 1, 3, 8), 20)]
        )
    yield engine
    engine.dispose()


def test_submissions_are_active_and_inside_range(engine):
    observations = SqlSubmissionSource(engine, "wp_").fetch(1, JAN)
    assert sum(o.count for o in observations) == 3
    assert all(isinstance(o.timestamp, datetime) for o in observations)
    axis = build_axis(Granularity.DAILY, JAN)
    assert densify(observations, axis) == [2, 0, 1]


def test_views_use_stored_counts(engine):
    observations = SqlViewSource(engine, "wp_").fetch(1, JAN)
    axis = build_axis(Granularity.DAILY, JAN)
    assert densify(observations, axis) == [10, 0, 20]
    assert SqlViewSource(engine, "wp_").fetch(2, JAN) == []


def test_missing_tables_raise_data_source_error(engine):
    with pytest.raises(DataSourceError) as excinfo:
        SqlSubmissionSource(engine, "other_").fetch(5, JAN)
    assert excinfo.value.form_id == 5
    assert excinfo.value.kind == "data_source_error"

    with pytest.raises(DataSourceError):
        SqlViewSource(engine, "other_").fetch(5, JAN)


def test_unreadable_views_table_keeps_submissions(engine):
    builder = ReportBuilder(
        SqlSubmissionSource(engine, "wp_"),
        SqlViewSource(engine, "other_"),
        SqlFormDirectory(engine, "wp_"),
    )
    report = builder.build([1], Granularity.DAILY, JAN)
    assert report.datasets[0].data == (2, 0, 1)
    assert report.conversion_summary.total_views == 0


def test_form_directory(engine):
    directory = SqlFormDirectory(engine, "wp_")
    assert directory.resolve(1) == "Contact Form"
    with pytest.raises(LookupError):
        directory.resolve(99)
    assert directory.list_forms() == [{"id": 1, "title": "Contact Form"}]
    assert directory.list_forms(active_only=False) == [
        {"id": 1, "title": "Contact Form"},
        {"id": 2, "title": "Old Survey"},
    ]


def test_upsert_replaces_title(engine):
    with db.session(engine) as conn:
        FormsRepository(conn, db.init_db(engine, prefix="wp_")).upsert(1, "Contact Us")
    assert SqlFormDirectory(engine, "wp_").resolve(1) == "Contact Us"


def test_report_from_sql_sources(engine):
    builder = ReportBuilder(
        SqlSubmissionSource(engine, "wp_"),
        SqlViewSource(engine, "wp_"),
        SqlFormDirectory(engine, "wp_"),
        max_workers=2,
    )
    report = builder.build([1, 2, 42], Granularity.DAILY, JAN)
    assert [d.label for d in report.datasets] == ["Contact Form", "Old Survey", "Form #42"]
    assert report.datasets[0].data == (2, 0, 1)
    assert report.datasets[1].data == (0, 1, 0)
    assert report.datasets[2].data == (0, 0, 0)
    assert report.conversion[0].data == (20.0, 0.0, 5.0)
    assert report.conversion_summary.total_views == 30
    assert report.conversion_summary.total_submissions == 4
    assert report.conversion_summary.conversion_rate == 13.33
