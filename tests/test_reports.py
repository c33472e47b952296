import pandas as pd
import pytest

from lexilearn.errors import NotFoundError
from lexilearn.reports import FINANCIAL_COLUMNS, USER_COLUMNS, ReportBuilder


def test_users_frame_lists_non_admins(seeded_store):
    df = ReportBuilder.users_frame(seeded_store)

    assert list(df.columns) == USER_COLUMNS
    assert len(df) == 9
    assert "admin" not in set(df["role"])
    students = df[df["role"] == "student"]
    assert students["plan"].notna().all()
    assert students["level"].isin(["Beginner", "Intermediate", "Advanced"]).all()


def test_financial_frame(seeded_store):
    df = ReportBuilder.financial_frame(seeded_store)

    assert list(df.columns) == FINANCIAL_COLUMNS
    assert list(df["teacher_id"]) == ["teacher_1", "teacher_2"]
    assert df.loc[0, "display_name"] == "Dr. Sarah Anderson"
    assert (df["pending_amount"] == df["total_amount"] - df["paid_amount"]).all()


def test_study_log_frame(seeded_store):
    df = ReportBuilder.study_log_frame(seeded_store, "student_1")

    assert len(df) == 30
    assert df["date"].is_monotonic_increasing

    with pytest.raises(NotFoundError):
        ReportBuilder.study_log_frame(seeded_store, "student_99")


def test_empty_store_keeps_headers(store):
    df = ReportBuilder.users_frame(store)

    assert df.empty
    assert list(df.columns) == USER_COLUMNS


def test_export_csv(seeded_store, tmp_path):
    df = ReportBuilder.users_frame(seeded_store)

    path = ReportBuilder.export_frame(df, str(tmp_path / "users.csv"))

    loaded = pd.read_csv(path)
    assert list(loaded.columns) == USER_COLUMNS
    assert len(loaded) == len(df)


def test_export_xlsx(seeded_store, tmp_path):
    df = ReportBuilder.financial_frame(seeded_store)

    path = ReportBuilder.export_frame(df, str(tmp_path / "finance.xlsx"))

    assert pd.read_excel(path)["teacher_id"].tolist() == ["teacher_1", "teacher_2"]


def test_export_rejects_unknown_format(store, tmp_path):
    with pytest.raises(ValueError):
        ReportBuilder.export_frame(pd.DataFrame(), str(tmp_path / "report.txt"))
