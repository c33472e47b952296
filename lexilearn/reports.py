import pandas as pd
from pathlib import Path

from lexilearn import collection_names as names
from lexilearn.errors import NotFoundError
from lexilearn.store import CollectionStore

USER_COLUMNS = ["id", "display_name", "email", "role", "level", "plan", "subscription_status", "joined_at", "last_active_at"]
FINANCIAL_COLUMNS = ["teacher_id", "display_name", "total_hours", "hourly_rate", "total_amount", "paid_amount", "pending_amount", "status"]
STUDY_LOG_COLUMNS = ["date", "hours", "lessons_completed"]


class ReportBuilder:
    """
    Build tabular exports from the stored collections.
    One row per record; columns are fixed so empty reports keep their header.
    """

    @staticmethod
    def users_frame(store: CollectionStore) -> pd.DataFrame:
        """Non-admin roster with level and subscription columns"""
        progress = store.read(names.STUDENT_PROGRESS)
        subscriptions = {s["student_id"]: s for s in store.read(names.SUBSCRIPTIONS)}

        rows = []
        for user in store.read(names.USERS):
            if user["role"] == "admin":
                continue
            sub = subscriptions.get(user["id"], {})
            rows.append({
                "id": user["id"],
                "display_name": user["display_name"],
                "email": user["email"],
                "role": user["role"],
                "level": progress.get(user["id"], {}).get("level"),
                "plan": sub.get("plan"),
                "subscription_status": sub.get("status"),
                "joined_at": user.get("joined_at"),
                "last_active_at": user.get("last_active_at"),
            })
        return pd.DataFrame(rows, columns=USER_COLUMNS)

    @staticmethod
    def financial_frame(store: CollectionStore) -> pd.DataFrame:
        """Teacher payout table"""
        teachers = {u["id"]: u["display_name"] for u in store.read(names.USERS) if u["role"] == "teacher"}
        rows = [
            {**{k: p[k] for k in FINANCIAL_COLUMNS if k in p}, "display_name": teachers.get(p["teacher_id"], "")}
            for p in store.read(names.TEACHER_PAYMENTS)
        ]
        return pd.DataFrame(rows, columns=FINANCIAL_COLUMNS)

    @staticmethod
    def study_log_frame(store: CollectionStore, student_id: str) -> pd.DataFrame:
        """Daily study log of one student, oldest day first"""
        progress = store.read(names.STUDENT_PROGRESS).get(student_id)
        if progress is None:
            raise NotFoundError(names.STUDENT_PROGRESS, student_id)
        df = pd.DataFrame(progress.get("study_logs", []), columns=STUDY_LOG_COLUMNS)
        df["date"] = pd.to_datetime(df["date"])
        return df.sort_values("date").reset_index(drop=True)

    @staticmethod
    def export_frame(df: pd.DataFrame, file_path: str) -> Path:
        """
        Write a report, choosing the format from the file extension.
        Supports: CSV, Excel (xlsx)
        """
        path = Path(file_path)
        file_ext = path.suffix.lower()

        if file_ext == ".csv":
            df.to_csv(path, index=False)
        elif file_ext == ".xlsx":
            df.to_excel(path, index=False)
        else:
            raise ValueError(f"Unsupported file format: {file_ext}. Use .csv or .xlsx")
        return path
