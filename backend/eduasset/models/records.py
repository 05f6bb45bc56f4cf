"""
EduAsset - Inventory Records
Software licenses, service accounts and device loans
"""
from datetime import date
from typing import Any, ClassVar, List, Optional, Sequence

from pydantic import field_validator

from eduasset.models.device import Record


def _cell(row: Sequence[Any], index: int) -> str:
    if index < len(row) and row[index] is not None:
        return str(row[index])
    return ""


SOFTWARE_COLUMNS = [
    "id", "name", "type", "version", "license_key", "purchase_date", "assigned_to", "notes",
]
SOFTWARE_HEADER = ["ID", "Name", "Type", "Version", "License", "Date", "Assigned To", "Notes"]

ACCOUNT_COLUMNS = ["id", "service_name", "url", "username", "password", "category", "notes"]
ACCOUNT_HEADER = ["ID", "Service", "URL", "Username", "Password", "Category", "Notes"]

LOAN_COLUMNS = [
    "id", "device_id", "device_name", "user_id", "user_name",
    "loan_date", "due_date", "return_date", "status", "notes",
]
LOAN_HEADER = [
    "ID", "DeviceID", "DeviceName", "UserID", "UserName",
    "LoanDate", "DueDate", "ReturnDate", "Status", "Notes",
]


class RowRecord(Record):
    """Record stored as one fixed-column row on the spreadsheet backend."""
    columns: ClassVar[List[str]] = []

    @classmethod
    def from_row(cls, row: Sequence[Any]):
        return cls(**{field: _cell(row, i) for i, field in enumerate(cls.columns)})

    def to_row(self) -> List[Any]:
        return ["" if getattr(self, f) is None else getattr(self, f) for f in self.columns]


class Software(RowRecord):
    columns: ClassVar[List[str]] = SOFTWARE_COLUMNS

    id: str = ""
    name: str = ""
    type: str = ""
    version: str = ""
    license_key: str = ""
    purchase_date: str = ""
    assigned_to: str = ""
    notes: str = ""


class Account(RowRecord):
    columns: ClassVar[List[str]] = ACCOUNT_COLUMNS

    id: str = ""
    service_name: str = ""
    url: str = ""
    username: str = ""
    password: str = ""
    category: str = "General"
    notes: str = ""


class Loan(RowRecord):
    columns: ClassVar[List[str]] = LOAN_COLUMNS

    id: str
    device_id: str
    device_name: str = ""
    user_id: str = ""
    user_name: str = ""
    loan_date: str = ""
    due_date: str = ""
    return_date: Optional[str] = None
    status: str = "Active"
    notes: str = ""

    @field_validator("return_date", mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        return value or None

    def with_effective_status(self, today: Optional[date] = None) -> "Loan":
        """Active loans past their due date read as Overdue."""
        today_str = (today or date.today()).isoformat()
        if self.status == "Active" and self.due_date and self.due_date < today_str:
            return self.model_copy(update={"status": "Overdue"})
        return self


__all__ = [
    "Software", "Account", "Loan",
    "SOFTWARE_HEADER", "ACCOUNT_HEADER", "LOAN_HEADER",
]
