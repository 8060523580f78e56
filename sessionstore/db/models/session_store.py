from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import BigInteger, Column, DateTime, MetaData, String, Table, Text
from sqlalchemy.sql import func

SESSION_ID_LENGTH = 128


@dataclass(slots=True)
class SessionRecord:
    """A persisted session row."""

    id: str
    data: str
    time_updated: int

    @classmethod
    def from_row(cls, row: Any) -> "SessionRecord":
        return cls(id=row.id, data=row.data, time_updated=int(row.time_updated))


def build_session_table(
    metadata: MetaData,
    table_name: str,
    schema: Optional[str] = None,
    timestamps: bool = False,
) -> Table:
    """
    Describe the session table.

    ``time_updated`` holds the expiry in epoch seconds.
    """
    columns = [
        Column("id", String(SESSION_ID_LENGTH), primary_key=True),
        Column("time_updated", BigInteger, nullable=False, index=True),
        Column("data", Text, nullable=False),
    ]
    if timestamps:
        columns.extend([
            Column("created_at", DateTime, server_default=func.now(), nullable=False),
            Column(
                "updated_at", DateTime,
                server_default=func.now(), onupdate=func.now(), nullable=False,
            ),
        ])
    return Table(table_name, metadata, *columns, schema=schema)
