from sqlalchemy import delete, select

from app.rfidpos.db.models import ActivityLogEntry


class ActivityLogRepository:
    def __init__(self, db):
        self.db = db

    def list_lines(self) -> list[str]:
        rows = self.db.execute(select(ActivityLogEntry).order_by(ActivityLogEntry.id)).scalars().all()
        return [row.line for row in rows]

    def append(self, line: str) -> None:
        self.db.add(ActivityLogEntry(line=line))
        self.db.flush()

    def trim(self, keep: int) -> None:
        cutoff = (
            self.db.execute(
                select(ActivityLogEntry.id).order_by(ActivityLogEntry.id.desc()).offset(keep).limit(1)
            )
            .scalars()
            .first()
        )
        if cutoff is not None:
            self.db.execute(delete(ActivityLogEntry).where(ActivityLogEntry.id <= cutoff))

    def replace_all(self, lines: list[str]) -> None:
        self.delete_all()
        self.db.add_all([ActivityLogEntry(line=line) for line in lines])
        self.db.flush()

    def delete_all(self) -> None:
        self.db.execute(delete(ActivityLogEntry))
