from PySide6.QtCore import Qt
from PySide6.QtGui import QColor
from PySide6.QtWidgets import QAbstractItemView, QHeaderView, QTableWidget, QTableWidgetItem

from crawl_dashboard.domain.model import Job, JobStatus

# (헤더 라벨, 서버 정렬 필드). 정렬 필드가 None인 열은 정렬할 수 없습니다.
JOB_COLUMNS: tuple[tuple[str, str | None], ...] = (
    ("URL", "url"),
    ("상태", "status"),
    ("페이지 제목", "page_title"),
    ("내부 링크", None),
    ("외부 링크", None),
    ("깨진 링크", None),
    ("생성 시각", "created_at"),
    ("완료 시각", "completed_at"),
)

STATUS_LABELS: dict[JobStatus, str] = {
    JobStatus.QUEUED: "대기 중",
    JobStatus.RUNNING: "실행 중",
    JobStatus.COMPLETED: "완료",
    JobStatus.ERROR: "에러",
    JobStatus.STOPPED: "중지됨",
}

STATUS_COLORS: dict[JobStatus, QColor] = {
    JobStatus.QUEUED: QColor("#6c757d"),
    JobStatus.RUNNING: QColor("#007bff"),
    JobStatus.COMPLETED: QColor("#28a745"),
    JobStatus.ERROR: QColor("#dc3545"),
    JobStatus.STOPPED: QColor("#fd7e14"),
}


def _format_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "-"


class JobTableWidget(QTableWidget):
    """Job 목록을 보여주는 읽기 전용 테이블. 각 행에 Job id를 저장합니다."""

    def __init__(self, parent=None):
        super().__init__(0, len(JOB_COLUMNS), parent)
        self.setHorizontalHeaderLabels([label for label, _ in JOB_COLUMNS])
        self.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.horizontalHeader().setSectionsClickable(True)
        self.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.setSelectionMode(QAbstractItemView.SelectionMode.ExtendedSelection)

    def populate(self, jobs: tuple[Job, ...]) -> None:
        # 다시 그린 뒤에도 같은 Job이 선택된 상태로 남도록 합니다.
        selected = set(self.selected_job_ids())
        self.setRowCount(len(jobs))
        for row, job in enumerate(jobs):
            url_item = QTableWidgetItem(job.url)
            url_item.setData(Qt.ItemDataRole.UserRole, job.id)

            status_item = QTableWidgetItem(STATUS_LABELS[job.status])
            status_item.setForeground(STATUS_COLORS[job.status])
            if job.status == JobStatus.ERROR and job.error_message:
                status_item.setToolTip(job.error_message)

            values = (
                url_item,
                status_item,
                QTableWidgetItem(job.page_title or "-"),
                QTableWidgetItem(str(job.internal_links)),
                QTableWidgetItem(str(job.external_links)),
                QTableWidgetItem(str(job.broken_links)),
                QTableWidgetItem(_format_time(job.created_at)),
                QTableWidgetItem(_format_time(job.completed_at)),
            )
            for column, item in enumerate(values):
                self.setItem(row, column, item)
            if job.id in selected:
                self.selectRow(row)

    def job_id_at(self, row: int) -> int | None:
        item = self.item(row, 0)
        if item is None:
            return None
        return item.data(Qt.ItemDataRole.UserRole)

    def selected_job_ids(self) -> list[int]:
        rows = sorted({index.row() for index in self.selectedIndexes()})
        return [job_id for row in rows if (job_id := self.job_id_at(row)) is not None]
