import webbrowser

from PySide6.QtCore import Qt, Slot
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QHeaderView,
    QLabel,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
)

from crawl_dashboard.domain.model import JobDetail
from crawl_dashboard.presentation.widgets import STATUS_COLORS, STATUS_LABELS


def _yes_no(value: bool) -> str:
    return "예" if value else "아니오"


class JobDetailDialog(QDialog):
    """Job 한 건의 분석 결과와 깨진 링크 목록을 모달 대화상자로 표시하는 위젯"""

    def __init__(self, detail: JobDetail, parent=None):
        super().__init__(parent)
        self.detail = detail
        job = detail.job
        self.setWindowTitle(f"분석 결과 - {job.url}")
        self.setMinimumSize(800, 600)

        layout = QVBoxLayout(self)

        summary = QFormLayout()
        status_label = QLabel(STATUS_LABELS[job.status])
        status_label.setStyleSheet(f"color: {STATUS_COLORS[job.status].name()};")
        summary.addRow("상태", status_label)
        if job.error_message:
            summary.addRow("에러", QLabel(job.error_message))
        summary.addRow("페이지 제목", QLabel(job.page_title or "-"))
        summary.addRow("HTML 버전", QLabel(job.html_version or "-"))
        summary.addRow(
            "헤딩 (h1~h6)",
            QLabel(" / ".join(str(count) for count in job.headings.as_tuple())),
        )
        summary.addRow(
            "링크 (내부/외부/깨짐)",
            QLabel(f"{job.internal_links} / {job.external_links} / {job.broken_links}"),
        )
        summary.addRow("로그인 폼", QLabel(_yes_no(job.has_login_form)))
        summary.addRow("meta title", QLabel(job.meta_title or "-"))
        summary.addRow("meta description", QLabel(job.meta_description or "-"))
        summary.addRow("canonical", QLabel(job.canonical or "-"))
        summary.addRow(
            "구조화 데이터",
            QLabel(
                f"JSON-LD {_yes_no(job.has_jsonld)}, "
                f"Microdata {_yes_no(job.has_microdata)}, "
                f"RDFa {_yes_no(job.has_rdfa)}"
            ),
        )
        summary.addRow(
            "고아 페이지",
            QLabel(f"{_yes_no(job.is_orphan)} (내부 유입 {job.inbound_internal_links})"),
        )
        layout.addLayout(summary)

        layout.addWidget(QLabel(f"깨진 링크 ({len(detail.broken_links)})"))
        self.links_table = QTableWidget()
        self.links_table.setColumnCount(2)
        self.links_table.setHorizontalHeaderLabels(["URL", "상태 코드"])
        self.links_table.horizontalHeader().setSectionResizeMode(
            0, QHeaderView.ResizeMode.Stretch
        )
        self.links_table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.links_table.cellClicked.connect(self.open_link)
        self.populate_links()
        layout.addWidget(self.links_table)

        self.button_box = QDialogButtonBox()
        self.button_box.addButton("OK", QDialogButtonBox.ButtonRole.AcceptRole)
        self.button_box.accepted.connect(self.accept)
        layout.addWidget(self.button_box)

    def populate_links(self):
        self.links_table.setRowCount(len(self.detail.broken_links))
        for row, link in enumerate(self.detail.broken_links):
            url_item = QTableWidgetItem(link.url)
            font = url_item.font()
            font.setUnderline(True)
            url_item.setFont(font)
            url_item.setForeground(Qt.GlobalColor.blue)

            code_item = QTableWidgetItem(str(link.status_code))
            code_item.setForeground(Qt.GlobalColor.red)

            self.links_table.setItem(row, 0, url_item)
            self.links_table.setItem(row, 1, code_item)

    @Slot(int, int)
    def open_link(self, row: int, column: int):
        if column == 0:
            item = self.links_table.item(row, column)
            if item and item.text():
                webbrowser.open(item.text())
