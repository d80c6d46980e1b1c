import asyncio
from dataclasses import replace
from pathlib import Path

from loguru import logger
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSizePolicy,
    QSpacerItem,
    QVBoxLayout,
    QWidget,
)
from qasync import asyncSlot

from crawl_dashboard.application.commands import (
    AddJobCommand,
    Command,
    DeleteJobsCommand,
    RerunJobsCommand,
    StartJobCommand,
    StopJobCommand,
)
from crawl_dashboard.application.queries import JobListQuery
from crawl_dashboard.bootstrap import Application
from crawl_dashboard.domain.events import JobCollectionChanged, PollingStateChanged
from crawl_dashboard.domain.exceptions import DomainError
from crawl_dashboard.domain.model import JobStatus, SortOrder
from crawl_dashboard.infrastructure.exceptions import TransportError
from crawl_dashboard.infrastructure.message_bus import FunctionHandler
from crawl_dashboard.infrastructure.preferences import (
    POLL_INTERVAL_CHOICES,
    Preferences,
    nearest_poll_interval,
    save_preferences,
)
from crawl_dashboard.presentation.job_detail_dialog import JobDetailDialog
from crawl_dashboard.presentation.widgets import JOB_COLUMNS, STATUS_LABELS, JobTableWidget


class MainWindow(QMainWindow):
    def __init__(
        self,
        application: Application,
        preferences: Preferences,
        preferences_path: Path,
        initial_query: JobListQuery,
        shutdown_event: asyncio.Event,
    ):
        super().__init__()
        self.application = application
        self.preferences = preferences
        self.preferences_path = preferences_path
        self.query = initial_query
        self.shutdown_event = shutdown_event
        self.detail_dialog: JobDetailDialog | None = None

        self.setWindowTitle("Crawl Dashboard")
        self.setGeometry(100, 100, 1100, 700)
        self.setStyleSheet(
            """
            QMainWindow { background-color: #f8f9fa; }
            QLabel { font-size: 14px; }
            QPushButton {
                background-color: #007bff; color: white; border-radius: 5px;
                padding: 8px; font-size: 14px; font-weight: bold;
            }
            QPushButton:hover { background-color: #0056b3; }
            QPushButton:disabled { background-color: #cccccc; color: #666666; }
            QPushButton:checked { background-color: #28a745; }
            QTableWidget {
                border: 1px solid #dee2e6; gridline-color: #dee2e6; font-size: 14px;
            }
            QHeaderView::section {
                background-color: #e9ecef; padding: 4px; border: 1px solid #dee2e6;
                font-size: 14px; font-weight: bold;
            }
            """
        )

        # --- Layouts ---
        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout(central_widget)
        main_layout.setSpacing(12)
        main_layout.setContentsMargins(20, 20, 20, 20)

        title_label = QLabel("Crawl Dashboard")
        title_font = title_label.font()
        title_font.setPointSize(24)
        title_font.setBold(True)
        title_label.setFont(title_font)
        title_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        main_layout.addWidget(title_label)

        # URL 입력
        add_layout = QHBoxLayout()
        self.url_input = QLineEdit()
        self.url_input.setPlaceholderText("분석할 URL을 입력하세요 (https://...)")
        self.url_input.returnPressed.connect(self.add_job)
        add_layout.addWidget(self.url_input)
        self.auto_start_checkbox = QCheckBox("추가 후 바로 시작")
        self.auto_start_checkbox.setChecked(preferences.auto_start)
        self.auto_start_checkbox.toggled.connect(self.on_auto_start_toggled)
        add_layout.addWidget(self.auto_start_checkbox)
        self.add_button = QPushButton("추가")
        self.add_button.clicked.connect(self.add_job)
        add_layout.addWidget(self.add_button)
        main_layout.addLayout(add_layout)

        # 검색 / 상태 필터 / 자동 새로고침
        filter_layout = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("URL 또는 제목 검색")
        self.search_input.returnPressed.connect(self.apply_filters)
        filter_layout.addWidget(self.search_input)
        self.status_filter = QComboBox()
        self.status_filter.addItem("전체 상태", None)
        for status in JobStatus:
            self.status_filter.addItem(STATUS_LABELS[status], status)
        self.status_filter.currentIndexChanged.connect(self.apply_filters)
        filter_layout.addWidget(self.status_filter)
        filter_layout.addSpacerItem(
            QSpacerItem(
                40, 20, QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Minimum
            )
        )
        self.polling_button = QPushButton("자동 새로고침 꺼짐")
        self.polling_button.setCheckable(True)
        self.polling_button.toggled.connect(self.on_polling_toggled)
        filter_layout.addWidget(self.polling_button)
        self.interval_combo = QComboBox()
        for seconds in POLL_INTERVAL_CHOICES:
            self.interval_combo.addItem(f"{seconds:g}초", seconds)
        self.interval_combo.setCurrentIndex(
            POLL_INTERVAL_CHOICES.index(nearest_poll_interval(preferences.poll_interval))
        )
        self.interval_combo.currentIndexChanged.connect(self.on_interval_changed)
        filter_layout.addWidget(self.interval_combo)
        main_layout.addLayout(filter_layout)

        # Job 목록
        self.job_table = JobTableWidget()
        self.job_table.horizontalHeader().sectionClicked.connect(self.on_header_clicked)
        self.job_table.cellDoubleClicked.connect(self.show_detail)
        main_layout.addWidget(self.job_table)

        # 선택 작업 / 페이지 이동
        action_layout = QHBoxLayout()
        self.start_button = QPushButton("시작")
        self.start_button.clicked.connect(self.start_selected)
        self.stop_button = QPushButton("중지")
        self.stop_button.clicked.connect(self.stop_selected)
        self.rerun_button = QPushButton("재실행")
        self.rerun_button.clicked.connect(self.rerun_selected)
        self.delete_button = QPushButton("삭제")
        self.delete_button.setStyleSheet(
            "QPushButton { background-color: #dc3545; }"
            "QPushButton:hover { background-color: #b02a37; }"
        )
        self.delete_button.clicked.connect(self.delete_selected)
        for button in (
            self.start_button,
            self.stop_button,
            self.rerun_button,
            self.delete_button,
        ):
            action_layout.addWidget(button)
        action_layout.addSpacerItem(
            QSpacerItem(
                40, 20, QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Minimum
            )
        )
        self.prev_button = QPushButton("이전")
        self.prev_button.clicked.connect(lambda: self.go_to_page(self.query.page - 1))
        action_layout.addWidget(self.prev_button)
        self.page_label = QLabel()
        action_layout.addWidget(self.page_label)
        self.next_button = QPushButton("다음")
        self.next_button.clicked.connect(lambda: self.go_to_page(self.query.page + 1))
        action_layout.addWidget(self.next_button)
        main_layout.addLayout(action_layout)

        self.status_label = QLabel()
        main_layout.addWidget(self.status_label)

        # 폴링 응답 등 버스로 들어오는 모든 컬렉션 변경을 화면에 반영
        self.application.bus.subscribe_to_event(
            JobCollectionChanged, FunctionHandler(self.handle_jobs_changed)
        )
        self.render()

    def closeEvent(self, event: QCloseEvent) -> None:
        logger.info("Close event received. Shutting down...")
        event.accept()
        self.shutdown_event.set()

    # --- Rendering ---

    def render(self):
        store = self.application.store
        self.job_table.populate(store.jobs)
        pagination = store.pagination
        total_pages = max(pagination.total_pages, 1)
        self.page_label.setText(
            f"{pagination.page} / {total_pages} 페이지 (총 {pagination.total}건)"
        )
        self.prev_button.setEnabled(pagination.page > 1)
        self.next_button.setEnabled(pagination.page < pagination.total_pages)

        if store.loading:
            self.status_label.setText("불러오는 중...")
            self.status_label.setStyleSheet("color: #6c757d;")
        elif store.error:
            self.status_label.setText(store.error)
            self.status_label.setStyleSheet("color: #dc3545;")
        else:
            self.status_label.setText("")

    async def handle_jobs_changed(self, event: JobCollectionChanged):
        self.render()

    def on_polling_changed(self, event: PollingStateChanged):
        self.polling_button.blockSignals(True)
        self.polling_button.setChecked(event.active)
        self.polling_button.blockSignals(False)
        self.polling_button.setText(
            f"자동 새로고침 켜짐 ({event.interval:g}초)"
            if event.active
            else "자동 새로고침 꺼짐"
        )

    # --- List ---

    async def refresh(self) -> bool:
        """현재 조회 조건으로 목록을 다시 불러옵니다. 실패하면 False를 반환합니다."""
        task = asyncio.ensure_future(self.application.store.list_jobs(self.query))
        self.render()
        try:
            await task
        except TransportError as e:
            logger.warning(f"Failed to load job list: {e.message}")
            return False
        finally:
            self.render()
        return True

    async def change_query(self, query: JobListQuery):
        """조회 조건을 바꿉니다. 조회에 실패하면 마지막으로 표시된 조건으로 되돌립니다."""
        previous, self.query = self.query, query
        if not await self.refresh() and self.query is query:
            self.query = self.application.store.last_query or previous

    @asyncSlot()
    async def apply_filters(self):
        search = self.search_input.text().strip() or None
        status = self.status_filter.currentData()
        await self.change_query(replace(self.query, search=search, status=status, page=1))

    @asyncSlot(int)
    async def on_header_clicked(self, column: int):
        sort_by = JOB_COLUMNS[column][1]
        if sort_by is None:
            return
        if sort_by == self.query.sort_by and self.query.sort_order == SortOrder.DESC:
            sort_order = SortOrder.ASC
        else:
            sort_order = SortOrder.DESC
        logger.debug(f"Sorting by {sort_by} {sort_order.value}.")
        await self.change_query(
            replace(self.query, sort_by=sort_by, sort_order=sort_order, page=1)
        )

    @asyncSlot(int)
    async def go_to_page(self, page: int):
        if page < 1:
            return
        await self.change_query(self.query.with_page(page))

    # --- Commands ---

    async def dispatch(self, command: Command) -> bool:
        """커맨드를 보내고, 실패하면 사용자에게 메시지를 보여줍니다."""
        try:
            await self.application.bus.handle(command)
        except (DomainError, TransportError) as e:
            logger.warning(f"{type(command).__name__} failed: {e}")
            QMessageBox.warning(self, "요청 실패", str(e))
            return False
        finally:
            self.render()
        return True

    @asyncSlot()
    async def add_job(self):
        url = self.url_input.text()
        if not url.strip():
            return
        logger.info(f"'Add' clicked for {url.strip()}.")
        self.add_button.setEnabled(False)
        try:
            added = await self.dispatch(
                AddJobCommand(url=url, auto_start=self.auto_start_checkbox.isChecked())
            )
        finally:
            self.add_button.setEnabled(True)
        if added:
            self.url_input.clear()

    @asyncSlot()
    async def start_selected(self):
        for job_id in self.job_table.selected_job_ids():
            await self.dispatch(StartJobCommand(job_id=job_id))

    @asyncSlot()
    async def stop_selected(self):
        for job_id in self.job_table.selected_job_ids():
            await self.dispatch(StopJobCommand(job_id=job_id))

    @asyncSlot()
    async def rerun_selected(self):
        job_ids = tuple(self.job_table.selected_job_ids())
        if job_ids:
            await self.dispatch(RerunJobsCommand(job_ids=job_ids))

    @asyncSlot()
    async def delete_selected(self):
        job_ids = tuple(self.job_table.selected_job_ids())
        if not job_ids:
            return
        answer = QMessageBox.question(
            self, "삭제 확인", f"선택한 {len(job_ids)}개의 분석을 삭제할까요?"
        )
        if answer == QMessageBox.StandardButton.Yes:
            await self.dispatch(DeleteJobsCommand(job_ids=job_ids))

    # --- Detail ---

    @asyncSlot(int, int)
    async def show_detail(self, row: int, column: int):
        job_id = self.job_table.job_id_at(row)
        if job_id is None:
            return
        fetcher = self.application.detail_fetcher
        await fetcher.select(job_id)
        try:
            if fetcher.error:
                QMessageBox.warning(self, "상세 조회 실패", fetcher.error)
                return
            if fetcher.detail is None:
                return
            self.detail_dialog = JobDetailDialog(fetcher.detail, self)
            self.detail_dialog.exec()
        finally:
            await fetcher.select(None)

    # --- Preferences ---

    @Slot(bool)
    def on_auto_start_toggled(self, checked: bool):
        self.preferences.auto_start = checked
        save_preferences(self.preferences_path, self.preferences)

    @Slot(bool)
    def on_polling_toggled(self, checked: bool):
        if checked:
            self.application.scheduler.start()
        else:
            self.application.scheduler.stop()

    @Slot(int)
    def on_interval_changed(self, index: int):
        interval = self.interval_combo.itemData(index)
        self.application.scheduler.set_interval(interval)
        self.preferences.poll_interval = interval
        save_preferences(self.preferences_path, self.preferences)
